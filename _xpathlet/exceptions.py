# Copyright (C) 2018-'25  Frank Sachsenheim
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License as published
# by the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU Affero General Public License for more details.
#
# You should have received a copy of the GNU Affero General Public License
# along with this program.  If not, see <https://www.gnu.org/licenses/>.

"""These are the specific xpathlet exceptions."""

from __future__ import annotations

from typing import Optional, TYPE_CHECKING, Any

if TYPE_CHECKING:
    from _xpathlet.typing import Loader


class XPathletBaseException(Exception):
    pass


class FailedDocumentLoading(XPathletBaseException):
    """Raised when none of the configured loaders accepted a source."""

    def __init__(self, source: Any, excuses: dict[Loader, str]):
        self.source = source
        self.excuses = excuses

    def __str__(self):
        return f"Couldn't load {self.source!r} with these loaders: {self.excuses}"


class InvalidCodePath(XPathletBaseException, RuntimeError):
    """Raised when a code path that is not expected to be executed is reached."""

    def __init__(self):  # pragma: no cover
        super().__init__(
            "An unintended path was taken through the code. Please report this bug."
        )


class InvalidOperation(XPathletBaseException):
    """Raised when an invalid operation is attempted by the client code."""

    pass


class ParsingError(XPathletBaseException):
    """
    Raised when a document isn't well-formed XML. The parser's original exception is
    available as ``__cause__``.
    """

    pass


class XPathParsingError(XPathletBaseException):
    """Raised when a path expression can't be parsed."""

    def __init__(
        self,
        expression: Optional[str] = None,
        position: Optional[int] = None,
        message: Optional[str] = None,
    ):
        self.expression = expression
        self.position = position
        self.message = message

    def __str__(self):
        expression = self.expression
        assert expression is not None
        assert self.message is not None
        position = self.position
        assert self.position is not None

        expression_length = len(expression)
        snippet_end = min(position + 16, expression_length)

        if expression_length > snippet_end:
            snippet = f"`{expression[position:snippet_end]}…`"
        else:
            snippet = f"`{expression[position:snippet_end]}`"

        if len(snippet) > 2:
            return (
                f"XPath parsing error at character {position} ({snippet}): "
                f"{self.message}"
            )
        else:
            return f"XPath parsing error at character {position}: {self.message}"


class NamespaceError(XPathParsingError):
    """Raised when a name's prefix isn't declared in the provided namespaces."""

    def __init__(self, prefix: str, position: Optional[int] = None):
        super().__init__(
            position=position,
            message=f"The namespace prefix `{prefix}` is unknown.",
        )
        self.prefix = prefix


__all__ = (
    FailedDocumentLoading.__name__,
    InvalidCodePath.__name__,
    InvalidOperation.__name__,
    NamespaceError.__name__,
    ParsingError.__name__,
    XPathletBaseException.__name__,
    XPathParsingError.__name__,
)
