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

from __future__ import annotations

from collections.abc import Iterator, Mapping
from functools import lru_cache
from types import MappingProxyType
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from typing import Final

    from _xpathlet.typing import (
        NamespaceDeclarations,
        _NamespaceDeclarations,
        NameTest,
    )

XML_NAMESPACE: Final = "http://www.w3.org/XML/1998/namespace"

GLOBAL_NAMESPACES: Final = MappingProxyType({"xml": XML_NAMESPACE})
GLOBAL_PREFIXES: Final = tuple(GLOBAL_NAMESPACES)


def clark_notation(namespace: Optional[str], local_name: str) -> str:
    """
    Composes a name in Clark notation.

    >>> clark_notation('http://www.loc.gov/METS/', 'agent')
    '{http://www.loc.gov/METS/}agent'

    >>> clark_notation(None, 'agent')
    'agent'
    """
    if namespace is None:
        return local_name
    return f"{{{namespace}}}{local_name}"


def deconstruct_clark_notation(name: str) -> tuple[Optional[str], str]:
    """
    Deconstructs a name in Clark notation, that may or may not include a namespace.

    :param name: An attribute's or element's name.
    :return: A tuple with the extracted namespace and local name.

    >>> deconstruct_clark_notation('{http://www.loc.gov/METS/}agent')
    ('http://www.loc.gov/METS/', 'agent')

    >>> deconstruct_clark_notation('country')
    (None, 'country')
    """
    if name.startswith("{"):
        a, b = name.split("}", maxsplit=1)
        return a[1:], b
    else:
        return None, name


def _any_name(_: str) -> bool:
    return True


@lru_cache(256)
def name_test(name: str) -> NameTest:
    """
    Returns a callable that tests whether an element's tag matches ``name``. Next to
    plain names in Clark notation these wildcards are supported:

    - ``*`` matches any name.
    - ``{*}name`` matches the local name in any or no namespace.
    - ``{}name`` matches the local name without a namespace.
    - ``{namespace}*`` matches any name in that namespace.
    - ``{}*`` matches any name without a namespace.
    """
    if name in ("*", "{*}*"):
        return _any_name

    namespace, local_name = deconstruct_clark_notation(name)

    if namespace is None:
        return name.__eq__

    if namespace == "*":

        def test(tag: str) -> bool:
            return deconstruct_clark_notation(tag)[1] == local_name

    elif namespace == "":
        if local_name == "*":

            def test(tag: str) -> bool:
                return not tag.startswith("{")

        else:
            return local_name.__eq__

    elif local_name == "*":
        prefix = f"{{{namespace}}}"

        def test(tag: str) -> bool:
            return tag.startswith(prefix)

    else:
        return name.__eq__

    return test


class Namespaces(Mapping):
    """
    A read-only :term:`mapping` of prefixes to namespaces that ensures globally defined
    prefixes are available and unchanged. A default namespace for unprefixed names can
    be declared with an empty string or :obj:`None` as prefix, it's then available
    under the key ``""``.
    """

    __slots__ = ("__data", "__hash")

    def __init__(self, namespaces: NamespaceDeclarations):
        self.__data: _NamespaceDeclarations

        if isinstance(namespaces, Namespaces):
            self.__data = namespaces.__data
        elif isinstance(namespaces, Mapping):
            self.__data = self.__normalize_declarations(namespaces)
        else:
            raise TypeError

        self.__hash = hash(frozenset(self.__data.items()))

    def __contains__(self, item: object):
        return item in self.__data

    def __getitem__(self, item: str) -> str:
        return self.__data.__getitem__(item)

    def __hash__(self) -> int:
        return self.__hash

    def __iter__(self) -> Iterator[str]:
        yield from self.__data

    def __len__(self) -> int:
        return len(self.__data)

    def __repr__(self) -> str:
        return f"<{self.__class__.__qualname__}({self.__data}) [{hex(id(self))}]>"

    def __str__(self) -> str:
        return str(self.__data)

    @property
    def default_namespace(self) -> Optional[str]:
        """The declared default namespace or :obj:`None`."""
        return self.__data.get("")

    @classmethod
    def __normalize_declarations(
        cls,
        declarations: NamespaceDeclarations,
    ) -> _NamespaceDeclarations:
        if None in declarations and "" in declarations:
            raise ValueError(
                "A default namespace has been defined redundantly with '' and `None.`"
            )

        prefix: str | None
        namespace: str

        result: dict[str, str] = GLOBAL_NAMESPACES.copy()

        for prefix, namespace in declarations.items():
            prefix = cls.__validate_declaration(prefix, namespace)
            result[prefix] = namespace

        return result

    @staticmethod
    def __validate_declaration(prefix: str | None, namespace: str) -> str:
        if prefix is None:
            prefix = ""

        if not isinstance(namespace, str):
            raise TypeError(f"The namespace for `{prefix}` isn't a string.")

        if prefix in GLOBAL_PREFIXES and namespace != GLOBAL_NAMESPACES[prefix]:
            # https://www.w3.org/TR/xml-names/#xmlReserved
            raise ValueError(f"One must not override the global prefix `{prefix}`.")

        return prefix


__all__ = (
    "GLOBAL_NAMESPACES",
    "GLOBAL_PREFIXES",
    "XML_NAMESPACE",
    clark_notation.__name__,
    deconstruct_clark_notation.__name__,
    name_test.__name__,
    Namespaces.__name__,
)
