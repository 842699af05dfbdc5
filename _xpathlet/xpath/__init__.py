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

"""
*xpathlet* queries element trees with path expressions of a small subset of XPath, the
one that is known from the :mod:`xml.etree.ElementTree` API.

These are the supported location steps, which are separated by ``/``:

- ``tag`` selects the child elements with that name, ``*`` selects all.
- ``{namespace}tag`` selects child elements with a name in Clark notation, the
  namespace and the local name can be ``*`` to match any, ``{}tag`` matches names
  without namespace.
- ``prefix:tag`` is resolved to Clark notation with the namespaces that are passed
  along with an expression. A default namespace for names without a prefix can be
  declared with the empty string as prefix.
- ``.`` selects the context element.
- ``..`` selects the parent element.
- ``//`` selects the elements on all levels beneath, and including, the context
  element that match the following name test.

Steps can be followed by any number of predicates:

- ``[@attrib]`` and ``[@attrib='value']`` test the presence or the value of an
  attribute. Attribute names are taken literally as they are stored on an element,
  namespaced ones must be written in Clark notation as prefixes aren't resolved.
- ``[tag]`` and ``[tag='text']`` test for a child with the given name or its full
  text.
- ``[.='text']`` tests the element's own full text.
- ``[1]``, ``[last()]`` and ``[last()-1]`` select by position, which is counted among
  the selected elements that share a parent.

It's not an issue when the same element is selected multiple times, it will be
contained in the results multiple times.
"""

from __future__ import annotations

from collections.abc import Collection, Iterable, Iterator, Sequence
from typing import TYPE_CHECKING, Optional

from _xpathlet.xpath.ast import PathExpression
from _xpathlet.xpath.parser import parse


if TYPE_CHECKING:
    from _xpathlet.nodes import Element
    from _xpathlet.typing import Filter, NamespaceDeclarations


class QueryResults(Sequence["Element"]):
    """
    A container with the results of a path query with some helpers for better readable
    Python expressions.
    """

    def __init__(self, results: Iterable[Element]):
        self.__items = tuple(results)

    def __eq__(self, other):
        if not isinstance(other, Collection):
            raise TypeError

        return len(self.__items) == len(other) and all(
            a is b for a, b in zip(self.__items, other)
        )

    def __getitem__(self, item):
        return self.__items[item]

    def __len__(self) -> int:
        return len(self.__items)

    def __repr__(self):
        return str([repr(x) for x in self.__items])

    def as_list(self) -> list[Element]:
        """The contained elements as a new :class:`list`."""
        return list(self.__items)

    @property
    def as_tuple(self) -> tuple[Element, ...]:
        """The contained elements in a :class:`tuple`."""
        return self.__items

    def filtered_by(self, *filters: Filter) -> QueryResults:
        """
        Returns another :class:`QueryResults` instance that contains all elements
        filtered by the provided :term:`filter` s.
        """
        items: Sequence[Element] = self.__items
        for filter in filters:
            items = [x for x in items if filter(x)]
        return self.__class__(items)

    @property
    def first(self) -> Optional[Element]:
        """The first element from the results or :obj:`None` if there are none."""
        if len(self.__items):
            return self.__items[0]
        else:
            return None

    @property
    def last(self) -> Optional[Element]:
        """The last element from the results or :obj:`None` if there are none."""
        if len(self.__items):
            return self.__items[-1]
        else:
            return None

    @property
    def size(self) -> int:
        """The amount of contained elements."""
        return len(self.__items)


def evaluate(
    element: Element,
    expression: str | PathExpression,
    namespaces: Optional[NamespaceDeclarations] = None,
) -> Iterator[Element]:
    """
    Evaluates a path expression with ``element`` as context. The expression is parsed
    immediately, so that errors are raised before the returned iterator is consumed.
    """
    if not isinstance(expression, PathExpression):
        expression = parse(expression, namespaces)
    return expression.evaluate(element)


__all__ = (
    evaluate.__name__,
    parse.__name__,  # type: ignore
    QueryResults.__name__,
)
