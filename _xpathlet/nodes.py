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

from collections.abc import Iterable, Iterator, Mapping
from copy import deepcopy
from typing import TYPE_CHECKING, Any, Optional, overload

from _xpathlet.exceptions import InvalidOperation
from _xpathlet.names import deconstruct_clark_notation, name_test
from _xpathlet.xpath import QueryResults
from _xpathlet.xpath import evaluate as evaluate_path

if TYPE_CHECKING:
    from _xpathlet.typing import NamespaceDeclarations


class Element:
    """
    Represents one element of an XML tree. Instances are usually created by
    :func:`xpathlet.parse_tree`, trees are to be considered immutable while they're
    queried.

    :param tag: The element's name, in Clark notation if it has a namespace.
    :param attributes: A mapping of attribute names to values. Namespaced attribute
                       names are expected in Clark notation as well.
    :param text: The text that precedes the first child.
    :param tail: The text that follows the element's end tag.
    :param children: Elements that are appended as children.
    """

    __slots__ = ("_children", "_parent", "attributes", "tag", "tail", "text")

    def __init__(
        self,
        tag: str,
        attributes: Optional[Mapping[str, str]] = None,
        text: Optional[str] = None,
        tail: Optional[str] = None,
        children: Iterable[Element] = (),
    ):
        if not tag:
            raise ValueError("An element's tag must not be empty.")
        self.tag = tag
        self.attributes: dict[str, str] = (
            {} if attributes is None else dict(attributes)
        )
        self.text = text
        self.tail = tail
        self._children: list[Element] = []
        self._parent: Optional[Element] = None
        for child in children:
            self.append(child)

    def __contains__(self, item: Any) -> bool:
        return any(item is c for c in self._children)

    def __deepcopy__(self, memo):
        return self.__class__(
            self.tag,
            attributes=self.attributes,
            text=self.text,
            tail=self.tail,
            children=(deepcopy(c, memo) for c in self._children),
        )

    @overload
    def __getitem__(self, item: int) -> Element: ...

    @overload
    def __getitem__(self, item: slice) -> list[Element]: ...

    def __getitem__(self, item):
        return self._children[item]

    def __iter__(self) -> Iterator[Element]:
        return iter(self._children)

    def __len__(self) -> int:
        return len(self._children)

    def __repr__(self):
        return f"<{self.__class__.__name__}({self.tag!r}) [{hex(id(self))}]>"

    def append(self, child: Element):
        """
        Appends an element that has no parent as last child.

        :meta category: Methods to build a tree
        """
        if child._parent is not None:
            raise InvalidOperation(
                "Only an element without a parent can be appended as child."
            )
        if child is self or any(child is a for a in self.iterate_ancestors()):
            raise InvalidOperation("An element can't become its own descendant.")
        child._parent = self
        self._children.append(child)

    def find(
        self, path: str, namespaces: Optional[NamespaceDeclarations] = None
    ) -> Optional[Element]:
        """
        Returns the first element that matches the path expression or :obj:`None`.

        :meta category: Methods to query the tree
        """
        return next(
            evaluate_path(element=self, expression=path, namespaces=namespaces), None
        )

    def findall(
        self, path: str, namespaces: Optional[NamespaceDeclarations] = None
    ) -> QueryResults:
        """
        Returns all elements that match the path expression in the order of evaluation.

        :meta category: Methods to query the tree
        """
        return QueryResults(
            evaluate_path(element=self, expression=path, namespaces=namespaces)
        )

    def findtext(
        self,
        path: str,
        default: Optional[str] = None,
        namespaces: Optional[NamespaceDeclarations] = None,
    ) -> Optional[str]:
        """
        Returns the :attr:`full_text` of the first element that matches the path
        expression, or ``default`` if there's none.

        :meta category: Methods to query the tree
        """
        element = self.find(path, namespaces=namespaces)
        if element is None:
            return default
        return element.full_text

    @property
    def full_text(self) -> str:
        """The concatenated contents of all text in the element's subtree."""
        return "".join(self.itertext())

    def get(self, name: str, default: Optional[str] = None) -> Optional[str]:
        """Returns an attribute's value or ``default`` if it's not defined."""
        return self.attributes.get(name, default)

    def items(self):
        return self.attributes.items()

    def iter(self, tag: Optional[str] = None) -> Iterator[Element]:
        """
        A :term:`generator iterator` that yields the element itself and all of its
        descendants in document order whose tag matches ``tag``. All are yielded when
        ``tag`` is :obj:`None` or ``*``. See :func:`_xpathlet.names.name_test` for the
        other supported wildcards.

        :meta category: Methods to iterate over related elements
        """
        if tag is None:
            yield from self._iterate_descendants_or_self()
            return

        test = name_test(tag)
        for element in self._iterate_descendants_or_self():
            if test(element.tag):
                yield element

    def iterate_ancestors(self) -> Iterator[Element]:
        """
        A :term:`generator iterator` that yields the element's parent, its parent and
        so on.

        :meta category: Methods to iterate over related elements
        """
        element = self._parent
        while element is not None:
            yield element
            element = element._parent

    def iterfind(
        self, path: str, namespaces: Optional[NamespaceDeclarations] = None
    ) -> Iterator[Element]:
        """
        A :term:`generator iterator` over all elements that match the path expression.

        :meta category: Methods to query the tree
        """
        return evaluate_path(element=self, expression=path, namespaces=namespaces)

    def itertext(self) -> Iterator[str]:
        """
        A :term:`generator iterator` that yields all text contents of the subtree in
        document order. The element's own tail isn't included.

        :meta category: Methods to iterate over related elements
        """
        if self.text:
            yield self.text
        stack = [(self, iter(self._children))]

        while stack:
            element, children = stack[-1]
            for child in children:
                if child.text:
                    yield child.text
                stack.append((child, iter(child._children)))
                break
            else:
                stack.pop()
                if stack and element.tail:
                    yield element.tail

    def _iterate_descendants_or_self(self) -> Iterator[Element]:
        yield self
        stack = [(self._children, 0)]

        while stack:
            siblings, pointer = stack.pop()

            for element in siblings[pointer:]:
                pointer += 1
                yield element

                if element._children:
                    stack.extend(((siblings, pointer), (element._children, 0)))
                    break

    def keys(self):
        return self.attributes.keys()

    @property
    def local_name(self) -> str:
        """The element's name without namespace."""
        return deconstruct_clark_notation(self.tag)[1]

    @property
    def namespace(self) -> Optional[str]:
        """The element's namespace or :obj:`None`."""
        return deconstruct_clark_notation(self.tag)[0]

    @property
    def parent(self) -> Optional[Element]:
        """The element's parent or :obj:`None` for a root element."""
        return self._parent


__all__ = (Element.__name__,)
