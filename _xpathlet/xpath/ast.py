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

from abc import ABC, abstractmethod
from collections import defaultdict
from collections.abc import Iterable, Iterator, Sequence
from textwrap import indent
from typing import TYPE_CHECKING, Any, Optional

from _xpathlet.exceptions import InvalidCodePath
from _xpathlet.names import name_test


if TYPE_CHECKING:
    from typing import Final

    from _xpathlet.nodes import Element


# helper


def nested_repr(obj: Any) -> str:  # pragma: no cover
    result = f"{obj.__class__.__name__}(\n"
    for name, value in ((x, getattr(obj, x)) for x in obj._fields):
        result += f"  {name}="
        if isinstance(value, Iterable) and not isinstance(value, str):
            result += (
                "[\n" + "\n".join(indent(repr(x), "    ") for x in value) + "\n]\n"
            )
        else:
            result += f"{value!r}\n"
    result += ")"
    return result


def quote(value: str) -> str:
    if "'" in value:
        if '"' in value:
            raise ValueError(
                "A string that contains both kinds of quotes can't be expressed."
            )
        return f'"{value}"'
    return f"'{value}'"


def _sibling_group(node: Element) -> tuple[bool, int]:
    # parentless nodes form a group on their own
    if node._parent is None:
        return False, id(node)
    return True, id(node._parent)


# base classes for nodes


class Node(ABC):
    __slots__: tuple[str, ...] = ()
    _fields: tuple[str, ...] = ()

    def __eq__(self, other):
        return type(self) is type(other) and all(
            getattr(self, x) == getattr(other, x) for x in self._fields
        )

    def __hash__(self):
        return hash((type(self), *(getattr(self, x) for x in self._fields)))

    def __repr__(self):
        return (
            f"{self.__class__.__qualname__}("
            f"{', '.join(f'{x}={getattr(self, x)!r}' for x in self._fields)})"
        )


class PathStep(Node):
    """
    One unit of a path expression. Each step transforms the node set that the
    previous one produced into a new one.
    """

    __slots__ = ()

    @abstractmethod
    def __str__(self) -> str:
        pass

    @abstractmethod
    def evaluate(self, node_set: Iterable[Element]) -> Iterator[Element]:
        pass


class Predicate(PathStep):
    """A step that filters the node set, written in brackets after a step."""

    __slots__ = ()

    def evaluate(self, node_set: Iterable[Element]) -> Iterator[Element]:
        yield from (n for n in node_set if self.matches(n))

    @abstractmethod
    def matches(self, node: Element) -> bool:
        pass


# axes


class Self(PathStep):
    __slots__ = ()

    def __str__(self):
        return "."

    def evaluate(self, node_set: Iterable[Element]) -> Iterator[Element]:
        yield from node_set


class ParentAxis(PathStep):
    __slots__ = ()

    def __str__(self):
        return ".."

    def evaluate(self, node_set: Iterable[Element]) -> Iterator[Element]:
        for node in node_set:
            if node._parent is not None:
                yield node._parent


class DescendantOrSelfAxis(PathStep):
    """
    This step is never evaluated on its own, but always in conjunction with the
    :class:`ChildByTag` step that follows it.
    """

    __slots__ = ()

    def __str__(self):
        return ""

    def evaluate(self, node_set: Iterable[Element]) -> Iterator[Element]:
        raise InvalidCodePath

    def select(
        self, node_set: Iterable[Element], step: ChildByTag
    ) -> Iterator[Element]:
        for node in node_set:
            yield from node.iter(step.tag)


# node tests


class ChildByTag(PathStep):
    __slots__ = ("tag", "_test")
    _fields = ("tag",)

    def __init__(self, tag: str):
        self.tag: Final = tag
        self._test: Final = name_test(tag)

    def __str__(self):
        return self.tag

    def evaluate(self, node_set: Iterable[Element]) -> Iterator[Element]:
        test = self._test
        for node in node_set:
            yield from (c for c in node._children if test(c.tag))


class Wildcard(ChildByTag):
    __slots__ = ()
    _fields = ()

    def __init__(self):
        super().__init__("*")

    def evaluate(self, node_set: Iterable[Element]) -> Iterator[Element]:
        for node in node_set:
            yield from node._children


# predicates


class AttributePredicate(Predicate):
    __slots__ = ("name", "value")
    _fields = ("name", "value")

    def __init__(self, name: str, value: Optional[str] = None):
        self.name: Final = name
        self.value: Final = value

    def __str__(self):
        if self.value is None:
            return f"[@{self.name}]"
        return f"[@{self.name}={quote(self.value)}]"

    def matches(self, node: Element) -> bool:
        value = node.attributes.get(self.name)
        if value is None:
            return False
        return self.value is None or value == self.value


class ChildPredicate(Predicate):
    __slots__ = ("tag", "text", "_test")
    _fields = ("tag", "text")

    def __init__(self, tag: str, text: Optional[str] = None):
        self.tag: Final = tag
        self.text: Final = text
        self._test: Final = name_test(tag)

    def __str__(self):
        if self.text is None:
            return f"[{self.tag}]"
        return f"[{self.tag}={quote(self.text)}]"

    def matches(self, node: Element) -> bool:
        test, text = self._test, self.text
        return any(
            test(c.tag) and (text is None or c.full_text == text)
            for c in node._children
        )


class TextPredicate(Predicate):
    __slots__ = ("text",)
    _fields = ("text",)

    def __init__(self, text: str):
        self.text: Final = text

    def __str__(self):
        return f"[.={quote(self.text)}]"

    def matches(self, node: Element) -> bool:
        return node.full_text == self.text


class PositionPredicate(Predicate):
    """
    Selects by position within groups of siblings in the node set. Positive indexes are
    one-based positions from the start, negative ones count from the end as with
    Python's sequences, hence ``-1`` represents ``last()``.
    """

    __slots__ = ("index",)
    _fields = ("index",)

    def __init__(self, index: int):
        if not index:
            raise ValueError("A position must not be zero.")
        self.index: Final = index

    def __str__(self):
        match self.index:
            case -1:
                return "[last()]"
            case index if index < -1:
                return f"[last()-{-index - 1}]"
            case index:
                return f"[{index}]"

    def evaluate(self, node_set: Iterable[Element]) -> Iterator[Element]:
        nodes = tuple(node_set)
        groups: defaultdict[tuple[bool, int], list[int]] = defaultdict(list)
        for i, node in enumerate(nodes):
            groups[_sibling_group(node)].append(i)

        index = self.index - 1 if self.index > 0 else self.index
        selected = set()
        for positions in groups.values():
            if -len(positions) <= index < len(positions):
                selected.add(positions[index])

        yield from (nodes[i] for i in sorted(selected))

    def matches(self, node: Element) -> bool:
        raise InvalidCodePath


# aggregators


class PathExpression(Node):
    """
    A parsed path expression as sequence of :class:`PathStep` s that are evaluated from
    left to right.
    """

    __slots__ = ("steps",)
    _fields = ("steps",)

    def __init__(self, steps: Iterable[PathStep]):
        self.steps: Final[Sequence[PathStep]] = tuple(steps)

    def __repr__(self):
        return nested_repr(self)

    def __str__(self):
        result = []
        separate = False
        for step in self.steps:
            if isinstance(step, Predicate):
                result.append(str(step))
            elif isinstance(step, DescendantOrSelfAxis):
                result.append("//")
                separate = False
            else:
                if separate:
                    result.append("/")
                result.append(str(step))
                separate = True
        return "".join(result)

    def evaluate(self, element: Element) -> Iterator[Element]:
        node_set: Iterable[Element] = (element,)
        steps = iter(self.steps)

        for step in steps:
            if isinstance(step, DescendantOrSelfAxis):
                following_step = next(steps)
                assert isinstance(following_step, ChildByTag)
                node_set = step.select(node_set, following_step)
            else:
                node_set = step.evaluate(node_set)

        yield from node_set


__all__ = (
    AttributePredicate.__name__,
    ChildByTag.__name__,
    ChildPredicate.__name__,
    DescendantOrSelfAxis.__name__,
    ParentAxis.__name__,
    PathExpression.__name__,
    PathStep.__name__,
    PositionPredicate.__name__,
    Predicate.__name__,
    Self.__name__,
    TextPredicate.__name__,
    Wildcard.__name__,
)
