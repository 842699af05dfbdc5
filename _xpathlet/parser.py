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
Documents are parsed with lxml_ and converted to trees of :class:`Element` s. The
sources that can be parsed are defined by a list of :term:`loader` s, see
:func:`register_loader`.

.. _lxml: https://lxml.de
"""

from __future__ import annotations

import codecs
import os
import warnings
from collections.abc import Callable
from contextlib import contextmanager
from copy import deepcopy
from io import IOBase
from typing import TYPE_CHECKING, Any, NamedTuple, Optional

from lxml import etree

from _xpathlet.exceptions import FailedDocumentLoading, ParsingError
from _xpathlet.nodes import Element

if TYPE_CHECKING:
    from collections.abc import Iterator

    from _xpathlet.typing import Loader, LoaderResult


class ParserOptions(NamedTuple):
    """
    The configuration options that define the XML parser's behaviour.

    :param encoding: An optional encoding that is expected.  This should be used for
                     streams where the encoding is not noted in an XML document
                     declaration or indicated by a BOM for Unicode encodings.
                     It doesn't affect parsing of data that is passed as :class:`str`.
    :param load_referenced_resources: Allows the loading of referenced external DTDs.
    :param remove_blank_text: Drops text that consists only of whitespace between
                              elements.
    :param resolve_entities: Replaces entity references with their values.
    :param unplugged: Don't load referenced resources over network.
    """

    encoding: Optional[str] = None
    load_referenced_resources: bool = False
    remove_blank_text: bool = False
    resolve_entities: bool = True
    unplugged: bool = False


configured_loaders: list[Loader] = []
"""
This list contains the loaders that are tried in order when a source is parsed with
:func:`parse_tree`.
"""


def register_loader(position: Optional[int] = None) -> Callable[[Loader], Loader]:
    """
    This is a decorator that registers a loader. E.g. to register a loader that
    retrieves a document from IPFS:

    .. testcode::

        from xpathlet import ParserOptions, register_loader, text_loader
        from xpathlet.typing import LoaderResult

        @register_loader()
        def ipfs_loader(source: Any, options: ParserOptions) -> LoaderResult:
            if isinstance(source, str) and source.startswith("ipfs://"):
                # let's assume the document is loaded as string here:
                data = "<root/>"
                return text_loader(data, options)
            # return an indication why this loader didn't attempt to load in order
            # to support debugging
            return "The input value is not an URL with the ipfs scheme."

    As the :func:`text_loader` accepts any string, that loader would have to be
    considered before it:

    .. testcode::

        from xpathlet import configured_loaders, register_loader, text_loader

        @register_loader(position=configured_loaders.index(text_loader))
        def ipfs_loader(source: Any, options: ParserOptions) -> LoaderResult:
            ...

    :param position: The index at which the loader is added to
                     :obj:`configured_loaders`, it will be appended if omitted.
    """

    if position is None:

        def register(loader: Loader) -> Loader:
            configured_loaders.append(loader)
            return loader

    else:

        def register(loader: Loader) -> Loader:
            assert isinstance(position, int)
            configured_loaders.insert(position, loader)
            return loader

    return register


# conversion


def _append_text(element: Element, text: Optional[str]):
    if not text:
        return
    if len(element):
        last_child = element[-1]
        last_child.tail = (last_child.tail or "") + text
    else:
        element.text = (element.text or "") + text


def _convert_tree(root: etree._Element) -> Element:
    # comments, processing instructions and unresolved entities have no representation,
    # their tails become part of the surrounding text
    result = Element(root.tag, attributes=root.attrib, text=root.text)
    stack: list[tuple[etree._Element, Element]] = [(root, result)]

    while stack:
        source, target = stack.pop()
        for child in source:
            if isinstance(child.tag, str):
                element = Element(
                    child.tag, attributes=child.attrib, text=child.text, tail=child.tail
                )
                target.append(element)
                stack.append((child, element))
            else:
                if isinstance(child, etree._Entity):
                    _append_text(target, child.text)
                _append_text(target, child.tail)

    return result


def _make_parser(options: ParserOptions, encoding: Optional[str]) -> etree.XMLParser:
    if encoding is not None:
        # libxml2 doesn't know all aliases of Python's codec names, e.g. `latin-1`
        encoding = codecs.lookup(encoding).name

    return etree.XMLParser(
        dtd_validation=False,
        encoding=encoding,
        load_dtd=options.load_referenced_resources,
        no_network=options.unplugged,
        remove_blank_text=options.remove_blank_text,
        resolve_entities=options.resolve_entities,
        strip_cdata=True,
    )


@contextmanager
def _parsing_errors() -> Iterator[None]:
    try:
        yield
    except etree.XMLSyntaxError as e:
        raise ParsingError(str(e)) from e


# loaders


@register_loader()
def element_loader(data: Any, options: ParserOptions) -> LoaderResult:
    """
    This loader clones an :class:`Element` instance and its descendants. The clone
    has no parent.
    """
    if isinstance(data, Element):
        result = deepcopy(data)
        result.tail = None
        return result
    return "The input value is not an Element instance."


@register_loader()
def etree_loader(data: Any, options: ParserOptions) -> LoaderResult:
    """
    This loader converts :class:`lxml.etree._Element` and
    :class:`lxml.etree._ElementTree` instances.
    """
    if isinstance(data, etree._ElementTree):
        data = data.getroot()
    if isinstance(data, etree._Element) and isinstance(data.tag, str):
        return _convert_tree(data)
    return "The input value is not an lxml element or element tree."


@register_loader()
def path_loader(data: Any, options: ParserOptions) -> LoaderResult:
    """
    This loader loads from a file that is pointed at with a :class:`pathlib.Path`
    instance, or any other :term:`path-like object`.
    """
    if isinstance(data, os.PathLike):
        with open(data, "rb") as file:
            return buffer_loader(file, options)
    return "The input value is not a path-like object."


@register_loader()
def buffer_loader(data: Any, options: ParserOptions) -> LoaderResult:
    """
    This loader loads a document from a :term:`file-like object` that reads binary data.
    """
    if isinstance(data, IOBase):
        with _parsing_errors():
            tree = etree.parse(data, parser=_make_parser(options, options.encoding))
        return _convert_tree(tree.getroot())
    return "The input value is no buffer object."


@register_loader()
def text_loader(data: Any, options: ParserOptions) -> LoaderResult:
    """
    Parses a string or a byte sequence that contains a full document.
    """
    if isinstance(data, str):
        if options.encoding is not None:
            warnings.warn(
                "The encoding option has no effect on data that is passed as string.",
                category=UserWarning,
            )
        # the text is already decoded, hence a declared encoding must be ignored
        data, encoding = data.encode("utf-8"), "utf-8"
    elif isinstance(data, bytes):
        encoding = options.encoding
    else:
        return "The input value is not a byte sequence or a string."

    with _parsing_errors():
        root = etree.fromstring(data, parser=_make_parser(options, encoding))
    return _convert_tree(root)


# interface


def parse_tree(source: Any, options: Optional[ParserOptions] = None) -> Element:
    """
    Parses a document into a tree of :class:`Element` s and returns its root element.
    The ``source`` is handed to the :obj:`configured_loaders` in order until one of
    them accepts it. With the default loaders these can be:

    - an :class:`Element`, which is cloned.
    - an :mod:`lxml.etree` element or element tree.
    - a :class:`pathlib.Path` pointing to a file.
    - a binary :term:`file-like object`.
    - a :class:`str` or :class:`bytes` that contains the document.

    :raises ParsingError: If the document isn't well-formed.
    :raises FailedDocumentLoading: If no loader accepted the ``source``.
    """
    if options is None:
        options = ParserOptions()

    excuses: dict[Loader, str] = {}
    for loader in configured_loaders:
        result = loader(source, options)
        if isinstance(result, str):
            excuses[loader] = result
        else:
            return result

    raise FailedDocumentLoading(source, excuses)


__all__ = (
    "configured_loaders",
    parse_tree.__name__,
    ParserOptions.__name__,
    register_loader.__name__,
)
__all__ += tuple(x.__name__ for x in configured_loaders)
