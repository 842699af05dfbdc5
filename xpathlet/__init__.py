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
*xpathlet* evaluates an ElementTree-like subset of XPath against trees of XML elements
that are parsed with lxml.
"""

from __future__ import annotations

from _xpathlet.exceptions import (
    FailedDocumentLoading,
    InvalidOperation,
    NamespaceError,
    ParsingError,
    XPathParsingError,
)
from _xpathlet.names import Namespaces, clark_notation, deconstruct_clark_notation
from _xpathlet.nodes import Element
from _xpathlet.parser import (
    buffer_loader,
    configured_loaders,
    element_loader,
    etree_loader,
    parse_tree,
    path_loader,
    ParserOptions,
    register_loader,
    text_loader,
)
from _xpathlet.xpath import evaluate, parse as parse_path, QueryResults
from _xpathlet.xpath.ast import PathExpression


__all__ = (
    buffer_loader.__name__,
    clark_notation.__name__,
    "configured_loaders",
    deconstruct_clark_notation.__name__,
    Element.__name__,
    element_loader.__name__,
    etree_loader.__name__,
    evaluate.__name__,
    FailedDocumentLoading.__name__,
    InvalidOperation.__name__,
    Namespaces.__name__,
    NamespaceError.__name__,
    "parse_path",
    parse_tree.__name__,
    ParserOptions.__name__,
    ParsingError.__name__,
    PathExpression.__name__,
    path_loader.__name__,
    QueryResults.__name__,
    register_loader.__name__,
    text_loader.__name__,
    XPathParsingError.__name__,
)
