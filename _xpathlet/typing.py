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

from collections.abc import Callable
from typing import TYPE_CHECKING, Any, TypeAlias

if TYPE_CHECKING:
    from collections.abc import Mapping

    from _xpathlet.nodes import Element
    from _xpathlet.parser import ParserOptions


# aliases


Filter: TypeAlias = "Callable[[Element], bool]"
NameTest: TypeAlias = Callable[[str], bool]
NamespaceDeclarations: TypeAlias = "Mapping[str | None, str]"
_NamespaceDeclarations: TypeAlias = "Mapping[str, str]"

LoaderResult: TypeAlias = "Element | str"
Loader: TypeAlias = "Callable[[Any, ParserOptions], LoaderResult]"


#


__all__ = (
    "Filter",
    "Loader",
    "LoaderResult",
    "NamespaceDeclarations",
    "NameTest",
)
