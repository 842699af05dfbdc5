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

import os
import re
from enum import Enum
from functools import lru_cache
from typing import TYPE_CHECKING, NamedTuple

from _xpathlet.exceptions import XPathParsingError
from _xpathlet.grammar import clark_name_pattern, name_pattern


if TYPE_CHECKING:
    from collections.abc import Sequence
    from typing import Final


# constants & data structures

TOKENIZER_CACHE_SIZE: Final = int(
    os.environ.get("XPATHLET_TOKENIZER_CACHE_SIZE", "64")
)

TokenType: Final = Enum(
    "TokenType",
    "STRING NUMBER CLARK_NAME NAME SLASH_SLASH SLASH ASTERISK COLON DOT_DOT DOT "
    "OPEN_BRACKET CLOSE_BRACKET STRUDEL OPEN_PARENS CLOSE_PARENS EQUALS MINUS "
    "WHITESPACE",
)


COMPLEMENTING_TOKEN_TYPES: Final = {
    TokenType.OPEN_BRACKET: TokenType.CLOSE_BRACKET,
    TokenType.OPEN_PARENS: TokenType.CLOSE_PARENS,
}


class Token(NamedTuple):
    position: int
    string: str
    type: TokenType


# token definition


def alternatives(*choices: str) -> str:
    return "|".join(choices)


def named_group(name: str, content: str) -> str:
    return f"(?P<{name}>{content})"


# there's no escaping, a string that contains an apostrophe must be enclosed in
# quotation marks and vice versa
string_pattern: Final = alternatives("'[^']*'", '"[^"]*"')


iterate_tokens: Final = re.compile(
    alternatives(
        named_group("STRING", string_pattern),
        named_group("NUMBER", r"\d+"),
        named_group("CLARK_NAME", clark_name_pattern),
        named_group("NAME", name_pattern),
        named_group("SLASH_SLASH", "//"),
        named_group("SLASH", "/"),
        named_group("ASTERISK", r"\*"),
        named_group("COLON", ":"),
        named_group("DOT_DOT", r"\.\."),
        named_group("DOT", r"\."),
        named_group("OPEN_BRACKET", r"\["),
        named_group("CLOSE_BRACKET", r"\]"),
        named_group("STRUDEL", "@"),
        named_group("OPEN_PARENS", r"\("),
        named_group("CLOSE_PARENS", r"\)"),
        named_group("EQUALS", "="),
        named_group("MINUS", "-"),
        # https://www.w3.org/TR/REC-xml/#NT-S
        named_group("WHITESPACE", "[ \n\t\r]+"),
        named_group("ERROR", ".+"),
    ),
    re.UNICODE | re.DOTALL,
).finditer


# interface


@lru_cache(TOKENIZER_CACHE_SIZE)
def tokenize(expression: str) -> Sequence[Token]:
    result = []

    for match in iterate_tokens(expression):
        assert match is not None
        match token_type := match.lastgroup:
            case "ERROR":
                raise XPathParsingError(
                    position=match.start(), message="Unrecognized token."
                )
            case "WHITESPACE":
                pass
            case _:
                assert token_type is not None
                result.append(
                    Token(
                        position=match.start(),
                        string=match.group(),
                        type=TokenType[token_type],
                    )
                )

    return tuple(result)


__all__ = (tokenize.__name__,)  # type: ignore
