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
from collections.abc import Iterator, Sequence
from functools import lru_cache
from typing import TYPE_CHECKING, Optional, Union, cast

from _xpathlet.exceptions import NamespaceError, XPathParsingError
from _xpathlet.names import Namespaces, clark_notation
from _xpathlet.xpath.ast import (
    AttributePredicate,
    ChildByTag,
    ChildPredicate,
    DescendantOrSelfAxis,
    ParentAxis,
    PathExpression,
    PathStep,
    PositionPredicate,
    Self,
    TextPredicate,
    Wildcard,
)
from _xpathlet.xpath.tokenizer import (
    COMPLEMENTING_TOKEN_TYPES,
    Token,
    TokenType,
    tokenize,
)

if TYPE_CHECKING:
    from typing import Final, TypeAlias

    from _xpathlet.typing import NamespaceDeclarations


PARSER_CACHE_SIZE: Final = int(os.environ.get("XPATHLET_PARSER_CACHE_SIZE", "64"))

TokenPattern: TypeAlias = Sequence[Union[TokenType, None]]  # noqa: SIM907
TokenTree: TypeAlias = Sequence[Union[Token, "TokenTree"]]  # noqa: TC008


LOCATION_STEP_SEPARATORS: Final = (TokenType.SLASH, TokenType.SLASH_SLASH)


def all_tokens_match(tokens: TokenTree, pattern: TokenPattern) -> bool:
    if len(tokens) != len(pattern):
        return False
    return compare_tokens_with_pattern(tokens=tokens, pattern=pattern)


def compare_tokens_with_pattern(tokens: TokenTree, pattern: TokenPattern) -> bool:
    # a None value in the `pattern` sequence matches for enclosed expressions

    for token, _type in zip(tokens, pattern):
        if isinstance(token, Token):
            if token.type != _type:
                return False
        else:  # isinstance(token, TokenTree)
            if _type is not None:
                return False
    return True


def group_enclosed_expressions(tokens: Sequence[Token]) -> TokenTree:
    # this function serves two purposes:
    # - validating enclosed expressions
    # - generating a nested sequence of the enclosed tokens to simplify the pattern
    #   matching in step generation

    result: list[Token | TokenTree] = []
    openers = []

    for i, token in enumerate(tokens):
        if token.type in (TokenType.OPEN_BRACKET, TokenType.OPEN_PARENS):
            openers.append((i, token))

        elif token.type in (TokenType.CLOSE_BRACKET, TokenType.CLOSE_PARENS):
            if not openers:
                raise XPathParsingError(
                    position=token.position,
                    message=f"Closing `{token.string}` has no opening counterpart.",
                )

            start_pos, start_token = openers.pop()

            if token.type is not COMPLEMENTING_TOKEN_TYPES[start_token.type]:
                raise XPathParsingError(
                    position=token.position,
                    message=f"Closing `{token.string}` doesn't match opening "
                    f"`{start_token.string}` at position {start_token.position}.",
                )

            if not openers:
                contents = group_enclosed_expressions(tokens[start_pos + 1 : i])
                if contents:
                    result.extend(
                        [
                            start_token,
                            contents,
                            token,
                        ]
                    )
                else:
                    result.extend((start_token, token))

        elif not openers:
            result.append(token)

    if openers:
        token = openers[-1][1]
        raise XPathParsingError(
            position=token.position, message=f"`{token.string}` is never closed."
        )

    return result


def initial_tokens_match(tokens: TokenTree, pattern: TokenPattern) -> bool:
    if len(tokens) < len(pattern):
        return False
    return compare_tokens_with_pattern(tokens, pattern)


def partition_location_steps(
    tokens: TokenTree,
) -> Iterator[tuple[Optional[Token], TokenTree]]:
    # yields the tokens of each location step along with the separator that precedes
    # it, the first one has none
    separator: Optional[Token] = None
    current_partition: list[Token | TokenTree] = []

    for token in tokens:
        if isinstance(token, Token) and token.type in LOCATION_STEP_SEPARATORS:
            yield separator, current_partition
            separator, current_partition = token, []
        else:
            current_partition.append(token)

    yield separator, current_partition


def parse_location_path(tokens: TokenTree, namespaces: Namespaces) -> list[PathStep]:
    if not tokens:
        raise XPathParsingError(message="Missing location path.")

    result: list[PathStep] = []

    for separator, step_tokens in partition_location_steps(tokens):
        if separator is None:
            if step_tokens:
                result.extend(parse_location_step(step_tokens, namespaces))
            continue

        if not step_tokens:
            raise XPathParsingError(
                position=separator.position + len(separator.string),
                message="Missing location step.",
            )

        steps = parse_location_step(step_tokens, namespaces)

        if separator.type is TokenType.SLASH:
            if not result:
                raise XPathParsingError(
                    position=separator.position,
                    message="Absolute location paths aren't supported, an element "
                    "has no document context.",
                )
        else:
            if not isinstance(steps[0], ChildByTag):
                raise XPathParsingError(
                    position=separator.position,
                    message="`//` must be followed by a name test.",
                )
            result.append(DescendantOrSelfAxis())

        result.extend(steps)

    return result


def parse_location_step(tokens: TokenTree, namespaces: Namespaces) -> list[PathStep]:
    result: list[PathStep]

    # node test

    if initial_tokens_match(tokens, (TokenType.DOT_DOT,)):
        result = [ParentAxis()]
        tokens = tokens[1:]

    elif initial_tokens_match(tokens, (TokenType.DOT,)):
        result = [Self()]
        tokens = tokens[1:]

    elif initial_tokens_match(tokens, (TokenType.ASTERISK,)):
        result = [Wildcard()]
        tokens = tokens[1:]

    elif (name_length := _match_name(tokens, allow_asterisk=True)) is not None:
        result = [ChildByTag(parse_name(tokens[:name_length], namespaces))]
        tokens = tokens[name_length:]

    elif initial_tokens_match(tokens, (TokenType.STRUDEL,)):
        assert isinstance(tokens[0], Token)
        raise XPathParsingError(
            position=tokens[0].position,
            message="Attributes can only be tested in predicates.",
        )

    else:
        assert isinstance(tokens[0], Token)
        raise XPathParsingError(
            message="Unrecognized node test.", position=tokens[0].position
        )

    # predicates

    while tokens:
        if initial_tokens_match(
            tokens, (TokenType.OPEN_BRACKET, None, TokenType.CLOSE_BRACKET)
        ):
            assert isinstance(tokens[1], Sequence)
            result.append(
                parse_predicate(cast("TokenTree", tokens[1]), namespaces=namespaces)
            )
            tokens = tokens[3:]
        elif initial_tokens_match(
            tokens, (TokenType.OPEN_BRACKET, TokenType.CLOSE_BRACKET)
        ):
            assert isinstance(tokens[0], Token)
            raise XPathParsingError(
                position=tokens[0].position, message="Empty predicate."
            )
        else:
            token = tokens[0]
            while not isinstance(token, Token):
                token = token[0]
            raise XPathParsingError(
                position=token.position, message="Unrecognized expression."
            )

    return result


def parse_name(tokens: TokenTree, namespaces: Namespaces) -> str:
    # expects tokens that were confirmed by _match_name

    if len(tokens) == 3:
        prefix, _, local_name = cast("Sequence[Token]", tokens)
        if prefix.string not in namespaces:
            raise NamespaceError(prefix=prefix.string, position=prefix.position)
        return clark_notation(namespaces[prefix.string], local_name.string)

    token = tokens[0]
    assert isinstance(token, Token)

    if token.type is TokenType.CLARK_NAME:
        return token.string

    assert token.type is TokenType.NAME
    return clark_notation(namespaces.default_namespace or None, token.string)


def parse_predicate(  # noqa: C901
    tokens: TokenTree, namespaces: Namespaces
) -> PathStep:
    if all_tokens_match(tokens, (TokenType.NUMBER,)):
        assert isinstance(tokens[0], Token)
        if (index := int(tokens[0].string)) < 1:
            raise XPathParsingError(
                position=tokens[0].position, message="Positions start at 1."
            )
        return PositionPredicate(index)

    if initial_tokens_match(
        tokens, (TokenType.NAME, TokenType.OPEN_PARENS, TokenType.CLOSE_PARENS)
    ):
        assert isinstance(tokens[0], Token)
        if tokens[0].string != "last":
            raise XPathParsingError(
                position=tokens[0].position,
                message=f"Unsupported function: `{tokens[0].string}`",
            )

        if len(tokens) == 3:
            return PositionPredicate(-1)

        if all_tokens_match(
            tokens[3:],
            (TokenType.MINUS, TokenType.NUMBER),
        ):
            assert isinstance(tokens[4], Token)
            return PositionPredicate(-1 - int(tokens[4].string))

    elif all_tokens_match(tokens, (TokenType.DOT, TokenType.EQUALS, TokenType.STRING)):
        assert isinstance(tokens[2], Token)
        return TextPredicate(tokens[2].string[1:-1])

    elif initial_tokens_match(tokens, (TokenType.STRUDEL,)):
        name_length = _match_name(tokens[1:], allow_asterisk=False)
        if name_length is not None:
            # attribute names are taken literally, prefixes aren't resolved
            name = "".join(
                cast("Token", x).string for x in tokens[1 : name_length + 1]
            )
            value = _match_value(tokens[name_length + 1 :])
            if value is not False:
                return AttributePredicate(name, value)

    elif (name_length := _match_name(tokens, allow_asterisk=False)) is not None:
        value = _match_value(tokens[name_length:])
        if value is not False:
            return ChildPredicate(parse_name(tokens[:name_length], namespaces), value)

    token = tokens[0]
    assert isinstance(token, Token)
    raise XPathParsingError(
        position=token.position, message="Unrecognized predicate expression."
    )


def _match_name(tokens: TokenTree, allow_asterisk: bool) -> Optional[int]:
    # returns the number of tokens that make up a name or None if there's none
    if initial_tokens_match(
        tokens, (TokenType.NAME, TokenType.COLON, TokenType.NAME)
    ) or (
        allow_asterisk
        and initial_tokens_match(
            tokens, (TokenType.NAME, TokenType.COLON, TokenType.ASTERISK)
        )
    ):
        return 3
    if initial_tokens_match(tokens, (TokenType.NAME,)) or initial_tokens_match(
        tokens, (TokenType.CLARK_NAME,)
    ):
        return 1
    return None


def _match_value(tokens: TokenTree) -> Optional[str] | bool:
    # returns the string that is compared with, None if there's no comparison and
    # False if the tokens are no comparison at all
    if not tokens:
        return None
    if all_tokens_match(tokens, (TokenType.EQUALS, TokenType.STRING)):
        assert isinstance(tokens[1], Token)
        return tokens[1].string[1:-1]
    return False


@lru_cache(PARSER_CACHE_SIZE)
def _parse(expression: str, namespaces: Namespaces) -> PathExpression:
    try:
        tokens = group_enclosed_expressions(tokenize(expression))
        return PathExpression(parse_location_path(tokens, namespaces))
    except XPathParsingError as e:
        e.expression = expression
        if e.position is None:
            e.position = 0
        raise e


def parse(
    expression: str, namespaces: Optional[NamespaceDeclarations] = None
) -> PathExpression:
    """
    Parses a path expression into a :class:`PathExpression`. Prefixed names are
    rewritten to Clark notation with the given ``namespaces`` while doing so.

    :raises XPathParsingError: If the expression isn't supported or the namespace
                               declarations are invalid, e.g. when the reserved
                               prefix ``xml`` is bound to another namespace.
    :raises NamespaceError: If a prefix isn't declared.
    """
    if not isinstance(namespaces, Namespaces):
        try:
            namespaces = Namespaces(namespaces or {})
        except ValueError as e:
            raise XPathParsingError(
                expression=expression, position=0, message=str(e)
            ) from e
    return _parse(expression, namespaces)


__all__ = (parse.__name__,)
