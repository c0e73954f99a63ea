"""Tokens consumed by the fold parsers."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Protocol


class TokenType(IntEnum):
    """Lexical classes a token source assigns to tokens.

    The numbering matters: comment types form a contiguous range and every
    type above `NULL` is paintable.
    """

    NULL = 0

    COMMENT_EOL = 1
    COMMENT_MULTILINE = 2
    COMMENT_DOCUMENTATION = 3
    COMMENT_KEYWORD = 4
    COMMENT_MARKUP = 5

    RESERVED_WORD = 6
    RESERVED_WORD_2 = 7

    FUNCTION = 8

    LITERAL_BOOLEAN = 9
    LITERAL_NUMBER_DECIMAL_INT = 10
    LITERAL_NUMBER_FLOAT = 11
    LITERAL_NUMBER_HEXADECIMAL = 12
    LITERAL_STRING_DOUBLE_QUOTE = 13
    LITERAL_CHAR = 14
    LITERAL_BACKQUOTE = 15

    DATA_TYPE = 16
    VARIABLE = 17
    REGEX = 18
    ANNOTATION = 19
    IDENTIFIER = 20
    WHITESPACE = 21
    SEPARATOR = 22
    OPERATOR = 23
    PREPROCESSOR = 24

    MARKUP_TAG_DELIMITER = 25
    MARKUP_TAG_NAME = 26
    MARKUP_TAG_ATTRIBUTE = 27
    MARKUP_TAG_ATTRIBUTE_VALUE = 28
    MARKUP_PROCESSING_INSTRUCTION = 29
    MARKUP_CDATA = 30

    ERROR_IDENTIFIER = 31
    ERROR_NUMBER_FORMAT = 32
    ERROR_STRING_DOUBLE = 33
    ERROR_CHAR = 34


@dataclass(eq=False)
class Token:
    """A classified lexeme on one line, linked to the token that follows it.

    Attributes:
        text: The lexeme.
        offset: Document offset of the first character.
        token_type: Lexical class.
        next_token: Following token on the same line, or None at end of line.
    """

    text: str
    offset: int
    token_type: TokenType
    next_token: Token | None = field(default=None, repr=False)

    @property
    def length(self) -> int:
        return len(self.text)

    @property
    def end_offset(self) -> int:
        return self.offset + len(self.text)

    @property
    def lexeme(self) -> str:
        return self.text

    def is_paintable(self) -> bool:
        return self.token_type > TokenType.NULL

    def is_comment(self) -> bool:
        return TokenType.COMMENT_EOL <= self.token_type <= TokenType.COMMENT_MARKUP

    def is_whitespace(self) -> bool:
        return self.token_type == TokenType.WHITESPACE

    def is_identifier(self) -> bool:
        return self.token_type == TokenType.IDENTIFIER

    def is_single_char(self, char: str, token_type: TokenType | None = None) -> bool:
        if token_type is not None and self.token_type != token_type:
            return False
        return self.text == char

    def is_left_curly(self) -> bool:
        return self.is_single_char("{", TokenType.SEPARATOR)

    def is_right_curly(self) -> bool:
        return self.is_single_char("}", TokenType.SEPARATOR)

    def matches(self, token_type: TokenType, lexeme: str) -> bool:
        return self.token_type == token_type and self.text == lexeme

    def starts_with(self, prefix: str) -> bool:
        return self.text.startswith(prefix)

    def ends_with(self, suffix: str) -> bool:
        return self.text.endswith(suffix)

    def __iter__(self) -> Iterator[Token]:
        token: Token | None = self
        while token is not None:
            yield token
            token = token.next_token


def link_tokens(tokens: list[Token]) -> Token | None:
    """Chain `tokens` through `next_token` and return the head (None when empty)."""
    for current, following in zip(tokens, tokens[1:]):
        current.next_token = following
    return tokens[0] if tokens else None


class TokenSource(Protocol):
    """Anything that can hand out the token list of a document line."""

    def get_token_list_for_line(self, line: int) -> Token | None: ...
