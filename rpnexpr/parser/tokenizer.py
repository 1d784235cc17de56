"""
Tokenizer for infix arithmetic expressions.

The text is split at every special character ``( ) + - * / ^ ~``; each special
character becomes its own token and each run of other characters between them
becomes one token. Numbers and identifiers are not split any further.

Each token is classified once, when it is produced:
numeric literal -> function name -> operator -> parenthesis -> identifier.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum, auto

from ..core.logging import get_logger
from .context import Context
from .symbols import SPECIAL_CHARACTERS, is_operator, parse_number

logger = get_logger(__name__)

WHITESPACE_PATTERN = re.compile(r"\s+")


class TokenType(Enum):
    """Token types for arithmetic expressions."""

    NUMBER = auto()
    OPERATOR = auto()
    LPAREN = auto()  # (
    RPAREN = auto()  # )
    FUNCTION = auto()
    IDENTIFIER = auto()  # variable or constant reference


@dataclass(frozen=True)
class Token:
    """
    Represents a single token in the expression.

    Attributes:
        type: The token type
        value: The string value of the token
        pos: Position in the whitespace-stripped source
        number: Parsed value for NUMBER tokens
    """

    type: TokenType
    value: str
    pos: int = 0
    number: float | None = None

    def __repr__(self) -> str:
        return f"Token({self.type.name}, '{self.value}', pos={self.pos})"

    def __str__(self) -> str:
        return self.value


def strip_whitespace(text: str) -> str:
    """Remove every whitespace character."""
    return WHITESPACE_PATTERN.sub("", text)


def check_parentheses(text: str) -> bool:
    """
    Check that parentheses are balanced.

    Scans left to right counting ``(`` up and ``)`` down; the count may never
    go negative and must end at zero.
    """
    depth = 0
    for ch in text:
        if ch == "(":
            depth += 1
        elif ch == ")":
            depth -= 1
            if depth < 0:
                return False
    return depth == 0


class Tokenizer:
    """
    Splits expression text into classified tokens.

    The context's function table decides which identifiers are function
    names; without a context every identifier is a variable reference.
    """

    def __init__(self, context: Context | None = None):
        """
        Initialize tokenizer with optional context.

        Args:
            context: Context defining the function table
        """
        self.context = context

    def tokenize(self, expression: str) -> tuple[Token, ...]:
        """
        Tokenize an expression.

        Args:
            expression: The expression to tokenize

        Returns:
            Tuple of tokens, empty if the parentheses are unbalanced
        """
        text = strip_whitespace(expression)

        if not check_parentheses(text):
            logger.debug("Unbalanced parentheses in %r", text)
            return ()

        tokens: list[Token] = []
        start = 0

        for pos, ch in enumerate(text):
            if ch not in SPECIAL_CHARACTERS:
                continue
            if pos > start:
                tokens.append(self.classify(text[start:pos], start))
            tokens.append(self.classify(ch, pos))
            start = pos + 1

        if start < len(text):
            tokens.append(self.classify(text[start:], start))

        return tuple(tokens)

    def classify(self, value: str, pos: int = 0) -> Token:
        """
        Build a token for ``value``, deciding its type.

        Args:
            value: Token text
            pos: Position in the stripped source

        Returns:
            Classified token
        """
        number = parse_number(value)
        if number is not None:
            return Token(TokenType.NUMBER, value, pos, number)

        if self.context is not None and self.context.is_function(value):
            return Token(TokenType.FUNCTION, value, pos)

        if is_operator(value):
            return Token(TokenType.OPERATOR, value, pos)

        if value == "(":
            return Token(TokenType.LPAREN, value, pos)

        if value == ")":
            return Token(TokenType.RPAREN, value, pos)

        return Token(TokenType.IDENTIFIER, value, pos)


def tokenize(expression: str, context: Context | None = None) -> tuple[Token, ...]:
    """Tokenize ``expression`` against ``context`` (default: the eight built-in functions)."""
    if context is None:
        context = Context.default()
    return Tokenizer(context).tokenize(expression)
