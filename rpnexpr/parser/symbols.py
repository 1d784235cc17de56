"""
Symbol classification for expression tokens.

Decides whether a piece of text is a numeric literal, an operator, a function
name or a variable reference, and supplies operator metadata (precedence,
associativity, arity).
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Iterable, Mapping

from .context import Function, Variable


class Associativity(Enum):
    """Operator associativity."""

    LEFT = "left"
    RIGHT = "right"


@dataclass(frozen=True)
class OperatorConfig:
    """Configuration for an operator."""

    symbol: str
    precedence: int
    associativity: Associativity
    binary: bool = True  # True for binary, False for unary

    @property
    def arity(self) -> int:
        return 2 if self.binary else 1

    @property
    def left_associative(self) -> bool:
        return self.associativity is Associativity.LEFT


NEGATION = "~"

OPERATORS: Mapping[str, OperatorConfig] = MappingProxyType({
    "+": OperatorConfig("+", precedence=1, associativity=Associativity.LEFT),
    "-": OperatorConfig("-", precedence=1, associativity=Associativity.LEFT),
    "*": OperatorConfig("*", precedence=2, associativity=Associativity.LEFT),
    "/": OperatorConfig("/", precedence=2, associativity=Associativity.LEFT),
    "^": OperatorConfig("^", precedence=3, associativity=Associativity.RIGHT),
    NEGATION: OperatorConfig(NEGATION, precedence=3, associativity=Associativity.RIGHT, binary=False),
})

# Characters the tokenizer splits on; each becomes its own token
SPECIAL_CHARACTERS = frozenset("()+-*/^~")

# Decimal literal with optional exponent, or inf/infinity/nan
NUMBER_PATTERN = re.compile(
    r"[+-]?(?:(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?|inf(?:inity)?|nan)",
    re.IGNORECASE,
)

# Hexadecimal literal with optional binary exponent: 0x10, 0x1.8p3
HEX_NUMBER_PATTERN = re.compile(
    r"[+-]?0[xX](?:[0-9a-fA-F]+\.?[0-9a-fA-F]*|\.[0-9a-fA-F]+)(?:[pP][+-]?\d+)?"
)


def parse_number(text: str) -> float | None:
    """
    Parse text as a floating-point literal.

    The whole string must be consumed. Decimal and hexadecimal (``0x1p3``)
    forms are accepted. A leading ``~`` is read as a minus sign, so ``~2.5``
    is the literal -2.5.

    Returns:
        The literal's value, or None if text is not a number
    """
    if text.startswith(NEGATION):
        text = "-" + text[1:]
    if HEX_NUMBER_PATTERN.fullmatch(text):
        return float.fromhex(text)
    if not NUMBER_PATTERN.fullmatch(text):
        return None
    return float(text)


def is_number(text: str) -> bool:
    """Check if text is a complete floating-point literal."""
    return parse_number(text) is not None


def is_operator(text: str) -> bool:
    """Check if text is one of ``+ - * / ^ ~``."""
    return text in OPERATORS


def get_operator(text: str) -> OperatorConfig:
    """Get operator metadata; raises KeyError for non-operators."""
    return OPERATORS[text]


def is_parenthesis(text: str) -> bool:
    return text in ("(", ")")


def lookup_function(name: str, functions: Mapping[str, Function]) -> Function | None:
    """Find a function by exact name."""
    return functions.get(name)


def resolve_variable(name: str, bindings: Iterable[Variable]) -> float | None:
    """
    Resolve a variable reference against an ordered list of bindings.

    The first binding whose name equals ``name`` wins. A reference of the
    form ``~name`` resolves to the negated value of ``name``; the shipped
    tokenizer always splits ``~`` off, so this only serves token streams
    produced elsewhere.

    Returns:
        The bound value, or None if nothing matches
    """
    if is_operator(name):
        return None
    for variable in bindings:
        if variable.name == name:
            return variable.value
        if NEGATION + variable.name == name:
            return -1.0 * variable.value
    return None


def format_number(value: float) -> str:
    """
    Canonical printable form of a numeric literal.

    Integral values print without a fractional part (``2.0`` -> ``2``), other
    values use the shortest representation that round-trips.
    """
    if math.isfinite(value) and value == int(value) and abs(value) < 1e16:
        return str(int(value))
    return repr(value)
