"""
Shared pytest fixtures for the expression engine tests.

Provides:
- Settings and contexts independent of the environment
- Helpers for tokenizing and converting expressions
"""

import pytest

from rpnexpr.core.config import Settings
from rpnexpr.parser.context import Context
from rpnexpr.parser.shunting_yard import to_rpn
from rpnexpr.parser.tokenizer import tokenize


@pytest.fixture
def settings():
    """Default settings, ignoring RPNEXPR_* environment variables and .env."""
    return Settings(_env_file=None, LOG_LEVEL="WARNING", STRICT=False,
                    CONSTANT_PRECISION="double", FREE_VARIABLE="x")


@pytest.fixture
def context():
    """Default double-precision context."""
    return Context.default()


@pytest.fixture
def rpn_of(context):
    """Factory returning the space-joined RPN form of an expression."""
    def _rpn_of(text: str) -> str:
        return " ".join(token.value for token in to_rpn(tokenize(text, context)))
    return _rpn_of


@pytest.fixture
def values_of(context):
    """Factory returning the token texts of an expression."""
    def _values_of(text: str) -> list[str]:
        return [token.value for token in tokenize(text, context)]
    return _values_of
