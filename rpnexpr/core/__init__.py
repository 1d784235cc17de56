"""Core utilities package"""

from .config import Settings, get_settings
from .errors import (
    ConfigurationError,
    ExpressionError,
    MalformedExpressionError,
    UnbalancedParenthesesError,
    UnresolvedSymbolError,
)
from .logging import get_context_logger, get_logger, setup_logging

__all__ = [
    "Settings",
    "get_settings",
    "setup_logging",
    "get_logger",
    "get_context_logger",
    "ExpressionError",
    "UnbalancedParenthesesError",
    "MalformedExpressionError",
    "UnresolvedSymbolError",
    "ConfigurationError",
]
