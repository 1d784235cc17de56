"""
rpnexpr - infix arithmetic expressions compiled to RPN.

Expressions are parsed with the shunting-yard algorithm into postfix form
once and evaluated repeatedly for different variable bindings.
"""

from .core.errors import (
    ConfigurationError,
    ExpressionError,
    MalformedExpressionError,
    UnbalancedParenthesesError,
    UnresolvedSymbolError,
)
from .expression import Expression, compile
from .parser.context import DEFAULT_FUNCTIONS, Context, Function, Variable

__version__ = "0.1.0"

__all__ = [
    "Expression",
    "compile",
    "Context",
    "Function",
    "Variable",
    "DEFAULT_FUNCTIONS",
    "ExpressionError",
    "UnbalancedParenthesesError",
    "MalformedExpressionError",
    "UnresolvedSymbolError",
    "ConfigurationError",
]
