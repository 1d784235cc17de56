"""
Expression engine exceptions.

These are only raised in strict mode or while loading configuration.
Permissive evaluation degrades to empty forms and NaN results instead.
"""

from typing import TYPE_CHECKING, Any, Dict, Optional

if TYPE_CHECKING:
    from ..parser.tokenizer import Token


class ExpressionError(Exception):
    """Base exception for expression errors"""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class UnbalancedParenthesesError(ExpressionError):
    """Raised when an expression's parentheses do not match"""

    def __init__(self, text: str):
        super().__init__(
            message=f"Unbalanced parentheses in '{text}'",
            details={"text": text}
        )


class MalformedExpressionError(ExpressionError):
    """Raised when an operator or function lacks operands"""

    def __init__(self, message: str, token: Optional["Token"] = None):
        details = {"token": token.value, "position": token.pos} if token else {}
        super().__init__(message=message, details=details)
        self.token = token


class UnresolvedSymbolError(ExpressionError):
    """Raised when an identifier is neither a function nor a bound variable"""

    def __init__(self, name: str):
        super().__init__(
            message=f"Unresolved symbol '{name}'",
            details={"name": name}
        )
        self.name = name


class ConfigurationError(ExpressionError):
    """Raised for an invalid function or constant table"""

    def __init__(self, message: str, source: Optional[str] = None):
        details = {"source": source} if source else {}
        super().__init__(message=message, details=details)
