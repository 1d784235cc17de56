"""
Parser Package

Tokenization, symbol classification, shunting-yard conversion to RPN and
RPN evaluation.
"""

from .context import DEFAULT_FUNCTIONS, Context, Function, Variable
from .evaluator import RPNEvaluator, evaluate_rpn
from .shunting_yard import ShuntingYard, to_rpn, validate_rpn
from .symbols import (
    OPERATORS,
    Associativity,
    OperatorConfig,
    is_number,
    is_operator,
    lookup_function,
    parse_number,
    resolve_variable,
)
from .tokenizer import Token, Tokenizer, TokenType, check_parentheses, tokenize

__all__ = [
    "Context",
    "Function",
    "Variable",
    "DEFAULT_FUNCTIONS",
    "Token",
    "TokenType",
    "Tokenizer",
    "tokenize",
    "check_parentheses",
    "OPERATORS",
    "Associativity",
    "OperatorConfig",
    "is_number",
    "is_operator",
    "parse_number",
    "lookup_function",
    "resolve_variable",
    "ShuntingYard",
    "to_rpn",
    "validate_rpn",
    "RPNEvaluator",
    "evaluate_rpn",
]
