"""
Postfix (RPN) evaluation against variable bindings and a function table.

Evaluation is a single pass with a value stack. By default the evaluator is
permissive, as malformed input never raises:
- a function with an empty stack makes the whole result NaN;
- an operator without enough operands is skipped;
- an identifier that resolves to nothing is dropped;
- the result is NaN unless exactly one value is left.

Arithmetic follows IEEE-754, so division by zero and domain errors surface as
infinities or NaN rather than exceptions. In strict mode skipped operators
and dropped identifiers raise instead.
"""

from __future__ import annotations

import math
from typing import Iterable, Mapping, Sequence

from ..core.errors import MalformedExpressionError, UnresolvedSymbolError
from ..core.logging import get_logger
from .context import DEFAULT_FUNCTIONS, Function, Variable
from .symbols import NEGATION, OPERATORS, lookup_function, parse_number, resolve_variable
from .tokenizer import Token, TokenType

logger = get_logger(__name__)

UNDEFINED = math.nan


def _divide(a: float, b: float) -> float:
    if b == 0:
        if a == 0 or math.isnan(a):
            return math.nan
        return math.copysign(math.inf, a) * math.copysign(1.0, b)
    return a / b


def _power(a: float, b: float) -> float:
    try:
        result = math.pow(a, b)
    except OverflowError:
        # Overflow keeps the sign an odd integral exponent would give
        if a < 0 and b == int(b) and int(b) % 2 == 1:
            return -math.inf
        return math.inf
    except ValueError:
        # 0 ^ negative is a pole, negative ^ fractional has no real value
        if a == 0:
            if b == int(b) and int(b) % 2 == 1:
                return math.copysign(math.inf, a)
            return math.inf
        return math.nan
    return result


def _multiply(a: float, b: float) -> float:
    return a * b


def _add(a: float, b: float) -> float:
    return a + b


def _subtract(a: float, b: float) -> float:
    return a - b


BINARY_OPERATIONS = {
    "+": _add,
    "-": _subtract,
    "*": _multiply,
    "/": _divide,
    "^": _power,
}


def calculate(a: float, b: float, op: str) -> float:
    """Apply a binary operator; NaN for unknown operators."""
    operation = BINARY_OPERATIONS.get(op)
    if operation is None:
        return UNDEFINED
    return operation(a, b)


def calculate_unary(x: float, op: str) -> float:
    """Apply a unary operator; NaN for unknown operators."""
    if op == NEGATION:
        return -1.0 * x
    return UNDEFINED


class RPNEvaluator:
    """
    Evaluates RPN token sequences.

    Example:
        >>> evaluator = RPNEvaluator()
        >>> evaluator.evaluate(to_rpn(tokenize("x^2")), [Variable("x", 3.0)])
        9.0
    """

    def __init__(self, functions: Mapping[str, Function] | None = None, strict: bool = False):
        """
        Args:
            functions: Function table; defaults to the eight built-ins
            strict: Raise on malformed operators and unresolved identifiers
        """
        self.functions = functions if functions is not None else DEFAULT_FUNCTIONS
        self.strict = strict

    def evaluate(self, rpn: Sequence[Token], bindings: Iterable[Variable] = ()) -> float:
        """
        Evaluate an RPN sequence.

        Args:
            rpn: Tokens in postfix order
            bindings: Variables, consulted in order (first match wins)

        Returns:
            The result, or NaN if the sequence does not reduce to one value

        Raises:
            MalformedExpressionError: Strict mode, operator lacks operands
            UnresolvedSymbolError: Strict mode, identifier not bound
        """
        variables = tuple(bindings)
        values: list[float] = []

        for token in rpn:
            if token.type is TokenType.NUMBER:
                number = token.number if token.number is not None else parse_number(token.value)
                values.append(number if number is not None else UNDEFINED)
                continue

            function = self._function_for(token)
            if function is not None:
                if not values:
                    logger.debug("Function %s applied to an empty stack", token.value)
                    if self.strict:
                        raise MalformedExpressionError(
                            f"Function '{token.value}' has no argument", token
                        )
                    return UNDEFINED
                values.append(self._call(function, values.pop()))
                continue

            if token.type is TokenType.OPERATOR:
                self._apply_operator(token, values)
                continue

            value = resolve_variable(token.value, variables)
            if value is None:
                logger.debug("Dropping unresolved symbol %s", token.value)
                if self.strict:
                    raise UnresolvedSymbolError(token.value)
                continue
            values.append(value)

        if len(values) == 1:
            return values.pop()

        logger.debug("RPN left %d values on the stack", len(values))
        if self.strict:
            raise MalformedExpressionError(
                f"Expression reduces to {len(values)} values instead of 1"
            )
        return UNDEFINED

    def _function_for(self, token: Token) -> Function | None:
        if token.type is TokenType.FUNCTION or token.type is TokenType.IDENTIFIER:
            return lookup_function(token.value, self.functions)
        return None

    @staticmethod
    def _call(function: Function, x: float) -> float:
        # Caller-supplied functions may raise (math.log(-1)) or return non-numbers
        try:
            return float(function(x))
        except Exception as e:
            logger.debug("Function %s(%r) is undefined: %r", function.name, x, e)
            return UNDEFINED

    def _apply_operator(self, token: Token, values: list[float]) -> None:
        config = OPERATORS[token.value]

        if len(values) < config.arity:
            logger.debug(
                "Skipping operator %s at %d: %d operand(s) available",
                token.value,
                token.pos,
                len(values),
            )
            if self.strict:
                raise MalformedExpressionError(
                    f"Operator '{token.value}' needs {config.arity} operand(s), found {len(values)}",
                    token,
                )
            return

        if config.binary:
            b = values.pop()
            a = values.pop()
            values.append(calculate(a, b, token.value))
        else:
            values.append(calculate_unary(values.pop(), token.value))


def evaluate_rpn(
    rpn: Sequence[Token],
    bindings: Iterable[Variable] = (),
    functions: Mapping[str, Function] | None = None,
) -> float:
    """Evaluate an RPN sequence permissively."""
    return RPNEvaluator(functions).evaluate(rpn, bindings)
