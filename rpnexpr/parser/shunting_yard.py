"""
Infix to postfix (RPN) conversion with Dijkstra's shunting-yard algorithm.

Two extensions over the textbook algorithm:
- function tokens ride the operator stack and are emitted after the closing
  parenthesis of their argument;
- ``~`` is unary negation, right-associative with the precedence of ``^``.

Operators pop the stack while its top has strictly greater precedence, or equal
precedence when the incoming operator is left-associative. Chains of ``^`` and
``~`` therefore group right to left.
"""

from __future__ import annotations

from typing import Sequence

from ..core.errors import MalformedExpressionError
from ..core.logging import get_logger
from .symbols import OPERATORS, format_number
from .tokenizer import Token, TokenType

logger = get_logger(__name__)


def _precedence(token: Token) -> int:
    """Precedence of a stack entry; functions and parentheses rank 0."""
    if token.type is TokenType.OPERATOR:
        return OPERATORS[token.value].precedence
    return 0


class ShuntingYard:
    """
    Converts a classified infix token sequence to postfix order.

    The converter is stateless between calls; ``convert`` can be used for
    any number of sequences.
    """

    def convert(self, tokens: Sequence[Token]) -> tuple[Token, ...]:
        """
        Convert infix tokens to RPN.

        Args:
            tokens: Tokens in source order, parentheses already balanced

        Returns:
            Tokens in postfix order, without parentheses
        """
        output: list[Token] = []
        stack: list[Token] = []

        for token in tokens:
            if token.type is TokenType.NUMBER:
                output.append(
                    Token(TokenType.NUMBER, format_number(token.number), token.pos, token.number)
                )

            elif token.type is TokenType.FUNCTION:
                stack.append(token)

            elif token.type is TokenType.OPERATOR:
                self._push_operator(token, stack, output)

            elif token.type is TokenType.LPAREN:
                stack.append(token)

            elif token.type is TokenType.RPAREN:
                self._close_parenthesis(stack, output)

            else:
                # Variable or constant reference
                output.append(token)

        while stack:
            top = stack.pop()
            if top.type is not TokenType.LPAREN:
                output.append(top)

        return tuple(output)

    def _push_operator(self, token: Token, stack: list[Token], output: list[Token]) -> None:
        config = OPERATORS[token.value]
        while stack and stack[-1].type is not TokenType.LPAREN:
            top_precedence = _precedence(stack[-1])
            if top_precedence > config.precedence or (
                top_precedence == config.precedence and config.left_associative
            ):
                output.append(stack.pop())
            else:
                break
        stack.append(token)

    def _close_parenthesis(self, stack: list[Token], output: list[Token]) -> None:
        while stack and stack[-1].type is not TokenType.LPAREN:
            output.append(stack.pop())

        if stack:
            stack.pop()
        else:
            # Balance is checked before conversion
            logger.warning("Right parenthesis without a matching left parenthesis")

        if stack and stack[-1].type is TokenType.FUNCTION:
            output.append(stack.pop())


def to_rpn(tokens: Sequence[Token]) -> tuple[Token, ...]:
    """Convert infix tokens to RPN."""
    return ShuntingYard().convert(tokens)


def validate_rpn(rpn: Sequence[Token]) -> None:
    """
    Check that an RPN sequence reduces to exactly one value.

    Simulates the evaluator's stack depth without computing anything.
    Variable references are assumed to resolve.

    Raises:
        MalformedExpressionError: If an operator or function lacks operands,
            or the sequence leaves no value or several values
    """
    depth = 0
    for token in rpn:
        if token.type is TokenType.OPERATOR:
            arity = OPERATORS[token.value].arity
            if depth < arity:
                raise MalformedExpressionError(
                    f"Operator '{token.value}' needs {arity} operand(s), found {depth}", token
                )
            depth -= arity - 1
        elif token.type is TokenType.FUNCTION:
            if depth < 1:
                raise MalformedExpressionError(f"Function '{token.value}' has no argument", token)
        else:
            depth += 1

    if depth != 1:
        raise MalformedExpressionError(f"Expression reduces to {depth} values instead of 1")
