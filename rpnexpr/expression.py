"""
Compiled arithmetic expressions.

An Expression is compiled once, at construction (tokenize, then convert to
RPN), and can then be evaluated any number of times with different variable
bindings. Nothing is mutated after compilation.

Examples:
    >>> f = compile("x^3 - 2*x^2 - x + 1")
    >>> f.postfix_form()
    'x 3 ^ 2 x 2 ^ * - x - 1 +'
    >>> f(-1.0)
    -1.0
    >>> compile("2*a + 1").evaluate({"a": -10.0})
    -19.0
"""

from __future__ import annotations

from numbers import Real
from typing import Callable, Iterable, Mapping, Union

from .core.config import Settings, get_settings
from .core.errors import UnbalancedParenthesesError
from .core.logging import get_context_logger
from .parser.context import Context, Function, Variable
from .parser.evaluator import RPNEvaluator
from .parser.shunting_yard import to_rpn, validate_rpn
from .parser.tokenizer import Token, Tokenizer, check_parentheses, strip_whitespace

Bindings = Union[Mapping[str, float], Iterable[Variable]]
FunctionTable = Union[Iterable[Function], Mapping[str, Callable[[float], float]]]


class Expression:
    """
    An infix expression compiled to RPN.

    Attributes:
        text: Source text with whitespace removed
        context: Function table and default constants used for compilation
        strict: Whether malformed input raises instead of degrading to NaN
    """

    def __init__(
        self,
        text: str,
        functions: FunctionTable | None = None,
        *,
        strict: bool | None = None,
        context: Context | None = None,
        settings: Settings | None = None,
    ):
        """
        Compile an expression.

        Args:
            text: Expression in infix notation, e.g. "e^~x - ln(x)"
            functions: Extra functions, consulted before the defaults
            strict: Raise on malformed input (default from settings)
            context: Base context (default: eight functions, pi and e)
            settings: Engine settings (default: environment)

        Raises:
            UnbalancedParenthesesError: Strict mode, parentheses do not match
            MalformedExpressionError: Strict mode, RPN does not reduce to one value
        """
        self.settings = settings or get_settings()
        self.strict = self.settings.STRICT if strict is None else strict

        base = context or Context.default(self.settings.CONSTANT_PRECISION)
        self.context = base.with_functions(functions)

        self.text = strip_whitespace(text)
        self._log = get_context_logger(__name__, expression=self.text)
        self._balanced = check_parentheses(self.text)
        if not self._balanced and self.strict:
            self._log.debug("Rejected unbalanced expression")
            raise UnbalancedParenthesesError(self.text)

        self._tokens = Tokenizer(self.context).tokenize(self.text)
        self._rpn = to_rpn(self._tokens)
        if self.strict:
            validate_rpn(self._rpn)

        self._source_form = " ".join(token.value for token in self._tokens)
        self._postfix_form = " ".join(token.value for token in self._rpn)
        self._evaluator = RPNEvaluator(self.context.functions, strict=self.strict)

        self._log.debug(
            "Compiled to RPN",
            extra_data={"rpn": self._postfix_form, "strict": self.strict},
        )

    @property
    def tokens(self) -> tuple[Token, ...]:
        """Tokens in source order (empty if unbalanced)."""
        return self._tokens

    @property
    def rpn(self) -> tuple[Token, ...]:
        """Tokens in postfix order (empty if unbalanced)."""
        return self._rpn

    @property
    def is_balanced(self) -> bool:
        return self._balanced

    def source_form(self) -> str:
        """Space-joined tokens, e.g. ``x ^ 2 + 1``."""
        return self._source_form

    def postfix_form(self) -> str:
        """Space-joined RPN tokens, e.g. ``x 2 ^ 1 +``."""
        return self._postfix_form

    def evaluate(self, bindings: float | Bindings | None = None) -> float:
        """
        Evaluate the expression.

        Args:
            bindings: One of
                - None: only the default constants (pi, e)
                - a number: value of the free variable (``x`` by default)
                - a mapping or list of Variable: explicit variables, consulted
                  before the defaults

        Returns:
            The result; NaN when the expression is undefined
        """
        if bindings is None:
            variables = self.context.default_variables()
        elif isinstance(bindings, Real):
            variables = self._bind_free_variable(float(bindings))
        else:
            variables = self._merge_bindings(bindings)

        return self._evaluator.evaluate(self._rpn, variables)

    __call__ = evaluate

    def _bind_free_variable(self, value: float) -> list[Variable]:
        name = self.settings.FREE_VARIABLE
        variables = self.context.default_variables()
        for i, variable in enumerate(variables):
            if variable.name == name:
                variables[i] = Variable(name, value)
                return variables
        variables.append(Variable(name, value))
        return variables

    def _merge_bindings(self, bindings: Bindings) -> list[Variable]:
        if isinstance(bindings, Mapping):
            supplied = [Variable(name, value) for name, value in bindings.items()]
        else:
            supplied = list(bindings)
        names = {variable.name for variable in supplied}
        return supplied + [v for v in self.context.constants if v.name not in names]

    def __str__(self) -> str:
        return self._source_form

    def __repr__(self) -> str:
        return f"Expression({self.text!r})"


def compile(
    text: str,
    functions: FunctionTable | None = None,
    *,
    strict: bool | None = None,
) -> Expression:
    """
    Compile ``text`` into an Expression.

    Args:
        text: Expression in infix notation
        functions: Extra functions, consulted before the defaults
        strict: Raise on malformed input (default from settings)
    """
    return Expression(text, functions, strict=strict)
