"""Tests for compiled expressions."""

import logging
import math
import threading

import pytest

from rpnexpr import (
    Context,
    Expression,
    Function,
    MalformedExpressionError,
    UnbalancedParenthesesError,
    UnresolvedSymbolError,
    Variable,
    compile,
)
from rpnexpr.core.config import Settings


@pytest.fixture
def expr(settings):
    """Factory compiling an expression with environment-independent settings."""
    def _expr(text, functions=None, **kwargs):
        return Expression(text, functions, settings=settings, **kwargs)
    return _expr


class TestCompilation:
    """Test construction and cached printable forms."""

    def test_forms(self, expr):
        f = expr("x^3 - 2*x^2 -x + 1")
        assert f.source_form() == "x ^ 3 - 2 * x ^ 2 - x + 1"
        assert f.postfix_form() == "x 3 ^ 2 x 2 ^ * - x - 1 +"

    def test_text_is_whitespace_stripped(self, expr):
        assert expr(" 2 * a + 1 ").text == "2*a+1"

    def test_str_and_repr(self, expr):
        f = expr("x + 1")
        assert str(f) == "x + 1"
        assert repr(f) == "Expression('x+1')"

    def test_tokens_and_rpn_are_tuples(self, expr):
        f = expr("sin(x)")
        assert isinstance(f.tokens, tuple)
        assert isinstance(f.rpn, tuple)
        assert [t.value for t in f.rpn] == ["x", "sin"]

    def test_forms_are_cached(self, expr):
        f = expr("1+2")
        assert f.source_form() is f.source_form()
        assert f.postfix_form() is f.postfix_form()

    def test_compile_function(self):
        f = compile("1+2")
        assert isinstance(f, Expression)
        assert f.evaluate() == 3.0


class TestBalance:
    """Unbalanced expressions compile to empty forms and evaluate to NaN."""

    @pytest.mark.parametrize("text", ["(1+2", ")1+2("])
    def test_unbalanced(self, expr, text):
        f = expr(text)
        assert not f.is_balanced
        assert f.tokens == ()
        assert f.rpn == ()
        assert f.source_form() == ""
        assert f.postfix_form() == ""
        assert math.isnan(f.evaluate())
        assert math.isnan(f.evaluate(1.0))
        assert math.isnan(f.evaluate({"x": 1.0}))

    def test_balanced(self, expr):
        f = expr("(1+2)")
        assert f.is_balanced
        assert f.evaluate() == 3.0


class TestNegation:
    """Unary negation versus subtraction."""

    def test_subtraction(self, expr):
        assert expr("3-1").evaluate() == 2.0

    def test_negated_number(self, expr):
        assert expr("~3+1").evaluate() == -2.0

    def test_negated_group(self, expr):
        assert expr("~(1+2)").evaluate() == -3.0

    def test_negated_constant(self, expr):
        assert expr("~pi").evaluate() == pytest.approx(-math.pi)

    def test_exponential_decay(self, expr):
        f = expr("e^~x - ln(x)")
        assert f(1.0) == pytest.approx(math.exp(-1.0))
        assert f(1.5) == pytest.approx(math.exp(-1.5) - math.log(1.5))

    def test_gaussian(self, expr):
        f = expr("e^~(x^2) - x")
        assert f(-0.5) == pytest.approx(math.exp(-0.25) + 0.5)


class TestEvaluation:
    """Test the evaluation entry points."""

    def test_power_is_right_associative(self, expr):
        assert expr("2^3^2").evaluate() == 512.0

    def test_sin_at_half_pi(self, expr):
        assert expr("sin(x)").evaluate(math.pi / 2) == pytest.approx(1.0, abs=1e-6)

    def test_ln_e(self, expr):
        assert expr("ln(e)").evaluate() == pytest.approx(1.0, abs=1e-6)

    def test_mapping_bindings(self, expr):
        assert expr("x^2").evaluate({"x": 5}) == 25.0

    def test_single_argument(self, expr):
        assert expr("x^2").evaluate(2.0) == 4.0

    def test_variable_list(self, expr):
        f = expr("2*a + 1")
        assert f.evaluate([Variable("a", -1.0)]) == -1.0
        assert f([Variable("a", -10.0)]) == -19.0

    def test_single_argument_binds_x_only(self, expr):
        """Unbound a is dropped, so the product is skipped and 2 + 1 remains."""
        assert expr("2*a + 1")(10.0) == 3.0

    def test_defaults_remain_available(self, expr):
        assert expr("a*pi").evaluate({"a": 2.0}) == pytest.approx(2 * math.pi)

    def test_caller_shadows_defaults(self, expr):
        assert expr("pi").evaluate({"pi": 3.0}) == 3.0
        assert expr("~pi").evaluate([Variable("pi", 3.0)]) == -3.0

    def test_single_argument_overrides_constant_named_x(self, settings):
        ctx = Context("Custom", constants=(Variable("x", 100.0), Variable("pi", math.pi)))
        f = Expression("x", settings=settings, context=ctx)
        assert f.evaluate() == 100.0
        assert f.evaluate(1.0) == 1.0

    def test_free_variable_name_is_configurable(self, settings):
        f = Expression("t^2", settings=settings.model_copy(update={"FREE_VARIABLE": "t"}))
        assert f(3.0) == 9.0

    def test_polynomial(self, expr):
        f = expr("x^4 - 6*x^3 + 12*x^2 - 10*x + 3")
        assert f(3.0) == 0.0
        assert f(1.0) == 0.0
        assert f(0.0) == 3.0

    def test_mixed_example(self, expr):
        f = expr("~7*e^~x + sin(tan(x^3) + cos(x - pi))")
        x = 3.1416 / 2
        expected = -7 * math.exp(-x) + math.sin(math.tan(x ** 3) + math.cos(x - math.pi))
        assert f(x) == pytest.approx(expected)

    def test_integer_argument(self, expr):
        assert expr("x+1")(2) == 3.0

    def test_boolean_argument_binds_as_number(self, expr):
        assert expr("x+1")(True) == 2.0
        assert expr("x+1")(False) == 1.0

    def test_hexadecimal_literal(self, expr):
        f = expr("0x10+1")
        assert f.postfix_form() == "0x10 1 +"
        assert f.evaluate() == 17.0

    def test_misbehaving_function_is_nan(self, expr):
        f = expr("g(1)+1", [Function("g", lambda x: None)])
        assert math.isnan(f.evaluate())
        assert math.isnan(expr("h(1)", [Function("h", lambda x: [][1])]).evaluate())

    def test_unresolved_is_nan(self, expr):
        assert math.isnan(expr("y").evaluate())


class TestDefaultConstants:
    """Default constants are available with zero-argument evaluation."""

    def test_e(self, expr):
        assert expr("e").evaluate() == pytest.approx(2.718281828, abs=1e-9)

    def test_pi(self, expr):
        assert expr("pi").evaluate() == pytest.approx(3.141592654, abs=1e-9)

    def test_double_precision_is_exact(self, expr):
        assert expr("pi").evaluate() == math.pi

    def test_single_precision(self, settings):
        single = settings.model_copy(update={"CONSTANT_PRECISION": "single"})
        value = Expression("pi", settings=single).evaluate()
        assert value != math.pi
        assert value == pytest.approx(math.pi, abs=1e-6)
        assert Expression("ln(e)", settings=single).evaluate() == pytest.approx(1.0, abs=1e-6)


class TestCustomFunctions:
    """Caller-supplied functions."""

    def test_added_function(self, expr):
        f = expr("sq(x)+1", [Function("sq", lambda x: x * x)])
        assert f.postfix_form() == "x sq 1 +"
        assert f(3.0) == 10.0

    def test_defaults_still_available(self, expr):
        assert expr("sq(sqrt(4))", {"sq": lambda x: x * x}).evaluate() == 4.0

    def test_override(self, expr):
        assert expr("sin(0)", {"sin": lambda x: 7.0}).evaluate() == 7.0

    def test_context_from_yaml(self, settings, tmp_path):
        path = tmp_path / "context.yaml"
        path.write_text("constants:\n  g: 9.81\nfunctions:\n  - name: lg\n    math: log10\n")
        f = Expression("g*lg(x)", settings=settings, context=Context.from_yaml(path))
        assert f(100.0) == pytest.approx(19.62)


class TestIdempotence:
    """Repeated evaluations return identical results."""

    def test_repeated_calls(self, expr):
        f = expr("e^~x - ln(x)")
        first = f(1.5)
        assert all(f(1.5) == first for _ in range(10))

    def test_bindings_do_not_leak(self, expr):
        f = expr("x+pi")
        f({"x": 1.0, "pi": 0.0})
        assert f(1.0) == pytest.approx(1.0 + math.pi)

    def test_concurrent_evaluation(self, expr):
        f = expr("x^2 + sin(x)")
        results = {}

        def worker(i):
            results[i] = f(float(i))

        threads = [threading.Thread(target=worker, args=(i,)) for i in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert results == {i: i * i + math.sin(i) for i in range(8)}


class TestStrictExpressions:
    """Strict mode raises on malformed input."""

    def test_unbalanced(self, expr):
        with pytest.raises(UnbalancedParenthesesError):
            expr("(1+2", strict=True)

    def test_malformed(self, expr):
        with pytest.raises(MalformedExpressionError):
            expr("1+", strict=True)

    def test_unresolved(self, expr):
        f = expr("y+1", strict=True)
        with pytest.raises(UnresolvedSymbolError):
            f.evaluate()

    def test_valid(self, expr):
        assert expr("2*x", strict=True)(4.0) == 8.0

    def test_strict_from_settings(self):
        settings = Settings(_env_file=None, STRICT=True)
        with pytest.raises(UnbalancedParenthesesError):
            Expression("(", settings=settings)

    def test_permissive_does_not_raise(self, expr):
        assert expr("1+").evaluate() == 1.0


class TestCompileLogging:
    """Compilation records carry the expression they belong to."""

    def test_compiled_record(self, expr, caplog):
        with caplog.at_level(logging.DEBUG, logger="rpnexpr"):
            expr("x + 1")
        records = [r for r in caplog.records if r.name == "rpnexpr.expression"]
        assert records[-1].getMessage() == "Compiled to RPN"
        assert records[-1].extra_data == {"expression": "x+1", "rpn": "x 1 +", "strict": False}

    def test_rejected_record(self, expr, caplog):
        with caplog.at_level(logging.DEBUG, logger="rpnexpr"):
            with pytest.raises(UnbalancedParenthesesError):
                expr("(x", strict=True)
        records = [r for r in caplog.records if r.name == "rpnexpr.expression"]
        assert records[-1].extra_data == {"expression": "(x"}
