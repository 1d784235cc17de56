"""
Command-line front end.

Usage:
    python -m rpnexpr <expression> [options]

Example:
    python -m rpnexpr "e^~x - ln(x)" -x 1.0 -x 1.5
    python -m rpnexpr "2*a + 1" --var a=-10
"""

import argparse
import sys
from typing import Optional, Sequence

from .core.config import get_settings
from .core.errors import ExpressionError
from .core.logging import get_logger, setup_logging
from .expression import Expression
from .parser.context import Context, Variable

logger = get_logger(__name__)


def _parse_assignment(text: str) -> Variable:
    name, sep, value = text.partition("=")
    if not sep or not name:
        raise argparse.ArgumentTypeError(f"expected NAME=VALUE, got '{text}'")
    try:
        return Variable(name.strip(), float(value))
    except ValueError:
        raise argparse.ArgumentTypeError(f"'{value}' is not a number")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="rpnexpr",
        description="Compile an infix expression to RPN and evaluate it",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m rpnexpr "x^3 - 2*x^2 - x + 1" -x -1 -x -0.5
  python -m rpnexpr "2*a + 1" --var a=-1
  python -m rpnexpr "~pi"
        """
    )

    parser.add_argument('expression', help='Expression in infix notation (use ~ for negation)')
    parser.add_argument('-x', dest='x_values', type=float, action='append', default=[],
                        help='Evaluate with the free variable bound to this value (repeatable)')
    parser.add_argument('--var', dest='variables', type=_parse_assignment, action='append',
                        default=[], metavar='NAME=VALUE',
                        help='Evaluate once with these variables bound (repeatable)')
    parser.add_argument('--functions', metavar='FILE', default=None,
                        help='YAML file with extra functions and constants')
    parser.add_argument('--strict', action='store_true',
                        help='Fail on malformed expressions instead of returning nan')
    parser.add_argument('--precision', choices=['double', 'single'], default=None,
                        help='Precision of the built-in constants pi and e')
    parser.add_argument('--log-level', default=None,
                        help='Logging level (default: RPNEXPR_LOG_LEVEL or WARNING)')
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    updates = {}
    if args.log_level:
        updates["LOG_LEVEL"] = args.log_level
    if args.precision:
        updates["CONSTANT_PRECISION"] = args.precision
    if args.strict:
        updates["STRICT"] = True
    settings = get_settings().model_copy(update=updates)
    setup_logging(settings)

    try:
        context = None
        if args.functions:
            context = Context.from_yaml(args.functions, settings.CONSTANT_PRECISION)

        expr = Expression(args.expression, context=context, settings=settings)

        print(f"f({settings.FREE_VARIABLE}) = {expr.source_form()}")
        print(f"rpn: {expr.postfix_form()}")

        for value in args.x_values:
            print(f"f({value:g}) = {expr(value)}")
        if args.variables:
            assigned = ", ".join(f"{v.name} = {v.value:g}" for v in args.variables)
            print(f"f({assigned}) = {expr.evaluate(args.variables)}")
        if not args.x_values and not args.variables:
            print(f"f() = {expr.evaluate()}")

    except (ExpressionError, OSError) as e:
        logger.debug("Expression failed", exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        return 1

    return 0
