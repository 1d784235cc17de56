"""
Context system for expression compilation and evaluation.

A context defines the environment an expression is compiled against:
- Available unary functions (sin, cos, ln, ...)
- Named constants and their values (pi, e)

Contexts are immutable. The default function table is built once at import
time and shared by every context that does not override it.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Callable, Iterable, Literal, Mapping

import numpy as np
import yaml
from pydantic import BaseModel, ConfigDict, Field

from ..core.errors import ConfigurationError
from ..core.logging import get_logger

logger = get_logger(__name__)

Precision = Literal["double", "single"]


@dataclass(frozen=True)
class Function:
    """A named mapping from one real input to one real output."""

    name: str
    evaluator: Callable[[float], float] = field(compare=False)

    def __call__(self, x: float) -> float:
        return self.evaluator(x)


class Variable(BaseModel):
    """
    A named real value bound at evaluation time.

    Attributes:
        name: Identifier as it appears in the expression
        value: Bound value
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(description="Variable name")
    value: float = Field(description="Bound value")

    def __init__(self, name: str, value: float, **kwargs):
        super().__init__(name=name, value=value, **kwargs)


def _ln(x: float) -> float:
    if x == 0:
        return -math.inf
    if x < 0 or math.isnan(x):
        return math.nan
    return math.log(x)


def _log10(x: float) -> float:
    if x == 0:
        return -math.inf
    if x < 0 or math.isnan(x):
        return math.nan
    return math.log10(x)


def _sqrt(x: float) -> float:
    if x < 0:
        return math.nan
    return math.sqrt(x)


def _exp(x: float) -> float:
    try:
        return math.exp(x)
    except OverflowError:
        return math.inf


def _trig(fn: Callable[[float], float]) -> Callable[[float], float]:
    # math.sin(inf) raises instead of returning NaN
    def wrapper(x: float) -> float:
        if math.isinf(x):
            return math.nan
        return fn(x)

    wrapper.__name__ = fn.__name__
    return wrapper


DEFAULT_FUNCTIONS: Mapping[str, Function] = MappingProxyType({
    "sin": Function("sin", _trig(math.sin)),
    "cos": Function("cos", _trig(math.cos)),
    "tan": Function("tan", _trig(math.tan)),
    "ln": Function("ln", _ln),
    "log": Function("log", _log10),
    "exp": Function("exp", _exp),
    "sqrt": Function("sqrt", _sqrt),
    "abs": Function("abs", abs),
})

# Values of 3.141592654f and 2.718281828f
SINGLE_PRECISION_CONSTANTS: Mapping[str, float] = MappingProxyType({
    "pi": float(np.float32(3.141592654)),
    "e": float(np.float32(2.718281828)),
})

DOUBLE_PRECISION_CONSTANTS: Mapping[str, float] = MappingProxyType({
    "pi": math.pi,
    "e": math.e,
})


def _wrap_math_function(name: str, source: str | None = None) -> Function:
    """Build a Function from a ``math`` module attribute (or a default)."""
    target = source or name
    if target in DEFAULT_FUNCTIONS:
        return Function(name, DEFAULT_FUNCTIONS[target].evaluator)
    fn = getattr(math, target, None)
    if not callable(fn):
        raise ConfigurationError(f"Unknown math function '{target}'", source=name)

    def evaluator(x: float) -> float:
        try:
            return float(fn(x))
        except (ValueError, OverflowError):
            return math.nan

    return Function(name, evaluator)


def coerce_functions(
    functions: Iterable[Function] | Mapping[str, Callable[[float], float]] | None,
) -> tuple[Function, ...]:
    """Normalize caller-supplied functions into a tuple of Function."""
    if functions is None:
        return ()
    if isinstance(functions, Mapping):
        return tuple(
            fn if isinstance(fn, Function) else Function(name, fn)
            for name, fn in functions.items()
        )
    return tuple(functions)


@dataclass(frozen=True)
class Context:
    """
    Compilation and evaluation environment.

    Attributes:
        name: Context name (e.g., "Default")
        functions: Function table, consulted by exact name
        constants: Default variables available to every evaluation
    """

    name: str
    functions: Mapping[str, Function] = field(default_factory=lambda: DEFAULT_FUNCTIONS)
    constants: tuple[Variable, ...] = ()

    @classmethod
    def default(cls, precision: Precision = "double") -> "Context":
        """
        Create the default context: eight functions, ``pi`` and ``e``.

        Args:
            precision: "double" for math.pi/math.e, "single" for the
                single-precision approximations 3.141592654f/2.718281828f
        """
        values = SINGLE_PRECISION_CONSTANTS if precision == "single" else DOUBLE_PRECISION_CONSTANTS
        constants = tuple(Variable(name, value) for name, value in values.items())
        return cls(name="Default", constants=constants)

    def with_functions(
        self,
        functions: Iterable[Function] | Mapping[str, Callable[[float], float]] | None,
    ) -> "Context":
        """
        Return a context whose table puts ``functions`` ahead of this one's.

        Caller entries add to or override existing names; when a caller list
        repeats a name, the first entry wins.
        """
        extra = coerce_functions(functions)
        if not extra:
            return self

        table: dict[str, Function] = {}
        for fn in extra:
            table.setdefault(fn.name, fn)
        for name, fn in self.functions.items():
            table.setdefault(name, fn)

        logger.debug("Context %s extended with functions %s", self.name, [fn.name for fn in extra])
        return Context(
            name=self.name,
            functions=MappingProxyType(table),
            constants=self.constants,
        )

    @classmethod
    def from_yaml(cls, path: str | Path, precision: Precision = "double") -> "Context":
        """
        Load a context from a YAML file.

        The file may define ``name``, ``constants`` (a mapping of name to
        value, overriding or adding to pi/e) and ``functions`` (a list of
        ``math`` function names or ``{name, math}`` entries aliasing one).

        Args:
            path: Path to YAML configuration file
            precision: Precision of the built-in constants

        Returns:
            Context instance

        Raises:
            ConfigurationError: If the file is malformed
        """
        with open(path, "r") as f:
            try:
                data = yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                raise ConfigurationError(f"Invalid YAML: {e}", source=str(path)) from e

        if not isinstance(data, dict):
            raise ConfigurationError("Context file must contain a mapping", source=str(path))

        base = cls.default(precision)

        # Parse functions
        functions = []
        for func_data in data.get("functions", []) or []:
            if isinstance(func_data, str):
                functions.append(_wrap_math_function(func_data))
            elif isinstance(func_data, dict) and "name" in func_data:
                functions.append(_wrap_math_function(func_data["name"], func_data.get("math")))
            else:
                raise ConfigurationError(f"Invalid function entry: {func_data!r}", source=str(path))

        # Parse constants
        constants: dict[str, float] = {v.name: v.value for v in base.constants}
        raw_constants: Any = data.get("constants", {}) or {}
        if not isinstance(raw_constants, dict):
            raise ConfigurationError("'constants' must be a mapping", source=str(path))
        for const_name, const_value in raw_constants.items():
            try:
                constants[str(const_name)] = float(const_value)
            except (TypeError, ValueError) as e:
                raise ConfigurationError(
                    f"Constant '{const_name}' is not a number: {const_value!r}", source=str(path)
                ) from e

        context = Context(
            name=data.get("name", base.name),
            functions=base.functions,
            constants=tuple(Variable(n, v) for n, v in constants.items()),
        )
        return context.with_functions(functions)

    def is_function(self, name: str) -> bool:
        """Check if name is a function in this context."""
        return name in self.functions

    def get_function(self, name: str) -> Function | None:
        """Get a function by exact name."""
        return self.functions.get(name)

    def default_variables(self) -> list[Variable]:
        """Fresh list of the context's constants."""
        return list(self.constants)
