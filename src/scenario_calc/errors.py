"""Typed exception hierarchy for the calculation engine.

Every error carries a machine-readable ``code`` so callers (the orchestrator,
the API layer, the CLI) can branch on type and code instead of parsing
messages.

    ScenarioCalcError
    +-- GraphError
    |   +-- CircularDependencyError
    +-- EvaluationError
    |   +-- FormulaParseError
    |   +-- UnknownIdentifierError
    |   +-- DivisionByZeroError
    |   +-- EffectCurveError
    +-- InvalidInputError
    +-- NotFoundError
"""

from __future__ import annotations


class ScenarioCalcError(Exception):
    """Base class for all engine errors."""

    code: str = "SCENARIO_CALC_ERROR"

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


# ═══════════════════════════════════════════════════════════════════════════
# Graph errors: fatal for a whole calculation run
# ═══════════════════════════════════════════════════════════════════════════

class GraphError(ScenarioCalcError):
    """The variable graph cannot be ordered."""

    code = "GRAPH_ERROR"


class CircularDependencyError(GraphError):
    """A variable (transitively) depends on itself.

    ``cycle`` is the closed path, first and last element equal,
    e.g. ``["OUTPUT_A", "OUTPUT_B", "OUTPUT_A"]``.
    """

    code = "CIRCULAR_DEPENDENCY"

    def __init__(self, cycle: list[str]):
        self.cycle = list(cycle)
        super().__init__("Circular dependency: " + " -> ".join(self.cycle))

    @property
    def members(self) -> list[str]:
        """Distinct variable names taking part in the cycle."""
        return list(dict.fromkeys(self.cycle))


# ═══════════════════════════════════════════════════════════════════════════
# Evaluation errors: fatal for one OUTPUT variable only
# ═══════════════════════════════════════════════════════════════════════════

class EvaluationError(ScenarioCalcError):
    """A single formula could not be evaluated."""

    code = "EVALUATION_ERROR"

    def __init__(self, message: str, formula: str | None = None, variable_name: str | None = None):
        self.formula = formula
        self.variable_name = variable_name
        super().__init__(message)


class FormulaParseError(EvaluationError):
    """Malformed formula text."""

    code = "PARSE_ERROR"

    def __init__(self, message: str, formula: str, position: int | None = None,
                 variable_name: str | None = None):
        self.position = position
        where = f" at position {position}" if position is not None else ""
        super().__init__(f"{message}{where} in formula '{formula}'", formula, variable_name)


class UnknownIdentifierError(EvaluationError):
    """Formula references a name absent from the environment."""

    code = "UNKNOWN_IDENTIFIER"

    def __init__(self, name: str, formula: str | None = None, variable_name: str | None = None):
        self.name = name
        super().__init__(f"Unknown identifier '{name}'", formula, variable_name)


class DivisionByZeroError(EvaluationError):
    """Right-hand side of a division evaluated to zero."""

    code = "DIVISION_BY_ZERO"

    def __init__(self, formula: str | None = None, variable_name: str | None = None):
        target = f" while calculating '{variable_name}'" if variable_name else ""
        super().__init__(f"Division by zero{target} in formula '{formula}'", formula, variable_name)


class EffectCurveError(EvaluationError):
    """Effect curve is missing or undefined for the raw value."""

    code = "EFFECT_CURVE_ERROR"


# ═══════════════════════════════════════════════════════════════════════════
# Collaborator-facing errors
# ═══════════════════════════════════════════════════════════════════════════

class InvalidInputError(ScenarioCalcError):
    """Rejected write, e.g. a value stored against an OUTPUT variable."""

    code = "INVALID_INPUT"


class NotFoundError(ScenarioCalcError):
    """Referenced scenario, variable or organization does not exist."""

    code = "NOT_FOUND"
