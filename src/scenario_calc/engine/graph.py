"""Dependency graph builder — evaluation order and levels.

Level rules:
  - INPUT variables are level 0.
  - Parameters (and any name that is not a variable) are constants: they
    never contribute to a level.
  - OUTPUT level = 1 + max(level of each variable dependency).

Levels are computed with a depth-first traversal using three-colour
marking. Reaching a node that is still in progress means a cycle, which
raises ``CircularDependencyError`` with the full path. Cycles are never
resolved by guessing a level.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from enum import Enum

from scenario_calc.config.variable import VariableDefinition
from scenario_calc.engine.formula import extract_references
from scenario_calc.errors import CircularDependencyError, FormulaParseError, GraphError


class _Mark(Enum):
    UNVISITED = 0
    IN_PROGRESS = 1
    DONE = 2


def _index(variables: Iterable[VariableDefinition]) -> dict[str, VariableDefinition]:
    by_name: dict[str, VariableDefinition] = {}
    for var in variables:
        if var.name in by_name:
            raise GraphError(f"Duplicate variable name '{var.name}'")
        by_name[var.name] = var
    return by_name


def _tie_break(var: VariableDefinition) -> tuple[int, str]:
    return (var.display_order, var.name)


def compute_levels(variables: Sequence[VariableDefinition]) -> dict[str, int]:
    """Level of every variable (INPUT 0, OUTPUT ≥ 1).

    Raises
    ------
    CircularDependencyError
        If any OUTPUT variable transitively depends on itself.
    GraphError
        If two variables share a name.
    """
    by_name = _index(variables)
    marks: dict[str, _Mark] = {name: _Mark.UNVISITED for name in by_name}
    levels: dict[str, int] = {}
    path: list[str] = []

    def visit(name: str) -> int:
        var = by_name[name]
        if marks[name] is _Mark.DONE:
            return levels[name]
        if marks[name] is _Mark.IN_PROGRESS:
            start = path.index(name)
            raise CircularDependencyError(path[start:] + [name])

        if var.is_input:
            marks[name] = _Mark.DONE
            levels[name] = 0
            return 0

        marks[name] = _Mark.IN_PROGRESS
        path.append(name)
        max_dep = 0
        for dep in var.dependencies:
            if dep in by_name:
                max_dep = max(max_dep, visit(dep))
        path.pop()
        marks[name] = _Mark.DONE
        levels[name] = max_dep + 1
        return levels[name]

    for var in sorted(by_name.values(), key=_tie_break):
        visit(var.name)
    return levels


def build_evaluation_order(variables: Sequence[VariableDefinition]) -> list[VariableDefinition]:
    """OUTPUT variables in an order where every dependency comes first.

    Ties among variables of the same level are broken by
    ``(display_order, name)`` so the order is deterministic.
    """
    levels = compute_levels(variables)
    outputs = [v for v in variables if v.is_output]
    return sorted(outputs, key=lambda v: (levels[v.name], *_tie_break(v)))


def find_dependents(variables: Sequence[VariableDefinition], name: str) -> set[str]:
    """Names of all OUTPUT variables that transitively depend on ``name``."""
    reverse: dict[str, set[str]] = {}
    for var in variables:
        for dep in var.dependencies:
            reverse.setdefault(dep, set()).add(var.name)

    found: set[str] = set()
    stack = [name]
    while stack:
        for child in reverse.get(stack.pop(), ()):
            if child not in found:
                found.add(child)
                stack.append(child)
    found.discard(name)
    return found


def validate_definitions(
    variables: Sequence[VariableDefinition],
    parameter_names: Iterable[str],
) -> list[str]:
    """Human-readable problems with a variable set; empty when it is consistent.

    Reports unparseable formulas, formula names not covered by
    ``dependencies`` ∪ parameters, declared dependencies that name neither a
    variable nor a parameter, and cycles.
    """
    params = set(parameter_names)
    known = {v.name for v in variables} | params
    problems: list[str] = []

    for var in variables:
        if not var.is_output:
            continue
        for dep in var.dependencies:
            if dep not in known:
                problems.append(f"{var.name}: dependency '{dep}' is not a variable or parameter")
        try:
            refs = extract_references(var.formula or "")
        except FormulaParseError as exc:
            problems.append(f"{var.name}: {exc.message}")
            continue
        declared = set(var.dependencies) | params
        for ref in refs:
            if ref not in declared:
                problems.append(f"{var.name}: formula uses '{ref}' which is not declared as a dependency")

    try:
        compute_levels(variables)
    except GraphError as exc:
        problems.append(exc.message)
    return problems
