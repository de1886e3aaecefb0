"""Storage collaborators."""

from scenario_calc.storage.memory import InMemoryStore

__all__ = ["InMemoryStore"]
