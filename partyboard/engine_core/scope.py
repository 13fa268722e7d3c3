"""
Variable Scope - Resolved card variables and lookup of variable inputs.

A scope is built once per card resolution. Selector and action fields that
hold a VariableRef are looked up here; a missing name falls back to the
caller's default.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any
import logging

from ..card_schema.card_dsl import VariableRef

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResolvedVariable:
    """
    A variable after resolution.

    value: int for randomInteger, list of player ids for selectors,
           str for randomStringFromList
    string: text substituted for <name> placeholders
    """
    name: str
    value: Any
    string: str


@dataclass
class VariableScope:
    """Name -> ResolvedVariable mapping for one card resolution."""
    variables: dict[str, ResolvedVariable] = field(default_factory=dict)

    def get(self, name: str) -> ResolvedVariable | None:
        variable = self.variables.get(name)
        if variable is None:
            logger.warning("Unknown variable referenced: %s", name)
        return variable

    def add(self, variable: ResolvedVariable):
        self.variables[variable.name] = variable

    def __contains__(self, name: str) -> bool:
        return name in self.variables


def resolve_variable_input(value: Any, scope: VariableScope | None, default: Any) -> Any:
    """
    Resolve a field that may hold a literal or a VariableRef.

    None and unknown references resolve to `default`.
    """
    if value is None:
        return default
    if isinstance(value, VariableRef):
        variable = scope.get(value.name) if scope is not None else None
        return variable.value if variable is not None else default
    return value
