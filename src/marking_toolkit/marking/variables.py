"""
Module: marking.variables

Purpose:
    Question variable definitions and the dependency analysis used to build
    replacement scopes: which variables depend on a replaced one, in what
    order they must be recomputed, and whether the definitions are circular.

Key Functions:
    - variable_dependants(): Transitive dependants of some variables
    - evaluation_order(): Dependency order for a set of variables
    - make_variables(): Compute variables inside a scope
    - check_definitions(): Load-time cycle/unknown-name check

Key Classes:
    - VariableDefinition: Name, dependencies and compute callable

Dependencies:
    - marking.scope.Scope

Used By:
    - marking.replacement.ReplacementScopeBuilder
    - parts.question.Question
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Set

from marking_toolkit.errors import MarkingEvaluationError, VariableDependencyError

from .scope import Scope

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class VariableDefinition:
    """
    A question variable.

    Attributes:
        name: Variable name (normalised to lower case)
        compute: Callable receiving a Scope that holds every dependency
        depends_on: Names of the variables ``compute`` reads

    Example:
        >>> VariableDefinition("y", lambda s: s["x"] * 2, ("x",)).depends_on
        ('x',)
    """

    name: str
    compute: Callable[[Scope], Any]
    depends_on: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("Variable definition needs a name")
        object.__setattr__(self, "name", self.name.lower())
        object.__setattr__(self, "depends_on", tuple(d.lower() for d in self.depends_on))


Definitions = Mapping[str, VariableDefinition]


def index_definitions(definitions: Iterable[VariableDefinition]) -> Dict[str, VariableDefinition]:
    """Index definitions by name, rejecting duplicates."""
    out: Dict[str, VariableDefinition] = {}
    for definition in definitions:
        if definition.name in out:
            raise VariableDependencyError(f"Variable {definition.name!r} is defined twice", (definition.name,))
        out[definition.name] = definition
    return out


def variable_dependants(definitions: Definitions, ancestors: Iterable[str]) -> Set[str]:
    """
    Find every variable that depends, directly or indirectly, on ``ancestors``.

    The ancestors themselves are only included when they also depend on
    another ancestor.

    Args:
        definitions: Question variables by name
        ancestors: Names of the changed variables

    Returns:
        Set of dependant variable names
    """
    reverse: Dict[str, Set[str]] = {}
    for definition in definitions.values():
        for dep in definition.depends_on:
            reverse.setdefault(dep, set()).add(definition.name)

    found: Set[str] = set()
    frontier = [a.lower() for a in ancestors]
    while frontier:
        name = frontier.pop()
        for dependant in reverse.get(name, ()):
            if dependant not in found:
                found.add(dependant)
                frontier.append(dependant)
    return found


def evaluation_order(definitions: Definitions, names: Iterable[str], available: Optional[Scope] = None) -> List[str]:
    """
    Order ``names`` so every variable comes after the ones it depends on.

    Dependencies that are not among ``names`` must already be present in
    ``available``.

    Raises:
        VariableDependencyError: On a cycle or an unresolvable dependency
    """
    todo = {n.lower() for n in names}
    order: List[str] = []
    done: Set[str] = set()
    visiting: List[str] = []

    def visit(name: str) -> None:
        if name in done:
            return
        if name in visiting:
            cycle = tuple(visiting[visiting.index(name):] + [name])
            raise VariableDependencyError(
                f"Circular variable references: {' -> '.join(cycle)}", cycle
            )
        definition = definitions.get(name)
        if definition is None:
            raise VariableDependencyError(f"Variable {name!r} is not defined", (name,))
        visiting.append(name)
        for dep in definition.depends_on:
            if dep in todo:
                visit(dep)
            elif available is None or dep not in available:
                raise VariableDependencyError(
                    f"Variable {name!r} depends on unknown variable {dep!r}", (name, dep)
                )
        visiting.pop()
        done.add(name)
        order.append(name)

    for name in sorted(todo):
        visit(name)
    return order


def make_variables(definitions: Definitions, names: Iterable[str], scope: Scope) -> Dict[str, Any]:
    """
    Compute ``names`` inside ``scope`` in dependency order.

    Each computed value is visible to the variables computed after it.

    Args:
        definitions: Question variables by name
        names: Variables to compute
        scope: Scope providing every dependency outside ``names``

    Returns:
        Mapping of name to computed value

    Raises:
        VariableDependencyError: On a cycle or unresolvable dependency
        MarkingEvaluationError: If a compute callable raises
    """
    order = evaluation_order(definitions, names, scope)
    working = scope.derive()
    values: Dict[str, Any] = {}
    for name in order:
        try:
            value = definitions[name].compute(working)
        except Exception as e:
            raise MarkingEvaluationError(f"Error computing variable {name!r}: {e}") from e
        working.set_variable(name, value)
        values[name] = value
    logger.debug("Computed variables %s", order)
    return values


def check_definitions(definitions: Definitions, constants: Optional[Scope] = None) -> List[str]:
    """
    Validate all definitions at load time.

    Returns:
        Evaluation order of every defined variable

    Raises:
        VariableDependencyError: On a cycle or unknown dependency
    """
    return evaluation_order(definitions, definitions.keys(), constants or Scope())
