"""
Module: marking.replacement

Purpose:
    Build the error-carried-forward scope for a part: the question's scope
    with some variables replaced by the learner's answers to other parts,
    and every variable depending on them recomputed.

Key Classes:
    - ReplacementScopeBuilder: Builds replacement scopes for parts

Algorithm (build):
    1. For each replacement rule, resolve the upstream part. If answered,
       take its exported answer; if not and the rule is must-go-first,
       raise PrerequisiteError; otherwise skip the rule.
    2. Register the part as a back-reference on each upstream part used
    3. Overlay the replaced values on the base scope
    4. Hide every transitive dependant of the replaced variables (except
       replaced variables themselves) so stale values are not used
    5. Recompute the hidden variables in dependency order and overlay them

Dependencies:
    - marking.scope.Scope
    - marking.variables

Used By:
    - parts.part.Part.submit
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Callable, Dict

from marking_toolkit import messages
from marking_toolkit.errors import PrerequisiteError

from .scope import Scope
from .variables import Definitions, make_variables, variable_dependants

if TYPE_CHECKING:
    from marking_toolkit.parts.part import Part

logger = logging.getLogger(__name__)

PartResolver = Callable[[str], "Part"]


class ReplacementScopeBuilder:
    """
    Builds replacement scopes.

    Args:
        base_scope: The question's scope holding the intended variable values
        definitions: Question variable definitions by name
        resolver: Looks a part up by path
    """

    def __init__(self, base_scope: Scope, definitions: Definitions, resolver: PartResolver):
        self.base_scope = base_scope
        self.definitions = definitions
        self.resolver = resolver

    def check_prerequisites(self, part: Part) -> None:
        """
        Fail if any must-go-first upstream part is unanswered.

        Raises:
            PrerequisiteError: For the first unanswered must-go-first part
        """
        for rule in part.settings.variable_replacements:
            if rule.must_go_first and not self.resolver(rule.part).answered:
                raise PrerequisiteError(
                    messages.render(
                        "part.marking.variable replacement part not answered",
                        part=rule.part,
                    ),
                    part_path=rule.part,
                )

    def build(self, part: Part) -> Scope:
        """
        Build the replacement scope for ``part``.

        Returns:
            Scope usable for marking the part

        Raises:
            PrerequisiteError: If a must-go-first upstream part is unanswered
            VariableDependencyError: If recomputation hits a cycle
            MarkingEvaluationError: If a recomputed variable cannot be evaluated
        """
        replaced: Dict[str, Any] = {}
        used = []
        for rule in part.settings.variable_replacements:
            upstream = self.resolver(rule.part)
            if upstream.answered:
                replaced[rule.variable] = upstream.student_answer_as_value()
                used.append(upstream)
            elif rule.must_go_first:
                raise PrerequisiteError(
                    messages.render(
                        "part.marking.variable replacement part not answered",
                        part=rule.part,
                    ),
                    part_path=rule.part,
                )
            else:
                logger.debug("%s: skipping replacement of %r, %s is unanswered", part.path, rule.variable, rule.part)

        scope = self.base_scope.derive(replaced)

        todo = variable_dependants(self.definitions, replaced) - set(replaced)
        for name in todo:
            scope.delete_variable(name)

        recomputed = make_variables(self.definitions, todo, scope)
        for upstream in used:
            upstream.error_carried_forward_back_references.add(part.path)
        logger.debug(
            "%s: replaced %s, recomputed %s",
            part.path, sorted(replaced), sorted(recomputed),
        )
        return scope.derive(recomputed)
