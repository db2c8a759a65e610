"""
Module: parts.question

Purpose:
    Provides Question - the container coordinating a question's parts. It
    owns the base evaluation scope computed from the question's variables,
    indexes every part (including steps) by path, totals the score, and
    resubmits parts whose replacement scopes went stale.

Key Classes:
    - QuestionConfig: Immutable question-level behaviour switches
    - Question: Part container and submission coordinator

Key Functions:
    - Question.submit_part(path): Submit one part, isolating failures
    - Question.submit_all(): Submit every top-level part
    - Question.get_part(path): Resolve a part by path
    - Question.replacement_scope_builder(): Scope builder for adaptive marking

Resubmission ordering:
    Part.submit() only flags dependants (``please_resubmit``), which queues
    them here. The queue is drained after the triggering submission has
    returned, one part at a time, and each part at most once per drain.

Dependencies:
    - collections.deque (std)
    - marking.scope, marking.variables, marking.replacement

Used By:
    - parts.part.Part
    - loading.loader
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass
from typing import Any, Deque, Dict, Iterable, List, Mapping, Optional, Set

from marking_toolkit.errors import MarkingConfigurationError, MarkingError, PartMarkingError
from marking_toolkit.marking.replacement import ReplacementScopeBuilder
from marking_toolkit.marking.scope import Scope
from marking_toolkit.marking.variables import (
    VariableDefinition,
    check_definitions,
    index_definitions,
    make_variables,
)

from .part import Part
from .surfaces import QuestionDisplay

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class QuestionConfig:
    """
    Question-level behaviour.

    Attributes:
        auto_resubmit: Resubmit dependent parts automatically once an
            upstream part they take replacement values from is marked
        mark_dependents_dirty: Flag dependent parts for resubmission at all
    """
    auto_resubmit: bool = True
    mark_dependents_dirty: bool = True


class Question:
    """
    A question: variables, parts and the total score.

    Args:
        variables: Question variable definitions
        constants: Fixed values visible to every variable and script
        config: Behaviour switches
        name: Display name for logging

    Raises:
        VariableDependencyError: If the variable definitions are circular
            or depend on unknown names

    Example:
        >>> q = Question([VariableDefinition("a", lambda s: 2),
        ...               VariableDefinition("b", lambda s: s["a"] + 1, ("a",))])
        >>> q.scope["b"]
        3
    """

    def __init__(
        self,
        variables: Iterable[VariableDefinition] = (),
        constants: Optional[Mapping[str, Any]] = None,
        config: Optional[QuestionConfig] = None,
        name: str = "",
    ):
        self.name = name
        self.config = config or QuestionConfig()
        self.definitions: Dict[str, VariableDefinition] = index_definitions(variables)

        constants_scope = Scope(constants)
        check_definitions(self.definitions, constants_scope)
        self.scope = constants_scope.derive(
            make_variables(self.definitions, self.definitions.keys(), constants_scope)
        )

        self.parts: List[Part] = []
        self.part_dictionary: Dict[str, Part] = {}
        self.score: float = 0
        self.marks: float = 0
        self.display: Optional[QuestionDisplay] = None
        self.errors: Dict[str, PartMarkingError] = {}

        self._resubmit_queue: Deque[str] = deque()
        self._draining = False

    # ─────────────────────────────────────────────────────────────────────────
    # Parts
    # ─────────────────────────────────────────────────────────────────────────

    def register_part(self, part: Part) -> None:
        """Index a part by path. Called by Part.__init__."""
        if part.path in self.part_dictionary:
            raise MarkingConfigurationError(f"Duplicate part path {part.path!r}")
        self.part_dictionary[part.path] = part

    def add_part(self, part: Part) -> None:
        """Add a top-level part."""
        self.parts.append(part)
        self.marks = sum(p.marks for p in self.parts)

    def get_part(self, path: str) -> Part:
        """
        Resolve a part by path.

        Raises:
            MarkingConfigurationError: If no part has that path
        """
        try:
            return self.part_dictionary[path]
        except KeyError:
            raise MarkingConfigurationError(f"No part with path {path!r}")

    def replacement_scope_builder(self) -> ReplacementScopeBuilder:
        return ReplacementScopeBuilder(self.scope, self.definitions, self.get_part)

    # ─────────────────────────────────────────────────────────────────────────
    # Score & Dirty State
    # ─────────────────────────────────────────────────────────────────────────

    def update_score(self) -> None:
        """Total the scores of the top-level parts."""
        self.score = sum(p.score for p in self.parts)
        if self.display is not None:
            self.display.show_score()

    def is_dirty(self) -> bool:
        return any(p.is_dirty for p in self.part_dictionary.values())

    def notify_dirty(self) -> None:
        if self.display is not None:
            self.display.is_dirty(self.is_dirty())

    # ─────────────────────────────────────────────────────────────────────────
    # Submission
    # ─────────────────────────────────────────────────────────────────────────

    def submit_part(self, path: str) -> bool:
        """
        Submit one part, then any dependants it flagged.

        A failure is logged and recorded in ``errors``; it does not affect
        other parts.

        Returns:
            True if the part was marked without error
        """
        ok = self._submit_isolated(self.get_part(path))
        self.run_pending_resubmissions()
        return ok

    def submit_all(self) -> Dict[str, bool]:
        """Submit every top-level part in order."""
        outcome: Dict[str, bool] = {}
        for part in self.parts:
            outcome[part.path] = self.submit_part(part.path)
        return outcome

    def schedule_resubmit(self, part: Part) -> None:
        if self.config.auto_resubmit:
            logger.debug("Scheduling resubmission of %s", part.path)
            self._resubmit_queue.append(part.path)

    def run_pending_resubmissions(self) -> None:
        """Resubmit queued parts, each at most once, until the queue is empty."""
        if self._draining:
            return
        self._draining = True
        seen: Set[str] = set()
        try:
            while self._resubmit_queue:
                path = self._resubmit_queue.popleft()
                if path in seen:
                    logger.info("Not resubmitting %s again: circular replacements", path)
                    continue
                seen.add(path)
                part = self.get_part(path)
                if part.should_resubmit:
                    self._submit_isolated(part)
        finally:
            self._draining = False

    def _submit_isolated(self, part: Part) -> bool:
        try:
            part.submit()
        except PartMarkingError as e:
            error = e
        except MarkingError as e:
            # Raised by a hook around submit(), outside its own handling
            part.abandon_submission(e)
            error = PartMarkingError(part.path, str(e))
            error.__cause__ = e
        else:
            self.errors.pop(part.path, None)
            return True
        logger.warning("%s", error)
        self.errors[part.path] = error
        return False

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "score": self.score,
            "marks": self.marks,
            "parts": [p.to_dict() for p in self.parts],
        }

    def __repr__(self) -> str:
        return f"Question({self.name!r}, score={self.score:g}/{self.marks:g}, parts={len(self.parts)})"
