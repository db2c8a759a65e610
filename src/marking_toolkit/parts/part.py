"""
Module: parts.part

Purpose:
    Provides Part - the mutable, scored unit of a question. A Part owns its
    configuration (PartSettings), its scoring state (credit ledger, score,
    answered flag, warnings), its steps, and the lifecycle that ties the
    marking core together:

        submit -> marking strategy -> invocation -> interpreter -> ledger
               -> aggregator -> question score -> dependent resubmission

Key Functions:
    - Part.submit(): Mark the staged answer and update the score
    - Part.calculate_score(): Aggregate credit and steps into a score
    - Part.store_answer(answer): Stage an answer (marks the part dirty)
    - Part.show_steps() / Part.reveal_answer()
    - Part.please_resubmit(): Called when an upstream answer changed

Dependencies:
    - marking_toolkit.marking: ledger, invocation, aggregator, scripts
    - marking_toolkit.core.models: PartSettings, MarkingResult
    - parts.hooks: lifecycle hooks

Used By:
    - parts.registry.create_part
    - parts.question.Question
    - loading.loader
"""

from __future__ import annotations

import copy
import logging
from typing import TYPE_CHECKING, Any, Callable, ClassVar, Dict, List, Optional, Sequence, Set

from marking_toolkit import messages
from marking_toolkit.core.models.feedback import FeedbackMessage, MarkingResult
from marking_toolkit.core.models.settings import PartSettings, ReplacementStrategy, VariableReplacement
from marking_toolkit.errors import MarkingConfigurationError, MarkingError, PartMarkingError
from marking_toolkit.marking import invocation
from marking_toolkit.marking.aggregator import StepScore, aggregate_score
from marking_toolkit.marking.ledger import CreditLedger
from marking_toolkit.marking.scope import Scope
from marking_toolkit.marking.scripts import REQUIRED_NOTES, MarkingScript

from .hooks import HOOKABLE_METHODS, HookOrder, HookRegistry, hookable
from .surfaces import PartDisplay, PartStorage

if TYPE_CHECKING:
    from .question import Question

logger = logging.getLogger(__name__)


class Part:
    """
    A scored answerable part of a question.

    Subclasses set ``type`` (via ``register_part_type``) and override the
    answer hooks: ``set_student_answer``, ``raw_student_answer`` and
    ``get_correct_answer``.

    Attributes:
        path: Question-unique path like "p0" or "p0s1"
        question: Owning question
        parent: Owning part if this is a step
        settings: Immutable configuration
        steps: Child steps
        ledger: Credit and feedback log of the current marking pass
        score: Marks awarded
        answered: Whether the last submitted answer could be marked
        warnings: Messages shown next to the answer
        is_dirty: Answer changed since last submission
        should_resubmit: An upstream part this one depends on has changed
    """

    type: ClassVar[str] = ""
    does_marking: ClassVar[bool] = True

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        # Overrides of lifecycle methods stay hookable
        for name in HOOKABLE_METHODS:
            method = cls.__dict__.get(name)
            if method is not None and not getattr(method, "__hookable__", False):
                setattr(cls, name, hookable(method))

    def __init__(
        self,
        path: str,
        question: Question,
        parent: Optional[Part] = None,
        settings: Optional[PartSettings] = None,
    ):
        self.path = path
        self.question = question
        self.parent = parent
        self.settings = settings or PartSettings()

        self.steps: List[Part] = []
        self.is_step = False

        self.hooks = HookRegistry()
        self._hook_dispatch: Set[str] = set()
        self.marking_script: Optional[MarkingScript] = None
        self.display: Optional[PartDisplay] = None
        self.store: Optional[PartStorage] = None

        self.ledger = CreditLedger()
        self.score: float = 0
        self.answered = False
        self.warnings: List[str] = []
        self.is_dirty = False
        self.should_resubmit = False
        self.submitting = False

        self.staged_answer: Any = None
        self.answer_list: Any = None
        self.interpreted_answer: Any = None

        self.steps_shown = False
        self.steps_open = False
        self.revealed = False

        # Paths of parts whose replacement scopes use this part's answer
        self.error_carried_forward_back_references: Set[str] = set()

        question.register_part(self)

    # ─────────────────────────────────────────────────────────────────────────
    # Properties
    # ─────────────────────────────────────────────────────────────────────────

    @property
    def marks(self) -> float:
        return self.settings.marks

    @property
    def credit(self) -> float:
        return self.ledger.credit

    @credit.setter
    def credit(self, value: float) -> None:
        self.ledger.credit = value

    @property
    def marking_feedback(self) -> Sequence[FeedbackMessage]:
        return self.ledger.feedback

    # ─────────────────────────────────────────────────────────────────────────
    # Configuration
    # ─────────────────────────────────────────────────────────────────────────

    def add_step(self, step: Part, index: Optional[int] = None) -> None:
        """Add a step, at ``index`` or at the end."""
        step.is_step = True
        step.parent = self
        if index is None:
            self.steps.append(step)
        else:
            self.steps.insert(index, step)

    def add_variable_replacement(self, variable: str, part: str, must_go_first: bool = False) -> None:
        self.settings = self.settings.with_replacement(VariableReplacement(variable, part, must_go_first))

    def set_marking_script(self, script: MarkingScript) -> None:
        """
        Attach the marking script.

        Raises:
            MarkingConfigurationError: If a required note is missing
        """
        for note in REQUIRED_NOTES:
            if note not in script.notes:
                raise MarkingConfigurationError(
                    f"Marking script for {self.path} is missing required note {note!r}"
                )
        self.marking_script = script

    def add_hook(self, name: str, order: HookOrder | str, fn: Callable[..., Any]) -> None:
        self.hooks.add(name, order, fn)

    # ─────────────────────────────────────────────────────────────────────────
    # Warnings & Feedback
    # ─────────────────────────────────────────────────────────────────────────

    def give_warning(self, warning: str) -> None:
        self.warnings.append(warning)
        if self.display is not None:
            self.display.warning(warning)

    def set_warnings(self, warnings: List[str]) -> None:
        self.warnings = warnings
        if self.display is not None:
            self.display.set_warnings(warnings)

    def remove_warnings(self) -> None:
        self.set_warnings([])

    def marking_comment(self, message: str) -> None:
        self.ledger.comment(message)

    # ─────────────────────────────────────────────────────────────────────────
    # Answer Handling
    # ─────────────────────────────────────────────────────────────────────────

    def store_answer(self, answer: Any) -> None:
        """Stage the learner's answer, before it is submitted."""
        self.staged_answer = answer
        self.set_dirty(True)
        if self.display is not None:
            self.display.remove_warnings()

    def set_dirty(self, dirty: bool) -> None:
        self.is_dirty = dirty
        if self.display is not None:
            self.display.is_dirty(dirty)
        if dirty and self.parent is not None:
            self.parent.set_dirty(True)
        self.question.notify_dirty()

    def has_staged_answer(self) -> bool:
        return not (self.staged_answer is None or self.staged_answer == "")

    @hookable
    def set_student_answer(self) -> None:
        """Copy whatever the part type needs from ``answer_list`` before marking."""

    def raw_student_answer(self) -> Any:
        """The answer as passed to the marking script."""
        return self.answer_list

    @hookable
    def student_answer_as_value(self) -> Any:
        """The answer substituted into other parts' replacement scopes."""
        return self.interpreted_answer

    @hookable
    def get_correct_answer(self, scope: Scope) -> None:
        """Compute anything the marking depends on from ``scope``."""

    # ─────────────────────────────────────────────────────────────────────────
    # Marking
    # ─────────────────────────────────────────────────────────────────────────

    def marking_parameters(self, student_answer: Any) -> Dict[str, Any]:
        return invocation.marking_parameters(self, student_answer)

    @hookable
    def mark(self, scope: Scope) -> None:
        """Run the marking script against ``scope`` and apply its feedback."""
        invocation.apply_mark(self, scope)

    def _mark_with_strategy(self) -> MarkingResult:
        """Mark against the original and/or replacement scope per the strategy."""
        existing_warnings = tuple(self.warnings)
        existing_feedback = self.ledger.feedback
        strategy = self.settings.variable_replacement_strategy
        uses_replacements = strategy is not None and self.settings.has_variable_replacements

        if not uses_replacements:
            return invocation.mark_against_scope(self, self.question.scope, existing_warnings, existing_feedback)

        builder = self.question.replacement_scope_builder()
        builder.check_prerequisites(self)

        result_original: Optional[MarkingResult] = None
        if strategy is ReplacementStrategy.ORIGINAL_FIRST:
            result_original = invocation.mark_against_scope(
                self, self.question.scope, existing_warnings, existing_feedback
            )
            if result_original.answered and result_original.credit >= 1:
                return result_original

        try:
            scope = builder.build(self)
        except MarkingError as e:
            if result_original is None:
                raise
            logger.warning("%s: could not build replacement scope, keeping original result: %s", self.path, e)
            return result_original
        result_replacement = invocation.mark_against_scope(self, scope, existing_warnings, existing_feedback)

        if result_original is None or (
            result_replacement.answered and result_replacement.credit > result_original.credit
        ):
            logger.info("%s: using result marked with variable replacements", self.path)
            return result_replacement.with_comment_first(
                messages.render("part.marking.used variable replacements")
            )
        return result_original

    @hookable
    def submit(self) -> None:
        """
        Submit the staged answer: mark it, then update scores.

        Raises:
            PartMarkingError: If marking failed. The part is left unanswered
                with zero credit and a warning explaining the failure.
        """
        logger.info("Submitting %s", self.path)
        self.should_resubmit = False
        self.remove_warnings()
        self.ledger.reset()
        self.answered = False
        self.submitting = True

        try:
            if self.steps_shown:
                if self.settings.steps_penalty > 0:
                    self.marking_comment(messages.render(
                        "part.marking.revealed steps with penalty",
                        count=self.marks - self.settings.steps_penalty,
                    ))
                else:
                    self.marking_comment(messages.render("part.marking.revealed steps no penalty"))

            if self.staged_answer is not None:
                self.answer_list = copy.deepcopy(self.staged_answer)
            self.set_student_answer()

            if self.does_marking:
                if self.has_staged_answer():
                    self.set_dirty(False)
                    result = self._mark_with_strategy()
                    self.set_warnings(list(result.warnings))
                    self.ledger.reset(result.marking_feedback, credit=result.credit)
                    self.answered = result.answered
                else:
                    self.give_warning(messages.render("part.marking.not submitted"))
                    self.ledger.set_credit(0, messages.render("part.marking.did not answer"))
                    self.answered = False

            if self.steps_shown:
                self._submit_dirty_steps()

            self.calculate_score()
            self.question.update_score()

            if self.answered:
                self.marking_comment(messages.render("part.marking.total score", count=self.score))

            if self.store is not None:
                self.store.part_answered(self)
            if self.display is not None:
                self.display.show_score(self.answered)
        except Exception as e:
            self.abandon_submission(e)
            raise PartMarkingError(self.path, str(e)) from e
        finally:
            self.submitting = False

        if self.answered and self.question.config.mark_dependents_dirty:
            for path in sorted(self.error_carried_forward_back_references):
                self.question.get_part(path).please_resubmit()

    def _submit_dirty_steps(self) -> None:
        for step in self.steps:
            if step.is_dirty:
                try:
                    step.submit()
                except PartMarkingError as e:
                    logger.warning("Step %s of %s could not be marked: %s", step.path, self.path, e)
                except MarkingError as e:
                    step.abandon_submission(e)
                    logger.warning("Step %s of %s could not be marked: %s", step.path, self.path, e)

    def abandon_submission(self, error: Exception) -> None:
        """
        Leave the part unanswered after a failed submission.

        Also called by Question when a lifecycle hook fails outside
        ``submit()`` itself.
        """
        logger.warning("Marking %s failed: %s", self.path, error)
        self.give_warning(str(error))
        self.ledger.credit = 0
        self.answered = False
        self.calculate_score()
        self.question.update_score()
        if self.display is not None:
            self.display.show_score(False)

    def please_resubmit(self) -> None:
        """
        Called when a part this one takes replacement values from was marked.

        Marks this part dirty, warns the learner and asks the question to
        resubmit it once the current submission has finished.
        """
        if self.should_resubmit:
            return
        self.should_resubmit = True
        self.set_dirty(True)
        self.give_warning(messages.render("part.marking.resubmit because of variable replacement"))
        self.question.schedule_resubmit(self)

    # ─────────────────────────────────────────────────────────────────────────
    # Scoring
    # ─────────────────────────────────────────────────────────────────────────

    @hookable
    def calculate_score(self) -> None:
        """
        Recompute ``score`` from credit, steps, penalty, floor and reveal.

        Propagates to the parent part unless the parent is mid-submission.
        """
        outcome = aggregate_score(
            self.credit,
            self.settings,
            [StepScore(step.score, step.marks) for step in self.steps],
            steps_shown=self.steps_shown,
            revealed=self.revealed,
        )
        self.score = outcome.score
        for comment in outcome.comments:
            self.marking_comment(comment)

        if self.parent is not None and not self.parent.submitting:
            self.parent.calculate_score()

    # ─────────────────────────────────────────────────────────────────────────
    # Steps & Reveal
    # ─────────────────────────────────────────────────────────────────────────

    @hookable
    def show_steps(self, dont_store: bool = False) -> None:
        """
        Show the steps at the learner's request, applying the steps penalty.

        Args:
            dont_store: Don't notify storage (used when restoring state)
        """
        self.open_steps()
        if self.revealed:
            return

        self.steps_shown = True
        if self.answered:
            self.submit()
        else:
            self.calculate_score()
            self.question.update_score()

        if not dont_store and self.store is not None:
            self.store.steps_shown(self)

    def open_steps(self) -> None:
        """Open the steps box. Does not apply the penalty."""
        self.steps_open = True
        if self.display is not None:
            self.display.show_steps()

    def hide_steps(self) -> None:
        self.steps_open = False
        if self.display is not None:
            self.display.hide_steps()
        if self.store is not None:
            self.store.steps_hidden(self)

    @hookable
    def reveal_answer(self, dont_store: bool = False) -> None:
        """Reveal the correct answer. The part then scores nothing."""
        if self.display is not None:
            self.display.reveal_answer()
        self.revealed = True
        self.set_dirty(False)

        if self.steps:
            self.open_steps()
            for step in self.steps:
                step.reveal_answer(dont_store)

        self.calculate_score()
        self.question.update_score()

    # ─────────────────────────────────────────────────────────────────────────
    # Serialization
    # ─────────────────────────────────────────────────────────────────────────

    def to_dict(self) -> dict:
        """Snapshot of the part's scoring state."""
        d = {
            "path": self.path,
            "type": self.type,
            "marks": self.marks,
            "score": self.score,
            "credit": self.credit,
            "answered": self.answered,
            "warnings": list(self.warnings),
            "marking_feedback": [m.to_dict() for m in self.marking_feedback],
        }
        if self.steps:
            d["steps_shown"] = self.steps_shown
            d["steps"] = [step.to_dict() for step in self.steps]
        return d

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.path!r}, score={self.score:g}/{self.marks:g})"
