"""
Module: marking.invocation

Purpose:
    Run a part's marking script against an evaluation scope and apply the
    resulting feedback to the part.

Key Functions:
    - marking_parameters(part, answer): Parameter bundle for the script
    - mark_answer(part, scope, answer): Evaluate the script, raising on errors
    - apply_mark(part, scope): Mark the part's submitted answer in place
    - mark_against_scope(part, scope, prefix): One marking pass -> MarkingResult

Process (apply_mark):
    1. No submitted answer -> set credit 0 ("nothing entered")
    2. Build marking parameters, including every step's own parameters
    3. Evaluate the marking script against the scope
    4. A ``mark`` note error is raised as MarkingEvaluationError
    5. Interpret the ``mark`` note's operations against the part's ledger
    6. Cache the ``interpreted_answer`` note's value on the part

Dependencies:
    - marking.interpreter.FeedbackInterpreter
    - marking.scripts.ScriptResult

Used By:
    - parts.part.Part
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Dict, Iterable

from marking_toolkit import messages
from marking_toolkit.core.models.feedback import FeedbackMessage, FeedbackOperation, MarkingResult
from marking_toolkit.errors import MarkingConfigurationError, MarkingEvaluationError

from .interpreter import FeedbackInterpreter
from .scope import Scope
from .scripts import ScriptResult

if TYPE_CHECKING:
    from marking_toolkit.parts.part import Part

logger = logging.getLogger(__name__)


def marking_parameters(part: Part, student_answer: Any) -> Dict[str, Any]:
    """
    Build the parameter bundle passed to the marking script.

    Steps are included recursively, each wrapping its own raw answer, so a
    script can inspect the learner's answers to the steps.

    Args:
        part: Part being marked
        student_answer: The part's raw answer

    Returns:
        Dict with path, student_answer, settings, marks, part_type, steps
    """
    return {
        "path": part.path,
        "student_answer": student_answer,
        "settings": part.settings.to_dict(),
        "marks": part.marks,
        "part_type": part.type,
        "steps": [step.marking_parameters(step.raw_student_answer()) for step in part.steps],
    }


def mark_answer(part: Part, scope: Scope, student_answer: Any) -> ScriptResult:
    """
    Evaluate the part's marking script.

    Does not change the part's credit or feedback.

    Raises:
        MarkingConfigurationError: If the part has no marking script
        MarkingEvaluationError: If the ``mark`` note failed
    """
    if part.marking_script is None:
        raise MarkingConfigurationError(f"Part {part.path} has no marking script")
    result = part.marking_script.evaluate(scope, part.marking_parameters(student_answer))
    error = result.state_errors.get("mark")
    if error is not None:
        if isinstance(error, MarkingEvaluationError):
            raise error
        raise MarkingEvaluationError(str(error), note="mark") from error
    return result


def apply_feedback(part: Part, operations: Iterable[Any]) -> None:
    """Interpret feedback operations against the part and set ``answered``."""
    interpreter = FeedbackInterpreter(part.ledger, part.give_warning)
    part.answered = interpreter.run(FeedbackOperation.coerce_all(operations))


def apply_mark(part: Part, scope: Scope) -> None:
    """Mark the part's submitted answer against ``scope``, updating the part."""
    if part.answer_list is None:
        part.ledger.set_credit(0, messages.render("part.marking.nothing entered"))
        return

    result = mark_answer(part, scope, part.raw_student_answer())
    if "mark" not in result.states:
        raise MarkingEvaluationError(messages.render("part.marking.no result"), note="mark")
    apply_feedback(part, result.states["mark"])
    part.interpreted_answer = result.values.get("interpreted_answer")
    logger.debug("Marked %s: credit=%g answered=%s", part.path, part.credit, part.answered)


def mark_against_scope(
    part: Part,
    scope: Scope,
    warnings: Iterable[str] = (),
    feedback: Iterable[FeedbackMessage] = (),
) -> MarkingResult:
    """
    One marking pass of the part against ``scope``.

    The part's warnings and feedback log start from copies of ``warnings``
    and ``feedback``; credit starts at zero and ``answered`` at False.

    Args:
        part: Part to mark
        scope: Scope in which the correct answer is computed
        warnings: Warnings carried over from before marking
        feedback: Feedback log prefix carried over from before marking

    Returns:
        MarkingResult snapshot of the part after marking
    """
    part.set_warnings(list(warnings))
    part.ledger.reset(feedback)
    part.answered = False

    part.get_correct_answer(scope)
    part.mark(scope)

    return MarkingResult(
        credit=part.credit,
        answered=part.answered,
        warnings=tuple(part.warnings),
        marking_feedback=part.ledger.feedback,
    )
