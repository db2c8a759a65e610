"""
Module: marking.aggregator

Purpose:
    Combine a part's credit with its steps' scores, the steps penalty, the
    minimum marks floor and answer reveal into the score actually awarded.

Key Functions:
    - aggregate_score(): Pure score calculation -> ScoreOutcome

Rules (in order):
    1. Steps exist and have been shown:
       base = (marks - steps_penalty) * credit
       score = base + sum(step scores), clamped to [0, marks - steps_penalty],
       then raised to minimum_marks if the floor is enabled.
       A comment explains the effect of the steps when both the steps'
       marks and scores sum to something non-zero.
    2. Otherwise score = credit * marks, clamped to [0, marks], then raised
       to the floor if enabled.
    3. Revealed answers score 0.

Dependencies:
    - marking_toolkit.core.models.settings.PartSettings
    - marking_toolkit.messages

Used By:
    - parts.part.Part.calculate_score
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence, Tuple

from marking_toolkit import messages
from marking_toolkit.core.models.settings import PartSettings


@dataclass(frozen=True, slots=True)
class StepScore:
    """Score and available marks of one step."""
    score: float
    marks: float


@dataclass(frozen=True, slots=True)
class ScoreOutcome:
    """
    Result of aggregation.

    Attributes:
        score: Marks awarded
        base_score: Score from the part's own credit before steps were added
        comments: Feedback comments to append to the part's log
    """
    score: float
    base_score: float
    comments: Tuple[str, ...] = ()


def aggregate_score(
    credit: float,
    settings: PartSettings,
    steps: Sequence[StepScore] = (),
    steps_shown: bool = False,
    revealed: bool = False,
) -> ScoreOutcome:
    """
    Calculate the score for a part.

    Args:
        credit: The part's own credit
        settings: Marks, penalty and floor configuration
        steps: Scores of the part's steps
        steps_shown: Whether the learner has revealed the steps
        revealed: Whether the answer has been revealed

    Returns:
        ScoreOutcome

    Example:
        >>> aggregate_score(0.7, PartSettings(marks=10)).score
        7.0
    """
    marks = settings.marks
    comments: list[str] = []

    if steps and steps_shown:
        ceiling = marks - settings.steps_penalty
        base = ceiling * credit
        steps_score = sum(s.score for s in steps)
        steps_marks = sum(s.marks for s in steps)

        score = _clamp(base + steps_score, ceiling)
        if settings.enable_minimum_marks:
            score = max(score, settings.minimum_marks)

        if steps_marks != 0 and steps_score != 0:
            if credit == 1:
                comments.append(messages.render("part.marking.steps no matter"))
            else:
                comments.append(messages.render("part.marking.steps change", count=score - base))
    else:
        base = credit * marks
        score = _clamp(base, marks)
        if settings.enable_minimum_marks:
            score = max(score, settings.minimum_marks)

    if revealed:
        score = 0

    return ScoreOutcome(score=score, base_score=base, comments=tuple(comments))


def _clamp(value: float, upper: float) -> float:
    # Credit is unbounded; the score is not
    return min(max(value, 0), max(upper, 0))
