"""
Module: marking.scripts

Purpose:
    The interface between the engine and the opaque marking-script evaluator,
    plus a concrete evaluator built from Python callables.

    A marking script is a set of named *notes*. Evaluating the script yields,
    per note, a value and a list of feedback operations ("state"). Errors are
    reported per note instead of being raised.

Key Classes:
    - MarkingScript: Protocol every evaluator implements
    - ScriptResult: Output of one evaluation
    - NoteContext: What a callable note receives
    - CallableMarkingScript: Evaluator built from ``{name: callable}``

Constants:
    - REQUIRED_NOTES: Notes every part's marking script must define

Dependencies:
    - marking_toolkit.core.models.feedback
    - marking.scope.Scope

Used By:
    - marking.invocation
    - parts.part.Part.set_marking_script
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Protocol, Tuple, runtime_checkable

from marking_toolkit.core.models.feedback import FeedbackOperation
from marking_toolkit.errors import MarkingEvaluationError

from .scope import Scope

logger = logging.getLogger(__name__)

REQUIRED_NOTES: Tuple[str, ...] = ("mark", "interpreted_answer")


@dataclass(frozen=True)
class ScriptResult:
    """
    Output of evaluating a marking script.

    Attributes:
        states: Feedback operations emitted by each note
        values: Value of each note
        state_errors: Errors raised by notes, keyed by note name
    """

    states: Mapping[str, List[Any]] = field(default_factory=dict)
    values: Mapping[str, Any] = field(default_factory=dict)
    state_errors: Mapping[str, Exception] = field(default_factory=dict)


@runtime_checkable
class MarkingScript(Protocol):
    """Marking-script evaluator consumed by the engine."""

    @property
    def notes(self) -> Tuple[str, ...]:
        """Names of the notes the script defines."""
        ...

    def evaluate(self, scope: Scope, parameters: Mapping[str, Any]) -> ScriptResult:
        """Evaluate every note against ``scope`` and the marking ``parameters``."""
        ...


class NoteContext:
    """
    Passed to each note of a CallableMarkingScript.

    Attributes:
        scope: Evaluation scope (original or replacement)
        parameters: Marking parameters of the part
        values: Values of the notes evaluated so far
        operations: Feedback operations emitted by this note
    """

    def __init__(self, scope: Scope, parameters: Mapping[str, Any], values: Mapping[str, Any]):
        self.scope = scope
        self.parameters = parameters
        self.values = values
        self.operations: List[FeedbackOperation] = []

    @property
    def student_answer(self) -> Any:
        return self.parameters.get("student_answer")

    def set_credit(self, credit: float, message: str = "") -> None:
        self.operations.append(FeedbackOperation.set_credit(credit, message))

    def add_credit(self, credit: float, message: str = "") -> None:
        self.operations.append(FeedbackOperation.add_credit(credit, message))

    def sub_credit(self, credit: float, message: str = "") -> None:
        self.operations.append(FeedbackOperation.sub_credit(credit, message))

    def multiply_credit(self, factor: float, message: str = "") -> None:
        self.operations.append(FeedbackOperation.multiply_credit(factor, message))

    def correct(self, message: str = "") -> None:
        self.set_credit(1, message)

    def incorrect(self, message: str = "") -> None:
        self.set_credit(0, message)

    def warn(self, message: str) -> None:
        self.operations.append(FeedbackOperation.warning(message))

    def feedback(self, message: str) -> None:
        self.operations.append(FeedbackOperation.feedback(message))

    def fail(self, message: str = "") -> None:
        """Stop marking and flag the answer as invalid."""
        self.operations.append(FeedbackOperation.end(invalid=True, message=message))

    def end(self) -> None:
        self.operations.append(FeedbackOperation.end())

    def lift(self, scale: float, operations: List[Any]) -> None:
        """Emit ``operations`` inside a lift region scaled by ``scale``."""
        self.operations.append(FeedbackOperation.start_lift(scale))
        self.operations.extend(FeedbackOperation.coerce_all(operations))
        self.operations.append(FeedbackOperation.end_lift())


NoteFunction = Callable[[NoteContext], Any]


class CallableMarkingScript:
    """
    Marking script whose notes are Python callables.

    Notes are evaluated in definition order; each sees the values of the
    notes before it. A note that raises is recorded in ``state_errors`` and
    evaluation continues with the next note.

    Example:
        >>> def mark(ctx):
        ...     if ctx.student_answer == ctx.scope["x"]:
        ...         ctx.correct("Correct!")
        ...     else:
        ...         ctx.incorrect("Wrong.")
        >>> script = CallableMarkingScript({
        ...     "interpreted_answer": lambda ctx: ctx.student_answer,
        ...     "mark": mark,
        ... })
        >>> script.notes
        ('interpreted_answer', 'mark')
    """

    def __init__(self, notes: Mapping[str, NoteFunction], name: str = ""):
        self._notes: Dict[str, NoteFunction] = dict(notes)
        self.name = name

    @property
    def notes(self) -> Tuple[str, ...]:
        return tuple(self._notes)

    def extend(self, notes: Mapping[str, NoteFunction]) -> CallableMarkingScript:
        """New script with ``notes`` added or overriding existing ones."""
        merged = dict(self._notes)
        merged.update(notes)
        return CallableMarkingScript(merged, name=self.name)

    def evaluate(self, scope: Scope, parameters: Mapping[str, Any]) -> ScriptResult:
        states: Dict[str, List[Any]] = {}
        values: Dict[str, Any] = {}
        errors: Dict[str, Exception] = {}
        for name, fn in self._notes.items():
            context = NoteContext(scope, parameters, values)
            try:
                values[name] = fn(context)
            except Exception as e:
                logger.debug("Note %r raised %s", name, e)
                errors[name] = MarkingEvaluationError(f"Error evaluating note {name!r}: {e}", note=name)
                values[name] = None
            states[name] = list(context.operations)
        return ScriptResult(states=states, values=values, state_errors=errors)

    def __repr__(self) -> str:
        label = f"{self.name!r}, " if self.name else ""
        return f"CallableMarkingScript({label}notes={list(self._notes)})"
