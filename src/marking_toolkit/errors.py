"""
Module: errors

Purpose:
    Exception hierarchy for the marking engine. Every failure raised by the
    engine derives from MarkingError so callers can isolate a part with a
    single except clause.

Key Classes:
    - MarkingError: Root of the hierarchy
    - MarkingConfigurationError: Fatal, raised while loading a question
    - VariableDependencyError: Circular or unresolved variable definitions
    - DefinitionValidationError: Part definition failed schema validation
    - PrerequisiteError: A must-go-first upstream part is unanswered
    - MarkingEvaluationError: The marking script raised during evaluation
    - FeedbackInterpretationError: Malformed feedback operation sequence
    - PartMarkingError: Part-scoped wrapper raised from Part.submit()
    - PartScriptError: A lifecycle hook raised

Used By:
    - marking.*, parts.*, loading.*
"""

from __future__ import annotations

from typing import Optional


class MarkingError(Exception):
    """Base class for all marking engine errors."""


class MarkingConfigurationError(MarkingError):
    """Raised when a part or question is configured incorrectly.

    Configuration errors are detected at load time and are never retried.
    """


class VariableDependencyError(MarkingConfigurationError):
    """Raised when question variables form a cycle or reference unknown names."""

    def __init__(self, message: str, names: tuple[str, ...] = ()):
        super().__init__(message)
        self.names = names


class DefinitionValidationError(MarkingConfigurationError):
    """Raised when a part definition fails schema validation."""

    def __init__(self, message: str, path: str = "", errors: list[str] | None = None):
        super().__init__(message)
        self.path = path
        self.errors = errors or []


class PrerequisiteError(MarkingError):
    """Raised when a must-go-first upstream part has not been answered."""

    def __init__(self, message: str, part_path: str):
        super().__init__(message)
        self.part_path = part_path


class MarkingEvaluationError(MarkingError):
    """Raised when the marking script fails while evaluating a note."""

    def __init__(self, message: str, note: Optional[str] = None):
        super().__init__(message)
        self.note = note


class FeedbackInterpretationError(MarkingEvaluationError):
    """Raised when a feedback operation sequence cannot be interpreted."""


class PartMarkingError(MarkingError):
    """
    A failure while submitting a part, wrapped with the part's path.

    The original exception is chained as ``__cause__``.
    """

    def __init__(self, path: str, message: str):
        super().__init__(f"Error marking {path}: {message}")
        self.path = path
        self.detail = message


class PartScriptError(MarkingError):
    """Raised when a lifecycle hook attached to a part fails."""

    def __init__(self, path: str, script: str, message: str):
        super().__init__(f"Error in {script!r} script of {path}: {message}")
        self.path = path
        self.script = script
