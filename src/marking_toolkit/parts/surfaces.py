"""
Optional presentation and storage surfaces attached to parts.

The engine runs without either (e.g. batch grading); when present they are
notified of warnings, scores and step visibility.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, Sequence

if TYPE_CHECKING:
    from .part import Part


class PartDisplay(Protocol):
    """Presentation surface for a single part."""

    def warning(self, message: str) -> None: ...

    def set_warnings(self, warnings: Sequence[str]) -> None: ...

    def remove_warnings(self) -> None: ...

    def show_score(self, answered: bool) -> None: ...

    def is_dirty(self, dirty: bool) -> None: ...

    def show_steps(self) -> None: ...

    def hide_steps(self) -> None: ...

    def reveal_answer(self) -> None: ...


class QuestionDisplay(Protocol):
    """Presentation surface for a whole question."""

    def is_dirty(self, dirty: bool) -> None: ...

    def show_score(self) -> None: ...


class PartStorage(Protocol):
    """Storage surface recording learner progress."""

    def part_answered(self, part: Part) -> None: ...

    def steps_shown(self, part: Part) -> None: ...

    def steps_hidden(self, part: Part) -> None: ...
