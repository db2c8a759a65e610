"""
Learner-facing message catalogue.

All text shown next to an answer or in the marking feedback is rendered
through ``render()`` so a host application can swap the catalogue for a
translated one with ``MESSAGES.update(...)``.
"""

from __future__ import annotations

from typing import Any, Dict

MESSAGES: Dict[str, str] = {
    "part.marking.nothing entered": "You did not enter an answer.",
    "part.marking.did not answer": "You did not answer this part.",
    "part.marking.not submitted": "No answer submitted.",
    "part.marking.revealed steps with penalty": (
        "You revealed the steps. The maximum you can score for this part is {count}."
    ),
    "part.marking.revealed steps no penalty": "You revealed the steps.",
    "part.marking.steps no matter": (
        "Because you received full marks for the part, your answers to the steps aren't counted."
    ),
    "part.marking.steps change": "Your answers to the steps changed your score by {count}.",
    "part.marking.total score": "You scored {count} marks for this part.",
    "part.marking.used variable replacements": (
        "This part was marked using your answers to previous parts."
    ),
    "part.marking.variable replacement part not answered": (
        "You must answer {part} first."
    ),
    "part.marking.resubmit because of variable replacement": (
        "This part's marking depends on your answers to other parts, which you have changed. "
        "Submit this part again to update your score."
    ),
    "part.marking.no result": "This part could not be marked.",
}


def _format_number(value: Any) -> Any:
    # 3.0 -> "3", 2.5 -> "2.5"
    if isinstance(value, float):
        return f"{value:g}"
    return value


def render(key: str, **params: Any) -> str:
    """
    Render a catalogue message.

    Unknown keys render as the key itself so a missing translation never
    breaks marking.

    Args:
        key: Catalogue key like "part.marking.total score"
        **params: Values substituted into the template

    Returns:
        The formatted message
    """
    template = MESSAGES.get(key, key)
    return template.format(**{name: _format_number(v) for name, v in params.items()})
