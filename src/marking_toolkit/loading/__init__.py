"""
Loading Package

Build questions from JSON-compatible definitions.
"""

from .loader import load_question, load_question_file, parse_settings

__all__ = [
    "load_question",
    "load_question_file",
    "parse_settings",
]
