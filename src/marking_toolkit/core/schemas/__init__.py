"""
Schemas Package

JSON schema definitions and validation utilities.
"""

from .validator import QUESTION_SCHEMA_VERSION, validate_question_definition

__all__ = [
    "QUESTION_SCHEMA_VERSION",
    "validate_question_definition",
]
