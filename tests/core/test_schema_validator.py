"""
Unit Tests for Question Definition Validation

Tests for the jsonschema-backed validator module.
"""

import pytest

from marking_toolkit.core.schemas.validator import (
    QUESTION_SCHEMA_VERSION,
    validate_question_definition,
)
from marking_toolkit.errors import DefinitionValidationError, MarkingConfigurationError


class TestValidateQuestionDefinition:
    """Tests for validate_question_definition function."""

    @pytest.fixture
    def valid_definition(self) -> dict:
        """Create a valid question definition for testing."""
        return {
            "schema_version": QUESTION_SCHEMA_VERSION,
            "name": "Linear equations",
            "parts": [
                {"type": "answer", "marks": 1, "answer_variable": "x", "marking_script": "equals-x"},
                {
                    "type": "answer",
                    "marks": 2,
                    "answer_variable": "y",
                    "marking_script": "equals-y",
                    "adaptive_marking": {
                        "strategy": "originalfirst",
                        "replacements": [{"variable": "x", "part": "p0", "must_go_first": False}],
                    },
                    "steps": [{"type": "information"}],
                    "scripts": [{"name": "mark", "order": "after", "script": "log"}],
                },
            ],
        }

    def test_validate_when_valid_definition_then_no_error(self, valid_definition):
        """Valid definitions should pass validation."""
        validate_question_definition(valid_definition)

    def test_validate_when_not_a_dict_then_raises_error(self):
        """Non-mapping input should raise DefinitionValidationError."""
        with pytest.raises(DefinitionValidationError, match="must be an object"):
            validate_question_definition(["parts"])  # type: ignore[arg-type]

    def test_validate_when_wrong_version_then_raises_error(self, valid_definition):
        """Unsupported schema versions should be rejected before schema checks."""
        valid_definition["schema_version"] = 99

        with pytest.raises(DefinitionValidationError, match="Unsupported") as exc_info:
            validate_question_definition(valid_definition)

        assert exc_info.value.path == "schema_version"

    def test_validate_when_missing_parts_then_raises_error(self, valid_definition):
        """Missing required field should raise DefinitionValidationError."""
        del valid_definition["parts"]

        with pytest.raises(DefinitionValidationError, match="parts"):
            validate_question_definition(valid_definition)

    def test_validate_when_negative_marks_then_reports_path(self, valid_definition):
        """The error path should point at the offending field."""
        valid_definition["parts"][0]["marks"] = -1

        with pytest.raises(DefinitionValidationError) as exc_info:
            validate_question_definition(valid_definition)

        assert exc_info.value.path == "parts[0].marks"

    def test_validate_when_unknown_strategy_then_raises_error(self, valid_definition):
        """Only the known replacement strategies are accepted."""
        valid_definition["parts"][1]["adaptive_marking"]["strategy"] = "sometimes"

        with pytest.raises(DefinitionValidationError):
            validate_question_definition(valid_definition)

    def test_validate_when_unknown_script_order_then_raises_error(self, valid_definition):
        """Hook order must be instead, before or after."""
        valid_definition["parts"][1]["scripts"][0]["order"] = "during"

        with pytest.raises(DefinitionValidationError):
            validate_question_definition(valid_definition)

    def test_validate_when_invalid_step_then_reports_nested_path(self, valid_definition):
        """Steps are validated with the same rules as parts."""
        valid_definition["parts"][1]["steps"][0] = {"marks": 1}

        with pytest.raises(DefinitionValidationError) as exc_info:
            validate_question_definition(valid_definition)

        assert exc_info.value.path == "parts[1].steps[0]"

    def test_validate_when_several_violations_then_lists_all(self, valid_definition):
        """Every schema violation should be reported."""
        valid_definition["parts"][0]["marks"] = "one"
        valid_definition["parts"][0]["colour"] = "red"

        with pytest.raises(DefinitionValidationError) as exc_info:
            validate_question_definition(valid_definition)

        assert len(exc_info.value.errors) == 2

    def test_validate_when_invalid_then_is_configuration_error(self, valid_definition):
        """Validation failures are configuration errors."""
        valid_definition["parts"] = "none"

        with pytest.raises(MarkingConfigurationError):
            validate_question_definition(valid_definition)
