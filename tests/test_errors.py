import pytest

from stt_batch.errors import (
    ERROR_EXIT_CODE_MAP,
    ERROR_SPECS,
    BackendError,
    ConfigurationError,
    ErrorCategory,
    ErrorCode,
    InputError,
    OutputError,
    TranscriptionError,
    exit_code_for,
    format_error,
    spec_for,
)


def test_every_code_has_an_error_spec_row():
    """Test every error code has exactly one table row."""
    assert set(ERROR_SPECS) == set(ErrorCode)
    for code, spec in ERROR_SPECS.items():
        assert spec.code is code
        assert ERROR_EXIT_CODE_MAP[code] == spec.exit_code


@pytest.mark.parametrize(
    "error_cls,category,exit_code",
    [
        (ConfigurationError, ErrorCategory.CONFIGURATION, 2),
        (InputError, ErrorCategory.INPUT, 3),
        (BackendError, ErrorCategory.BACKEND, 4),
        (OutputError, ErrorCategory.OUTPUT, 5),
    ],
)
def test_categories_map_to_exit_codes(error_cls, category, exit_code):
    """Test each category maps to its process exit code."""
    codes = [code for code, spec in ERROR_SPECS.items() if spec.category is category]
    assert codes
    for code in codes:
        assert exit_code_for(code) == exit_code
        error = error_cls(code)
        assert error.category is category
        assert error.exit_code == exit_code
        assert isinstance(error, TranscriptionError)


def test_subclass_rejects_code_from_another_category():
    """Test an error class refuses codes outside its category."""
    with pytest.raises(ValueError):
        InputError(ErrorCode.TIMEOUT)


def test_message_falls_back_to_table_default():
    """Test the table message is used when no detail is given."""
    error = BackendError(ErrorCode.TIMEOUT)
    assert error.detail == spec_for(ErrorCode.TIMEOUT).message
    assert str(error) == "ERR3003 backend call timed out"
    assert format_error(ErrorCode.TIMEOUT, "after 5s") == "ERR3003 after 5s"


def test_payload_includes_input_path(tmp_path):
    """Test the JSON payload carries the tagged input path."""
    error = InputError(ErrorCode.UNSUPPORTED_FORMAT, "unsupported audio format: .txt")
    assert error.to_payload()["input"] is None
    assert error.tag_input(tmp_path / "notes.txt") is error
    assert error.to_payload() == {
        "code": "ERR2002",
        "kind": "UNSUPPORTED_FORMAT",
        "category": "input",
        "message": "unsupported audio format: .txt",
        "input": str(tmp_path / "notes.txt"),
    }


def test_configuration_error_records_field():
    """Test configuration errors remember the offending field."""
    error = ConfigurationError(ErrorCode.INVALID_OPTION, "bad", field="beam_size")
    assert error.field == "beam_size"
    assert error.input_path is None
