"""
Tests for OperationResult, run_operation and error reconstruction.
"""

from enum import Enum

import pytest

from fieldops_kernel.domain.coercion import coerce_enum
from fieldops_kernel.domain.results import OperationResult, OperationStatus, run_operation
from fieldops_kernel.exceptions import (
    AlreadyUsedError,
    ConflictError,
    ExpiredError,
    ForbiddenError,
    NotFoundError,
    RemoteError,
    ValidationError,
    error_from_code,
)
from fieldops_kernel.messages import access_code_message, user_message


class Colour(str, Enum):
    RED = "red"
    DARK_BLUE = "dark_blue"


class TestRunOperation:

    def test_success(self):
        result = run_operation("op", lambda: 42)
        assert result.is_success
        assert result.unwrap() == 42

    @pytest.mark.parametrize(
        "error,status",
        [
            (ValidationError("amount", "negative"), OperationStatus.VALIDATION_ERROR),
            (NotFoundError("mission", "m-1"), OperationStatus.NOT_FOUND),
            (ConflictError("mission", "m-1", "already approved"), OperationStatus.CONFLICT),
            (ForbiddenError("admin role required"), OperationStatus.FORBIDDEN),
            (AlreadyUsedError("EMP2024000001"), OperationStatus.ALREADY_USED),
            (ExpiredError("EMP2024000001", "2024-01-01"), OperationStatus.EXPIRED),
        ],
    )
    def test_typed_errors_map_to_status(self, error, status):
        def _raise():
            raise error

        result = run_operation("op", _raise)

        assert result.status == status
        assert result.error_code == error.code
        assert result.error is error
        with pytest.raises(type(error)):
            result.unwrap()

    def test_unexpected_error_becomes_remote_error(self, captured_logs):
        def _boom():
            raise KeyError("secret-column")

        result = run_operation("load_things", _boom, entity_id="abc")

        assert result.status == OperationStatus.REMOTE_ERROR
        assert "secret-column" not in result.message
        record = next(r for r in captured_logs() if r["message"] == "operation_unexpected_error")
        assert record["operation"] == "load_things"
        assert record["entity_id"] == "abc"
        assert "traceback" in record

    def test_failure_is_logged_as_warning(self, captured_logs):
        def _raise():
            raise NotFoundError("mission", "m-1")

        run_operation("get_mission", _raise)

        record = next(r for r in captured_logs() if r["message"] == "operation_failed")
        assert record["level"] == "WARNING"
        assert record["error_code"] == "NOT_FOUND"

    def test_message_is_localized(self):
        result = OperationResult.fail(ForbiddenError("nope"), locale="pt-BR")
        assert result.message == user_message("FORBIDDEN", "pt-BR")


class TestMessages:

    def test_unknown_locale_falls_back_to_english(self):
        assert user_message("NOT_FOUND", "xx") == user_message("NOT_FOUND", "en")

    def test_unknown_code_is_generic(self):
        assert user_message("SOMETHING_NEW") == user_message("REMOTE_ERROR")

    def test_access_code_message_is_shared(self):
        assert access_code_message("pt-BR") != access_code_message("en")
        assert access_code_message("en") == user_message("ACCESS_CODE", "en")


class TestErrorFromCode:

    def test_round_trip_through_details(self):
        original = ConflictError("pending_revenue", "r-1", "already received")
        rebuilt = error_from_code(original.code, original.details)

        assert isinstance(rebuilt, ConflictError)
        assert rebuilt.reason == "already received"
        assert str(rebuilt) == str(original)

    def test_unknown_code(self):
        rebuilt = error_from_code("TEAPOT", {}, "brew")
        assert isinstance(rebuilt, RemoteError)
        assert rebuilt.operation == "brew"

    def test_malformed_details(self):
        assert isinstance(error_from_code("NOT_FOUND", {"bogus": 1}), RemoteError)


class TestCoerceEnum:

    @pytest.mark.parametrize("raw", [Colour.RED, "red", "RED", " red "])
    def test_known_values(self, raw):
        assert coerce_enum(Colour, raw, Colour.DARK_BLUE) == Colour.RED

    def test_name_with_dash(self):
        assert coerce_enum(Colour, "dark-blue", Colour.RED) == Colour.DARK_BLUE

    def test_unknown_value_falls_back_and_logs(self, captured_logs):
        result = coerce_enum(Colour, "mauve", Colour.RED, entity="paint", field="colour", entity_id=7)

        assert result == Colour.RED
        record = next(r for r in captured_logs() if r["message"] == "unknown_enum_value_coerced")
        assert record["raw_value"] == "'mauve'"
        assert record["coerced_to"] == "red"
        assert record["entity_id"] == "7"
