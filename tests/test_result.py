import logging
from unittest.mock import Mock

from linedesk.services.result import Result, best_effort


class TestResultSuccess:
    def test_success_creates_ok_result(self):
        result = Result.success("test value")
        assert result.ok is True
        assert result.value == "test value"
        assert result.error is None

    def test_success_with_none_value(self):
        result = Result.success(None)
        assert result.ok is True
        assert result.unwrap_or("default") is None


class TestResultFailure:
    def test_failure_creates_not_ok_result(self):
        result = Result.failure("Something went wrong", "ai_error")
        assert result.ok is False
        assert result.error == "Something went wrong"
        assert result.error_code == "ai_error"
        assert result.value is None

    def test_failure_default_code(self):
        result = Result.failure("Error message")
        assert result.error_code == "unknown"

    def test_unwrap_or_returns_default_on_failure(self):
        assert Result.failure("Error", "code").unwrap_or("default") == "default"


class TestBestEffort:
    def test_wraps_plain_return_value(self):
        logger = Mock(spec=logging.Logger)
        result = best_effort(logger, "lookup", lambda x: x * 2, 21)
        assert result.ok is True
        assert result.value == 42
        logger.warning.assert_not_called()

    def test_exception_becomes_failure_and_is_logged(self):
        logger = Mock(spec=logging.Logger)

        def boom():
            raise RuntimeError("network down")

        result = best_effort(logger, "profile fetch", boom)

        assert result.ok is False
        assert result.error == "network down"
        assert result.error_code == "best_effort_error"
        logger.warning.assert_called_once()
        assert "profile fetch" in logger.warning.call_args[0][0]

    def test_failed_result_is_passed_through_and_logged(self):
        logger = Mock(spec=logging.Logger)
        result = best_effort(logger, "push", lambda: Result.failure("LINE API error: 400", "line_error"))

        assert result.ok is False
        assert result.error_code == "line_error"
        logger.warning.assert_called_once()

    def test_successful_result_is_returned_unchanged(self):
        logger = Mock(spec=logging.Logger)
        inner = Result.success({"sent": True})
        assert best_effort(logger, "push", lambda: inner) is inner
