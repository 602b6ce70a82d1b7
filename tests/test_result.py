from app.services.result import PROVIDER_ERROR, STORE_ERROR, VALIDATION_ERROR, Result


class TestResultSuccess:
    def test_success_creates_ok_result(self):
        result = Result.success("test value")
        assert result.ok is True
        assert result.value == "test value"
        assert result.error is None

    def test_success_with_different_types(self):
        assert Result.success(42).value == 42
        assert Result.success({"viber_id": "u1"}).value == {"viber_id": "u1"}


class TestResultFailure:
    def test_failure_creates_not_ok_result(self):
        result = Result.failure("Customer upsert failed", "custom_error")
        assert result.ok is False
        assert result.error == "Customer upsert failed"
        assert result.error_code == "custom_error"
        assert result.value is None

    def test_failure_defaults_to_store_error(self):
        result = Result.failure("connection refused")
        assert result.error_code == STORE_ERROR

    def test_from_exception_keeps_exception_type(self):
        result = Result.from_exception(RuntimeError("connection refused"))
        assert result.ok is False
        assert result.error == "RuntimeError: connection refused"
        assert result.error_code == STORE_ERROR


class TestResultUnwrapOr:
    def test_unwrap_or_returns_value_on_success(self):
        assert Result.success("actual value").unwrap_or("default") == "actual value"

    def test_unwrap_or_returns_default_on_failure(self):
        assert Result.failure("Error", VALIDATION_ERROR).unwrap_or("default") == "default"

    def test_unwrap_or_with_none_value(self):
        assert Result.success(None).unwrap_or("default") is None


class TestErrorCodes:
    def test_codes_are_distinct(self):
        assert len({STORE_ERROR, VALIDATION_ERROR, PROVIDER_ERROR}) == 3
