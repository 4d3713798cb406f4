import pytest

from medassist.utils.result import (
    Failure,
    Success,
    internal_error,
    not_found_error,
    validation_error,
)


class TestResult:
    def test_success(self):
        result = Success({"id": "c1"})

        assert result.is_success()
        assert bool(result)
        assert result.unwrap() == {"id": "c1"}
        assert result.to_dict() == {"success": True, "data": {"id": "c1"}}

    def test_failure_unwrap_raises(self):
        result = Failure("nope")

        assert result.is_failure()
        assert not result
        assert result.unwrap_or("default") == "default"
        with pytest.raises(RuntimeError):
            result.unwrap()

    @pytest.mark.parametrize(
        "factory,error_type,status_code",
        [
            (validation_error, "ValidationError", 400),
            (not_found_error, "NotFoundError", 404),
            (internal_error, "InternalError", 500),
        ],
    )
    def test_factories(self, factory, error_type, status_code):
        result = factory("message", context={"k": "v"})

        assert result.error_type == error_type
        assert result.status_code == status_code
        data = result.to_dict()
        assert data["success"] is False
        assert data["context"] == {"k": "v"}
