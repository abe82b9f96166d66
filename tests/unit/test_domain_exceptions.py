"""Exception codes and details."""

from fieldlog.domain.exceptions import (
    CleanupNotConfirmedException,
    ConfigurationException,
    FieldlogException,
    PayloadTooLargeException,
    StorageFatalException,
    ValidationException,
)


def test_base_exception_defaults_code_to_class_name() -> None:
    e = FieldlogException("boom")
    assert e.error_code == "FieldlogException"
    assert e.details == {}
    assert str(e) == "boom"


def test_validation_exception_field() -> None:
    e = ValidationException("name is required", field="name")
    assert e.error_code == "VALIDATION_ERROR"
    assert e.details == {"field": "name"}
    assert ValidationException("bad").details == {}


def test_configuration_exception() -> None:
    e = ConfigurationException("s3", "boto3 missing")
    assert e.error_code == "CONFIGURATION_ERROR"
    assert e.details == {"backend": "s3", "reason": "boto3 missing"}
    assert "s3" in e.message


def test_payload_too_large_reports_kilobytes() -> None:
    e = PayloadTooLargeException(size=1_200 * 1024, budget=900 * 1024)
    assert e.error_code == "PAYLOAD_TOO_LARGE"
    assert "1200 KB" in e.message
    assert "900 KB" in e.message
    assert e.details == {"size": 1_200 * 1024, "budget": 900 * 1024}


def test_storage_fatal_carries_both_errors() -> None:
    e = StorageFatalException("create_project", "disk full", "HTTP 503")
    assert e.error_code == "STORAGE_FATAL"
    assert e.details == {
        "operation": "create_project",
        "primary_error": "HTTP 503",
        "local_error": "disk full",
    }


def test_cleanup_not_confirmed() -> None:
    e = CleanupNotConfirmedException(3)
    assert e.error_code == "CLEANUP_NOT_CONFIRMED"
    assert e.details == {"pending": 3}
    assert isinstance(e, FieldlogException)
