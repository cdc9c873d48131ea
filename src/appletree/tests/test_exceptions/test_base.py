import pytest

from appletree.exceptions import (
    DuplicateError,
    EditConflictError,
    NotFoundError,
    QueryTimeoutError,
    RepositoryError,
    StoreError,
    ValidationError,
)


@pytest.mark.parametrize("exc, code, status", [
    (ValidationError({"name": "must be provided"}), "validation_failed", 422),
    (NotFoundError(), "not_found", 404),
    (EditConflictError(), "edit_conflict", 409),
    (DuplicateError("School already exists"), "duplicate", 409),
    (StoreError(), "store_error", 500),
    (QueryTimeoutError("schools.get", 3.0), "query_timeout", 500),
])
def test_codes_and_statuses(exc, code, status):
    assert isinstance(exc, RepositoryError)
    assert exc.error_code == code
    assert exc.http_status() == status


def test_unknown_code_defaults_to_400():
    assert RepositoryError("odd", error_code="mystery").http_status() == 400
    assert RepositoryError("odd").http_status() == 400


def test_payload_never_includes_constraint():
    err = DuplicateError("School already exists", fields=["email"], constraint="uq_schools_email")

    assert err.to_payload() == {"detail": "School already exists", "code": "duplicate", "fields": ["email"]}
    assert "uq_schools_email" in str(err)


def test_validation_payload_carries_error_map():
    err = ValidationError({"phone": "must be a valid phone number", "email": "must be provided"})

    assert err.to_payload() == {
        "detail": "Input failed validation",
        "code": "validation_failed",
        "fields": ["email", "phone"],
        "errors": {"phone": "must be a valid phone number", "email": "must be provided"},
    }


def test_validation_error_copies_its_input():
    source = {"name": "must be provided"}
    err = ValidationError(source)
    source["level"] = "must be provided"
    assert err.errors == {"name": "must be provided"}


def test_timeout_is_a_store_error():
    err = QueryTimeoutError("schools.get_all", 0.5)
    assert isinstance(err, StoreError)
    assert err.message == "schools.get_all did not complete within 0.5s"
    assert (err.operation, err.timeout) == ("schools.get_all", 0.5)


def test_edit_conflict_is_distinct_from_store_error():
    assert not isinstance(EditConflictError(), StoreError)
    assert not isinstance(NotFoundError(), StoreError)
