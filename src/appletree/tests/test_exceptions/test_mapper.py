import asyncio
from types import SimpleNamespace

import pytest
from sqlalchemy.exc import IntegrityError, OperationalError

from appletree.exceptions.base import (
    DuplicateError,
    NotFoundError,
    QueryTimeoutError,
    StoreError,
)
from appletree.exceptions.integrity_classifier import (
    CheckConstraintError,
    NotNullConstraintError,
    UniqueConstraintError,
    UnknownIntegrityError,
    classify_integrity_error,
)
from appletree.exceptions.mapper import (
    extract_columns_from_integrity,
    raise_mapped_integrity_error,
    store_error_handler,
)
from ..test_fixtures.repository_fixtures import FakeSession


class FakePgError(Exception):
    """Driver error carrying a SQLSTATE and diagnostics, like psycopg's."""

    def __init__(self, message: str, sqlstate: str | None = None, constraint_name: str | None = None):
        super().__init__(message)
        self.sqlstate = sqlstate
        self.diag = SimpleNamespace(constraint_name=constraint_name)


def integrity(message: str, sqlstate: str | None = None, constraint: str | None = None) -> IntegrityError:
    return IntegrityError("INSERT INTO schools ...", {}, FakePgError(message, sqlstate, constraint))


class TestClassifier:

    def test_sqlstate_wins(self):
        exc = integrity("whatever", "23505", "uq_schools_email")
        assert classify_integrity_error(exc) == (UniqueConstraintError, "uq_schools_email")

    def test_check_violation(self):
        exc = integrity("new row violates check constraint", "23514", "ck_schools_version_positive")
        assert classify_integrity_error(exc) == (CheckConstraintError, "ck_schools_version_positive")

    def test_message_fallback_without_sqlstate(self):
        exc = integrity('null value in column "name" of relation "schools" violates not-null constraint')
        assert classify_integrity_error(exc) == (NotNullConstraintError, None)

    def test_unknown(self):
        assert classify_integrity_error(integrity("something odd"))[0] is UnknownIntegrityError
        assert classify_integrity_error(integrity("odd", "23999"))[0] is UnknownIntegrityError


class TestMapping:

    def test_extract_not_null_column(self):
        exc = integrity('null value in column "mode" of relation "schools" violates not-null constraint')
        assert extract_columns_from_integrity(exc) == ["mode"]

    def test_extract_key_columns(self):
        exc = integrity('duplicate key value\nDETAIL:  Key (name, "level")=(A, b) already exists.')
        assert extract_columns_from_integrity(exc) == ["name", "level"]

    def test_unique_becomes_duplicate(self):
        exc = integrity("DETAIL:  Key (email)=(x@y.z) already exists.", "23505", "uq_schools_email")

        with pytest.raises(DuplicateError) as exc_info:
            raise_mapped_integrity_error(exc, "School")

        err = exc_info.value
        assert err.fields == ["email"]
        assert err.constraint == "uq_schools_email"
        assert err.__cause__ is exc

    def test_not_null_becomes_store_error(self):
        exc = integrity('null value in column "phone" violates not-null constraint', "23502")

        with pytest.raises(StoreError) as exc_info:
            raise_mapped_integrity_error(exc, "School")

        assert not isinstance(exc_info.value, DuplicateError)
        assert exc_info.value.fields == ["phone"]
        assert exc_info.value.error_code == "store_error"


class TestStoreErrorHandler:

    async def test_timeout_maps_to_query_timeout_and_rolls_back(self):
        db = FakeSession()

        with pytest.raises(QueryTimeoutError) as exc_info:
            async with store_error_handler(db, "schools.get", timeout=0.25):
                raise asyncio.TimeoutError()

        assert exc_info.value.timeout == 0.25
        assert db.rollbacks == 1

    async def test_driver_failure_maps_to_store_error(self):
        db = FakeSession()
        cause = OperationalError("SELECT 1", {}, Exception("connection refused"))

        with pytest.raises(StoreError) as exc_info:
            async with store_error_handler(db, "schools.get"):
                raise cause

        assert exc_info.value.message == "schools.get failed: OperationalError"
        assert exc_info.value.__cause__ is cause
        assert db.rollbacks == 1

    async def test_integrity_error_is_mapped(self):
        db = FakeSession()

        with pytest.raises(DuplicateError):
            async with store_error_handler(db, "schools.insert", model_name="School"):
                raise integrity("duplicate key", "23505")

        assert db.rollbacks == 1

    async def test_repository_errors_pass_through_untouched(self):
        db = FakeSession()
        original = NotFoundError()

        with pytest.raises(NotFoundError) as exc_info:
            async with store_error_handler(db, "schools.get"):
                raise original

        assert exc_info.value is original
        assert db.rollbacks == 0

    async def test_failed_rollback_does_not_mask_the_error(self):
        db = FakeSession()

        async def broken_rollback():
            raise RuntimeError("connection already closed")

        db.rollback = broken_rollback

        with pytest.raises(QueryTimeoutError):
            async with store_error_handler(db, "schools.delete", timeout=1.0):
                raise asyncio.TimeoutError()
