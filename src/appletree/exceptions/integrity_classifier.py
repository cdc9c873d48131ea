"""
Classify SQLAlchemy `IntegrityError`s by the constraint that failed.

The classes below are internal labels: `mapper.raise_mapped_integrity_error`
turns them into the public errors from `base.py` (DuplicateError / StoreError),
so nothing outside the repository layer ever sees them.

| Constraint-level (internal)  | App-level (raised)   |
| ---------------------------- | -------------------- |
| `UniqueConstraintError`      | `DuplicateError`     |
| `NotNullConstraintError`     | `StoreError`         |
| `ForeignKeyConstraintError`  | `StoreError`         |
| `CheckConstraintError`       | `StoreError`         |
| `UnknownIntegrityError`      | `StoreError`         |
"""
import logging
from enum import Enum
from typing import Type
from sqlalchemy.exc import IntegrityError
from .base import StoreError

logger = logging.getLogger(__name__)


class ConstraintViolationError(StoreError):
    """Base for integrity/constraint violations."""


class UniqueConstraintError(ConstraintViolationError):
    """Unique constraint / duplicate value."""


class NotNullConstraintError(ConstraintViolationError):
    """NOT NULL violation."""


class ForeignKeyConstraintError(ConstraintViolationError):
    """Foreign key constraint violated."""


class CheckConstraintError(ConstraintViolationError):
    """CHECK constraint violated."""


class UnknownIntegrityError(ConstraintViolationError):
    """Unrecognized integrity error."""


# https://www.postgresql.org/docs/current/errcodes-appendix.html
class PostgresErrorCodes(str, Enum):
    UNIQUE_VIOLATION = "23505"
    NOT_NULL_VIOLATION = "23502"
    FOREIGN_KEY_VIOLATION = "23503"
    CHECK_VIOLATION = "23514"


PGCODE_EXCEPTION_MAP = {
    PostgresErrorCodes.UNIQUE_VIOLATION.value: UniqueConstraintError,
    PostgresErrorCodes.NOT_NULL_VIOLATION.value: NotNullConstraintError,
    PostgresErrorCodes.FOREIGN_KEY_VIOLATION.value: ForeignKeyConstraintError,
    PostgresErrorCodes.CHECK_VIOLATION.value: CheckConstraintError,
}

_MESSAGE_KEYWORDS: list[tuple[Type[ConstraintViolationError], tuple[str, ...]]] = [
    (UniqueConstraintError, ("unique constraint", "unique violation", "duplicate key")),
    (NotNullConstraintError, ("not-null constraint", "not null constraint", "null value in column")),
    (ForeignKeyConstraintError, ("foreign key constraint", "is not present in table")),
    (CheckConstraintError, ("check constraint",)),
]


def _sqlstate(orig) -> str | None:
    # psycopg exposes `sqlstate`, psycopg2 `pgcode`; asyncpg goes through the
    # SQLAlchemy adapter which also sets `sqlstate`/`pgcode`.
    return getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)


def _constraint_name(orig) -> str | None:
    diag = getattr(orig, "diag", None)
    if diag is not None and getattr(diag, "constraint_name", None):
        return diag.constraint_name
    return getattr(orig, "constraint_name", None)


def _classify_from_postgres_diag(orig) -> tuple[Type[ConstraintViolationError] | None, str | None]:
    code = _sqlstate(orig)
    if not code:
        return None, None

    constraint_name = _constraint_name(orig)
    exception_class = PGCODE_EXCEPTION_MAP.get(code)
    if exception_class:
        logger.debug("Postgres integrity diagnostic",
                     extra={"sqlstate": code, "constraint_name": constraint_name})
        return exception_class, constraint_name

    logger.warning("Unknown Postgres integrity error code encountered",
                   extra={"sqlstate": code, "constraint_name": constraint_name})
    return UnknownIntegrityError, constraint_name


def _classify_from_generic_message(msg: str) -> tuple[Type[ConstraintViolationError], None]:
    normalized = (msg or "").lower()
    for exception_class, keywords in _MESSAGE_KEYWORDS:
        if any(keyword in normalized for keyword in keywords):
            return exception_class, None

    logger.warning("Unknown integrity error message encountered",
                   extra={"message_snippet": normalized[:200]})
    return UnknownIntegrityError, None


def classify_integrity_error(exc: IntegrityError) -> tuple[Type[ConstraintViolationError], str | None]:
    """
    Return (constraint class, constraint name if known) for an IntegrityError.

    SQLSTATE wins when the driver exposes it; otherwise the message is matched
    against well-known phrases.
    """
    orig = exc.orig
    exception_class, constraint_name = _classify_from_postgres_diag(orig)
    if exception_class is not None:
        return exception_class, constraint_name
    return _classify_from_generic_message(str(orig) if orig is not None else str(exc))
