import re
import asyncio
import logging
from contextlib import asynccontextmanager

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from .integrity_classifier import (
    classify_integrity_error,
    UniqueConstraintError,
    NotNullConstraintError,
    ForeignKeyConstraintError,
    CheckConstraintError,
)
from .base import DuplicateError, QueryTimeoutError, RepositoryError, StoreError

logger = logging.getLogger(__name__)

# -----------------------
# Column extraction helpers
# -----------------------

# 'null value in column "name" of relation "schools" violates not-null constraint'
_NOT_NULL_COLUMN_RX = re.compile(r'null value in column "(?P<col>[^"]+)"', re.IGNORECASE)
# 'DETAIL:  Key (name, level)=(Apple Tree, primary) already exists.'
_KEY_COLUMNS_RX = re.compile(r'key \((?P<cols>[^)]+)\)=', re.IGNORECASE)


def extract_columns_from_integrity(exc: IntegrityError) -> list[str] | None:
    """
    Best-effort extraction of the column names involved from a Postgres message.
    """
    msg = str(exc.orig) if exc.orig is not None else str(exc)

    m = _NOT_NULL_COLUMN_RX.search(msg)
    if m:
        return [m.group("col")]

    m = _KEY_COLUMNS_RX.search(msg)
    if m:
        return [c.strip().strip('"') for c in m.group("cols").split(",")]

    return None


# -----------------------
# Mapper
# -----------------------

def raise_mapped_integrity_error(exc: IntegrityError, model_name: str | None = None) -> None:
    """
    Map a SQLAlchemy IntegrityError to an app-level StoreError and raise it.
    Populates `.fields` and `.constraint` where possible.
    """
    exc_cls, constraint_name = classify_integrity_error(exc)
    columns = extract_columns_from_integrity(exc)
    model_part = model_name or "Record"

    if exc_cls is UniqueConstraintError:
        logger.info(
            "mapper.duplicate_detected",
            extra={"model": model_part, "fields": columns, "constraint": constraint_name},
        )
        if columns:
            raise DuplicateError(f"{model_part} already exists for field(s): {', '.join(columns)}",
                                 fields=columns, constraint=constraint_name) from exc
        raise DuplicateError(f"{model_part} already exists", constraint=constraint_name) from exc

    if exc_cls is NotNullConstraintError:
        logger.info(
            "mapper.not_null_violation",
            extra={"model": model_part, "fields": columns, "constraint": constraint_name},
        )
        detail = f": {', '.join(columns)}" if columns else ""
        raise StoreError(f"Missing required field(s) for {model_part}{detail}",
                         fields=columns, constraint=constraint_name) from exc

    if exc_cls is ForeignKeyConstraintError:
        logger.info(
            "mapper.foreign_key_violation",
            extra={"model": model_part, "fields": columns, "constraint": constraint_name},
        )
        raise StoreError(f"{model_part} references a record that does not exist",
                         fields=columns, constraint=constraint_name) from exc

    if exc_cls is CheckConstraintError:
        # the raw DB text stays at DEBUG; it may echo submitted values
        logger.debug(
            "mapper.check_constraint_failure",
            extra={"model": model_part, "raw": str(exc.orig), "constraint": constraint_name},
        )
        raise StoreError(f"{model_part} violates a check constraint",
                         constraint=constraint_name) from exc

    logger.warning(
        "mapper.unknown_integrity_error",
        extra={"model": model_part, "constraint": constraint_name},
    )
    raise StoreError(f"{model_part} database integrity error") from exc


# -----------------------
# Async context manager to DRY error handling in repositories
# -----------------------
@asynccontextmanager
async def store_error_handler(db: AsyncSession, operation: str, *,
                              model_name: str | None = None, timeout: float | None = None):
    """
    Usage:
        async with store_error_handler(self.db, "schools.get", model_name="School", timeout=3.0):
            result = await asyncio.wait_for(self.db.execute(stmt), timeout)

    - RepositoryError (NotFound, EditConflict, ...) passes through untouched.
    - asyncio.TimeoutError -> QueryTimeoutError
    - IntegrityError       -> DuplicateError / StoreError via the classifier
    - anything else        -> StoreError, original chained as __cause__
    The session is rolled back on every store failure so it stays usable.
    """
    try:
        yield
    except RepositoryError:
        raise
    except asyncio.TimeoutError as exc:
        await _rollback_quietly(db, operation)
        logger.warning("store.timeout", extra={"operation": operation, "timeout": timeout})
        raise QueryTimeoutError(operation, timeout or 0.0) from exc
    except IntegrityError as exc:
        await _rollback_quietly(db, operation)
        raise_mapped_integrity_error(exc, model_name)
    except Exception as exc:
        await _rollback_quietly(db, operation)
        logger.warning(
            "store.failure",
            extra={"operation": operation, "error_type": type(exc).__name__},
        )
        raise StoreError(f"{operation} failed: {type(exc).__name__}") from exc


async def _rollback_quietly(db: AsyncSession, operation: str) -> None:
    try:
        await db.rollback()
    except Exception:
        # the original failure is what the caller needs; a broken rollback is only logged
        logger.exception("Failed to rollback session", extra={"operation": operation})
