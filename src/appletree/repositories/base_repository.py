"""
Base repository class providing the shared statement runner.

Concrete repositories build their own SQL and hand it to `_execute`, which
gives every statement the same treatment:

- a hard deadline (`asyncio.wait_for`) so a slow store can't hold a request open,
- failures translated into the `appletree.exceptions` taxonomy,
- a rollback of the injected session when the store raised,
- a DEBUG event with the operation name and its duration.

The session is injected at construction and is never committed here; the
caller decides when the unit of work ends.
"""
import asyncio
import logging
import time
from typing import Any, Generic, Type, TypeVar

from sqlalchemy import Table
from sqlalchemy.engine import Result
from sqlalchemy.sql.expression import Executable
from sqlalchemy.ext.asyncio import AsyncSession

from appletree.config import get_settings
from appletree.database.base import Base
from appletree.exceptions.mapper import store_error_handler

# Type variable for the model class
ModelType = TypeVar("ModelType", bound=Base)

logger = logging.getLogger(__name__)


class BaseRepository(Generic[ModelType]):
    """
    Generic base repository.

    Type Parameters:
        ModelType: The SQLAlchemy model class this repository manages.
    """

    def __init__(self, model: Type[ModelType], db: AsyncSession, timeout: float | None = None):
        """
        Args:
            model: The SQLAlchemy model class (not an instance), e.g. School.
            db: The async database session, usually injected via FastAPI dependency.
            timeout: Per-statement deadline in seconds; defaults to `DB_QUERY_TIMEOUT`.
        """
        self.model = model
        self.db = db
        self.timeout = timeout if timeout is not None else get_settings().DB_QUERY_TIMEOUT

    @property
    def table(self) -> Table:
        return self.model.__table__

    def _from_row(self, row: Any, *, exclude: tuple[str, ...] = ()) -> ModelType:
        # Columns are matched by name, never by position.
        values = {key: value for key, value in row._mapping.items() if key not in exclude}
        return self.model(**values)

    async def _execute(self, stmt: Executable, operation: str) -> Result:
        """
        Execute `stmt` on the injected session within `self.timeout` seconds.

        Raises:
            QueryTimeoutError: the deadline passed; the in-flight call is cancelled.
            DuplicateError / StoreError: the store rejected the statement.
        """
        start = time.perf_counter()

        async with store_error_handler(
            self.db, operation, model_name=self.model.__name__, timeout=self.timeout
        ):
            result = await asyncio.wait_for(self.db.execute(stmt), self.timeout)

        logger.debug(
            "repo.execute",
            extra={
                "model": self.model.__name__,
                "operation": operation,
                "duration_ms": int((time.perf_counter() - start) * 1000),
            },
        )
        return result
