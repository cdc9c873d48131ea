"""
School repository: the five operations on the `schools` table.

Records returned from here are transient `School` instances built from
result rows; they are never added to the session. Mutations go through
explicit INSERT/UPDATE/DELETE statements so the optimistic-concurrency
check stays visible in the SQL.
"""

import logging
from typing import Sequence

from sqlalchemy import delete, func, insert, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from appletree.core.pagination import Filters, Metadata, calculate_metadata, validate_filters
from appletree.exceptions.base import EditConflictError, NotFoundError, ValidationError
from appletree.models.school import MUTABLE_FIELDS, School
from appletree.validators.validator import Validator
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)

TOTAL_RECORDS = "total_records"


class SchoolRepository(BaseRepository[School]):
    """
    Repository for School records.

    Every statement is bounded by the repository timeout. Nothing here
    commits; callers commit or roll back the session themselves.
    """

    def __init__(self, db: AsyncSession, timeout: float | None = None):
        super().__init__(School, db, timeout)

    def _mutable_values(self, school: School) -> dict:
        return {name: getattr(school, name) for name in MUTABLE_FIELDS}

    # =================================================================================================================
    # Create
    # =================================================================================================================

    async def insert(self, school: School) -> School:
        """
        Insert `school` and fill in the store-assigned `id`, `created_at` and `version`.

        The record is expected to have passed `check_school` already; the rules
        are not re-run here.

        Returns:
            The same `school` object, now carrying its identity.

        Raises:
            StoreError: constraint violation or connectivity failure.
            QueryTimeoutError: the statement did not finish in time.
        """
        stmt = (
            insert(self.table)
            .values(**self._mutable_values(school))
            .returning(self.table.c.id, self.table.c.created_at, self.table.c.version)
        )
        result = await self._execute(stmt, "schools.insert")
        row = result.one()

        school.id = row.id
        school.created_at = row.created_at
        school.version = row.version

        logger.info(
            "repo.insert.success",
            extra={"operation": "schools.insert", "school_id": school.id},
        )
        return school

    # =================================================================================================================
    # Read
    # =================================================================================================================

    async def get(self, school_id: int) -> School:
        """
        Fetch one school by id.

        Raises:
            NotFoundError: `school_id` < 1 (no query is issued) or no such row.
        """
        if school_id < 1:
            raise NotFoundError(fields=["id"])

        stmt = select(*self.table.c).where(self.table.c.id == school_id)
        result = await self._execute(stmt, "schools.get")
        row = result.one_or_none()

        if row is None:
            logger.debug("repo.get.not_found", extra={"operation": "schools.get", "school_id": school_id})
            raise NotFoundError(fields=["id"])

        return self._from_row(row)

    async def get_all(
        self,
        name: str,
        level: str,
        mode: Sequence[str] | None,
        filters: Filters,
    ) -> tuple[list[School], Metadata]:
        """
        List schools matching the filters, one page at a time.

        `name` and `level` are full-text matched with the 'simple' configuration;
        `mode` matches rows whose mode array contains every requested entry.
        Empty filters match everything. Ordering is the safelisted sort column,
        then `id` ascending, so pages are stable.

        Returns:
            (schools, metadata). No matches gives `([], Metadata())`.

        Raises:
            ValidationError: page or page size out of range, `filters.sort` not in
                its safelist or not a column, or `mode` given as a bare string.
        """
        c = self.table.c

        # all input is checked before any statement is built
        v = Validator()
        validate_filters(v, filters)
        v.check(not isinstance(mode, str), "mode", "must be a list of values")
        v.raise_if_invalid()

        if filters.sort_column() not in c:
            raise ValidationError({"sort": "invalid sort value"})
        sort_column = c[filters.sort_column()]
        ordering = sort_column.desc() if filters.sort_direction() == "desc" else sort_column.asc()

        stmt = select(func.count().over().label(TOTAL_RECORDS), *c)

        if name:
            stmt = stmt.where(
                func.to_tsvector("simple", c.name).op("@@")(func.plainto_tsquery("simple", name))
            )
        if level:
            stmt = stmt.where(
                func.to_tsvector("simple", c.level).op("@@")(func.plainto_tsquery("simple", level))
            )
        if mode:
            stmt = stmt.where(c.mode.contains(list(mode)))

        stmt = (
            stmt.order_by(ordering, c.id.asc())
            .limit(filters.limit())
            .offset(filters.offset())
        )

        result = await self._execute(stmt, "schools.get_all")

        total_records = 0
        schools: list[School] = []
        for row in result.all():
            # every row carries the same window total
            total_records = row._mapping[TOTAL_RECORDS]
            schools.append(self._from_row(row, exclude=(TOTAL_RECORDS,)))

        metadata = calculate_metadata(total_records, filters.page, filters.page_size)
        logger.debug(
            "repo.get_all.success",
            extra={
                "operation": "schools.get_all",
                "returned": len(schools),
                "total_records": total_records,
            },
        )
        return schools, metadata

    # =================================================================================================================
    # Update
    # =================================================================================================================

    async def update(self, school: School) -> School:
        """
        Write every mutable field of `school`, guarded by its current `version`.

        On success `school.version` is set to the new stored version.

        Raises:
            EditConflictError: no row had this id *and* version, i.e. someone
                else updated (or deleted) it first. Re-fetch and retry.
        """
        c = self.table.c
        stmt = (
            update(self.table)
            .where(c.id == school.id, c.version == school.version)
            .values(**self._mutable_values(school), version=c.version + 1)
            .returning(c.version)
        )
        result = await self._execute(stmt, "schools.update")
        new_version = result.scalar_one_or_none()

        if new_version is None:
            logger.info(
                "repo.update.conflict",
                extra={"operation": "schools.update", "school_id": school.id, "version": school.version},
            )
            raise EditConflictError()

        school.version = new_version
        return school

    # =================================================================================================================
    # Delete
    # =================================================================================================================

    async def delete(self, school_id: int) -> None:
        if school_id < 1:
            raise NotFoundError(fields=["id"])

        stmt = delete(self.table).where(self.table.c.id == school_id)
        result = await self._execute(stmt, "schools.delete")

        if result.rowcount == 0:
            raise NotFoundError(fields=["id"])

        logger.info("repo.delete.success", extra={"operation": "schools.delete", "school_id": school_id})
