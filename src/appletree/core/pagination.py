"""
Pagination, sorting and result metadata for list queries.

`Filters` describes what the caller asked for (page, page size, sort key) and
derives the LIMIT/OFFSET pair. Sort keys are resolved only through the
safelist, so nothing the client sends is ever interpolated into ORDER BY.
`calculate_metadata` turns a total row count back into page information.
"""

import math
from dataclasses import dataclass, field

from appletree.config import get_settings
from appletree.exceptions.base import ValidationError
from appletree.validators.validator import Validator, permitted_value

MAX_PAGE = 10_000_000
MAX_PAGE_SIZE = 100

DEFAULT_SORT_SAFELIST: tuple[str, ...] = (
    "id", "name", "level", "contact",
    "-id", "-name", "-level", "-contact",
)


@dataclass
class Filters:
    page: int = 1
    page_size: int = field(default_factory=lambda: get_settings().DEFAULT_PAGE_SIZE)
    # "-" prefix means descending, e.g. "-name"
    sort: str = "id"
    sort_safelist: tuple[str, ...] = field(default=DEFAULT_SORT_SAFELIST)

    def sort_column(self) -> str:
        """
        Column name for ORDER BY.

        Raises:
            ValidationError: if `sort` is not one of `sort_safelist`.
        """
        if self.sort not in self.sort_safelist:
            raise ValidationError({"sort": "invalid sort value"})
        return self.sort.lstrip("-")

    def sort_direction(self) -> str:
        return "desc" if self.sort.startswith("-") else "asc"

    def limit(self) -> int:
        return self.page_size

    def offset(self) -> int:
        return (self.page - 1) * self.page_size


def validate_filters(v: Validator, filters: Filters) -> None:
    v.check(filters.page > 0, "page", "must be greater than zero")
    v.check(filters.page <= MAX_PAGE, "page", f"must be a maximum of {MAX_PAGE:,}")
    v.check(filters.page_size > 0, "page_size", "must be greater than zero")
    v.check(filters.page_size <= MAX_PAGE_SIZE, "page_size", f"must be a maximum of {MAX_PAGE_SIZE}")
    v.check(permitted_value(filters.sort, *filters.sort_safelist), "sort", "invalid sort value")


@dataclass(frozen=True)
class Metadata:
    current_page: int = 0
    page_size: int = 0
    first_page: int = 0
    last_page: int = 0
    total_records: int = 0


def calculate_metadata(total_records: int, page: int, page_size: int) -> Metadata:
    # an empty result is reported as all-zero metadata, whatever page was asked for
    if total_records == 0:
        return Metadata()

    return Metadata(
        current_page=page,
        page_size=page_size,
        first_page=1,
        last_page=math.ceil(total_records / page_size),
        total_records=total_records,
    )
