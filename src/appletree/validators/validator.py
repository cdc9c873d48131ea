"""
Field-level input validation.

A `Validator` collects `field -> message` entries while the caller runs every
check against a candidate record; nothing short-circuits, so one pass reports
all failing fields at once. The module-level helpers are pure predicates with
no I/O and can be combined freely inside `Validator.check`.

Usage:
    v = Validator()
    v.check(not_blank(school.name), "name", "must be provided")
    v.check(max_bytes(school.name, 200), "name", "must not be more than 200 bytes long")
    v.raise_if_invalid()
"""

import re
from typing import Hashable, Iterable, Sequence
from urllib.parse import urlsplit

from appletree.exceptions.base import ValidationError

EMAIL_RX = re.compile(
    r"^[a-zA-Z0-9.!#$%&'*+/=?^_`{|}~-]+@"
    r"[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?"
    r"(?:\.[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?)*$"
)

# 501-622-1234, +501-622-1234, (501) - 622 - 1234
PHONE_RX = re.compile(r"^\+?\(?[0-9]{3}\)?\s?-\s?[0-9]{3}\s?-\s?[0-9]{4}$")


class Validator:
    """Accumulates field-keyed error messages."""

    def __init__(self) -> None:
        self.errors: dict[str, str] = {}

    def valid(self) -> bool:
        return not self.errors

    def add_error(self, key: str, message: str) -> None:
        # first failure per field wins
        self.errors.setdefault(key, message)

    def check(self, ok: bool, key: str, message: str) -> None:
        if not ok:
            self.add_error(key, message)

    def raise_if_invalid(self) -> None:
        """Raise ValidationError with a copy of the collected errors, if any."""
        if self.errors:
            raise ValidationError(self.errors)


def not_blank(value: str | None) -> bool:
    return value is not None and value != ""


def max_bytes(value: str | None, limit: int) -> bool:
    """True when the UTF-8 encoding of `value` is at most `limit` bytes."""
    return len((value or "").encode("utf-8")) <= limit


def matches(value: str | None, pattern: re.Pattern) -> bool:
    # fullmatch: a trailing "\n" must not slip past "$"
    return value is not None and pattern.fullmatch(value) is not None


def valid_website(value: str | None) -> bool:
    """
    True for an absolute URL with both a scheme and a host, e.g. https://example.edu.bz.
    """
    if not value or any(ch.isspace() for ch in value):
        return False
    try:
        parts = urlsplit(value)
    except ValueError:
        return False
    return bool(parts.scheme) and bool(parts.netloc)


def unique(values: Iterable[Hashable] | None) -> bool:
    items = list(values or [])
    return len(set(items)) == len(items)


def count_between(values: Sequence | None, lower: int, upper: int) -> bool:
    return values is not None and lower <= len(values) <= upper


def permitted_value(value, *permitted) -> bool:
    return value in permitted
