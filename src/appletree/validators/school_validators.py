"""
Validation rules for school records.

Every rule runs independently; a record with invalid name *and* phone gets an
entry for both fields. Email is checked against the email field itself.
"""

from typing import TYPE_CHECKING

from .validator import (
    EMAIL_RX,
    PHONE_RX,
    Validator,
    count_between,
    matches,
    max_bytes,
    not_blank,
    unique,
    valid_website,
)

if TYPE_CHECKING:
    from appletree.models.school import School

TEXT_FIELD_MAX_BYTES = 200
ADDRESS_MAX_BYTES = 500
MODE_MIN_ENTRIES = 1
MODE_MAX_ENTRIES = 5


def validate_school(v: Validator, school: "School") -> None:
    # name, level, contact share the same bounds
    for field in ("name", "level", "contact"):
        value = getattr(school, field)
        v.check(not_blank(value), field, "must be provided")
        v.check(max_bytes(value, TEXT_FIELD_MAX_BYTES), field,
                f"must not be more than {TEXT_FIELD_MAX_BYTES} bytes long")

    v.check(not_blank(school.phone), "phone", "must be provided")
    v.check(matches(school.phone, PHONE_RX), "phone", "must be a valid phone number")

    v.check(not_blank(school.email), "email", "must be provided")
    v.check(matches(school.email, EMAIL_RX), "email", "must be a valid email address")

    v.check(not_blank(school.website), "website", "must be provided")
    v.check(valid_website(school.website), "website", "must be a valid URL")

    v.check(not_blank(school.address), "address", "must be provided")
    v.check(max_bytes(school.address, ADDRESS_MAX_BYTES), "address",
            f"must not be more than {ADDRESS_MAX_BYTES} bytes long")

    v.check(school.mode is not None, "mode", "must be provided")
    v.check(count_between(school.mode, MODE_MIN_ENTRIES, MODE_MAX_ENTRIES), "mode",
            f"must contain between {MODE_MIN_ENTRIES} and {MODE_MAX_ENTRIES} entries")
    v.check(unique(school.mode), "mode", "must not contain duplicate entries")


def check_school(school: "School") -> None:
    """Run validate_school with a fresh Validator; raise ValidationError on any failure."""
    v = Validator()
    validate_school(v, school)
    v.raise_if_invalid()
