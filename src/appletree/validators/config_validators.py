"""
Normalizers used by the pydantic `Settings` field validators.

Environment values often arrive with stray whitespace or inconsistent casing
(`log_level=debug `), so they are cleaned up before pydantic checks them
against the allowed literals.
"""


def to_uppercase(value: str | None) -> str | None:
    """Strip and upper-case a raw env value, leaving None untouched."""
    if value is None:
        return None
    return str(value).strip().upper()


def to_lowercase(value: str | None) -> str | None:
    """Strip and lower-case a raw env value, leaving None untouched."""
    if value is None:
        return None
    return str(value).strip().lower()
