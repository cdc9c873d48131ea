# appletree/
# │
# ├── exceptions/
# │   ├── __init__.py
# │   ├── base.py                    # App-level errors (NotFoundError, EditConflictError, StoreError, ...)
# │   ├── integrity_classifier.py    # SQL-level / DB-specific constraint classification
# │   └── mapper.py                  # Map driver / SQLAlchemy failures to app-level errors

from .base import (
    RepositoryError,
    ValidationError,
    NotFoundError,
    EditConflictError,
    StoreError,
    DuplicateError,
    QueryTimeoutError,
)

__all__ = [
    "RepositoryError",
    "ValidationError",
    "NotFoundError",
    "EditConflictError",
    "StoreError",
    "DuplicateError",
    "QueryTimeoutError",
]
