r"""
Single import point for the ORM models.

    from appletree.models import School
"""

from .school import MUTABLE_FIELDS, School

__all__ = [
    "MUTABLE_FIELDS",
    "School",
]
