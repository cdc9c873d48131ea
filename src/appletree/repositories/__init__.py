"""
Repository layer.

Usage:
    from appletree.repositories import SchoolRepository
"""

from .base_repository import BaseRepository
from .school_repository import SchoolRepository

__all__ = [
    "BaseRepository",
    "SchoolRepository",
]
