"""
Repository access point.

Repositories wrap single-table CRUD with logging decorators; callers import
them from here so the split into per-entity modules stays an implementation
detail.
"""

from __future__ import annotations

from .repositories_assessment import AssessmentRepo
from .repositories_base import BaseRepository

__all__ = [
    "AssessmentRepo",
    "BaseRepository",
]
