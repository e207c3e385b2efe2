"""Data models for commit-data."""

from .commit import CommitData
from .revision import GitRevision

__all__ = ["CommitData", "GitRevision"]
