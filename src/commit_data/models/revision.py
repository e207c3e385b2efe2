"""Structured revision data obtained without parsing formatted output."""

from datetime import datetime
from typing import List, Optional, Union

import git
from pydantic import BaseModel


def _as_text(value: Union[str, bytes]) -> str:
    # GitPython keeps messages it cannot decode as bytes
    if isinstance(value, bytes):
        return value.decode("utf-8", "replace")
    return value


class GitRevision(BaseModel):
    """A revision whose fields are already decoded."""

    id: str
    tree_id: str
    parent_ids: List[str] = []
    author: str
    author_email: str
    author_date: datetime
    committer: str
    committer_email: str
    commit_date: datetime
    subject: str = ""
    body: Optional[str] = None  # None when only the subject was loaded

    @classmethod
    def from_git_commit(cls, commit: git.Commit) -> "GitRevision":
        """Build a revision from a GitPython commit object."""
        return cls(
            id=commit.hexsha,
            tree_id=commit.tree.hexsha,
            parent_ids=[parent.hexsha for parent in commit.parents],
            author=commit.author.name or "",
            author_email=commit.author.email or "",
            author_date=commit.authored_datetime,
            committer=commit.committer.name or "",
            committer_email=commit.committer.email or "",
            commit_date=commit.committed_datetime,
            subject=_as_text(commit.summary),
            body=_as_text(commit.message),
        )
