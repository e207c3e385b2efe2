"""Commit data model decoded from git log output."""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field


class CommitData(BaseModel):
    """Metadata and message of a single commit.

    Records are immutable. The message is refreshed with ``with_body``,
    which returns a copy where nothing but ``body`` differs.
    """

    id: str = Field(min_length=1)
    tree_id: Optional[str] = None  # None when the record was not built from a full query
    parent_ids: List[str] = []
    author: str
    author_date: datetime
    committer: str
    committer_date: datetime
    body: str = ""

    model_config = {"frozen": True}

    def with_body(self, body: str) -> "CommitData":
        """Return a copy of this record with a new message body."""
        return self.model_copy(update={"body": body})

    @property
    def subject(self) -> str:
        """First line of the message."""
        return self.body.split("\n", 1)[0]

    @property
    def is_merge(self) -> bool:
        return len(self.parent_ids) > 1

    @property
    def is_root(self) -> bool:
        return not self.parent_ids
