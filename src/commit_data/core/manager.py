"""Query git for a single commit and decode the result."""

import logging
from pathlib import Path
from typing import List, Optional, Protocol

import git
from git import Repo
from pydantic import BaseModel

from commit_data.core.config import CommitDataConfig, load_config
from commit_data.core.encoding import EncodingReconciler, decode_lossless
from commit_data.core.errors import ErrorCode
from commit_data.core.parser import (
    LOG_FORMAT,
    SHORT_LOG_FORMAT,
    create_from_formatted_data,
    create_from_revision,
    update_body_in_commit_data,
)
from commit_data.models.commit import CommitData
from commit_data.models.revision import GitRevision

logger = logging.getLogger(__name__)

GIT_ERROR_PREFIXES = ("fatal:", "error:", "usage:")


def is_git_error_message(text: str) -> bool:
    """Check whether git printed an error instead of the requested output."""
    return text.lstrip().startswith(GIT_ERROR_PREFIXES)


class GitRunner(Protocol):
    """Runs a git command and returns its raw output."""

    def run(self, args: List[str]) -> bytes:
        ...


class GitPythonRunner:
    """Runs git commands in a repository through GitPython.

    A failing command does not raise: the error git printed is returned in
    place of the output, so callers detect it the same way as any other
    error text.
    """

    def __init__(self, repo: Repo):
        self.repo = repo

    def run(self, args: List[str]) -> bytes:
        if not args:
            raise ValueError("No git command specified")

        command = args[0]
        command_args = args[1:]

        git_method = getattr(self.repo.git, command)
        status, stdout, stderr = git_method(
            *command_args,
            with_extended_output=True,
            with_exceptions=False,
            stdout_as_string=False,
        )
        if status != 0:
            logger.debug("git %s exited with status %s: %s", command, status, stderr)
            return (stderr or f"fatal: git {command} exited with status {status}").encode(
                "utf-8"
            )
        return stdout


class CommitDataResult(BaseModel):
    """Either a decoded commit or the reason it could not be read."""

    commit: Optional[CommitData] = None
    error: Optional[str] = None
    error_code: Optional[ErrorCode] = None

    @property
    def ok(self) -> bool:
        return self.commit is not None

    @classmethod
    def not_found(cls, sha1: str) -> "CommitDataResult":
        return cls(error=f"Cannot find commit {sha1}", error_code=ErrorCode.COMMIT_NOT_FOUND)


class CommitDataManager:
    """Reads commit metadata and messages from a git repository."""

    def __init__(self, runner: GitRunner, config: Optional[CommitDataConfig] = None):
        self.runner = runner
        self.config = config or CommitDataConfig()
        self.reconciler = EncodingReconciler.from_config(self.config)

    @classmethod
    def for_repository(
        cls, path: Path, config: Optional[CommitDataConfig] = None
    ) -> "CommitDataManager":
        """Create a manager for the repository containing ``path``."""
        repo = Repo(path, search_parent_directories=True)
        if config is None:
            config = load_config(search_dir=Path(repo.working_tree_dir or repo.git_dir))
        return cls(GitPythonRunner(repo), config)

    def _query(self, format_string: str, sha1: str) -> Optional[str]:
        # Not cached: notes can be added to a commit at any time
        output = decode_lossless(
            self.runner.run(["log", "-1", f"--pretty=format:{format_string}", sha1])
        )
        if is_git_error_message(output) or sha1 not in output:
            logger.warning("Cannot find commit %s", sha1)
            return None
        return output

    def get_commit_data(self, sha1: str) -> CommitDataResult:
        """Read the full record of ``sha1``.

        A commit that does not exist (e.g. in a submodule that is not
        initialized) is reported through the result, not raised.
        """
        if sha1 is None:
            raise ValueError("sha1 must not be None")

        logger.debug("Reading commit data for %s", sha1)
        output = self._query(LOG_FORMAT, sha1)
        if output is None:
            return CommitDataResult.not_found(sha1)
        return CommitDataResult(commit=self.create_from_formatted_data(output))

    def update_commit_message(self, commit_data: CommitData) -> CommitDataResult:
        """Re-read the message of ``commit_data``, picking up notes added since."""
        if commit_data is None:
            raise ValueError("commit_data must not be None")

        output = self._query(SHORT_LOG_FORMAT, commit_data.id)
        if output is None:
            return CommitDataResult.not_found(commit_data.id)
        return CommitDataResult(commit=self.update_body_in_commit_data(commit_data, output))

    def create_from_formatted_data(self, data: str) -> CommitData:
        return create_from_formatted_data(data, self.reconciler)

    def update_body_in_commit_data(self, commit_data: CommitData, data: str) -> CommitData:
        return update_body_in_commit_data(commit_data, data, self.reconciler)

    def create_from_revision(self, revision: GitRevision) -> CommitData:
        return create_from_revision(revision)

    def create_from_git_commit(self, commit: git.Commit) -> CommitData:
        """Build a record from a GitPython commit without running git log."""
        return create_from_revision(GitRevision.from_git_commit(commit))
