"""Decoders for the formatted output of ``git log``.

Two record shapes are understood, one line per field followed by the raw
message and any git notes:

    $ git log -1 --pretty="format:%H%n%T%n%P%n%aN <%aE>%n%at%n%cN <%cE>%n%ct%n%e%n%B%nNotes:%n%-N"
    4bc1049fc3b9191dbd390e1ae6885aedd1a4e34b
    a59c21f0b2e6f43ae89b76a216f9f6124fc359f8
    8e3873685d89f8cb543657d1b9e66e516cae7e1d dfd353d3b02d24a0d98855f6a1848c51d9ba4d6b
    Jane Doe <jane@example.com>
    1521115435
    GitHub <noreply@github.com>
    1521115435

    Merge pull request #4615 from jdoe/modernise

    New language features
    Notes:

    $ git log -1 --pretty="format:%H%n%e%n%B%nNotes:%n%-N"
    8c601c9bb040e575af75c9eee6e14441e2a1b207

    Remove redundant parameter
    Notes:
    reviewed-by: someone

The ``Notes:`` line is always emitted, so a bare marker on the last line
means the commit has no notes.
"""

import logging
from datetime import datetime, timezone
from typing import Dict, List, Optional, Tuple

from commit_data.core.encoding import EncodingReconciler
from commit_data.core.errors import CommitMismatchError, MalformedRecordError
from commit_data.models.commit import CommitData
from commit_data.models.revision import GitRevision

logger = logging.getLogger(__name__)

LOG_FORMAT = "%H%n%T%n%P%n%aN <%aE>%n%at%n%cN <%cE>%n%ct%n%e%n%B%nNotes:%n%-N"
SHORT_LOG_FORMAT = "%H%n%e%n%B%nNotes:%n%-N"

NOTES_MARKER = "Notes:"
NOTES_INDENT = "    "

# Header lines of each record shape, in output order. The message starts
# on the line after the last header field.
FULL_RECORD_FIELDS = (
    "id",
    "tree_id",
    "parent_ids",
    "author",
    "author_date",
    "committer",
    "committer_date",
    "encoding",
)
SHORT_RECORD_FIELDS = ("id", "encoding")


def split_record_lines(data: str) -> List[str]:
    """Split formatted output on line feeds.

    Carriage returns are kept. The empty string after a terminating line
    feed is not a line of the record and is dropped.
    """
    lines = data.split("\n")
    if len(lines) > 1 and lines[-1] == "":
        lines.pop()
    return lines


def read_record_header(lines: List[str], fields: Tuple[str, ...]) -> Dict[str, str]:
    """Map header field names to their lines, checking the record is long enough."""
    # The message area always has at least one line, even if only the notes marker
    required = len(fields) + 1
    if len(lines) < required:
        raise MalformedRecordError(
            f"Expected at least {required} lines of formatted commit data, got {len(lines)}",
            {"expected_lines": required, "actual_lines": len(lines)},
        )
    if not lines[0]:
        raise MalformedRecordError("Formatted commit data does not start with a commit id")
    return dict(zip(fields, lines))


def process_notes(lines: List[str], start_index: int) -> str:
    """Rebuild the commit message from ``start_index`` onwards.

    Lines after the ``Notes:`` marker are indented so the notes read as a
    separate block. A bare marker on the last line is dropped.
    """
    end_index = len(lines) - 1
    if end_index >= start_index and lines[end_index] == NOTES_MARKER:
        end_index -= 1

    message = []
    notes_start = False
    for line in lines[start_index:end_index + 1]:
        if notes_start:
            message.append(NOTES_INDENT)
        message.append(line)
        message.append("\n")
        if line == NOTES_MARKER:
            notes_start = True

    return "".join(message)


def parse_unix_time(value: str) -> datetime:
    """Convert a Unix timestamp line to an aware UTC datetime."""
    try:
        return datetime.fromtimestamp(int(value), tz=timezone.utc)
    except (ValueError, OverflowError, OSError) as e:
        raise MalformedRecordError(
            f"Invalid unix timestamp in commit data: {value!r}", {"value": value}
        ) from e


def create_from_formatted_data(
    data: str, reconciler: Optional[EncodingReconciler] = None
) -> CommitData:
    """Parse the output of a query made with ``LOG_FORMAT`` into a record.

    ``data`` must be the lossless decoding of git's output.
    """
    if data is None:
        raise ValueError("data must not be None")
    reconciler = reconciler or EncodingReconciler()

    lines = split_record_lines(data)
    header = read_record_header(lines, FULL_RECORD_FIELDS)

    parent_ids = header["parent_ids"].split(" ") if header["parent_ids"] else []
    message = process_notes(lines, start_index=len(FULL_RECORD_FIELDS))

    logger.debug("Decoded commit %s with %d parents", header["id"], len(parent_ids))

    return CommitData(
        id=header["id"],
        tree_id=header["tree_id"],
        parent_ids=parent_ids,
        author=reconciler.reencode_string(header["author"]),
        author_date=parse_unix_time(header["author_date"]),
        committer=reconciler.reencode_string(header["committer"]),
        committer_date=parse_unix_time(header["committer_date"]),
        # git does not reencode the message when --format is given
        body=reconciler.reencode_commit_message(message, header["encoding"]),
    )


def decode_message_record(
    data: str, reconciler: Optional[EncodingReconciler] = None
) -> Tuple[str, str]:
    """Parse the output of a query made with ``SHORT_LOG_FORMAT``.

    Returns the commit id and the re-decoded message.
    """
    if data is None:
        raise ValueError("data must not be None")
    reconciler = reconciler or EncodingReconciler()

    lines = split_record_lines(data)
    header = read_record_header(lines, SHORT_RECORD_FIELDS)
    message = process_notes(lines, start_index=len(SHORT_RECORD_FIELDS))
    return header["id"], reconciler.reencode_commit_message(message, header["encoding"])


def update_body_in_commit_data(
    commit_data: CommitData, data: str, reconciler: Optional[EncodingReconciler] = None
) -> CommitData:
    """Return ``commit_data`` with its body replaced from ``SHORT_LOG_FORMAT`` output.

    Notes can be added to a commit after it was first read, so the message is
    refreshed on its own. All other fields are carried over unchanged.
    """
    commit_id, body = decode_message_record(data, reconciler)
    if commit_id != commit_data.id:
        raise CommitMismatchError(
            f"Commit data for {commit_id} cannot update commit {commit_data.id}",
            {"expected": commit_data.id, "actual": commit_id},
        )
    logger.debug("Updated message of commit %s", commit_id)
    return commit_data.with_body(body)


def create_from_revision(revision: GitRevision) -> CommitData:
    """Build a record from an already decoded revision."""
    if revision is None:
        raise ValueError("revision must not be None")

    return CommitData(
        id=revision.id,
        tree_id=revision.tree_id,
        parent_ids=list(revision.parent_ids),
        author=f"{revision.author} <{revision.author_email}>",
        author_date=revision.author_date,
        committer=f"{revision.committer} <{revision.committer_email}>",
        committer_date=revision.commit_date,
        body=revision.body if revision.body is not None else revision.subject,
    )
