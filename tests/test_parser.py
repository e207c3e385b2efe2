"""Tests for decoding formatted git log output."""

from datetime import datetime, timezone

import pytest

from commit_data.core.encoding import EncodingReconciler
from commit_data.core.errors import CommitMismatchError, ErrorCode, MalformedRecordError
from commit_data.core.parser import (
    FULL_RECORD_FIELDS,
    SHORT_RECORD_FIELDS,
    create_from_formatted_data,
    create_from_revision,
    decode_message_record,
    process_notes,
    split_record_lines,
    update_body_in_commit_data,
)
from commit_data.models.commit import CommitData
from commit_data.models.revision import GitRevision

FULL_SAMPLE = "abc123\ntree1\np1 p2\nA <a@x>\n1000\nC <c@x>\n2000\n\nHello\nNotes:\nfoo\n"

MERGE_SAMPLE = (
    "4bc1049fc3b9191dbd390e1ae6885aedd1a4e34b\n"
    "a59c21f0b2e6f43ae89b76a216f9f6124fc359f8\n"
    "8e3873685d89f8cb543657d1b9e66e516cae7e1d dfd353d3b02d24a0d98855f6a1848c51d9ba4d6b\n"
    "Jane Doe <jane@example.com>\n"
    "1521115435\n"
    "GitHub <noreply@github.com>\n"
    "1521115436\n"
    "\n"
    "Merge pull request #4615 from jdoe/modernise\n"
    "\n"
    "New language features\n"
    "Notes:"
)


@pytest.fixture
def commit():
    """A record as produced by a full query."""
    return CommitData(
        id="abc123",
        tree_id="tree1",
        parent_ids=["p1", "p2"],
        author="A <a@x>",
        author_date=datetime(2020, 1, 1, tzinfo=timezone.utc),
        committer="C <c@x>",
        committer_date=datetime(2020, 1, 2, tzinfo=timezone.utc),
        body="Old message\n",
    )


class TestSplitRecordLines:
    def test_terminating_line_feed_dropped(self):
        assert split_record_lines("a\nb\n") == ["a", "b"]

    def test_interior_blank_lines_kept(self):
        assert split_record_lines("a\n\n\nb") == ["a", "", "", "b"]

    def test_carriage_returns_kept(self):
        assert split_record_lines("a\r\nb") == ["a\r", "b"]


class TestProcessNotes:
    def test_bare_marker_is_removed(self):
        lines = ["Subject", "", "Body", "Notes:"]
        assert process_notes(lines, 0) == "Subject\n\nBody\n"

    def test_notes_are_indented(self):
        lines = ["Subject", "Notes:", "first note", "", "second note"]
        assert process_notes(lines, 0) == (
            "Subject\nNotes:\n    first note\n    \n    second note\n"
        )

    def test_marker_itself_not_indented(self):
        message = process_notes(["x", "Notes:", "n"], 0)
        assert "\nNotes:\n" in message
        assert "    Notes:" not in message

    def test_start_index_skips_header(self):
        assert process_notes(["id", "", "Hi", "Notes:"], 2) == "Hi\n"

    def test_no_message_lines(self):
        assert process_notes(["id", "", "Notes:"], 2) == ""
        assert process_notes(["id", ""], 2) == ""

    def test_message_without_marker(self):
        assert process_notes(["one", "two"], 0) == "one\ntwo\n"


class TestCreateFromFormattedData:
    def test_decodes_sample(self):
        commit = create_from_formatted_data(FULL_SAMPLE)

        assert commit.id == "abc123"
        assert commit.tree_id == "tree1"
        assert commit.parent_ids == ["p1", "p2"]
        assert commit.author == "A <a@x>"
        assert commit.committer == "C <c@x>"
        assert commit.author_date == datetime.fromtimestamp(1000, tz=timezone.utc)
        assert commit.committer_date == datetime.fromtimestamp(2000, tz=timezone.utc)
        assert "Hello\nNotes:\n    foo\n" in commit.body

    def test_merge_commit_without_notes(self):
        commit = create_from_formatted_data(MERGE_SAMPLE)

        assert commit.parent_ids == [
            "8e3873685d89f8cb543657d1b9e66e516cae7e1d",
            "dfd353d3b02d24a0d98855f6a1848c51d9ba4d6b",
        ]
        assert commit.is_merge
        assert commit.body == (
            "Merge pull request #4615 from jdoe/modernise\n\nNew language features\n"
        )
        assert commit.subject == "Merge pull request #4615 from jdoe/modernise"
        assert commit.author_date.year == 2018

    def test_identifiers_round_trip(self):
        commit = create_from_formatted_data(MERGE_SAMPLE)
        header = MERGE_SAMPLE.split("\n")

        assert commit.id == header[0]
        assert commit.tree_id == header[1]
        assert " ".join(commit.parent_ids) == header[2]

    def test_root_commit_has_no_parents(self):
        data = "abc123\ntree1\n\nA <a@x>\n1000\nC <c@x>\n2000\n\nInitial\nNotes:"
        commit = create_from_formatted_data(data)

        assert commit.parent_ids == []
        assert commit.is_root

    def test_empty_message(self):
        data = "abc123\ntree1\n\nA <a@x>\n1000\nC <c@x>\n2000\n\nNotes:"
        assert create_from_formatted_data(data).body == ""

    def test_declared_encoding_used_for_message(self):
        message = "Café".encode("iso-8859-1").decode("latin-1")
        data = f"abc123\ntree1\np1\nA <a@x>\n1000\nC <c@x>\n2000\nISO-8859-1\n{message}\nNotes:"

        assert create_from_formatted_data(data).body == "Café\n"

    def test_names_use_default_encoding(self):
        author = "Zoë <z@x>".encode("utf-8").decode("latin-1")
        data = f"abc123\ntree1\np1\n{author}\n1000\nC <c@x>\n2000\n\nHi\nNotes:"

        assert create_from_formatted_data(data).author == "Zoë <z@x>"

    def test_reconciler_default_encoding(self):
        message = "Åsa".encode("cp1252").decode("latin-1")
        data = f"abc123\ntree1\np1\nA <a@x>\n1000\nC <c@x>\n2000\n\n{message}\nNotes:"
        reconciler = EncodingReconciler(default_encoding="cp1252")

        assert create_from_formatted_data(data, reconciler).body == "Åsa\n"

    def test_none_rejected(self):
        with pytest.raises(ValueError):
            create_from_formatted_data(None)

    def test_too_few_lines(self):
        with pytest.raises(MalformedRecordError) as excinfo:
            create_from_formatted_data("abc123\ntree1\np1\nA <a@x>\n1000")

        assert excinfo.value.code == ErrorCode.MALFORMED_RECORD
        assert excinfo.value.details == {
            "expected_lines": len(FULL_RECORD_FIELDS) + 1,
            "actual_lines": 5,
        }

    def test_bad_timestamp(self):
        data = "abc123\ntree1\np1\nA <a@x>\nyesterday\nC <c@x>\n2000\n\nHi\nNotes:"
        with pytest.raises(MalformedRecordError, match="yesterday"):
            create_from_formatted_data(data)

    def test_timestamp_out_of_range(self):
        data = "abc123\ntree1\np1\nA <a@x>\n99999999999999\nC <c@x>\n2000\n\nHi\nNotes:"
        with pytest.raises(MalformedRecordError, match="99999999999999"):
            create_from_formatted_data(data)

    def test_strict_decoding_reports_malformed_record(self):
        data = "abc123\ntree1\np1\nA <a@x>\n1000\nC <c@x>\n2000\n\ncaf\xe9\nNotes:"
        reconciler = EncodingReconciler(errors="strict")

        with pytest.raises(MalformedRecordError) as excinfo:
            create_from_formatted_data(data, reconciler)

        assert excinfo.value.details["encoding"] == "utf-8"

    def test_missing_commit_id(self):
        data = "\ntree1\np1\nA <a@x>\n1000\nC <c@x>\n2000\n\nHi\nNotes:"
        with pytest.raises(MalformedRecordError):
            create_from_formatted_data(data)


class TestUpdateBodyInCommitData:
    def test_bare_marker_stripped(self, commit):
        updated = update_body_in_commit_data(commit, "abc123\n\nHi there\nNotes:\n")
        assert updated.body == "Hi there\n"

    def test_only_body_changes(self, commit):
        updated = update_body_in_commit_data(commit, "abc123\n\nHi\nNotes:\nlgtm\n")

        assert updated.body == "Hi\nNotes:\n    lgtm\n"
        assert updated.model_dump(exclude={"body"}) == commit.model_dump(exclude={"body"})
        # The original record is left untouched
        assert commit.body == "Old message\n"

    def test_mismatched_commit(self, commit):
        with pytest.raises(CommitMismatchError) as excinfo:
            update_body_in_commit_data(commit, "def456\n\nHi\nNotes:")

        assert excinfo.value.code == ErrorCode.COMMIT_MISMATCH
        assert excinfo.value.details == {"expected": "abc123", "actual": "def456"}

    def test_too_few_lines(self, commit):
        with pytest.raises(MalformedRecordError):
            update_body_in_commit_data(commit, "abc123\n")

    def test_none_rejected(self, commit):
        with pytest.raises(ValueError):
            update_body_in_commit_data(commit, None)

    def test_decode_message_record(self):
        message = "naïve".encode("iso-8859-1").decode("latin-1")
        commit_id, body = decode_message_record(f"abc123\nISO-8859-1\n{message}\nNotes:")

        assert commit_id == "abc123"
        assert body == "naïve\n"
        assert len(SHORT_RECORD_FIELDS) == 2


class TestCreateFromRevision:
    def _revision(self, **overrides):
        fields = dict(
            id="abc123",
            tree_id="tree1",
            parent_ids=["p1"],
            author="Ann",
            author_email="ann@example.com",
            author_date=datetime(2021, 5, 1, tzinfo=timezone.utc),
            committer="Cid",
            committer_email="cid@example.com",
            commit_date=datetime(2021, 5, 2, tzinfo=timezone.utc),
            subject="Fix the thing",
            body="Fix the thing\n\nDetails\n",
        )
        fields.update(overrides)
        return GitRevision(**fields)

    def test_formats_people(self):
        commit = create_from_revision(self._revision())

        assert commit.author == "Ann <ann@example.com>"
        assert commit.committer == "Cid <cid@example.com>"
        assert commit.author_date == datetime(2021, 5, 1, tzinfo=timezone.utc)
        assert commit.committer_date == datetime(2021, 5, 2, tzinfo=timezone.utc)
        assert commit.tree_id == "tree1"
        assert commit.parent_ids == ["p1"]
        assert commit.body == "Fix the thing\n\nDetails\n"

    def test_falls_back_to_subject(self):
        commit = create_from_revision(self._revision(body=None))
        assert commit.body == "Fix the thing"

    def test_none_rejected(self):
        with pytest.raises(ValueError):
            create_from_revision(None)
