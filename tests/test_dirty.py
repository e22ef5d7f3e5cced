"""Tests for dirty-state detection."""

import pytest

from gitstamp.core.dirty import StatusEntry, is_dirty, parse_porcelain
from gitstamp.core.errors import RepositoryReadError


class TestParsePorcelain:
    """Test parsing of ``git status --porcelain=v1 -z`` output."""

    def test_empty_output(self):
        """Test a clean tree has no entries."""
        assert list(parse_porcelain("")) == []

    def test_modified_and_untracked(self):
        """Test ordinary entries are split into state and path."""
        output = " M src/app.py\0?? notes.txt\0A  new file.txt\0"

        entries = list(parse_porcelain(output))

        assert entries == [
            StatusEntry(" ", "M", "src/app.py"),
            StatusEntry("?", "?", "notes.txt"),
            StatusEntry("A", " ", "new file.txt"),
        ]
        assert entries[1].untracked
        assert not entries[0].untracked

    def test_rename_consumes_origin_path(self):
        """Test renames carry the original path in the next record."""
        output = "R  new.py\0old.py\0 D gone.txt\0"

        entries = list(parse_porcelain(output))

        assert entries[0] == StatusEntry("R", " ", "new.py", "old.py")
        assert entries[1] == StatusEntry(" ", "D", "gone.txt")

    def test_malformed_entry(self):
        """Test garbage output raises RepositoryReadError."""
        with pytest.raises(RepositoryReadError, match="Malformed"):
            list(parse_porcelain("garbage\0"))


class TestIsDirty:
    """Test the dirty decision over status entries."""

    def test_clean_tree(self, memory_repo):
        """Test no entries means clean."""
        repo = memory_repo.linear(1)

        assert is_dirty(repo) is False
        assert is_dirty(repo, ignore_untracked=True) is False

    @pytest.mark.parametrize(
        "index,worktree",
        [(" ", "M"), ("M", " "), ("A", " "), ("D", " "), (" ", "D"), ("R", " "), ("U", "U")],
    )
    def test_tracked_changes_are_dirty(self, memory_repo, index, worktree):
        """Test staged, unstaged, deleted, renamed and unmerged paths count."""
        repo = memory_repo.linear(1, status=[StatusEntry(index, worktree, "file.txt")])

        assert is_dirty(repo) is True
        assert is_dirty(repo, ignore_untracked=True) is True

    def test_untracked_respects_flag(self, memory_repo):
        """Test untracked files count only when not ignored."""
        repo = memory_repo.linear(1, status=[StatusEntry("?", "?", "scratch.txt")])

        assert is_dirty(repo, ignore_untracked=False) is True
        assert is_dirty(repo, ignore_untracked=True) is False

    def test_ignored_entries_never_count(self, memory_repo):
        """Test ignored files leave the tree clean."""
        repo = memory_repo.linear(1, status=[StatusEntry("!", "!", "build/")])

        assert is_dirty(repo) is False

    def test_untracked_requested_only_when_needed(self):
        """Test the scan asks the repository to skip untracked files when ignored."""
        calls = []

        class Recorder:
            def status_entries(self, include_untracked):
                calls.append(include_untracked)
                return iter(())

        is_dirty(Recorder(), ignore_untracked=True)
        is_dirty(Recorder(), ignore_untracked=False)

        assert calls == [False, True]

    def test_stops_at_first_change(self):
        """Test the scan is a single pass that stops early."""
        consumed = []

        class Lazy:
            def status_entries(self, include_untracked):
                for n in range(1000):
                    consumed.append(n)
                    yield StatusEntry(" ", "M", f"file{n}")

        assert is_dirty(Lazy()) is True
        assert consumed == [0]
