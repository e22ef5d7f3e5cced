"""Pytest configuration and shared fixtures for gitstamp tests."""

import os
import shutil
import subprocess
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from gitstamp.core.dirty import StatusEntry, is_dirty
from gitstamp.core.graph import CommitGraph
from gitstamp.core.models import Commit, Tag

BASE_TIME = datetime(2025, 1, 1, tzinfo=timezone.utc)


class MemoryRepository:
    """
    In-memory repository implementing the query protocol.

    Commit ids are generated from integers; abbreviations are plain
    fixed-length prefixes.
    """

    def __init__(
        self,
        commits,
        head,
        tags=(),
        branch="main",
        status=(),
    ):
        self.graph = CommitGraph(commits)
        self.head = head
        self.tags = list(tags)
        self.branch = branch
        self.status = list(status)
        self.walks_started = 0

    @staticmethod
    def commit_id(n: int) -> str:
        return f"{n:040x}"

    @staticmethod
    def make_commit(n: int, parents=(), minutes=None) -> Commit:
        """Commit ``n`` with committer time BASE_TIME + ``minutes`` (default n)."""
        when = BASE_TIME + timedelta(minutes=n if minutes is None else minutes)
        return Commit(
            id=MemoryRepository.commit_id(n),
            parents=tuple(MemoryRepository.commit_id(p) for p in parents),
            author_time=when,
            commit_time=when,
            message=f"commit {n}",
        )

    @classmethod
    def linear(cls, count: int, tags=None, **kwargs) -> "MemoryRepository":
        """
        History c0 <- c1 <- ... <- c(count-1), HEAD at the last commit.

        ``tags`` maps commit numbers to tag names (lightweight tags).
        """
        commits = [
            cls.make_commit(n, parents=(n - 1,) if n else ()) for n in range(count)
        ]
        tag_list = [
            Tag(name=name, target=cls.commit_id(n)) for n, name in (tags or {}).items()
        ]
        return cls(commits, head=cls.commit_id(count - 1), tags=tag_list, **kwargs)

    def get_head(self) -> Commit:
        return self.graph.get(self.head)

    def get_branch(self):
        return self.branch

    def list_tags(self):
        return list(self.tags)

    def walk_ancestors(self, commit):
        self.walks_started += 1
        return self.graph.walk_ancestors(commit)

    def abbreviate(self, commit_id: str, length: int) -> str:
        return commit_id[:length]

    def status_entries(self, include_untracked: bool):
        for entry in self.status:
            if entry.untracked and not include_untracked:
                continue
            yield entry

    def is_dirty(self, ignore_untracked: bool) -> bool:
        return is_dirty(self, ignore_untracked)


class GitWorkTree:
    """Real git repository in a temporary directory, driven via subprocess."""

    def __init__(self, path: Path, object_format=None):
        self.path = path
        self.env = {
            **os.environ,
            "GIT_CONFIG_NOSYSTEM": "1",
            "HOME": str(path.parent),
        }
        if object_format is None:
            self.git("init", "-q")
        else:
            self.git("init", "-q", f"--object-format={object_format}")
        self.git("symbolic-ref", "HEAD", "refs/heads/main")
        self.git("config", "user.name", "Test User")
        self.git("config", "user.email", "test@example.com")
        self.git("config", "commit.gpgsign", "false")
        self.git("config", "tag.gpgsign", "false")

    def git(self, *args: str) -> str:
        result = subprocess.run(
            ["git", *args],
            cwd=self.path,
            env=self.env,
            check=True,
            capture_output=True,
            text=True,
        )
        return result.stdout.strip()

    def commit(self, message: str, filename: str = "file.txt") -> str:
        """Append to ``filename``, commit it and return the new HEAD id."""
        target = self.path / filename
        previous = target.read_text() if target.exists() else ""
        target.write_text(previous + message + "\n")
        self.git("add", filename)
        self.git("commit", "-q", "-m", message)
        return self.git("rev-parse", "HEAD")

    def tag(self, name: str, message=None, target: str = "HEAD") -> None:
        if message is None:
            self.git("tag", name, target)
        else:
            self.git("tag", "-a", name, "-m", message, target)


@pytest.fixture
def memory_repo():
    """The MemoryRepository class, for building in-memory histories."""
    return MemoryRepository


@pytest.fixture
def status_entry():
    """The StatusEntry type, for building working tree states."""
    return StatusEntry


@pytest.fixture
def git_work_tree(tmp_path):
    """
    Create an empty git repository with a ``main`` branch.

    Skipped when the git executable is not available.
    """
    if shutil.which("git") is None:
        pytest.skip("git is not installed")
    repo_dir = tmp_path / "repo"
    repo_dir.mkdir()
    return GitWorkTree(repo_dir)


@pytest.fixture
def sha256_git_work_tree(tmp_path):
    """
    Create an empty git repository using SHA-256 object ids.

    Skipped when git is missing or too old to support SHA-256.
    """
    if shutil.which("git") is None:
        pytest.skip("git is not installed")
    repo_dir = tmp_path / "repo256"
    repo_dir.mkdir()
    try:
        return GitWorkTree(repo_dir, object_format="sha256")
    except subprocess.CalledProcessError:
        pytest.skip("git does not support SHA-256 repositories")


@pytest.fixture
def tagged_git_repo(git_work_tree):
    """
    Git repository with ``v1.2.3`` four commits behind HEAD.

    History: c1 (tagged v1.2.3) <- c2 <- c3 <- c4 <- c5 (HEAD), clean tree.
    """
    git_work_tree.commit("c1")
    git_work_tree.tag("v1.2.3", message="Release 1.2.3")
    for n in range(2, 6):
        git_work_tree.commit(f"c{n}")
    return git_work_tree
