"""Repository query capability and its git CLI implementation."""

import logging
import os
import subprocess
from collections.abc import Iterator
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Protocol, Union

from .dirty import StatusEntry, is_dirty, parse_porcelain
from .errors import RepositoryReadError
from .graph import CommitGraph
from .models import Commit, ObjectType, Tag

logger = logging.getLogger(__name__)

# ASCII unit/record separators, never present in refs or commit subjects
_FIELD_SEP = "\x1f"
_RECORD_SEP = "\x1e"

_LOG_FORMAT = "%H%x1f%P%x1f%at%x1f%ct%x1f%s%x1e"
# %(*...) fields peel annotated tags one level; empty for lightweight tags
_TAG_FORMAT = (
    "%(refname:strip=2)%1f%(objecttype)%1f%(objectname)"
    "%1f%(*objecttype)%1f%(*objectname)"
    "%1f%(taggerdate:unix)%1f%(contents:subject)"
)


class Repository(Protocol):
    """Read-only queries the gitstamp core needs from a repository."""

    def get_head(self) -> Commit:
        """Return the commit HEAD points at."""
        ...

    def get_branch(self) -> Optional[str]:
        """Return the current branch name, or None when HEAD is detached."""
        ...

    def list_tags(self) -> list[Tag]:
        """Return all tag refs, annotated tags with their peeled target."""
        ...

    def walk_ancestors(self, commit: Commit) -> Iterator[Commit]:
        """Start a fresh priority walk from ``commit``."""
        ...

    def abbreviate(self, commit_id: str, length: int) -> str:
        """Return an abbreviated id of at least ``length`` characters."""
        ...

    def status_entries(self, include_untracked: bool) -> Iterator[StatusEntry]:
        """Enumerate changed paths in the index and working tree."""
        ...

    def is_dirty(self, ignore_untracked: bool) -> bool:
        """Whether there are uncommitted changes."""
        ...


def _timestamp(value: str) -> datetime:
    return datetime.fromtimestamp(int(value), tz=timezone.utc)


class GitRepository:
    """
    Repository backed by the ``git`` command line tool.

    Every query is a blocking subprocess call against the local repository;
    nothing is ever written. The commit graph of HEAD is loaded once per
    instance on first use.
    """

    def __init__(self, path: Union[str, Path] = "."):
        self.path = Path(path).expanduser().resolve()
        self._graph: Optional[CommitGraph] = None
        # Keep status from refreshing the index; the repository is never written
        self._env = {**os.environ, "GIT_OPTIONAL_LOCKS": "0"}

    @classmethod
    def open(cls, path: Union[str, Path] = ".") -> "GitRepository":
        """
        Open the repository containing ``path``.

        Raises:
            RepositoryReadError: If ``path`` is not inside a git work tree
        """
        repo = cls(path)
        if not repo.path.is_dir():
            raise RepositoryReadError(f"Not a directory: {repo.path}")
        repo._git("rev-parse", "--git-dir")
        return repo

    def _git(self, *args: str, check: bool = True) -> subprocess.CompletedProcess:
        cmd = ["git", *args]
        logger.debug("Running %s in %s", " ".join(cmd), self.path)
        try:
            result = subprocess.run(
                cmd,
                cwd=self.path,
                env=self._env,
                capture_output=True,
                text=True,
                check=False,
            )
        except FileNotFoundError as e:
            raise RepositoryReadError("git executable not found") from e
        except OSError as e:
            raise RepositoryReadError(f"Unable to run git: {e}") from e

        if check and result.returncode != 0:
            message = result.stderr.strip() or f"exit status {result.returncode}"
            raise RepositoryReadError(f"git {args[0]} failed: {message}")
        return result

    @property
    def graph(self) -> CommitGraph:
        if self._graph is None:
            self._graph = self._load_graph()
        return self._graph

    def _load_graph(self) -> CommitGraph:
        # log.showSignature would mix gpg output into the records
        output = self._git(
            "log", "--no-show-signature", f"--format={_LOG_FORMAT}", "HEAD"
        ).stdout
        graph = CommitGraph()
        for record in output.split(_RECORD_SEP):
            record = record.strip("\n")
            if not record:
                continue
            sha, parents, author_ts, commit_ts, subject = record.split(_FIELD_SEP, 4)
            graph.add(
                Commit(
                    id=sha,
                    parents=tuple(parents.split()),
                    author_time=_timestamp(author_ts),
                    commit_time=_timestamp(commit_ts),
                    message=subject,
                )
            )
        logger.debug("Loaded %d commits from %s", len(graph), self.path)
        return graph

    def get_head(self) -> Commit:
        head = self._git("rev-parse", "--verify", "-q", "HEAD^{commit}", check=False)
        if head.returncode != 0:
            raise RepositoryReadError(f"Repository has no commits: {self.path}")
        return self.graph.get(head.stdout.strip())

    def get_branch(self) -> Optional[str]:
        result = self._git("symbolic-ref", "--short", "-q", "HEAD", check=False)
        if result.returncode == 1:
            return None  # detached
        if result.returncode != 0:
            raise RepositoryReadError(f"git symbolic-ref failed: {result.stderr.strip()}")
        return result.stdout.strip()

    def list_tags(self) -> list[Tag]:
        output = self._git("for-each-ref", f"--format={_TAG_FORMAT}", "refs/tags").stdout
        tags = []
        for line in output.splitlines():
            if not line:
                continue
            (
                name,
                object_type,
                object_id,
                peeled_type,
                peeled_id,
                tagger_ts,
                subject,
            ) = line.split(_FIELD_SEP, 6)
            if object_type != ObjectType.TAG.value:
                tags.append(
                    Tag(name=name, target=object_id, target_type=ObjectType(object_type))
                )
                continue
            tags.append(
                Tag(
                    name=name,
                    target=object_id,
                    target_type=ObjectType.TAG,
                    peeled_target=peeled_id or None,
                    peeled_type=ObjectType(peeled_type) if peeled_type else None,
                    message=subject or None,
                    tagged_at=_timestamp(tagger_ts) if tagger_ts else None,
                )
            )
        return tags

    def walk_ancestors(self, commit: Commit) -> Iterator[Commit]:
        return self.graph.walk_ancestors(commit)

    def abbreviate(self, commit_id: str, length: int) -> str:
        return self._git("rev-parse", f"--short={length}", commit_id).stdout.strip()

    def status_entries(self, include_untracked: bool) -> Iterator[StatusEntry]:
        untracked = "normal" if include_untracked else "no"
        output = self._git(
            "status", "--porcelain=v1", "-z", f"--untracked-files={untracked}"
        ).stdout
        return parse_porcelain(output)

    def is_dirty(self, ignore_untracked: bool) -> bool:
        return is_dirty(self, ignore_untracked)
