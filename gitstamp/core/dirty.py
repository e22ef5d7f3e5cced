"""Working tree and index dirty-state detection."""

import logging
from collections.abc import Iterator
from typing import NamedTuple, Optional

from .errors import RepositoryReadError

logger = logging.getLogger(__name__)

UNTRACKED = "??"
IGNORED = "!!"


class StatusEntry(NamedTuple):
    """One changed path as reported by ``git status --porcelain``."""

    index: str  # X: state of the index relative to HEAD
    worktree: str  # Y: state of the working tree relative to the index
    path: str
    orig_path: Optional[str] = None  # source path of renames and copies

    @property
    def code(self) -> str:
        return self.index + self.worktree

    @property
    def untracked(self) -> bool:
        return self.code == UNTRACKED

    @property
    def ignored(self) -> bool:
        return self.code == IGNORED


def parse_porcelain(output: str) -> Iterator[StatusEntry]:
    """
    Parse ``git status --porcelain=v1 -z`` output.

    Entries are NUL-terminated ``XY PATH`` records; renames and copies are
    followed by an extra record holding the original path.

    Args:
        output: Raw status output

    Yields:
        StatusEntry for each changed path
    """
    tokens = iter(output.split("\0"))
    for token in tokens:
        if not token:
            continue
        if len(token) < 4 or token[2] != " ":
            raise RepositoryReadError(f"Malformed status entry: {token!r}")

        x, y, path = token[0], token[1], token[3:]
        orig_path = None
        if "R" in (x, y) or "C" in (x, y):
            orig_path = next(tokens, None)
        yield StatusEntry(x, y, path, orig_path)


def is_dirty(repository, ignore_untracked: bool = False) -> bool:
    """
    Check whether the repository has uncommitted changes.

    Staged changes, unstaged modifications, deletions, renames and unmerged
    paths all count. Untracked files count unless ``ignore_untracked`` is
    set. The scan is a single read-only pass and stops at the first hit.

    Args:
        repository: Object providing ``status_entries(include_untracked)``
        ignore_untracked: Whether untracked files are disregarded

    Returns:
        True if the working tree or index differs from HEAD
    """
    for entry in repository.status_entries(include_untracked=not ignore_untracked):
        if entry.ignored:
            continue
        if entry.untracked and ignore_untracked:
            continue
        logger.debug("Dirty: %s %s", entry.code, entry.path)
        return True
    return False
