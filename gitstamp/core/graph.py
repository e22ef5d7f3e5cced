"""Read-only view over a repository's commit graph."""

import heapq
import itertools
import logging
from collections.abc import Iterable, Iterator

from .errors import RepositoryReadError
from .models import Commit

logger = logging.getLogger(__name__)


class CommitGraph:
    """
    Arena of commits addressed by id.

    Traversal uses an explicit heap, never recursion.
    """

    def __init__(self, commits: Iterable[Commit] = ()):
        self._commits: dict[str, Commit] = {}
        for commit in commits:
            self.add(commit)

    def add(self, commit: Commit) -> None:
        self._commits[commit.id] = commit

    def get(self, commit_id: str) -> Commit:
        """
        Look up a commit by its full id.

        Raises:
            RepositoryReadError: If the commit is not part of the graph
        """
        try:
            return self._commits[commit_id.lower()]
        except KeyError:
            raise RepositoryReadError(f"Unknown commit: {commit_id}") from None

    def __contains__(self, commit_id: object) -> bool:
        return isinstance(commit_id, str) and commit_id.lower() in self._commits

    def __len__(self) -> int:
        return len(self._commits)

    def walk_ancestors(self, commit: Commit) -> Iterator[Commit]:
        """
        Yield ``commit`` and all of its ancestors, each exactly once.

        The frontier is ordered by committer time, newest first. Commits
        with equal timestamps come out in the order they were discovered.
        Every call starts a new walk.

        Args:
            commit: Commit to start from (yielded first)

        Yields:
            Commit objects in priority order
        """
        counter = itertools.count()
        seen = {commit.id}
        frontier = [(-commit.commit_time.timestamp(), next(counter), commit)]

        while frontier:
            _, _, current = heapq.heappop(frontier)
            yield current

            for parent_id in current.parents:
                if parent_id in seen:
                    continue
                seen.add(parent_id)
                parent = self._commits.get(parent_id)
                if parent is None:
                    # Shallow clones cut history at grafted commits
                    logger.debug("Skipping missing parent %s of %s", parent_id, current.id)
                    continue
                heapq.heappush(
                    frontier,
                    (-parent.commit_time.timestamp(), next(counter), parent),
                )
