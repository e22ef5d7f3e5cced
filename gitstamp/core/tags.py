"""Tag index: which tags point at which commit."""

import logging
from collections import defaultdict
from collections.abc import Iterator

from .errors import GitStampError, RepositoryReadError
from .models import ObjectType, Tag

logger = logging.getLogger(__name__)


class TagIndex:
    """
    Mapping from commit id to the tags on that commit.

    Built once per repository snapshot. Annotated tags are resolved to the
    commit they annotate; choosing between several tags on one commit is
    left to the describe engine.
    """

    def __init__(self, tags: dict[str, list[Tag]]):
        self._by_commit = {
            commit_id: sorted(commit_tags, key=lambda t: t.name)
            for commit_id, commit_tags in tags.items()
        }

    @classmethod
    def build(cls, repository) -> "TagIndex":
        """
        Enumerate and resolve all tags of ``repository``.

        Tags pointing at another tag object are dereferenced one level.
        Tags that do not end on a commit are skipped.

        Raises:
            RepositoryReadError: If tag refs cannot be listed or resolved
        """
        try:
            tags = repository.list_tags()
        except RepositoryReadError:
            raise
        except (GitStampError, OSError, ValueError) as e:
            raise RepositoryReadError(f"Unable to list tags: {e}") from e

        by_commit: dict[str, list[Tag]] = defaultdict(list)
        for tag in tags:
            commit_id = cls._resolve(tag)
            if commit_id is None:
                continue
            by_commit[commit_id.lower()].append(tag)

        logger.debug("Indexed %d tags on %d commits", len(tags), len(by_commit))
        return cls(dict(by_commit))

    @staticmethod
    def _resolve(tag: Tag):
        if tag.target_type == ObjectType.COMMIT:
            return tag.target
        if not tag.annotated:
            logger.debug("Skipping tag %s pointing at a %s", tag.name, tag.target_type.value)
            return None

        if tag.peeled_target is None or tag.peeled_type is None:
            raise RepositoryReadError(f"Unable to resolve tag {tag.name}: target unknown")
        if tag.peeled_type != ObjectType.COMMIT:
            logger.debug(
                "Skipping tag %s: resolves to a %s", tag.name, tag.peeled_type.value
            )
            return None
        return tag.peeled_target

    def tags_for(self, commit_id: str) -> list[Tag]:
        """Tags on ``commit_id``, sorted by name. Empty if untagged."""
        return list(self._by_commit.get(commit_id.lower(), ()))

    def __contains__(self, commit_id: object) -> bool:
        return isinstance(commit_id, str) and commit_id.lower() in self._by_commit

    def __len__(self) -> int:
        return sum(len(t) for t in self._by_commit.values())

    def __iter__(self) -> Iterator[Tag]:
        for commit_id in sorted(self._by_commit):
            yield from self._by_commit[commit_id]
