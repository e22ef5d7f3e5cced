"""Describe engine: name a commit relative to its nearest reachable tag."""

import logging
from datetime import datetime, timezone
from typing import Optional

from .config import TagTieBreak
from .errors import NoTagsFoundError
from .models import Commit, DescribeResult, Tag
from .tags import TagIndex

logger = logging.getLogger(__name__)

DEFAULT_ABBREV_LENGTH = 7

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


def pick_tag(tags: list[Tag], policy: TagTieBreak = TagTieBreak.NEWEST) -> Tag:
    """
    Choose one tag among several pointing at the same commit.

    ``NEWEST`` prefers the most recent tagger date; undated (lightweight)
    tags rank below dated ones. Remaining ties, and the whole choice under
    ``NAME``, go to the lexicographically last name.

    Args:
        tags: Non-empty list of tags on one commit
        policy: Tie-break policy

    Returns:
        The selected tag
    """
    if not tags:
        raise ValueError("pick_tag() needs at least one tag")

    if policy == TagTieBreak.NAME:
        return max(tags, key=lambda t: t.name)

    return max(
        tags,
        key=lambda t: (t.tagged_at is not None, t.tagged_at or _EPOCH, t.name),
    )


class DescribeEngine:
    """
    Computes ``git describe``-style descriptors.

    The engine walks ancestors of the described commit newest-first (by
    committer time, following every parent of merges) and stops at the
    first commit carrying a tag. The distance is the number of commits
    visited before that one. The engine does not look at the working tree;
    the dirty suffix is applied by the metadata assembler.
    """

    def __init__(
        self,
        repository,
        abbrev_length: int = DEFAULT_ABBREV_LENGTH,
        tie_break: TagTieBreak = TagTieBreak.NEWEST,
    ):
        """
        Initialize describe engine.

        Args:
            repository: Repository providing ``walk_ancestors`` and ``abbreviate``
            abbrev_length: Minimum length of abbreviated ids (4-40, default: 7)
            tie_break: Policy when several tags share a commit
        """
        if not 4 <= abbrev_length <= 40:
            raise ValueError(f"Abbreviation length must be 4-40, got {abbrev_length}")

        self.repository = repository
        self.abbrev_length = abbrev_length
        self.tie_break = TagTieBreak(tie_break)

    def describe(self, head: Commit, tag_index: TagIndex) -> DescribeResult:
        """
        Describe ``head`` relative to the nearest tag in ``tag_index``.

        Raises:
            NoTagsFoundError: If no tag is reachable from ``head``
        """
        if len(tag_index) == 0:
            raise NoTagsFoundError("repository has no tags")

        distance = 0
        for commit in self.repository.walk_ancestors(head):
            tags = tag_index.tags_for(commit.id)
            if tags:
                tag = pick_tag(tags, self.tie_break)
                if len(tags) > 1:
                    logger.debug(
                        "Picked %s among %s on %s",
                        tag.name,
                        ", ".join(t.name for t in tags),
                        commit.id,
                    )
                return DescribeResult(
                    tag_name=tag.name,
                    distance=distance,
                    commit_id=head.id,
                    abbrev=self.repository.abbreviate(head.id, self.abbrev_length),
                )
            distance += 1

        raise NoTagsFoundError(f"no tag reachable from {head.id[: self.abbrev_length]}")


def describe(
    repository,
    head: Optional[Commit] = None,
    abbrev_length: int = DEFAULT_ABBREV_LENGTH,
    tie_break: TagTieBreak = TagTieBreak.NEWEST,
) -> DescribeResult:
    """
    Convenience function to describe HEAD (or ``head``) of a repository.

    Builds a fresh tag index and runs the describe engine.
    """
    if head is None:
        head = repository.get_head()
    tag_index = TagIndex.build(repository)
    engine = DescribeEngine(repository, abbrev_length=abbrev_length, tie_break=tie_break)
    return engine.describe(head, tag_index)
