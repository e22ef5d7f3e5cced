"""Data model shared by the gitstamp core: commits, tags and describe results."""

import re
from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

# SHA-1 or SHA-256 object ids
_FULL_SHA = re.compile(r"^(?:[a-fA-F0-9]{40}|[a-fA-F0-9]{64})$")


def _validate_sha(v: str) -> str:
    if not _FULL_SHA.match(v):
        raise ValueError(f"Commit id must be 40 or 64 hexadecimal characters: {v!r}")
    return v.lower()


class ObjectType(str, Enum):
    """Git object types a tag may point at."""

    COMMIT = "commit"
    TAG = "tag"
    TREE = "tree"
    BLOB = "blob"


class Commit(BaseModel):
    """A single commit read from the repository."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Full commit id (40 or 64 hex characters)")
    parents: tuple[str, ...] = Field(
        default=(), description="Parent commit ids (empty for root commits)"
    )
    author_time: datetime = Field(..., description="Author timestamp")
    commit_time: datetime = Field(..., description="Committer timestamp")
    message: str = Field(default="", description="Commit subject line")

    @field_validator("id")
    @classmethod
    def validate_id(cls, v: str) -> str:
        """Validate and lower-case the commit id."""
        return _validate_sha(v)

    @field_validator("parents")
    @classmethod
    def validate_parents(cls, v: tuple[str, ...]) -> tuple[str, ...]:
        """Validate and lower-case parent ids."""
        return tuple(_validate_sha(p) for p in v)


class Tag(BaseModel):
    """A tag ref, either lightweight or annotated."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., description="Tag name without refs/tags/")
    target: str = Field(..., description="Id of the object the tag points at")
    target_type: ObjectType = Field(
        default=ObjectType.COMMIT, description="Type of the target object"
    )
    peeled_target: Optional[str] = Field(
        None, description="Object the tag object points at (annotated tags only)"
    )
    peeled_type: Optional[ObjectType] = Field(
        None, description="Type of peeled_target"
    )
    message: Optional[str] = Field(None, description="Annotation message")
    tagged_at: Optional[datetime] = Field(
        None, description="Tagger date (annotated tags only)"
    )

    @property
    def annotated(self) -> bool:
        return self.target_type == ObjectType.TAG


class DescribeResult(BaseModel):
    """
    Description of a commit relative to its nearest tag.

    ``descriptor`` never contains a dirty suffix; that is applied by the
    metadata assembler. ``dirty`` only records the state for callers.
    """

    model_config = ConfigDict(frozen=True)

    tag_name: str = Field(..., description="Nearest reachable tag")
    distance: int = Field(..., ge=0, description="Commits between tag and HEAD")
    commit_id: str = Field(..., description="Full id of the described commit")
    abbrev: str = Field(..., description="Abbreviated id of the described commit")
    dirty: bool = Field(default=False, description="Working tree state")

    @property
    def descriptor(self) -> str:
        """``tag`` when the commit is tagged, else ``tag-N-gABBREV``."""
        if self.distance == 0:
            return self.tag_name
        return f"{self.tag_name}-{self.distance}-g{self.abbrev}"

    def __str__(self) -> str:
        return self.descriptor


class RepositorySnapshot(BaseModel):
    """Repository facts captured once per invocation."""

    model_config = ConfigDict(frozen=True)

    head: Commit
    branch: Optional[str] = Field(None, description="Branch name, None if detached")
    abbrev: str = Field(..., description="Abbreviated HEAD id")
    dirty: bool = Field(default=False, description="Uncommitted changes present")

    @classmethod
    def capture(
        cls, repository, ignore_untracked: bool = False, abbrev_length: int = 7
    ) -> "RepositorySnapshot":
        """Read HEAD, branch and dirty state from ``repository``."""
        head = repository.get_head()
        return cls(
            head=head,
            branch=repository.get_branch(),
            abbrev=repository.abbreviate(head.id, abbrev_length),
            dirty=repository.is_dirty(ignore_untracked),
        )
