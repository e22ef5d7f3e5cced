"""Metadata assembly: combine repository facts into named values."""

import logging
from collections.abc import Iterable, Iterator, Mapping
from datetime import datetime
from typing import Optional

from ..utils.formatters import format_timestamp
from .config import StampConfig
from .errors import AssemblyError
from .models import DescribeResult, RepositorySnapshot

logger = logging.getLogger(__name__)

BRANCH = "BRANCH"
COMMIT_ABBREV = "COMMIT_ABBREV"
COMMIT_SHA = "COMMIT_SHA"
DESCRIBE = "DESCRIBE"
DIRTY = "DIRTY"
TAG_NAME = "TAG_NAME"
TIMESTAMP = "TIMESTAMP"
VERSION = "VERSION"

METADATA_KEYS = (
    BRANCH,
    COMMIT_ABBREV,
    COMMIT_SHA,
    DESCRIBE,
    DIRTY,
    TAG_NAME,
    TIMESTAMP,
    VERSION,
)


class MetadataSet(Mapping):
    """
    Ordered, read-only mapping of metadata keys to string values.

    Produced once per invocation and handed to a sink.
    """

    def __init__(self, values: Iterable[tuple[str, str]]):
        self._values: dict[str, str] = dict(values)

    def __getitem__(self, key: str) -> str:
        return self._values[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"MetadataSet({self._values!r})"

    def prefixed(self, prefixes: Iterable[str]) -> dict[str, str]:
        """
        Fan every entry out under each prefix as ``{prefix}.{KEY}``.

        Entries are grouped by prefix, in key order within each group.
        """
        return {
            f"{prefix}.{key}": value
            for prefix in prefixes
            for key, value in self._values.items()
        }

    def without(self, *keys: str) -> "MetadataSet":
        """Copy of this set with ``keys`` removed."""
        return MetadataSet((k, v) for k, v in self._values.items() if k not in keys)

    def to_dict(self) -> dict[str, str]:
        return dict(self._values)


def assemble(
    snapshot: RepositorySnapshot,
    describe_result: Optional[DescribeResult],
    config: StampConfig,
    version: Optional[str] = None,
    extra: Optional[Mapping[str, str]] = None,
    now: Optional[datetime] = None,
) -> MetadataSet:
    """
    Build the metadata set for one invocation.

    When the snapshot is dirty and suffixing is enabled, ``config.dirty_flag``
    is appended to COMMIT_ABBREV, COMMIT_SHA and DESCRIBE. DIRTY is always
    "true" or "false" and TAG_NAME is never suffixed. A ``describe_result``
    of None (no reachable tag) yields the abbreviated id as DESCRIBE and an
    empty TAG_NAME.

    Args:
        snapshot: Repository facts (HEAD, branch, dirty state)
        describe_result: Describe engine output, or None
        config: Assembly options (dirty flag, date format)
        version: Build version, passed through unchanged
        extra: Additional string values appended after the standard keys
        now: Assembly time (default: current local time)

    Returns:
        Complete MetadataSet

    Raises:
        AssemblyError: If any value cannot be computed
    """
    try:
        if now is None:
            now = datetime.now().astimezone()

        suffix = config.dirty_flag if snapshot.dirty and config.suffix_enabled else ""

        if describe_result is not None:
            descriptor = describe_result.descriptor
            tag_name = describe_result.tag_name
        else:
            descriptor = snapshot.abbrev
            tag_name = ""

        values = [
            (BRANCH, snapshot.branch or ""),
            (COMMIT_ABBREV, snapshot.abbrev + suffix),
            (COMMIT_SHA, snapshot.head.id + suffix),
            (DESCRIBE, descriptor + suffix),
            (DIRTY, "true" if snapshot.dirty else "false"),
            (TAG_NAME, tag_name),
            (TIMESTAMP, format_timestamp(now, config.date_format)),
            (VERSION, version or ""),
        ]

        for key, value in (extra or {}).items():
            if key in METADATA_KEYS:
                raise ValueError(f"Extra value would override {key}")
            values.append((key, str(value)))
    except (TypeError, ValueError) as e:
        raise AssemblyError(str(e), cause=e) from e

    metadata = MetadataSet(values)
    logger.debug("Assembled %d metadata values", len(metadata))
    return metadata
