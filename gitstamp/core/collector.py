"""Run the metadata stages against a repository."""

import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Optional, Union

from .assembler import DESCRIBE, MetadataSet, assemble
from .config import StampConfig
from .describe import DescribeEngine
from .errors import (
    DescribeError,
    GitStampError,
    NoTagsFoundError,
    RepositoryQueryError,
)
from .models import DescribeResult, RepositorySnapshot
from .repository import GitRepository
from .tags import TagIndex

logger = logging.getLogger(__name__)


class MetadataCollector:
    """
    Collects the metadata set for one build invocation.

    Stages run in order: repository query, describe computation, metadata
    assembly. A failure in any stage is re-raised wrapped in the error type
    naming that stage; nothing partial is returned.
    """

    def __init__(
        self,
        repository,
        config: Optional[StampConfig] = None,
        version: Optional[str] = None,
    ):
        """
        Initialize metadata collector.

        Args:
            repository: Repository implementation to query
            config: Collection options (default: StampConfig())
            version: Build version reported as VERSION
        """
        self.repository = repository
        self.config = config or StampConfig()
        self.version = version

    def snapshot(self) -> RepositorySnapshot:
        """Capture HEAD, branch and dirty state."""
        try:
            return RepositorySnapshot.capture(
                self.repository,
                ignore_untracked=self.config.dirty_ignore_untracked,
                abbrev_length=self.config.abbrev_length,
            )
        except (GitStampError, OSError, ValueError) as e:
            raise RepositoryQueryError(str(e), cause=e) from e

    def describe(self, snapshot: RepositorySnapshot) -> Optional[DescribeResult]:
        """
        Describe the snapshot's HEAD.

        Returns None instead of raising NoTagsFoundError when
        ``describe_fallback`` is enabled.
        """
        engine = DescribeEngine(
            self.repository,
            abbrev_length=self.config.abbrev_length,
            tie_break=self.config.tag_tie_break,
        )
        try:
            tag_index = TagIndex.build(self.repository)
            result = engine.describe(snapshot.head, tag_index)
        except NoTagsFoundError:
            if not self.config.describe_fallback:
                raise
            logger.warning(
                "No tags found, using commit id %s as description", snapshot.abbrev
            )
            return None
        except DescribeError:
            raise
        except (GitStampError, OSError, ValueError) as e:
            raise DescribeError(str(e), cause=e) from e

        return result.model_copy(update={"dirty": snapshot.dirty})

    def collect(self, extra: Optional[Mapping[str, str]] = None) -> MetadataSet:
        """
        Run all stages and return the complete metadata set.

        Args:
            extra: Additional values to include (e.g. MODULE_NAME)

        Raises:
            RepositoryQueryError: If reading the repository fails
            NoTagsFoundError: If no tag is reachable and fallback is disabled
            DescribeError: If the description cannot be computed
            AssemblyError: If the values cannot be assembled
        """
        snapshot = self.snapshot()
        result = self.describe(snapshot)

        metadata = assemble(
            snapshot, result, self.config, version=self.version, extra=extra
        )
        logger.info("Collected metadata for %s: %s", snapshot.abbrev, metadata[DESCRIBE])
        return metadata


def collect_git_metadata(
    path: Union[str, Path] = ".",
    config: Optional[StampConfig] = None,
    version: Optional[str] = None,
    extra: Optional[Mapping[str, str]] = None,
) -> MetadataSet:
    """
    Convenience function to collect metadata from the git repository at ``path``.

    Args:
        path: Any directory inside the work tree
        config: Collection options
        version: Build version reported as VERSION
        extra: Additional values to include

    Returns:
        MetadataSet
    """
    try:
        repository = GitRepository.open(path)
    except GitStampError as e:
        raise RepositoryQueryError(str(e), cause=e) from e
    return MetadataCollector(repository, config=config, version=version).collect(extra)
