"""Exception hierarchy for gitstamp."""

from typing import Optional


class GitStampError(Exception):
    """Base class for all gitstamp errors."""


class RepositoryReadError(GitStampError):
    """The repository could not be read (missing git, corrupt refs, ...)."""


class SinkWriteError(GitStampError):
    """A sink failed to write properties or rendered files."""


class StageError(GitStampError):
    """
    Failure wrapped with the name of the stage that produced it.

    The original exception is kept as ``cause`` and chained via ``from``
    by whoever raises the wrapper.
    """

    stage = "gitstamp"

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(f"{self.stage} failed: {message}")
        self.cause = cause


class RepositoryQueryError(StageError):
    """Reading HEAD, branch or working tree state failed."""

    stage = "repository query"


class DescribeError(StageError):
    """Computing the tag description failed."""

    stage = "describe computation"


class NoTagsFoundError(DescribeError):
    """
    No tag is reachable from the described commit.

    Expected for fresh repositories; callers may fall back to the
    abbreviated commit id.
    """


class AssemblyError(StageError):
    """Building the metadata set failed."""

    stage = "metadata assembly"
