"""Configuration for metadata collection."""

from enum import Enum
from pathlib import Path
from typing import Optional, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .errors import GitStampError

# Appended to commit ids and the descriptor when the working tree is dirty
DEFAULT_DIRTY_FLAG = "-dirty"

# Setting dirty_flag to this value turns suffixing off; DIRTY is still set.
# In YAML this is written as ``dirtyFlag: null``.
DIRTY_FLAG_DISABLED = None

DEFAULT_DATE_FORMAT = "%Y-%m-%dT%H:%M:%S%z"

DEFAULT_PREFIXES = ["gitstamp", "git"]


class TagTieBreak(str, Enum):
    """Policy for choosing between several tags on the same commit."""

    NEWEST = "newest"  # latest tagger date, then last name
    NAME = "name"  # lexicographically last name


class ConfigError(GitStampError):
    """Configuration file is unreadable or invalid."""


class StampConfig(BaseModel):
    """Options recognised by the metadata assembler and collector."""

    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)

    date_format: str = Field(
        default=DEFAULT_DATE_FORMAT,
        alias="dateFormat",
        description="strftime pattern for TIMESTAMP",
    )
    dirty_flag: Optional[str] = Field(
        default=DEFAULT_DIRTY_FLAG,
        alias="dirtyFlag",
        description="Suffix for dirty commits (None disables suffixing)",
    )
    dirty_ignore_untracked: bool = Field(
        default=False,
        alias="dirtyIgnoreUntracked",
        description="Whether untracked files leave the tree clean",
    )
    abbrev_length: int = Field(
        default=7, ge=4, le=40, alias="abbrevLength", description="Minimum abbrev length"
    )
    tag_tie_break: TagTieBreak = Field(
        default=TagTieBreak.NEWEST,
        alias="tagTieBreak",
        description="Choice between tags on one commit",
    )
    describe_fallback: bool = Field(
        default=False,
        alias="describeFallback",
        description="Use the abbreviated id as DESCRIBE when no tag exists",
    )
    prefixes: list[str] = Field(
        default_factory=lambda: list(DEFAULT_PREFIXES),
        description="Key namespaces the sink writes",
    )
    encoding: str = Field(default="utf-8", description="Text encoding for sinks")

    @field_validator("date_format")
    @classmethod
    def validate_date_format(cls, v: str) -> str:
        """Reject empty patterns."""
        if not v.strip():
            raise ValueError("date_format must not be empty")
        return v

    @field_validator("prefixes")
    @classmethod
    def validate_prefixes(cls, v: list[str]) -> list[str]:
        """Strip trailing dots and drop duplicates, keeping order."""
        cleaned: list[str] = []
        for prefix in v:
            prefix = prefix.strip().rstrip(".")
            if not prefix:
                raise ValueError("prefixes must not be empty strings")
            if prefix not in cleaned:
                cleaned.append(prefix)
        return cleaned

    @property
    def suffix_enabled(self) -> bool:
        return self.dirty_flag is not DIRTY_FLAG_DISABLED

    @classmethod
    def from_yaml(cls, yaml_str: str) -> "StampConfig":
        """
        Parse configuration from a YAML document.

        Raises:
            ConfigError: If the document is not a mapping or has invalid values
        """
        try:
            data = yaml.safe_load(yaml_str)
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML: {e}") from e

        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ConfigError("Configuration must be a mapping")

        try:
            return cls.model_validate(data)
        except ValidationError as e:
            raise ConfigError(str(e)) from e


def load_config(path: Optional[Union[str, Path]] = None) -> StampConfig:
    """
    Load configuration from a YAML file, or defaults when ``path`` is None.

    Raises:
        ConfigError: If the file cannot be read or is invalid
    """
    if path is None:
        return StampConfig()

    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read config file {path}: {e}") from e
    return StampConfig.from_yaml(text)
