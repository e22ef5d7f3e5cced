"""Property table sink: merge metadata into a build's properties."""

import logging
from collections.abc import Iterable, MutableMapping
from pathlib import Path
from typing import Optional

from ..core.assembler import MetadataSet
from ..core.errors import SinkWriteError
from ..utils.formatters import format_properties

logger = logging.getLogger(__name__)


class PropertiesSink:
    """Writes every metadata value into a mutable property table."""

    def __init__(self, table: Optional[MutableMapping[str, str]] = None):
        self.table: MutableMapping[str, str] = table if table is not None else {}

    def write(self, metadata: MetadataSet, prefixes: Iterable[str]) -> MutableMapping[str, str]:
        """
        Merge ``metadata`` into the table once per prefix.

        Existing entries with the same keys are replaced.

        Returns:
            The property table
        """
        entries = metadata.prefixed(prefixes)
        self.table.update(entries)
        logger.debug("Wrote %d properties", len(entries))
        return self.table


def write_properties_file(
    path: Path,
    metadata: MetadataSet,
    prefixes: Iterable[str],
    encoding: str = "utf-8",
    header: Optional[str] = "Generated by gitstamp",
) -> Path:
    """
    Write metadata as a .properties file.

    Args:
        path: Output file (parent directories are created)
        metadata: Values to write
        prefixes: Key namespaces, each receiving every value
        encoding: Text encoding of the file
        header: Comment line at the top, or None

    Returns:
        Path of the written file

    Raises:
        SinkWriteError: If the file cannot be written
    """
    path = Path(path)
    text = format_properties(metadata.prefixed(prefixes), header=header)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding=encoding)
    except (OSError, LookupError, UnicodeError) as e:
        raise SinkWriteError(f"Cannot write properties file {path}: {e}") from e

    logger.info("Wrote properties: %s", path)
    return path
