"""Template sink: ``{KEY}`` substitution and filtered file copies."""

import logging
import re
from collections.abc import Callable, Iterable
from pathlib import Path
from typing import Optional

from ..core.assembler import MetadataSet
from ..core.errors import SinkWriteError

logger = logging.getLogger(__name__)

# {KEY} or {prefix.KEY}
PLACEHOLDER = re.compile(r"\{([A-Za-z_][A-Za-z0-9_.]*)\}")

INFO_MODULE_TEMPLATE = '''\
"""Git metadata for this build. Generated by gitstamp, do not edit."""

NAME = {MODULE_NAME}

BRANCH = {BRANCH}
COMMIT_ABBREV = {COMMIT_ABBREV}
COMMIT_SHA = {COMMIT_SHA}
DESCRIBE = {DESCRIBE}
DIRTY = {DIRTY} == "true"
TAG_NAME = {TAG_NAME}
TIMESTAMP = {TIMESTAMP}
VERSION = {VERSION}


def as_dict():
    """Return all values keyed by name."""
    return dict(
        branch=BRANCH,
        commit_abbrev=COMMIT_ABBREV,
        commit_sha=COMMIT_SHA,
        describe=DESCRIBE,
        dirty=DIRTY,
        tag_name=TAG_NAME,
        timestamp=TIMESTAMP,
        version=VERSION,
    )
'''


class TemplateSink:
    """
    Substitutes metadata into text templates.

    Both bare keys (``{DESCRIBE}``) and prefixed keys
    (``{gitstamp.DESCRIBE}``) are recognised. Unknown placeholders are
    left as they are, so other brace syntax in the template survives.
    """

    def __init__(self, encoding: str = "utf-8"):
        self.encoding = encoding

    def render(
        self,
        text: str,
        metadata: MetadataSet,
        prefixes: Iterable[str] = (),
        escape: Optional[Callable[[str], str]] = None,
    ) -> str:
        """
        Replace placeholders in ``text``.

        Args:
            text: Template text
            metadata: Values to substitute
            prefixes: Namespaces under which prefixed keys are recognised
            escape: Optional function applied to each substituted value

        Returns:
            Rendered text
        """
        values = dict(metadata)
        values.update(metadata.prefixed(prefixes))

        def replace(match: re.Match) -> str:
            key = match.group(1)
            if key not in values:
                return match.group(0)
            value = values[key]
            return escape(value) if escape else value

        return PLACEHOLDER.sub(replace, text)

    def copy(
        self,
        source: Path,
        target: Path,
        metadata: MetadataSet,
        prefixes: Iterable[str] = (),
        overwrite: bool = True,
    ) -> Path:
        """
        Filtered copy: render ``source`` and write the result to ``target``.

        Raises:
            SinkWriteError: If the source cannot be read or the target written
        """
        source, target = Path(source), Path(target)
        if target.exists() and not overwrite:
            raise SinkWriteError(f"Target already exists: {target}")

        try:
            text = source.read_text(encoding=self.encoding)
        except (OSError, LookupError, UnicodeError) as e:
            raise SinkWriteError(f"Cannot read template {source}: {e}") from e

        self._write(target, self.render(text, metadata, prefixes))
        logger.info("Rendered %s -> %s", source, target)
        return target

    def _write(self, target: Path, text: str) -> None:
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(text, encoding=self.encoding)
        except (OSError, LookupError, UnicodeError) as e:
            raise SinkWriteError(f"Cannot write {target}: {e}") from e


def write_info_module(
    output_dir: Path,
    module_name: str,
    metadata: MetadataSet,
    encoding: str = "utf-8",
    template: Optional[str] = None,
) -> Path:
    """
    Generate a Python module exposing the metadata as constants.

    Values are substituted as Python string literals. A custom ``template``
    uses the same placeholders, with MODULE_NAME available in addition to
    the metadata keys.

    Args:
        output_dir: Directory receiving ``<module_name>.py``
        module_name: Module name (must be a valid identifier)
        metadata: Values to embed
        encoding: Text encoding of the generated file
        template: Template text (default: INFO_MODULE_TEMPLATE)

    Returns:
        Path of the generated module

    Raises:
        ValueError: If ``module_name`` is not a valid identifier
        SinkWriteError: If the module cannot be written
    """
    if not module_name.isidentifier():
        raise ValueError(f"Not a valid module name: {module_name!r}")

    values = MetadataSet([*metadata.items(), ("MODULE_NAME", module_name)])
    sink = TemplateSink(encoding=encoding)
    text = sink.render(template or INFO_MODULE_TEMPLATE, values, escape=repr)

    target = Path(output_dir) / f"{module_name}.py"
    sink._write(target, text)
    logger.info("Generated info module: %s", target)
    return target
