"""Typer-based CLI application for gitstamp."""

import json
import logging
from enum import Enum
from pathlib import Path
from typing import Annotated, Optional

import typer
import yaml

from gitstamp import __version__
from gitstamp.core.assembler import DESCRIBE, MetadataSet
from gitstamp.core.collector import collect_git_metadata
from gitstamp.core.config import DIRTY_FLAG_DISABLED, ConfigError, StampConfig, load_config
from gitstamp.core.errors import GitStampError, NoTagsFoundError, SinkWriteError
from gitstamp.sinks.properties import write_properties_file
from gitstamp.sinks.template import TemplateSink, write_info_module
from gitstamp.utils.formatters import format_properties

logger = logging.getLogger(__name__)

app = typer.Typer(
    name="gitstamp",
    help="Stamp builds with git describe, commit and dirty-state metadata",
    add_completion=False,
)

# Exit code for "no tag reachable", distinct from hard failures
EXIT_NO_TAGS = 2


class OutputFormat(str, Enum):
    PROPERTIES = "properties"
    JSON = "json"
    YAML = "yaml"


RepoOption = Annotated[
    Path, typer.Option("--repo", help="Directory inside the git work tree")
]
ConfigOption = Annotated[
    Optional[Path], typer.Option("--config", help="YAML configuration file")
]
DirtyFlagOption = Annotated[
    Optional[str],
    typer.Option(help="Suffix appended to ids and DESCRIBE when dirty"),
]
NoDirtyFlagOption = Annotated[
    bool,
    typer.Option("--no-dirty-flag", help="Report DIRTY without suffixing values"),
]
IgnoreUntrackedOption = Annotated[
    bool,
    typer.Option("--ignore-untracked", help="Untracked files do not make the tree dirty"),
]
DateFormatOption = Annotated[
    Optional[str], typer.Option(help="strftime pattern for TIMESTAMP")
]
PrefixOption = Annotated[
    Optional[list[str]], typer.Option("--prefix", help="Key prefix (repeatable)")
]
BuildVersionOption = Annotated[
    Optional[str], typer.Option(help="Build version reported as VERSION")
]
FallbackOption = Annotated[
    bool,
    typer.Option("--always", help="Use the abbreviated id when no tag is reachable"),
]


def version_callback(value: bool):
    """Display version and exit."""
    if value:
        typer.echo(f"gitstamp v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        Optional[bool],
        typer.Option("--version", callback=version_callback, is_eager=True),
    ] = None,
    log_level: Annotated[
        str,
        typer.Option(
            help="Logging level (debug, info, warn, error)",
            case_sensitive=False,
            hidden=True,
        ),
    ] = "warn",
):
    """gitstamp - inject git metadata into builds.

    Describes HEAD relative to its nearest tag, detects uncommitted changes
    and writes the results as properties or into source templates.
    """
    log_level_upper = log_level.upper()
    if log_level_upper == "WARN":
        log_level_upper = "WARNING"
    if log_level_upper not in ["DEBUG", "INFO", "WARNING", "ERROR"]:
        typer.echo(
            f"❌ Invalid log level: {log_level}. Must be debug, info, warn, or error.",
            err=True,
        )
        raise typer.Exit(1)

    logging.basicConfig(level=getattr(logging, log_level_upper), format="%(message)s")


def build_config(
    config_path: Optional[Path] = None,
    dirty_flag: Optional[str] = None,
    no_dirty_flag: bool = False,
    ignore_untracked: bool = False,
    date_format: Optional[str] = None,
    prefixes: Optional[list[str]] = None,
    always: bool = False,
) -> StampConfig:
    """Load the config file and apply command line overrides.

    Raises:
        typer.Exit: If the configuration is invalid
    """
    try:
        config = load_config(config_path)
        overrides: dict = {}
        if no_dirty_flag:
            overrides["dirty_flag"] = DIRTY_FLAG_DISABLED
        elif dirty_flag is not None:
            overrides["dirty_flag"] = dirty_flag
        if ignore_untracked:
            overrides["dirty_ignore_untracked"] = True
        if date_format:
            overrides["date_format"] = date_format
        if prefixes:
            overrides["prefixes"] = prefixes
        if always:
            overrides["describe_fallback"] = True
        # Re-validate so overrides go through the same checks as the file
        return StampConfig.model_validate({**config.model_dump(), **overrides})
    except (ConfigError, ValueError) as e:
        typer.echo(f"❌ Invalid configuration: {e}", err=True)
        raise typer.Exit(1) from e


def collect_or_exit(
    repo: Path,
    config: StampConfig,
    build_version: Optional[str] = None,
) -> MetadataSet:
    """Collect metadata, mapping failures to exit codes."""
    try:
        return collect_git_metadata(repo, config=config, version=build_version)
    except NoTagsFoundError as e:
        typer.echo(f"❌ {e}", err=True)
        typer.echo("   Use --always to fall back to the commit id.", err=True)
        raise typer.Exit(EXIT_NO_TAGS) from e
    except GitStampError as e:
        typer.echo(f"❌ {e}", err=True)
        logger.debug("Metadata collection failed", exc_info=True)
        raise typer.Exit(1) from e


@app.command()
def describe(
    repo: Annotated[Path, typer.Argument(help="Directory inside the git work tree")] = Path("."),
    config_path: ConfigOption = None,
    dirty_flag: DirtyFlagOption = None,
    no_dirty_flag: NoDirtyFlagOption = False,
    ignore_untracked: IgnoreUntrackedOption = False,
    always: FallbackOption = False,
):
    """Print the description of HEAD (tag-N-gABBREV, plus dirty suffix)."""
    config = build_config(
        config_path,
        dirty_flag=dirty_flag,
        no_dirty_flag=no_dirty_flag,
        ignore_untracked=ignore_untracked,
        always=always,
    )
    metadata = collect_or_exit(repo, config)
    typer.echo(metadata[DESCRIBE])


@app.command()
def info(
    repo: Annotated[Path, typer.Argument(help="Directory inside the git work tree")] = Path("."),
    output_format: Annotated[
        OutputFormat, typer.Option("--format", help="Output format")
    ] = OutputFormat.PROPERTIES,
    config_path: ConfigOption = None,
    dirty_flag: DirtyFlagOption = None,
    no_dirty_flag: NoDirtyFlagOption = False,
    ignore_untracked: IgnoreUntrackedOption = False,
    date_format: DateFormatOption = None,
    prefix: PrefixOption = None,
    build_version: BuildVersionOption = None,
    always: FallbackOption = False,
):
    """Print all metadata values.

    Keys are bare (BRANCH, DESCRIBE, ...) unless --prefix is given.

    Examples:
        gitstamp info
        gitstamp info --format json --prefix gitstamp
    """
    config = build_config(
        config_path,
        dirty_flag=dirty_flag,
        no_dirty_flag=no_dirty_flag,
        ignore_untracked=ignore_untracked,
        date_format=date_format,
        always=always,
    )
    metadata = collect_or_exit(repo, config, build_version)
    entries = metadata.prefixed(prefix) if prefix else metadata.to_dict()

    if output_format == OutputFormat.JSON:
        typer.echo(json.dumps(entries, indent=2))
    elif output_format == OutputFormat.YAML:
        typer.echo(yaml.safe_dump(entries, default_flow_style=False, sort_keys=False), nl=False)
    else:
        typer.echo(format_properties(entries), nl=False)


@app.command()
def properties(
    output: Annotated[Path, typer.Argument(help="Properties file to write")],
    repo: RepoOption = Path("."),
    config_path: ConfigOption = None,
    dirty_flag: DirtyFlagOption = None,
    no_dirty_flag: NoDirtyFlagOption = False,
    ignore_untracked: IgnoreUntrackedOption = False,
    date_format: DateFormatOption = None,
    prefix: PrefixOption = None,
    build_version: BuildVersionOption = None,
    always: FallbackOption = False,
):
    """Write metadata to a .properties file, once per key prefix."""
    config = build_config(
        config_path,
        dirty_flag=dirty_flag,
        no_dirty_flag=no_dirty_flag,
        ignore_untracked=ignore_untracked,
        date_format=date_format,
        prefixes=prefix,
        always=always,
    )
    metadata = collect_or_exit(repo, config, build_version)

    try:
        path = write_properties_file(output, metadata, config.prefixes, encoding=config.encoding)
    except SinkWriteError as e:
        typer.echo(f"❌ {e}", err=True)
        raise typer.Exit(1) from e

    typer.echo(f"✅ Wrote {len(metadata) * len(config.prefixes)} properties to {path}")


@app.command()
def render(
    template: Annotated[Path, typer.Argument(help="Template file with {KEY} placeholders")],
    target: Annotated[Path, typer.Argument(help="File to write")],
    repo: RepoOption = Path("."),
    config_path: ConfigOption = None,
    dirty_flag: DirtyFlagOption = None,
    no_dirty_flag: NoDirtyFlagOption = False,
    ignore_untracked: IgnoreUntrackedOption = False,
    date_format: DateFormatOption = None,
    prefix: PrefixOption = None,
    build_version: BuildVersionOption = None,
    always: FallbackOption = False,
    encoding: Annotated[Optional[str], typer.Option(help="Template encoding")] = None,
):
    """Copy TEMPLATE to TARGET, replacing {KEY} and {prefix.KEY} placeholders."""
    config = build_config(
        config_path,
        dirty_flag=dirty_flag,
        no_dirty_flag=no_dirty_flag,
        ignore_untracked=ignore_untracked,
        date_format=date_format,
        prefixes=prefix,
        always=always,
    )
    if not template.is_file():
        typer.echo(f"❌ Template not found: {template}", err=True)
        raise typer.Exit(1)

    metadata = collect_or_exit(repo, config, build_version)
    sink = TemplateSink(encoding=encoding or config.encoding)
    try:
        sink.copy(template, target, metadata, config.prefixes)
    except SinkWriteError as e:
        typer.echo(f"❌ {e}", err=True)
        raise typer.Exit(1) from e

    typer.echo(f"✅ Rendered {template} -> {target}")


@app.command("info-module")
def info_module(
    output_dir: Annotated[Path, typer.Argument(help="Directory for the generated module")],
    module_name: Annotated[str, typer.Option(help="Name of the generated module")] = "gitinfo",
    repo: RepoOption = Path("."),
    config_path: ConfigOption = None,
    dirty_flag: DirtyFlagOption = None,
    no_dirty_flag: NoDirtyFlagOption = False,
    ignore_untracked: IgnoreUntrackedOption = False,
    date_format: DateFormatOption = None,
    build_version: BuildVersionOption = None,
    always: FallbackOption = False,
):
    """Generate a Python module exposing the metadata as constants."""
    config = build_config(
        config_path,
        dirty_flag=dirty_flag,
        no_dirty_flag=no_dirty_flag,
        ignore_untracked=ignore_untracked,
        date_format=date_format,
        always=always,
    )
    if not module_name.isidentifier():
        typer.echo(f"❌ Not a valid module name: {module_name}", err=True)
        raise typer.Exit(1)

    metadata = collect_or_exit(repo, config, build_version)
    try:
        path = write_info_module(output_dir, module_name, metadata, encoding=config.encoding)
    except SinkWriteError as e:
        typer.echo(f"❌ {e}", err=True)
        raise typer.Exit(1) from e

    typer.echo(f"✅ Generated {path}")


if __name__ == "__main__":
    app()
