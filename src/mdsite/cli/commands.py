"""CLI command implementations"""

from pathlib import Path
from typing import Annotated, Optional

import typer

from mdsite.config import Settings, load_config
from mdsite.core.build import BuildReport, run_build
from mdsite.core.errors import DocumentError, MdsiteError
from mdsite.core.load import check_roots, discover_files, discover, load_document
from mdsite.core.logging import setup_logging
from mdsite.core.stages.registry import ALIASES, STAGES


ConfigOption = Annotated[Optional[Path], typer.Option("--config", "-c", help="Path to config.yaml")]
LogLevelOption = Annotated[Optional[str], typer.Option("--log-level", help="DEBUG, INFO, WARNING or ERROR")]


def _fail(msg: str, cause: Exception = None) -> None:
    """Print a user-friendly error to stderr and exit 1."""
    typer.echo(f"Error: {msg}", err=True)
    if cause:
        typer.echo(f"  {cause}", err=True)
    raise typer.Exit(1)


def _settings(overrides: dict = None, config_file: Path = None) -> Settings:
    """Load config with standard CLI error handling and configure logging."""
    try:
        settings = load_config(overrides=overrides, config_file=config_file)
    except ValueError as e:
        _fail(str(e))
    setup_logging(settings.log_level)
    return settings


def _echo_report(report: BuildReport) -> None:
    """Print per-doc build status and a summary line."""
    for record in report.records:
        typer.echo(f"  built: {record.identity} -> {report.record_paths[record.identity]}")
    for error in report.failures:
        typer.echo(f"  failed: {error}", err=True)
    typer.echo(
        f"Build complete - "
        f"{len(report.records)} built, "
        f"{len(report.failures)} failed"
    )


def build_cmd(
    out: Annotated[Optional[str], typer.Option("--out-dir", help="Output directory")] = None,
    workers: Annotated[Optional[int], typer.Option("--workers", min=1, help="Documents processed in parallel")] = None,
    parser: Annotated[Optional[str], typer.Option("--parser-config", help="MarkdownIt preset name")] = None,
    lenient: Annotated[bool, typer.Option("--lenient-assets", help="Warn instead of failing on missing assets")] = False,
    config: ConfigOption = None,
    log_level: LogLevelOption = None,
    ):
    """Run the full pipeline: load -> transform -> derive -> emit."""
    settings = _settings(overrides={
        "output_dir": out, "workers": workers, "parser_config": parser,
        "strict_assets": False if lenient else None, "log_level": log_level,
    }, config_file=config)

    try:
        report = run_build(settings)
    except MdsiteError as e:
        _fail("Build failed", e)

    _echo_report(report)
    if report.feed_path:
        typer.echo(f"Feed written to {report.feed_path}")
    if report.manifest_path:
        typer.echo(f"Manifest written to {report.manifest_path}")
    if not report.ok:
        raise typer.Exit(1)


def check_cmd(
    config: ConfigOption = None,
    log_level: LogLevelOption = None,
    ):
    """Validate frontmatter of every document without writing any output."""
    settings = _settings(overrides={"log_level": log_level}, config_file=config)
    failures = 0
    count = 0
    try:
        for source in discover(settings.source_roots()):
            count += 1
            try:
                load_document(source, settings.required_fields)
            except DocumentError as e:
                failures += 1
                typer.echo(f"  invalid: {e}", err=True)
    except MdsiteError as e:
        _fail("Check failed", e)

    typer.echo(f"Checked {count} document(s), {failures} invalid")
    if failures:
        raise typer.Exit(1)


def stages_cmd():
    """List the registered stage identifiers and their options."""
    aliases = {v: k for k, v in ALIASES.items()}
    for stage_id, cls in STAGES.items():
        typer.echo(f"{stage_id} (alias: {aliases[stage_id]})")
        for name, info in cls.Options.model_fields.items():
            typer.echo(f"  {info.alias or name} = {info.get_default(call_default_factory=True)!r}")


def list_cmd(config: ConfigOption = None):
    """List configured collections and their document counts."""
    settings = _settings(config_file=config)
    roots = settings.source_roots()
    try:
        check_roots(roots)
    except MdsiteError as e:
        _fail(str(e))
    for root, collection in roots:
        typer.echo(f"{collection}\t{len(discover_files(root))}\t{root}")
