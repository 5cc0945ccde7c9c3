"""CLI entry point for wikimirror."""

from __future__ import annotations

import logging
import signal
from pathlib import Path
from typing import Annotated, NoReturn

import typer
import yaml
from rich import print as rprint
from rich.syntax import Syntax
from rich.table import Table

from wikimirror import __version__
from wikimirror.browser import open_in_browser
from wikimirror.config import DEFAULT_CONFIG_TEMPLATE, WikiMirrorConfig, load_config
from wikimirror.converter import ConversionWorker, PandocRenderer, convert_single_file
from wikimirror.errors import BrowserError, ExitCode, WikiMirrorError
from wikimirror.log import attach_file_logs, detach_file_logs, setup_logging
from wikimirror.preflight import check_dependencies, validate_paths
from wikimirror.sync import SyncReport, Synchronizer

logger = logging.getLogger(__name__)

app = typer.Typer(
    name="wikimirror",
    help="Mirror a Markdown wiki into HTML with pandoc and open it in a browser.",
    no_args_is_help=True,
    context_settings={"help_option_names": ["-h", "--help"]},
)

config_app = typer.Typer(help="Manage wikimirror configuration.")
app.add_typer(config_app, name="config")

# Global state
_config: WikiMirrorConfig | None = None


def _get_config() -> WikiMirrorConfig:
    if _config is None:
        return load_config()
    return _config


def _version_callback(value: bool) -> None:
    if value:
        rprint(f"[bold]wikimirror[/bold] version [green]{__version__}[/green]")
        raise typer.Exit()


@app.callback()
def main(
    config: Annotated[
        str | None, typer.Option("--config", "-c", help="Path to wikimirror.yaml")
    ] = None,
    verbose: Annotated[bool, typer.Option("--verbose", help="Debug logging")] = False,
    version: Annotated[
        bool,
        typer.Option("--version", "-V", callback=_version_callback, is_eager=True, help="Show version"),
    ] = False,
) -> None:
    """Global options."""
    global _config
    setup_logging(verbose=verbose)
    try:
        _config = load_config(config)
    except WikiMirrorError as e:
        _fail(e)
    setup_logging(_config.log_level, verbose=verbose)


def _fail(err: WikiMirrorError) -> NoReturn:
    logger.error("%s", err)
    raise typer.Exit(int(err.exit_code))


def _raise_interrupt(signum, frame) -> None:
    raise KeyboardInterrupt


def _open(path: Path, cfg: WikiMirrorConfig) -> None:
    try:
        open_in_browser(path, cfg.browser)
    except BrowserError as e:
        logger.warning("%s", e)


def _display_report(report: SyncReport) -> None:
    table = Table(title="Wiki Synchronization")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right", style="green")
    table.add_row("New", str(len(report.changes.new)))
    table.add_row("Modified", str(len(report.changes.modified)))
    table.add_row("Unchanged", str(len(report.changes.unchanged)))
    table.add_row("Deleted", str(len(report.changes.deleted)))
    table.add_row("Converted", str(len(report.converted)))
    table.add_row("Files copied", str(len(report.tree.copied)))
    table.add_row("Errors", str(len(report.errors)))
    table.add_row("Duration", f"{report.duration:.2f}s")
    rprint(table)

    for err in report.errors:
        rprint(f"  [red]error:[/red] {err.file} ({err.step}): {err.error}")


@app.command()
def index(
    no_open: Annotated[bool, typer.Option("--no-open", help="Don't launch the browser")] = False,
) -> None:
    """Synchronize and convert the wiki to HTML, then open index.html."""
    cfg = _get_config()
    try:
        check_dependencies(cfg, open_browser=not no_open)
        _source, output = validate_paths(cfg)
    except WikiMirrorError as e:
        _fail(e)

    if output.is_dir():
        logger.info("Output directory '%s' already exists. Checking for updates.", output)
    else:
        logger.info("Output directory '%s' does not exist. Creating and performing full synchronization.", output)
        output.mkdir(parents=True, exist_ok=True)
    attach_file_logs(output, cfg.log_file, cfg.error_log_file)

    previous = signal.signal(signal.SIGTERM, _raise_interrupt)
    try:
        report = Synchronizer(cfg, PandocRenderer(cfg.renderer)).run()
        _display_report(report)
        if not no_open and report.index_path:
            _open(Path(report.index_path), cfg)
        logger.info("All tasks completed successfully.")
    except WikiMirrorError as e:
        _fail(e)
    finally:
        signal.signal(signal.SIGTERM, previous)
        detach_file_logs()


@app.command()
def convert(
    file: Annotated[Path, typer.Argument(help="Markdown file to convert")],
    no_open: Annotated[bool, typer.Option("--no-open", help="Don't launch the browser")] = False,
) -> None:
    """Convert one Markdown file into the scratch dump directory and open it."""
    cfg = _get_config()
    stylesheet = Path(cfg.css_file) if cfg.css_file else None
    try:
        check_dependencies(cfg, open_browser=not no_open)
        worker = ConversionWorker(PandocRenderer(cfg.renderer), stylesheet=stylesheet)
        html = convert_single_file(file, Path(cfg.dump_dir), worker)
    except WikiMirrorError as e:
        _fail(e)

    rprint(f"[green]Converted:[/green] {html}")
    if not no_open:
        _open(html, cfg)


@config_app.command("show")
def config_show() -> None:
    """Show current resolved configuration."""
    cfg = _get_config()
    rprint(Syntax(yaml.safe_dump(cfg.model_dump(mode="json"), default_flow_style=False), "yaml"))


@config_app.command("init")
def config_init(
    force: bool = typer.Option(False, "--force", help="Overwrite existing config"),
) -> None:
    """Create default wikimirror.yaml in current directory."""
    target = Path("wikimirror.yaml")
    if target.exists() and not force:
        rprint("[yellow]wikimirror.yaml already exists.[/yellow] Use --force to overwrite.")
        raise typer.Exit(int(ExitCode.FAILURE))
    target.write_text(DEFAULT_CONFIG_TEMPLATE)
    rprint(f"[green]Created[/green] {target}")


if __name__ == "__main__":
    app()
