"""Command line interface.

Usage:
    claude-export process export.zip -o ./output -d ./data
    claude-export status
    python -m claude_export ...
"""

import logging
import signal
import sys
import traceback
from pathlib import Path
from types import FrameType

import click

from claude_export import __version__
from claude_export.config import Config, load_config
from claude_export.logging import get_logger, setup_logging
from claude_export.models import parse_timestamp
from claude_export.pipeline import Pipeline, request_shutdown
from claude_export.render.files import format_file_size
from claude_export.render.markdown import DISPLAY_FORMAT, format_timestamp
from claude_export.status import collect_status

logger = get_logger("cli")


def signal_handler(signum: int, frame: FrameType | None) -> None:
    """Stop the pipeline before its next stage."""
    sig_name = signal.Signals(signum).name
    logger.info("Received signal %s, stopping after current stage", sig_name)
    request_shutdown()


def resolve_config(
    config_path: Path | None,
    output: Path | None,
    database: Path | None,
    verbose: bool,
) -> Config:
    """Load the YAML config and apply command line overrides."""
    config = load_config(config_path)
    if output is not None:
        config.paths.output_dir = output
    if database is not None:
        config.paths.database_dir = database
    config.verbose = config.verbose or verbose
    return config


def report_error(error: Exception, verbose: bool) -> None:
    click.echo(f"\033[31mError:\033[0m {error}", err=True)
    if verbose:
        click.echo("".join(traceback.format_exception(error)), err=True)


@click.group()
@click.version_option(__version__, prog_name="claude-export")
def cli() -> None:
    """Process Claude AI chat exports and generate markdown files."""


@cli.command()
@click.argument("zip_file", type=click.Path(path_type=Path))
@click.option("--output", "-o", type=click.Path(path_type=Path), help="Output directory for markdown files")
@click.option("--database", "-d", type=click.Path(path_type=Path), help="Directory for database storage")
@click.option("--incremental", "-i", is_flag=True, help="Only process new conversations")
@click.option("--force", is_flag=True, help="Force reprocessing of previously processed conversations")
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation prompts")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging")
@click.option("--config", "-c", "config_path", type=click.Path(path_type=Path), help="Path to config.yaml")
def process(
    zip_file: Path,
    output: Path | None,
    database: Path | None,
    incremental: bool,
    force: bool,
    yes: bool,
    verbose: bool,
    config_path: Path | None,
) -> None:
    """Process a Claude AI export zip file."""
    config = resolve_config(config_path, output, database, verbose)
    config.processing.incremental = config.processing.incremental or incremental
    config.processing.force = config.processing.force or force

    if not yes:
        click.echo("\033[36mClaude AI Chat Export Processor\033[0m")
        click.echo("-" * 32)
        click.echo(f"Processing: {zip_file}")
        click.echo(f"Output directory: {config.paths.output_dir}")
        click.echo(f"Database directory: {config.paths.database_dir}")
        click.echo(f"Mode: {'Incremental' if config.processing.incremental else 'Full'}")
        if not click.confirm("Continue with these settings?", default=True):
            click.echo("Process cancelled.")
            sys.exit(0)

    setup_logging(
        "process",
        log_dir=config.paths.log_dir,
        level=logging.DEBUG if config.verbose else logging.INFO,
    )

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    try:
        result = Pipeline(config, zip_file).run()
    except Exception as e:
        report_error(e, config.verbose)
        sys.exit(1)

    click.echo(
        f"Users: {result.users} | Projects: {result.projects} | "
        f"Conversations stored: {result.conversations_processed} "
        f"(skipped {result.conversations_skipped}, invalid {result.conversations_invalid})"
    )
    click.echo(
        f"Markdown files: {result.documents_generated} generated, "
        f"{result.documents_skipped} skipped, {result.documents_failed} failed"
    )
    click.echo("\033[32mProcess completed successfully.\033[0m")


@cli.command()
@click.option("--database", "-d", type=click.Path(path_type=Path), help="Directory for database storage")
@click.option("--output", "-o", type=click.Path(path_type=Path), help="Output directory for markdown files")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging")
@click.option("--config", "-c", "config_path", type=click.Path(path_type=Path), help="Path to config.yaml")
def status(database: Path | None, output: Path | None, verbose: bool, config_path: Path | None) -> None:
    """Check the status of the database and generated files."""
    config = resolve_config(config_path, output, database, verbose)

    click.echo("\033[36mClaude AI Chat Export Processor - Status\033[0m")
    click.echo("-" * 42)

    try:
        report = collect_status(config.paths.database_dir, config.paths.output_dir)
    except Exception as e:
        report_error(e, config.verbose)
        sys.exit(1)

    if not report.database_exists:
        click.echo("\033[33mDatabase directory does not exist yet.\033[0m")
        click.echo("Run the process command to create it.")
        return

    last_processed = parse_timestamp(report.meta.get("lastProcessed"))
    click.echo(f"\033[1mDatabase Directory:\033[0m {report.database_dir}")
    click.echo(f"\033[1mOutput Directory:\033[0m {report.output_dir}")
    click.echo(
        "\033[1mLast Processed:\033[0m "
        f"{last_processed.strftime(DISPLAY_FORMAT) if last_processed else 'Never'}"
    )
    click.echo(f"\033[1mDatabase Version:\033[0m {report.meta.get('version') or 'Unknown'}")
    click.echo("")

    click.echo("\033[36mStatistics:\033[0m")
    click.echo(f"\033[1mUsers:\033[0m {report.users}")
    click.echo(f"\033[1mProjects:\033[0m {report.projects}")
    click.echo(f"\033[1mConversations:\033[0m {report.conversations}")
    click.echo(f"\033[1mProcessed Conversations:\033[0m {report.processed}")
    click.echo(f"\033[1mUnprocessed Conversations:\033[0m {report.unprocessed}")
    click.echo(f"\033[1mMarkdown Files:\033[0m {report.markdown_files}")
    click.echo(f"\033[1mTotal Markdown Size:\033[0m {format_file_size(report.markdown_bytes)}")

    recent = report.most_recent
    if recent:
        click.echo("")
        click.echo("\033[36mMost Recent Conversation:\033[0m")
        click.echo(f"\033[1mName:\033[0m {recent.get('name') or '[Unnamed]'}")
        click.echo(f"\033[1mUUID:\033[0m {recent.get('uuid')}")
        click.echo(f"\033[1mCreated:\033[0m {format_timestamp(recent.get('created_at'))}")
        click.echo(f"\033[1mUpdated:\033[0m {format_timestamp(recent.get('updated_at'))}")
        click.echo(f"\033[1mMessages:\033[0m {len(recent.get('chat_messages') or [])}")
        click.echo(f"\033[1mProcessed:\033[0m {'Yes' if recent.get('processed') else 'No'}")
        if recent.get("processed") and recent.get("markdownPath"):
            click.echo(f"\033[1mMarkdown Path:\033[0m {recent['markdownPath']}")


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
