"""
Command-line interface for pagesmith using Click.
"""

import sys
from typing import Optional

import click

from .app_logger import set_default_logger
from .logging_config import (
    FORMAT_NAMES,
    ConfigurableAppLogger,
    HandlerConfig,
    LogFormat,
    LoggingConfig,
    LogHandler,
    VerbosityLevel,
    create_logger_from_env,
)
from .site_builder import SiteBuilder

USAGE = "Usage: pagesmith [run/generate/clean]"
HELP_PAGE = """pagesmith
Usage: pagesmith [run/generate/clean]

Commands:
    run      - Build all files and listen for changes
    generate - Build all files and exit
    clean    - Clean previously built HTML files"""

COMMANDS = ("run", "generate", "clean")


def _configure_logging(
    verbose: int,
    quiet: bool,
    log_level: Optional[str],
    log_format: Optional[str],
    log_file: Optional[str],
) -> None:
    """Configure logging from CLI options, or from the environment if none were given."""
    if not (verbose or quiet or log_level or log_format or log_file):
        set_default_logger(create_logger_from_env())
        return

    if quiet:
        verbosity = VerbosityLevel.QUIET
    elif verbose == 1:
        verbosity = VerbosityLevel.VERBOSE
    elif verbose >= 2:
        verbosity = VerbosityLevel.VERY_VERBOSE
    else:
        verbosity = VerbosityLevel.NORMAL

    config = LoggingConfig(verbosity=verbosity)

    if log_level:
        config.global_level = log_level.upper()

    config.global_format = FORMAT_NAMES.get(
        (log_format or "simple").lower(), LogFormat.SIMPLE
    )

    if log_file:
        config.handlers = [
            HandlerConfig(type=LogHandler.CONSOLE),
            HandlerConfig(type=LogHandler.ROTATING_FILE, filename=log_file),
        ]

    set_default_logger(ConfigurableAppLogger(config))


def version_callback(ctx, _, value):
    """Print the version and exit."""
    if not value or ctx.resilient_parsing:
        return
    from . import __version__

    click.echo(f"pagesmith version {__version__}")
    ctx.exit()


@click.command()
@click.argument("command", required=False, metavar="[run|generate|clean]")
@click.option(
    "--verbose",
    "-v",
    count=True,
    help="Increase verbosity (use -v, -vv for more verbose)",
)
@click.option(
    "--quiet", "-q", is_flag=True, help="Reduce output to warnings and errors only"
)
@click.option(
    "--log-level",
    type=click.Choice(
        ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"], case_sensitive=False
    ),
    help="Set explicit log level (overrides verbose/quiet)",
)
@click.option(
    "--log-format",
    type=click.Choice(["json", "simple", "detailed"], case_sensitive=False),
    help="Log output format",
)
@click.option(
    "--json",
    "json_format",
    is_flag=True,
    help="Use JSON log format (alias for --log-format json)",
)
@click.option(
    "--log-file", type=click.Path(), help="Write logs to file (in addition to console)"
)
@click.option(
    "--version",
    is_flag=True,
    expose_value=False,
    is_eager=True,
    callback=version_callback,
    help="Show version and exit",
)
@click.help_option("--help", "-h")
def main(
    command: Optional[str],
    verbose: int,
    quiet: bool,
    log_level: Optional[str],
    log_format: Optional[str],
    log_file: Optional[str],
    json_format: bool,
) -> None:
    """
    Build a static site from the markdown pages in ./pages.

    Each page is rendered into ./template.html at the "{{ post }}" marker and
    written to ./out as a lowercase, hyphenated .html file.

    Examples:

        pagesmith generate

        pagesmith run --verbose

        pagesmith clean
    """
    if command is None:
        click.echo(USAGE)
        return

    if command not in COMMANDS:
        click.echo(f'Command "{command}" not found')
        click.echo(HELP_PAGE)
        return

    if json_format:
        log_format = "json"

    _configure_logging(verbose, quiet, log_level, log_format, log_file)

    try:
        builder = SiteBuilder()
        sys.exit(getattr(builder, command)())

    except KeyboardInterrupt:
        if verbose:
            click.echo("\nReceived interrupt signal, shutting down...")
        sys.exit(0)
    except Exception as e:
        click.echo(f"Error: {e}", err=True)
        if verbose:
            import traceback

            click.echo(traceback.format_exc(), err=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
