"""transopen CLI: concatenate and inspect possibly-gzipped sources."""

import sys

import click
from loguru import logger
from pydantic import ValidationError
from requests import RequestException

from . import __version__
from .config import load_settings
from .decompress import CHUNK_SIZE
from .errors import TransopenError
from .probe import has_program
from .reader import ropen
from .writer import wopen


def _configure_logging(level: str) -> None:
    logger.remove()
    logger.add(
        sys.stderr,
        format="{time:HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}",
        level=level,
    )
    logger.enable("transopen")


class TransopenContext:
    def __init__(self):
        self.settings = None


pass_context = click.make_pass_decorator(TransopenContext, ensure=True)


@click.group()
@click.version_option(__version__, prog_name="transopen")
@click.option("-v", "--verbose", is_flag=True, help="Log debug messages to stderr")
@click.pass_context
def cli(ctx, verbose):
    """transopen - read and write files, URLs and pipes, gzip or not."""
    ctx.ensure_object(TransopenContext)
    try:
        settings = load_settings()
    except ValidationError as e:
        click.echo(f"Error: Invalid TRANSOPEN_* setting: {e}", err=True)
        sys.exit(1)
    ctx.obj.settings = settings
    _configure_logging("DEBUG" if verbose else settings.log_level)


@cli.command()
@click.argument("sources", nargs=-1)
@click.option(
    "-o",
    "--output",
    default="-",
    show_default=True,
    help="Destination; a name ending in .gz is compressed",
)
@pass_context
def cat(ctx, sources, output):
    """Concatenate SOURCES (default: stdin) into OUTPUT.

    SOURCES may be paths, http(s) URLs, '|command arg' pipes or '-'.
    """
    settings = ctx.settings
    try:
        wtr = wopen(output, settings)
    except (TransopenError, OSError) as e:
        click.echo(f"Error: Cannot open output: {e}", err=True)
        sys.exit(1)

    try:
        for source in sources or ("-",):
            rdr = ropen(source, settings)
            try:
                while True:
                    chunk = rdr.read(CHUNK_SIZE)
                    if not chunk:
                        break
                    wtr.write(chunk)
            finally:
                rdr.close()
    except (TransopenError, OSError, EOFError, RequestException) as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
    finally:
        wtr.close()


@cli.command()
@click.argument("sources", nargs=-1, required=True)
@pass_context
def sniff(ctx, sources):
    """Report whether each source is gzip or plain."""
    settings = ctx.settings.model_copy(update={"use_zcat": False})
    failed = False
    for source in sources:
        try:
            rdr = ropen(source, settings)
        except (TransopenError, OSError, RequestException) as e:
            click.echo(f"Error: {source}: {e}", err=True)
            failed = True
            continue
        try:
            kind = "gzip" if rdr.compressed else "plain"
        finally:
            rdr.close()
        click.echo(f"{source}\t{kind}")
    if failed:
        sys.exit(1)


@cli.command()
@pass_context
def probe(ctx):
    """Report whether the external gzip decoder is available."""
    program = ctx.settings.zcat_program
    if has_program(program):
        click.echo(f"{program}: available")
    else:
        click.echo(f"{program}: not found")


def main():
    """Entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
