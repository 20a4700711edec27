"""Main CLI entry point for openapi-transformer."""

import logging
import sys
from pathlib import Path
from typing import NoReturn

import click
import typer
from rich.console import Console
from rich.markup import escape
from typer.core import TyperCommand

from openapi_transformer.config import TransformerConfig, read_config
from openapi_transformer.core.loader import STDIN_NAME, read_document
from openapi_transformer.core.writer import write_document
from openapi_transformer.errors import DocumentError, TransformerError
from openapi_transformer.logs import setup_logging, verbosity_to_level
from openapi_transformer.pipeline.assembler import assemble, cli_references, config_position
from openapi_transformer.pipeline.executor import run_pipeline
from openapi_transformer.version import __version__

logger = logging.getLogger(__name__)

FLAG_ORDER_KEY = "openapi_transformer.flag_order"

app = typer.Typer(
    name="openapi-transformer",
    help="Transform an OpenAPI document.",
    add_completion=False,
    context_settings={"help_option_names": ["-h", "--help"]},
)
err_console = Console(stderr=True)


class FlagOrderCommand(TyperCommand):
    """Command that records the order in which options appeared on the command line.

    Click merges repeated options into one value per parameter, which loses
    the relative position of ``--transformer`` and ``--config``. The parser
    itself reports one entry per occurrence, which is kept in ``ctx.meta``.
    """

    def parse_args(self, ctx: click.Context, args: list[str]) -> list[str]:
        parser = self.make_parser(ctx)
        _, _, order = parser.parse_args(args=list(args))
        ctx.meta[FLAG_ORDER_KEY] = [param.name for param in order]
        return super().parse_args(ctx, args)


def _stdin_is_tty() -> bool:
    return sys.stdin.isatty()


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(__version__)
        raise typer.Exit()


def _fail(error: Exception) -> NoReturn:
    err_console.print(f"[bold red]Error:[/bold red] {escape(str(error))}", soft_wrap=True)
    logger.debug("Traceback for the error above", exc_info=error)
    raise typer.Exit(1)


@app.command(cls=FlagOrderCommand)
def transform(
    ctx: typer.Context,
    openapi_file: str = typer.Argument(
        None,
        help="OpenAPI document to transform, as JSON or YAML ('-' for stdin)",
        show_default=False,
    ),
    transformer: list[str] = typer.Option(
        None,
        "--transformer",
        "-t",
        metavar="MODULE",
        help="Transformer module to apply (repeatable)",
    ),
    config: str = typer.Option(
        None,
        "--config",
        "-c",
        metavar="FILE",
        help="JSON configuration file ('-' for stdin)",
    ),
    verbose: int = typer.Option(0, "--verbose", "-v", count=True, help="Print more output"),
    quiet: int = typer.Option(0, "--quiet", "-q", count=True, help="Print less output"),
    version: bool = typer.Option(
        False,
        "--version",
        "-V",
        callback=_version_callback,
        is_eager=True,
        help="Output the version number",
    ),
) -> None:
    """Transform an OpenAPI document.

    Reads the document, applies each transformer in the order given, and
    writes the result to stdout as JSON. Transformers from a configuration
    file are applied at the position of the --config option.
    """
    setup_logging(verbosity_to_level(verbose, quiet), err_console)

    if openapi_file is None:
        if _stdin_is_tty():
            err_console.print(
                "Warning: No filename given.  Will read from stdin...", soft_wrap=True
            )
        openapi_file = STDIN_NAME

    if config == STDIN_NAME and openapi_file == STDIN_NAME:
        raise typer.BadParameter(
            "cannot read both the configuration and the OpenAPI document from stdin",
            param_hint="'--config'",
        )

    try:
        position = config_position(ctx.meta.get(FLAG_ORDER_KEY, []))
        file_config: TransformerConfig | None = None
        origin: Path | None = None
        if config is not None:
            # Configuration is consumed before the document
            file_config, origin = read_config(config, sys.stdin)

        document = read_document(openapi_file, sys.stdin)
        references = assemble(cli_references(transformer or []), file_config, origin, position)
        logger.info("Applying %d transformer(s)", len(references))
        result = run_pipeline(references, document, cwd=Path.cwd())
    except (TransformerError, DocumentError) as e:
        _fail(e)

    try:
        write_document(result, sys.stdout)
    except (TypeError, ValueError) as e:
        _fail(DocumentError(f"Cannot serialize transformed document: {e}"))


if __name__ == "__main__":
    app()
