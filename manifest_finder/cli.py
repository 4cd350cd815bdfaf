"""Entrypoint for the command line interface."""

import asyncio

import orjson
import typer

from manifest_finder.configs.app_configs.config_logging import configure_logging
from manifest_finder.finder.fetcher import FetchClient
from manifest_finder.finder.models import DetectionMode, ManifestResult
from manifest_finder.finder.pipeline import ManifestFinder
from manifest_finder.finder.resolver import validate_target_url

cli = typer.Typer(no_args_is_help=True, add_completion=False)

# CLI Options
include_all_option = typer.Option(
    False,
    "--all",
    help="Also fetch every other manifest the page links to",
)

verbose_option = typer.Option(
    False,
    "--verbose",
    help="Report errors with their full cause chain",
)


def _validate_url(url: str) -> str:
    try:
        return validate_target_url(url)
    except ValueError as e:
        raise typer.BadParameter(str(e))


async def _detect(url: str, mode: DetectionMode, verbose: bool) -> ManifestResult:
    async with FetchClient() as fetch_client:
        return await ManifestFinder(fetch_client=fetch_client).run(url, mode, verbose)


@cli.callback()
def setup():
    """CLI Entrypoint"""
    configure_logging()


@cli.command()
def detect(
    url: str = typer.Argument(..., callback=_validate_url, help="Absolute URL of the page"),
    include_all: bool = include_all_option,
    verbose: bool = verbose_option,
):
    """Detect, download and score the web app manifest of a page and print the result
    as JSON.
    """
    mode = DetectionMode.ALL if include_all else DetectionMode.FIRST
    result = asyncio.run(_detect(url, mode, verbose))
    content = result.model_dump(mode="json", by_alias=True)
    typer.echo(orjson.dumps(content, option=orjson.OPT_INDENT_2).decode())


if __name__ == "__main__":
    cli()
