"""
Prints the classified lines and styled tokens of a Markdown file.
Text output shows one line per classified line; JSON output mirrors `ParseResult.to_dict`.
"""

from __future__ import annotations

import json
import logging

import click
from .config import ConfigError, build_config, feature_names
from .filesystem import normalize_filepath
from .logger import ROOT_LOGGER_NAME, get_logger
from .models import ClassifiedLine, ParseResult, Token
from .parser import ParseFileError, parse_file

__all__ = ["cli"]

LOG_FORMAT = "%(levelname)s %(name)s: %(message)s"


def format_token(token: Token) -> str:
    """Render a token as its quoted text followed by its styles and metadata.

    Examples:
        format_token(Token("text", (CharacterStyle.LINK,), ("http://x",)))
        # '"text"{link}<http://x>'
    """
    rendered = json.dumps(token.text, ensure_ascii=False)
    if token.styles:
        rendered += "{" + ",".join(style.name.lower() for style in token.styles) + "}"
    if token.metadata:
        rendered += "<" + ",".join(token.metadata) + ">"
    return rendered


def format_line(line: ClassifiedLine) -> str:
    tokens = " ".join(format_token(token) for token in line.tokens)
    return f"{line.style.name.lower()}[{line.indent_depth}] {tokens}"


def format_text(result: ParseResult) -> str:
    output = []
    if result.front_matter:
        output.append("---")
        output.extend(f"{key}: {value}" for key, value in result.front_matter.items())
        output.append("---")
    output.extend(format_line(line) for line in result.lines)
    return "\n".join(output)


def _configure_logging(verbose: bool):
    if not verbose:
        return
    logging.basicConfig(format=LOG_FORMAT)
    get_logger(ROOT_LOGGER_NAME).setLevel(logging.DEBUG)


@click.command()
@click.version_option()
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["text", "json"]),
    default="text",
    show_default=True,
    help="Output format",
)
@click.option(
    "--disable",
    multiple=True,
    type=click.Choice(feature_names()),
    help="Feature to switch off (repeatable)",
)
@click.option("--no-front-matter", is_flag=True, help="Keep a leading --- block as text")
@click.option("--verbose", "-v", is_flag=True, help="Log rule matches to stderr")
@click.argument("filepath", type=click.Path(exists=True, dir_okay=False))
def cli(
    filepath: str,
    output_format: str = "text",
    disable: tuple[str, ...] = (),
    no_front_matter: bool = False,
    verbose: bool = False,
):
    """
    Entry point for printing the styled structure of a Markdown file.

    Args:
        filepath: Path to the Markdown file to process.
        output_format: `text` for one line per classified line, `json` for the
            full parse result.
        disable: Feature names to switch off on top of the configuration file.
        no_front_matter: Treat a leading ``---`` block as ordinary text.
        verbose: Emit debug logging for line passes and rule matches.

    Returns:
        None.

    Raises:
        click.BadParameter: If the path is not a Markdown file or the
            configuration is invalid.
        click.ClickException: If the file cannot be read, decoded, or exceeds
            the size limit.

    Examples:
        markdown-styler README.md --disable mention --format json
    """
    _configure_logging(verbose)

    try:
        filepath = normalize_filepath(filepath)
    except ValueError as error:
        raise click.BadParameter(str(error)) from error

    try:
        config = build_config(
            filepath.parent,
            disable=disable,
            enable_front_matter=False if no_front_matter else None,
        )
    except ConfigError as error:
        raise click.BadParameter(str(error)) from error

    try:
        result = parse_file(filepath, config)
    except ParseFileError as error:
        raise click.ClickException(str(error)) from error

    if output_format == "json":
        click.echo(json.dumps(result.to_dict(), indent=2, ensure_ascii=False))
    else:
        click.echo(format_text(result))


if __name__ == "__main__":
    cli()
