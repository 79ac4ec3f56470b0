"""rlm CLI -- pipe text in, get the model's answer out.

Reads the user message from stdin, resolves the optional system prompt
and tool, runs the exchange, and prints the final content to stdout
with no trailing newline. Any failure prints a diagnostic to stderr and
exits 1 with nothing on stdout.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import click

from rlm._version import __version__
from rlm.cli.formatting import format_error, format_payload, get_error_console
from rlm.inputs import (
    default_config_dir,
    read_api_key,
    read_user_message,
    resolve_system_message,
)
from rlm.llm.client import OpenRouterClient
from rlm.orchestrator import (
    DEFAULT_CHARACTER_LIMIT,
    DEFAULT_MODEL,
    Orchestrator,
    OrchestratorConfig,
)
from rlm.toolkit.gateway import ToolGateway

logger = logging.getLogger(__name__)

LICENSE_TEXT = "GNU LGPLv3+"


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        stream=sys.stderr,
        format="%(levelname)s %(name)s: %(message)s",
    )
    logging.getLogger("rlm").setLevel(logging.DEBUG if verbose else logging.WARNING)


@click.command()
@click.option("-m", "--model", default=DEFAULT_MODEL, envvar="RLM_MODEL", show_default=True, help="AI model to use.")
@click.option(
    "-c",
    "--character-limit",
    "--character_limit",
    "character_limit",
    default=DEFAULT_CHARACTER_LIMIT,
    type=click.IntRange(min=0),
    show_default=True,
    help="Maximum total characters of message content.",
)
@click.option("-s", "--system", default=None, help="System prompt: a prompt name, a file path, or literal text.")
@click.option(
    "-t",
    "--tool",
    "tool_dir",
    default=None,
    type=click.Path(file_okay=False, path_type=Path),
    help="Directory of the tool to make available for function calling.",
)
@click.option(
    "--config-dir",
    default=None,
    envvar="RLM_CONFIG_DIR",
    type=click.Path(file_okay=False, path_type=Path),
    help="Configuration directory (default: ~/.config/rapidllm).",
)
@click.option("--license", "show_license", is_flag=True, help="Print the license and exit.")
@click.option("--raw-request", is_flag=True, help="Print each request payload and tool result to stderr.")
@click.option("--verbose", is_flag=True, help="Log progress to stderr.")
@click.version_option(__version__, prog_name="rlm")
def cli(
    model: str,
    character_limit: int,
    system: str | None,
    tool_dir: Path | None,
    config_dir: Path | None,
    show_license: bool,
    raw_request: bool,
    verbose: bool,
) -> None:
    """rapidllm core command."""
    if show_license:
        click.echo(LICENSE_TEXT)
        return

    _configure_logging(verbose)
    console = get_error_console()
    logger.debug("rlm started")

    try:
        if config_dir is None:
            config_dir = default_config_dir()

        api_key = read_api_key(config_dir)
        gateway = ToolGateway(tool_dir)

        user_message = read_user_message(click.get_binary_stream("stdin"))
        logger.debug(
            "Read user message:\n\n```\n%s\n```\n\n...of size %d",
            user_message,
            len(user_message),
        )

        system_message = None
        if system is not None:
            system_message = resolve_system_message(system, config_dir)
            logger.debug(
                "Read system message:\n\n```\n%s\n```\n\n...of size %d",
                system_message,
                len(system_message),
            )

        config = OrchestratorConfig(model=model, character_limit=character_limit)
        if raw_request:
            config.on_request = lambda payload: format_payload(payload, console)
            config.on_tool_result = lambda output: format_payload(output, console)

        with OpenRouterClient(api_key) as client:
            result = Orchestrator(client, gateway, config).run(user_message, system_message)
    except SystemExit:
        raise
    except Exception as e:
        logger.debug("Exchange failed", exc_info=True)
        format_error(str(e), console)
        raise SystemExit(1) from None

    click.echo(result.content, nl=False)


def main() -> None:
    """Console script entry point."""
    cli()
