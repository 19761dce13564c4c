"""CLI entry point."""

from __future__ import annotations

import asyncio
import logging

import rich_click as click
from dotenv import load_dotenv

from switchboard.core.logging_config import configure_logging, set_level
from switchboard.frontends.cli.output import error_exit, output_json
from switchboard.gateway.errors import GatewayError

logger = logging.getLogger(__name__)

# Configure rich-click styling
click.rich_click.USE_RICH_MARKUP = True
click.rich_click.USE_MARKDOWN = True
click.rich_click.SHOW_ARGUMENTS = True
click.rich_click.GROUP_ARGUMENTS_OPTIONS = True
click.rich_click.STYLE_ERRORS_SUGGESTION = "magenta italic"
click.rich_click.ERRORS_SUGGESTION = "Try running '--help' for more information."
click.rich_click.ERRORS_EPILOGUE = ""
click.rich_click.MAX_WIDTH = 100


@click.group()
@click.version_option(package_name="switchboard")
def cli():
    """Switchboard - request translation gateway.

    Accepts chat requests with structured content blocks and named tool
    declarations, and forwards them to a function-calling backend.

    **Commands:**

        switchboard serve        Run the gateway

        switchboard translate    Translate one request body offline

        switchboard sanitize     Sanitize an already-translated payload
    """
    pass


@cli.command()
@click.option("--host", default=None, help="Host to bind to (or SWITCHBOARD_HOST)")
@click.option("--port", "-p", type=int, default=None, help="Port to listen on (or PORT, default 80)")
@click.option(
    "--backend-url",
    "-b",
    default=None,
    help="Backend chat completions URL (or SWITCHBOARD_BACKEND_URL)",
)
@click.option(
    "--config",
    "-c",
    "config_file",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help="YAML config file (or SWITCHBOARD_CONFIG)",
)
@click.option(
    "--env-file",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help="Load environment variables from a .env file",
)
@click.option("--debug-dir", default=None, help="Save per-request debug JSON files here")
@click.option(
    "--strict-blocks",
    is_flag=True,
    help="Reject messages with more than one content block",
)
@click.option("--log-level", default=None, help="Log level (or SWITCHBOARD_LOG_LEVEL)")
@click.option(
    "--log-format",
    type=click.Choice(["text", "json"]),
    default=None,
    help="Log output format (or SWITCHBOARD_LOG_FORMAT)",
)
def serve(
    host: str | None,
    port: int | None,
    backend_url: str | None,
    config_file: str | None,
    env_file: str | None,
    debug_dir: str | None,
    strict_blocks: bool,
    log_level: str | None,
    log_format: str | None,
):
    """Run the translation gateway.

    Requests to the chat completions route are translated and forwarded
    to the backend; the backend's response is relayed unmodified.

    **Examples:**

        switchboard serve --port 8080

        switchboard serve -b http://gpu-box:8000/v1/chat/completions

        switchboard serve --env-file .env --debug-dir /tmp/switchboard
    """
    from switchboard.compose import create_translation_proxy

    if env_file:
        load_dotenv(env_file)

    try:
        configure_logging(level=log_level, format=log_format)  # type: ignore[arg-type]
    except ValueError as e:
        error_exit(str(e))
    if logging.getLogger().level > logging.DEBUG:
        set_level("WARNING", "aiohttp.access")

    try:
        asyncio.run(
            create_translation_proxy(
                host=host,
                port=port,
                backend_url=backend_url,
                debug_dir=debug_dir,
                reject_multi_block=strict_blocks or None,
                config_file=config_file,
            )
        )
    except KeyboardInterrupt:
        logger.info("Interrupted, shutting down")
    except (OSError, ValueError, TypeError) as e:
        error_exit(str(e))


@cli.command()
@click.argument("file", type=click.File("r"), default="-")
@click.option(
    "--strict-blocks",
    is_flag=True,
    help="Reject messages with more than one content block",
)
@click.option("--compact", is_flag=True, help="Print the payload on one line")
def translate(file, strict_blocks: bool, compact: bool):
    """Translate a request body without forwarding it.

    Reads a source-format JSON body from FILE (or stdin) and prints the
    sanitized payload that would be sent to the backend.

    **Examples:**

        switchboard translate request.json

        cat request.json | switchboard translate --compact
    """
    from switchboard.gateway.transforms import (
        TranslationOptions,
        parse_body,
        translate_request,
    )

    try:
        body = parse_body(file.read())
        result = translate_request(
            body, options=TranslationOptions(reject_multi_block=strict_blocks)
        )
    except GatewayError as e:
        error_exit(e.message)

    output_json(result.payload, indent=None if compact else 2)


@cli.command()
@click.argument("file", type=click.File("r"), default="-")
@click.option("--compact", is_flag=True, help="Print the payload on one line")
def sanitize(file, compact: bool):
    """Run only the type-sanitation pass over a target payload.

    Reads an already-translated JSON payload from FILE (or stdin), rewrites
    any leftover tool_use/tool_result markers to placeholder text and
    prints the result. A summary of rewrites goes to stderr.

    **Examples:**

        switchboard sanitize captured/2_target_request.json
    """
    from switchboard.gateway.transforms import TypeSanitizer

    try:
        payload, report = TypeSanitizer().sanitize_text(file.read())
    except GatewayError as e:
        error_exit(e.message)

    output_json(payload, indent=None if compact else 2)
    if report.total:
        click.echo(
            f"Rewrote {report.total} marker(s): {', '.join(report.paths)}",
            err=True,
        )


def main() -> None:
    """Main entry point for the CLI."""
    cli()


if __name__ == "__main__":
    main()
