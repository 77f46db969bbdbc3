from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

import anyio
import msgspec
import typer

from . import __version__
from .client import BotClient
from .config import ConfigError
from .errors import ApiResult, TelepollError
from .logging import setup_logging
from .loop import poll_updates
from .poller import PollerRegistry
from .settings import TelepollSettings, load_settings
from .transport import HttpTransport

app = typer.Typer(add_completion=False, no_args_is_help=True)


@dataclass(slots=True)
class _CliState:
    config_path: Path | None = None
    token: str | None = None
    endpoint: str | None = None


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(__version__)
        raise typer.Exit()


@app.callback()
def main_callback(
    ctx: typer.Context,
    config: Optional[Path] = typer.Option(
        None, "--config", "-c", help="Path to telepoll.toml."
    ),
    token: Optional[str] = typer.Option(
        None, "--token", help="Bot token (overrides config and environment)."
    ),
    endpoint: Optional[str] = typer.Option(
        None, "--endpoint", help="Bot API base URL."
    ),
    debug: bool = typer.Option(
        False, "--debug/--no-debug", help="Log every Bot API request."
    ),
    version: bool = typer.Option(
        False,
        "--version",
        help="Show the version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    _ = version
    setup_logging(debug=debug)
    ctx.obj = _CliState(config_path=config, token=token, endpoint=endpoint)


def _load(ctx: typer.Context) -> TelepollSettings:
    state: _CliState = ctx.obj
    overrides: dict[str, Any] = {}
    if state.token is not None:
        overrides["bot_token"] = state.token
    if state.endpoint is not None:
        overrides["endpoint"] = state.endpoint
    try:
        settings, _ = load_settings(state.config_path, **overrides)
    except ConfigError as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(code=1) from None
    return settings


def _build_client(settings: TelepollSettings) -> tuple[BotClient, PollerRegistry]:
    registry = PollerRegistry(
        transport=HttpTransport(timeout_s=settings.request_timeout),
        read_margin_s=settings.read_margin,
    )
    return BotClient(settings.bot_token, settings.endpoint, registry=registry), registry


def _echo_json(value: Any) -> None:
    typer.echo(msgspec.json.encode(value).decode("utf-8"))


def _unwrap(result: ApiResult[Any]) -> Any:
    if result.error is not None:
        typer.echo(str(result.error), err=True)
        raise typer.Exit(code=1)
    return result.value


@app.command()
def me(ctx: typer.Context) -> None:
    """Print the bot's own user record."""
    settings = _load(ctx)
    bot, registry = _build_client(settings)
    try:
        _echo_json(_unwrap(bot.get_me()))
    except TelepollError as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(code=1) from None
    finally:
        registry.close()


@app.command()
def send(
    ctx: typer.Context,
    chat_id: str = typer.Argument(..., help="Chat id or @channel username."),
    text: str = typer.Argument(..., help="Message text."),
    reply_to: int = typer.Option(0, "--reply-to", help="Message id to reply to."),
    parse_mode: Optional[str] = typer.Option(None, "--parse-mode"),
    silent: bool = typer.Option(False, "--silent", help="Disable notification."),
) -> None:
    """Send a text message."""
    settings = _load(ctx)
    bot, registry = _build_client(settings)
    target: int | str = int(chat_id) if chat_id.lstrip("-").isdigit() else chat_id
    try:
        message = _unwrap(
            bot.send_message(
                target,
                text,
                parse_mode=parse_mode,
                reply_to_message_id=reply_to,
                disable_notification=silent,
            )
        )
    except TelepollError as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(code=1) from None
    finally:
        registry.close()
    _echo_json(message)


@app.command()
def poll(
    ctx: typer.Context,
    timeout: Optional[int] = typer.Option(
        None, "--timeout", min=0, help="Long-poll timeout in seconds."
    ),
    limit: Optional[int] = typer.Option(
        None, "--limit", min=0, help="Updates per request (1-100)."
    ),
    once: bool = typer.Option(False, "--once", help="Poll a single batch and exit."),
) -> None:
    """Print incoming updates as JSON lines."""
    settings = _load(ctx)
    bot, registry = _build_client(settings)
    poll_timeout = settings.poll_timeout if timeout is None else timeout
    poll_limit = settings.poll_limit if limit is None else limit
    try:
        if once:
            for update in bot.get_updates(poll_timeout, poll_limit):
                _echo_json(update)
            error = bot.last_poll_error
            if error is not None:
                typer.echo(str(error), err=True)
                raise typer.Exit(code=1)
            return

        async def run() -> None:
            async for update in poll_updates(
                bot, timeout=poll_timeout, limit=poll_limit
            ):
                _echo_json(update)

        anyio.run(run)
    except TelepollError as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(code=1) from None
    finally:
        registry.close()


def main() -> None:
    app()


if __name__ == "__main__":
    main()
