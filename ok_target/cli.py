"""Command line entrypoint: `ok-target` / `python -m ok_target`."""

from __future__ import annotations

import typer

from ok_target.config import LogLevel
from ok_target.config import settings as env_settings
from ok_target.server import ListenerBindError, serve

app = typer.Typer(add_completion=False, help="HTTP load target that answers 200 OK to everything.")


@app.command()
def run(
    host: str | None = typer.Option(None, help=f"Bind address [env OK_TARGET_HOST, default {env_settings.host}]"),
    port: int | None = typer.Option(None, min=0, max=65535, help=f"TCP port [env OK_TARGET_PORT, default {env_settings.port}]"),
    backlog: int | None = typer.Option(None, min=1, help="Listen backlog [env OK_TARGET_BACKLOG]"),
    keepalive_timeout: int | None = typer.Option(None, min=0, help="Idle keep-alive seconds [env OK_TARGET_KEEPALIVE_TIMEOUT]"),
    log_level: LogLevel | None = typer.Option(None, case_sensitive=False, help="Log level [env OK_TARGET_LOG_LEVEL]"),
    access_log: bool | None = typer.Option(None, "--access-log/--no-access-log", help="Log every request [env OK_TARGET_ACCESS_LOG]"),
) -> None:
    """Bind the listener and serve until interrupted."""

    settings = env_settings.with_overrides(
        host=host,
        port=port,
        backlog=backlog,
        keepalive_timeout=keepalive_timeout,
        log_level=log_level.value if log_level else None,
        access_log=access_log,
    )
    try:
        code = serve(settings)
    except ListenerBindError as e:
        typer.echo(f"error: {e.strerror}", err=True)
        raise typer.Exit(code=1) from e
    raise typer.Exit(code=code)


def main() -> None:
    app()


if __name__ == "__main__":
    main()
