from __future__ import annotations

from pathlib import Path

import typer

from metabase_explorer import __version__
from metabase_explorer.config import default_config_path, resolve_configuration
from metabase_explorer.errors import ConfigError
from metabase_explorer.logs import setup_logging
from metabase_explorer.tui import MetabaseExplorerTui

__all__ = [
    "MetabaseExplorerTui",
    "cli",
    "run",
]

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


def _version_callback(value: bool) -> None:
    if not value:
        return
    typer.echo(f"mbx {__version__}")
    raise typer.Exit()


def _configuration_hint() -> str:
    return (
        "Provide the Metabase URL and API token with --url and --token, "
        f"or define a profile in {default_config_path()}:\n\n"
        "  default_profile: work\n"
        "  profiles:\n"
        "    work:\n"
        "      url: https://metabase.example.com\n"
        "      token: mb_xxx"
    )


cli = typer.Typer(
    add_completion=False,
    help="Explore Metabase databases, tables and collections in a Textual TUI.",
)


@cli.callback(invoke_without_command=True)
def run(
    url: str | None = typer.Option(
        None,
        "--url",
        "-u",
        help="Metabase instance URL. Overrides the profile.",
    ),
    token: str | None = typer.Option(
        None,
        "--token",
        "-t",
        help="Metabase API key. Overrides the profile.",
    ),
    profile: str | None = typer.Option(
        None,
        "--profile",
        "-p",
        help="Profile from the config file. Defaults to default_profile.",
    ),
    config: Path | None = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to the YAML config file.",
    ),
    log_file: Path | None = typer.Option(
        None,
        "--log-file",
        help="Write diagnostic logs to this file.",
    ),
    log_level: str = typer.Option(
        "INFO",
        "--log-level",
        help="Log level used with --log-file.",
    ),
    _version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
) -> None:
    if log_level.upper() not in LOG_LEVELS:
        typer.echo(
            f"Invalid log level {log_level!r}; choose from {', '.join(LOG_LEVELS)}.",
            err=True,
        )
        raise typer.Exit(code=1)

    try:
        client_config = resolve_configuration(
            url=url,
            token=token,
            profile=profile,
            config_path=config,
        )
    except ConfigError as exc:
        typer.echo(f"Configuration error: {exc}", err=True)
        typer.echo(_configuration_hint(), err=True)
        raise typer.Exit(code=1) from exc

    setup_logging(log_file, log_level)
    MetabaseExplorerTui(config=client_config).run()


if __name__ == "__main__":
    cli()
