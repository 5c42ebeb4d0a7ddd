"""Typer application and CLI entry point for zeyapi.

This module builds the root Typer application, registers the four
sub-commands (``link``, ``run``, ``generate``, ``routes``) and exposes
:func:`main`, the console-script entry point declared in ``pyproject.toml``.

The root callback resolves :class:`~zeyapi.config.Settings` once and installs
the global :class:`~zeyapi.output.OutputManager`; both are shared with the
sub-commands through ``ctx.obj``. Unhandled exceptions are written to a crash
log under ``<workspace>/logs``.
"""

from __future__ import annotations

import signal
import sys
import traceback
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

import typer

from zeyapi import __version__
from zeyapi.exit_codes import EXIT_FAILURE, EXIT_INTERRUPTED


app = typer.Typer(
    name="zeyapi",
    help="Call a ZeyOS API through named, persisted routes.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)

# Settings resolved by the root callback, read by the crash handler.
_active_settings: Any = None


def _version_callback(value: bool) -> None:
    """Print version and exit when --version is passed."""
    if value:
        typer.echo(f"zeyapi {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    workspace: Optional[str] = typer.Option(
        None,
        "--workspace",
        "-w",
        help="Directory holding config.json and routes/ (default: ./zeyos-api).",
    ),
    host: Optional[str] = typer.Option(
        None,
        "--host",
        help="ZeyOS host URL (default: https://cloud.zeyos.com).",
    ),
    json_output: bool = typer.Option(False, "--json", help="JSON output format."),
    plain_output: bool = typer.Option(False, "--plain", help="Plain text output."),
    no_color: bool = typer.Option(False, "--no-color", help="Disable color output."),
    quiet: bool = typer.Option(
        False, "--quiet", "-q", help="Suppress non-essential output."
    ),
) -> None:
    """Root callback executed before every sub-command.

    Installs the output manager from the formatting flags, resolves the
    effective settings and stores them in ``ctx.obj["settings"]``.
    """
    from zeyapi.config import resolve_settings
    from zeyapi.exceptions import ZeyapiError
    from zeyapi.output import OutputFormat, OutputManager, error, set_output

    fmt = OutputFormat.AUTO
    if json_output:
        fmt = OutputFormat.JSON
    elif plain_output:
        fmt = OutputFormat.PLAIN

    set_output(OutputManager(format=fmt, no_color=no_color, quiet=quiet))

    try:
        settings = resolve_settings(cli_workspace=workspace, cli_host=host)
    except ZeyapiError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None

    global _active_settings
    _active_settings = settings
    ctx.ensure_object(dict)
    ctx.obj["settings"] = settings


def register_commands(target: typer.Typer) -> None:
    """Attach the built-in sub-commands to *target*."""
    from zeyapi.commands.generate import generate_command
    from zeyapi.commands.link import link_command
    from zeyapi.commands.routes import routes_command
    from zeyapi.commands.run import run_command

    target.command("link")(link_command)
    target.command("run")(run_command)
    target.command("generate")(generate_command)
    target.command("routes")(routes_command)


register_commands(app)


def _setup_signal_handlers() -> None:
    """Install a SIGINT handler so Ctrl-C exits cleanly."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(EXIT_INTERRUPTED)

    signal.signal(signal.SIGINT, _handler)


def _write_crash_log(exc: Exception) -> str:
    """Write the current traceback under the workspace and return its path."""
    from zeyapi.config import resolve_settings
    from zeyapi.exceptions import ZeyapiError

    if _active_settings is not None:
        logs_dir = _active_settings.logs_dir
    else:
        try:
            logs_dir = resolve_settings().logs_dir
        except ZeyapiError:
            logs_dir = Path("zeyos-api") / "logs"
    logs_dir.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d-%H%M%S")
    log_path = logs_dir / f"crash-{timestamp}.log"
    log_path.write_text(traceback.format_exc())
    return str(log_path)


def main() -> None:
    """CLI entry point invoked by the ``zeyapi`` console script.

    :class:`~zeyapi.exceptions.ZeyapiError` instances that escape a command
    exit with the error's ``exit_code``; any other exception produces a
    crash log and exits with :data:`~zeyapi.exit_codes.EXIT_FAILURE`.

    Raises:
        SystemExit: Always raised (either by Typer or explicitly).
    """
    _setup_signal_handlers()
    try:
        app()
    except SystemExit:
        raise
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(EXIT_INTERRUPTED)
    except Exception as exc:
        from zeyapi.exceptions import ZeyapiError
        from zeyapi.output import error

        if isinstance(exc, ZeyapiError):
            error(str(exc))
            sys.exit(exc.exit_code)
        else:
            log_path = _write_crash_log(exc)
            error(f"Unexpected error. Debug log: {log_path}")
            sys.exit(EXIT_FAILURE)
