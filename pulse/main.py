"""
pulse.main
------------
AUTHOR: carter-vin

PURPOSE:
- Stable CLI entrypoint for the heartbeat client
- Run the full pipeline without an editor (send, watch)
- Provide environment visibility for operators and debugging

Key contract:
- `pulse --help` shows a Commands section.
- `pulse send` exits non-zero when no heartbeat was delivered.
"""

from __future__ import annotations

import asyncio
import platform
import sys
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional

import typer

from pulse.config import AGENT_VERSION, PulseConfig
from pulse.controller import HeartbeatController
from pulse.deliver import DeliveryClient
from pulse.hosts import DirectoryPollHost
from pulse.languages import LanguageClassifier
from pulse.logging import DebugLog, set_debug_log

# Explicit multi-command CLI
app = typer.Typer(
    add_completion=False,
    help="pulse: editor activity heartbeat client",
)


# -----------------------------
# DATA CLASSES
# -----------------------------
@dataclass(frozen=True)
class EnvironmentInfo:
    """
    Snapshot of the runtime environment
    """

    python_version: str
    os: str
    machine: str
    utc_now: str


def collect_environment_info() -> EnvironmentInfo:
    return EnvironmentInfo(
        python_version=sys.version.split()[0],
        os=f"{platform.system()} {platform.release()}",
        machine=platform.machine(),
        utc_now=datetime.now(timezone.utc).isoformat(),
    )


def _resolve_config(
    *,
    endpoint: Optional[str] = None,
    interval: Optional[int] = None,
    debug_log: Optional[str] = None,
) -> PulseConfig:
    """
    Environment first, explicit CLI options win
    """
    config = PulseConfig.from_env()
    if endpoint:
        config = replace(config, endpoint=endpoint)
    if interval is not None:
        config = replace(config, interval_s=interval)
    if debug_log:
        config = replace(config, debug_log=debug_log)
    return config


def _notify(message: str) -> None:
    typer.echo(message, err=True)


def _build_controller(config: PulseConfig) -> HeartbeatController:
    log = DebugLog(config.debug_log)
    # Components created without an explicit log share this one
    set_debug_log(log)

    delivery = DeliveryClient(config.endpoint, log=log, notify=_notify)
    return HeartbeatController(config, delivery=delivery, log=log)


# -----------------------------
# ROOT COMMAND BEHAVIOR
# -----------------------------
@app.callback(invoke_without_command=True)
def main(ctx: typer.Context) -> None:
    """
    Root command behavior.

    If no subcommand is provided print a short hint and exit 0.
    """
    if ctx.invoked_subcommand is None:
        typer.echo("No command provided. Try: pulse --help")


# -----------------------------
# CLI COMMANDS
# -----------------------------
@app.command()
def version() -> None:
    """
    Print client version & runtime env
    """
    env = collect_environment_info()

    typer.echo(f"pulse v{AGENT_VERSION}")
    typer.echo(f"python={env.python_version}")
    typer.echo(f"os={env.os}")
    typer.echo(f"machine={env.machine}")
    typer.echo(f"utc_now={env.utc_now}")


@app.command("classify")
def classify_paths(
    paths: List[str] = typer.Argument(..., help="File paths to classify."),
    debug_log: str = typer.Option(
        "none",
        help="Debug log sink: stderr, stdout, none or a file path.",
    ),
) -> None:
    """
    Print the language tag for each path (path<TAB>tag)
    """
    classifier = LanguageClassifier(log=DebugLog(debug_log))
    for path in paths:
        typer.echo(f"{path}\t{classifier.classify(path)}")


@app.command("send")
def send(
    path: str = typer.Argument(..., help="Active file path to report."),
    session_key: str = typer.Option(
        ...,
        "--session-key",
        envvar="PULSE_SESSION_KEY",
        help="Opaque session credential sent with the heartbeat.",
    ),
    endpoint: Optional[str] = typer.Option(None, help="Collector URL (overrides PULSE_ENDPOINT)."),
    debug_log: Optional[str] = typer.Option(None, help="Debug log sink (overrides PULSE_DEBUG_LOG)."),
) -> None:
    """
    Emit a single heartbeat and wait for the outcome

    Exit codes:
    - 0 delivered
    - 1 suppressed (no session) or delivery failed
    """
    config = _resolve_config(endpoint=endpoint, debug_log=debug_log)
    controller = _build_controller(config)

    async def _run():
        controller.init(session_key)
        task = controller.on_save(path)
        if task is None:
            return None
        try:
            return await task
        finally:
            await controller.aclose()

    outcome = asyncio.run(_run())

    if outcome is None or not outcome.ok:
        raise typer.Exit(code=1)

    typer.echo(f"heartbeat sent status={outcome.status_code} elapsed_ms={outcome.elapsed_ms}")


@app.command("watch")
def watch(
    directory: Path = typer.Argument(
        ...,
        exists=True,
        file_okay=False,
        help="Directory tree to watch for saves.",
    ),
    session_key: str = typer.Option(
        ...,
        "--session-key",
        envvar="PULSE_SESSION_KEY",
        help="Opaque session credential sent with each heartbeat.",
    ),
    interval: Optional[int] = typer.Option(
        None,
        min=1,
        help="Heartbeat interval in seconds (overrides PULSE_INTERVAL_S).",
    ),
    poll: float = typer.Option(1.0, min=0.1, help="Directory poll period (seconds)."),
    endpoint: Optional[str] = typer.Option(None, help="Collector URL (overrides PULSE_ENDPOINT)."),
    debug_log: Optional[str] = typer.Option(None, help="Debug log sink (overrides PULSE_DEBUG_LOG)."),
) -> None:
    """
    Run the heartbeat client against a polled directory until Ctrl+C
    """
    config = _resolve_config(endpoint=endpoint, interval=interval, debug_log=debug_log)
    controller = _build_controller(config)

    async def _run() -> None:
        host = DirectoryPollHost(directory)
        controller.init(session_key, host)
        stop_polling = host.start(poll)
        try:
            await asyncio.Event().wait()
        finally:
            stop_polling()
            await controller.aclose()

    try:
        asyncio.run(_run())
    except KeyboardInterrupt:
        # Graceful shutdown on Ctrl+C
        pass


if __name__ == "__main__":
    app()
