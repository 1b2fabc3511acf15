"""CLI entry point for agent-transcript-bridge.

Invoked as::

    agent-transcript-bridge [OPTIONS] COMMAND [ARGS]...

or, during development::

    python -m agent_transcript_bridge.cli.main

Commands
--------
- version      — Show version information
- status       — Show the enhanced backend's load state and capability
- transcript   — Transcript command group

Transcript sub-commands
-----------------------
- transcript show    — Print a session's transcript from the best backend
- transcript inject  — Append a gateway-injected assistant message
"""
from __future__ import annotations

import json
import logging
import sys
from pathlib import Path
from typing import Any

import click
from pydantic import BaseModel, ValidationError
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

console = Console()

_ROLE_STYLES = {
    "user": "green",
    "assistant": "blue",
    "system": "yellow",
    "toolResult": "magenta",
}


def _make_bridge(config_path: str | None, transcript_dir: str | None) -> Any:
    """Build a ``TranscriptBridge`` from a config file and/or the environment.

    A ``--config`` file takes precedence over ``TRANSCRIPT_BRIDGE_*``
    variables; ``--transcript-dir`` overrides both.
    """
    from agent_transcript_bridge.bridge import TranscriptBridge
    from agent_transcript_bridge.config import BridgeConfig

    try:
        config = BridgeConfig.from_yaml(config_path) if config_path else BridgeConfig.from_env()
        if transcript_dir:
            config = config.model_copy(update={"transcript_dir": Path(transcript_dir).expanduser()})
    except (ValidationError, ValueError) as exc:
        console.print(f"[red]Invalid configuration:[/red] {exc}")
        sys.exit(1)
    return TranscriptBridge(config)


def _as_dict(item: Any) -> dict[str, Any]:
    if isinstance(item, BaseModel):
        return item.model_dump(mode="json", exclude_none=True)
    if isinstance(item, dict):
        return item
    return {"role": "?", "content": str(item)}


def _content_text(content: Any) -> str:
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts = []
        for block in content:
            if isinstance(block, dict) and block.get("type") == "text":
                parts.append(str(block.get("text", "")))
            elif isinstance(block, dict) and block.get("type") == "toolCall":
                parts.append(f"-> {block.get('name', '?')}({block.get('id', '')})")
        return "\n".join(parts)
    return json.dumps(content, default=str)


# ---------------------------------------------------------------------------
# Root group
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(package_name="agent-transcript-bridge")
@click.option("--config", "config_path", default=None, help="YAML configuration file.")
@click.option("--transcript-dir", default=None, help="Directory of legacy transcripts.")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
@click.pass_context
def cli(
    ctx: click.Context,
    config_path: str | None,
    transcript_dir: str | None,
    verbose: bool,
) -> None:
    """Transcript persistence with an optional enhanced memory backend"""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path
    ctx.obj["transcript_dir"] = transcript_dir


def _bridge(ctx: click.Context) -> Any:
    if "bridge" not in ctx.obj:
        ctx.obj["bridge"] = _make_bridge(ctx.obj["config_path"], ctx.obj["transcript_dir"])
    return ctx.obj["bridge"]


# ---------------------------------------------------------------------------
# version
# ---------------------------------------------------------------------------


@cli.command(name="version")
def version_command() -> None:
    """Show version information."""
    from agent_transcript_bridge import __version__

    console.print(f"[bold]agent-transcript-bridge[/bold] v{__version__}")


# ---------------------------------------------------------------------------
# status
# ---------------------------------------------------------------------------


@cli.command(name="status")
@click.option("--namespace", default=None, help="Backend namespace to probe.")
@click.option("--load/--no-load", default=True, show_default=True, help="Resolve the backend first.")
@click.option("--json-output", is_flag=True, help="Output raw JSON instead of a table.")
@click.pass_context
def status_command(
    ctx: click.Context,
    namespace: str | None,
    load: bool,
    json_output: bool,
) -> None:
    """Show whether the enhanced backend is loaded and ready."""
    bridge = _bridge(ctx)
    if load:
        bridge.cache.ensure_loaded()
    status = bridge.status(namespace)

    if json_output:
        console.print_json(json.dumps(status.to_dict()))
        return

    style = {"ready": "green", "not_ready": "yellow", "absent": "red"}[status.capability.value]
    table = Table(title="Enhanced backend", show_lines=False)
    table.add_column("Field", style="bold cyan")
    table.add_column("Value")
    table.add_row("module", status.module_name)
    table.add_row("load state", status.load_state.value)
    table.add_row("namespace", status.namespace)
    table.add_row("capability", f"[{style}]{status.capability.value}[/{style}]")
    console.print(table)


# ---------------------------------------------------------------------------
# transcript command group
# ---------------------------------------------------------------------------


@cli.group(name="transcript")
def transcript_group() -> None:
    """Transcript commands."""


@transcript_group.command(name="show")
@click.argument("session_id")
@click.option("--namespace", default=None, help="Backend namespace to read from.")
@click.option("--json-output", is_flag=True, help="Output raw JSON instead of panels.")
@click.pass_context
def transcript_show(
    ctx: click.Context,
    session_id: str,
    namespace: str | None,
    json_output: bool,
) -> None:
    """Print the transcript of SESSION_ID."""
    bridge = _bridge(ctx)
    messages = [_as_dict(item) for item in bridge.read_session_messages(session_id, namespace)]

    if json_output:
        console.print_json(json.dumps(messages, default=str))
        return

    if not messages:
        console.print(f"[yellow]No messages for session:[/yellow] {session_id}")
        return

    for index, message in enumerate(messages):
        role = str(message.get("role", "?"))
        role_style = _ROLE_STYLES.get(role, "white")
        header = f"[{role_style}]{role}[/{role_style}] | #{index}"
        console.print(Panel(Text(_content_text(message.get("content", ""))), title=header, expand=False))


@transcript_group.command(name="inject")
@click.argument("session_id")
@click.argument("message")
@click.option("--label", default=None, help="Label shown above the message.")
@click.option("--idempotency-key", default=None, help="Idempotency key stored with the message.")
@click.pass_context
def transcript_inject(
    ctx: click.Context,
    session_id: str,
    message: str,
    label: str | None,
    idempotency_key: str | None,
) -> None:
    """Append MESSAGE to SESSION_ID as a gateway-injected assistant turn."""
    bridge = _bridge(ctx)
    result = bridge.inject_assistant_message(
        session_id,
        message,
        label=label,
        idempotency_key=idempotency_key,
    )
    if not result.ok:
        console.print(f"[red]Inject failed:[/red] {result.error}")
        sys.exit(1)
    console.print(f"[green]Injected:[/green] {result.message_id}")


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


if __name__ == "__main__":
    cli()
