"""CLI output formatting and helpers."""

import json
from datetime import datetime

import typer


def set_flags(ctx: typer.Context, json_output: bool, quiet_output: bool) -> None:
    if ctx.obj is None:
        ctx.obj = {}
    ctx.obj["json_output"] = json_output
    ctx.obj["quiet_output"] = quiet_output


def output_json(data, ctx: typer.Context):
    """Output data as JSON if requested. Returns True if output, False otherwise."""
    if (ctx.obj or {}).get("json_output"):
        typer.echo(json.dumps(data, indent=2, ensure_ascii=False))
        return True
    return False


def should_output(ctx: typer.Context) -> bool:
    """Check if output should be printed (not quiet mode)."""
    return not (ctx.obj or {}).get("quiet_output")


def echo_if_output(msg: str, ctx: typer.Context):
    """Echo message only if not in quiet mode."""
    if should_output(ctx):
        typer.echo(msg)


def fail(e: Exception, ctx: typer.Context):
    output_json({"status": "error", "message": str(e)}, ctx) or typer.echo(f"❌ {e}", err=True)
    raise typer.Exit(code=1) from e


def format_local_time(timestamp: str | int) -> str:
    """Format ISO timestamp or epoch milliseconds as readable local time."""
    try:
        if isinstance(timestamp, int):
            dt = datetime.fromtimestamp(timestamp / 1000)
        else:
            dt = datetime.fromisoformat(timestamp).astimezone()
        return dt.strftime("%Y-%m-%d %H:%M:%S")
    except (ValueError, TypeError, OSError):
        return str(timestamp)


def format_snapshot_row(snapshot) -> str:
    tags = f" [{', '.join(snapshot.tags)}]" if snapshot.tags else ""
    return (
        f"v{snapshot.version}  {snapshot.id}  {format_local_time(snapshot.timestamp)}  "
        f"{snapshot.message_count} msgs  {snapshot.description}{tags}"
    )


def format_branch_row(branch) -> str:
    return (
        f"{branch.name}  {branch.id}  {format_local_time(branch.created_at)}  "
        f"{len(branch.data.messages)} msgs"
    )
