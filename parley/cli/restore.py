"""Restore subcommand app: run, preview, history, undo."""

import typer

from .format import echo_if_output, fail, format_local_time, output_json

app = typer.Typer(help="Restore discussions from snapshots")


@app.command("run")
def run_cmd(
    ctx: typer.Context,
    discussion_id: str = typer.Argument(..., help="Discussion id"),
    snapshot_id: str = typer.Argument(..., help="Snapshot id"),
    mode: str = typer.Option("replace", "--mode", "-m", help="replace or merge"),
    include_context: bool = typer.Option(
        False, "--include-context", help="In merge mode, also take topic/status/rounds"
    ),
):
    """Restore a discussion to a snapshot."""
    from parley import services

    try:
        result = services.get().restores.restore(
            discussion_id, snapshot_id, mode=mode, include_context=include_context
        )
        if output_json(result, ctx):
            return
        changes = result["changes"]
        echo_if_output(
            f"Restored {discussion_id} ({result['mode']}): +{changes['added']} "
            f"-{changes['removed']} ~{changes['modified']}",
            ctx,
        )
    except Exception as e:
        fail(e, ctx)


@app.command("preview")
def preview_cmd(
    ctx: typer.Context,
    discussion_id: str = typer.Argument(..., help="Discussion id"),
    snapshot_id: str = typer.Argument(..., help="Snapshot id"),
):
    """Show what a restore would change."""
    from parley import services

    try:
        preview = services.get().restores.preview_restore(discussion_id, snapshot_id)
        if output_json(preview, ctx):
            return
        changes = preview["changes"]
        echo_if_output(
            f"messages: {preview['current']['messageCount']} → "
            f"{preview['snapshot']['messageCount']} ({changes['messageDelta']:+d})",
            ctx,
        )
        if changes["topicChanged"]:
            echo_if_output(
                f"topic: {preview['current']['topic']} → {preview['snapshot']['topic']}", ctx
            )
        if changes["statusChanged"]:
            echo_if_output(
                f"status: {preview['current']['status']} → {preview['snapshot']['status']}", ctx
            )
        if changes["willLoseMessages"]:
            echo_if_output("⚠️  Messages newer than the snapshot will be dropped", ctx)
    except Exception as e:
        fail(e, ctx)


@app.command("history")
def history_cmd(ctx: typer.Context, discussion_id: str = typer.Argument(..., help="Discussion id")):
    """List restores applied to a discussion."""
    from parley import services

    try:
        history = services.get().restores.get_restore_history(discussion_id)
        if output_json(
            [
                {
                    "id": r.id,
                    "snapshotId": r.snapshot_id,
                    "snapshotVersion": r.snapshot_version,
                    "mode": r.mode,
                    "timestamp": r.timestamp,
                }
                for r in history
            ],
            ctx,
        ):
            return
        if not history:
            echo_if_output("No restores found", ctx)
            return
        for r in history:
            echo_if_output(
                f"{format_local_time(r.timestamp)}  {r.id}  v{r.snapshot_version} ({r.mode})  "
                f"{r.before.get('messageCount')} → {r.after.get('messageCount')} msgs",
                ctx,
            )
    except Exception as e:
        fail(e, ctx)


@app.command("undo")
def undo_cmd(
    ctx: typer.Context,
    discussion_id: str = typer.Argument(..., help="Discussion id"),
    restore_id: str = typer.Argument(..., help="Restore id"),
):
    """Put back the state a restore replaced."""
    from parley import services

    try:
        result = services.get().restores.undo_restore(discussion_id, restore_id)
        output_json(result, ctx) or echo_if_output(
            f"Undid {restore_id}: {result['messageCount']} msgs", ctx
        )
    except Exception as e:
        fail(e, ctx)
