"""Snapshot subcommand app: create, list, show, delete, compare."""

import typer

from parley.core.models import snapshot_to_record

from .format import echo_if_output, fail, format_snapshot_row, output_json

app = typer.Typer(help="Manage discussion snapshots")


@app.command("create")
def create_cmd(
    ctx: typer.Context,
    discussion_id: str = typer.Argument(..., help="Discussion id"),
    description: str = typer.Option(None, "--description", "-d", help="Snapshot description"),
    tag: list[str] = typer.Option(None, "--tag", "-t", help="Tag (repeatable)"),
):
    """Snapshot the current state of a discussion."""
    from parley import services

    try:
        snapshot = services.get().snapshots.create_snapshot(
            discussion_id, description=description, tags=tag or []
        )
        output_json(snapshot_to_record(snapshot), ctx) or echo_if_output(
            f"Created snapshot v{snapshot.version}: {snapshot.id}", ctx
        )
    except Exception as e:
        fail(e, ctx)


@app.command("list")
def list_cmd(ctx: typer.Context, discussion_id: str = typer.Argument(..., help="Discussion id")):
    """List snapshots of a discussion, oldest first."""
    from parley import services

    try:
        snapshots = services.get().snapshots.get_snapshots(discussion_id)
        if output_json(
            [
                {k: v for k, v in snapshot_to_record(s).items() if k != "data"}
                for s in snapshots
            ],
            ctx,
        ):
            return
        if not snapshots:
            echo_if_output("No snapshots found", ctx)
            return
        for snapshot in snapshots:
            echo_if_output(format_snapshot_row(snapshot), ctx)
    except Exception as e:
        fail(e, ctx)


@app.command("show")
def show_cmd(ctx: typer.Context, snapshot_id: str = typer.Argument(..., help="Snapshot id")):
    """Show a snapshot's messages."""
    from parley import services

    try:
        snapshot = services.get().snapshots.require(snapshot_id)
        if output_json(snapshot_to_record(snapshot), ctx):
            return
        echo_if_output(format_snapshot_row(snapshot), ctx)
        echo_if_output(f"topic: {snapshot.data.context.topic}", ctx)
        for m in snapshot.data.messages:
            echo_if_output(f"  {m.id} [{m.role}] {m.content}", ctx)
    except Exception as e:
        fail(e, ctx)


@app.command("delete")
def delete_cmd(ctx: typer.Context, snapshot_id: str = typer.Argument(..., help="Snapshot id")):
    """Delete a snapshot."""
    from parley import services

    try:
        success = services.get().snapshots.delete_snapshot(snapshot_id)
        output_json({"success": success}, ctx) or echo_if_output(
            f"Deleted snapshot {snapshot_id}" if success else f"Snapshot {snapshot_id} not found",
            ctx,
        )
    except Exception as e:
        fail(e, ctx)


@app.command("compare")
def compare_cmd(
    ctx: typer.Context,
    discussion_id: str = typer.Argument(..., help="Discussion id"),
    from_id: str = typer.Argument(..., help="Older snapshot id"),
    to_id: str = typer.Argument("current", help="Newer snapshot id, or 'current'"),
):
    """Diff two snapshots, or a snapshot against the live discussion."""
    from parley import services
    from parley.versioning import diff

    try:
        changes = services.get().compare(discussion_id, from_id, to_id)
        output_json(changes, ctx) or echo_if_output(diff.format_diff(changes), ctx)
    except Exception as e:
        fail(e, ctx)
