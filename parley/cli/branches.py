"""Branch subcommand app: create, list, compare, merge, delete."""

import typer

from parley.core.models import branch_to_record

from .format import echo_if_output, fail, format_branch_row, output_json

app = typer.Typer(help="Fork, compare and merge discussion branches")


@app.command("create")
def create_cmd(
    ctx: typer.Context,
    discussion_id: str = typer.Argument(..., help="Source discussion id"),
    name: str = typer.Option(None, "--name", "-n", help="Branch name"),
    description: str = typer.Option("", "--description", "-d", help="Branch description"),
    snapshot_id: str = typer.Option(None, "--from-snapshot", help="Fork from this snapshot"),
):
    """Fork a discussion into a new branch."""
    from parley import services

    try:
        branch = services.get().branches.create_branch(
            discussion_id, name=name, description=description, snapshot_id=snapshot_id
        )
        output_json(branch_to_record(branch), ctx) or echo_if_output(
            f"Created branch {branch.name}: {branch.id}", ctx
        )
    except Exception as e:
        fail(e, ctx)


@app.command("list")
def list_cmd(ctx: typer.Context, discussion_id: str = typer.Argument(..., help="Discussion id")):
    """List branches of a discussion, oldest first."""
    from parley import services

    try:
        branches = services.get().branches.get_branches(discussion_id)
        if output_json(
            [{k: v for k, v in branch_to_record(b).items() if k != "data"} for b in branches],
            ctx,
        ):
            return
        if not branches:
            echo_if_output("No branches found", ctx)
            return
        for branch in branches:
            echo_if_output(format_branch_row(branch), ctx)
    except Exception as e:
        fail(e, ctx)


@app.command("compare")
def compare_cmd(ctx: typer.Context, branch_id: str = typer.Argument(..., help="Branch id")):
    """Diff the live source discussion against a branch."""
    from parley import services

    try:
        result = services.get().branches.compare_branch(branch_id)
        if output_json(result, ctx):
            return
        stats = result["changes"]["stats"]
        echo_if_output(
            f"{result['target']['discussionId']} ({result['target']['messageCount']} msgs) → "
            f"{result['branch']['name']}: +{stats['added']} -{stats['removed']} "
            f"~{stats['modified']}",
            ctx,
        )
    except Exception as e:
        fail(e, ctx)


@app.command("merge")
def merge_cmd(ctx: typer.Context, branch_id: str = typer.Argument(..., help="Branch id")):
    """Append the branch's new messages to its source discussion."""
    from parley import services

    try:
        result = services.get().branches.merge_branch(branch_id)
        if output_json(result, ctx):
            return
        echo_if_output(f"Merged {result['mergedCount']} messages", ctx)
        if result["skippedIds"]:
            echo_if_output(
                f"Kept existing version of {len(result['skippedIds'])} messages: "
                f"{', '.join(result['skippedIds'])}",
                ctx,
            )
    except Exception as e:
        fail(e, ctx)


@app.command("delete")
def delete_cmd(ctx: typer.Context, branch_id: str = typer.Argument(..., help="Branch id")):
    """Delete a branch."""
    from parley import services

    try:
        success = services.get().branches.delete_branch(branch_id)
        output_json({"success": success}, ctx) or echo_if_output(
            f"Deleted branch {branch_id}" if success else f"Branch {branch_id} not found", ctx
        )
    except Exception as e:
        fail(e, ctx)
