"""Similarity subcommand app: find, train, merge."""

import typer

from .format import echo_if_output, fail, output_json

app = typer.Typer(help="Find and merge similar discussions")


@app.command("find")
def find_cmd(
    ctx: typer.Context,
    discussion_id: str = typer.Argument(..., help="Discussion id"),
    threshold: float = typer.Option(None, "--threshold", help="Minimum similarity (0-1)"),
    limit: int = typer.Option(None, "--limit", help="Maximum results"),
):
    """List discussions similar to the given one."""
    from parley import services

    try:
        results = services.get().find_similar(discussion_id, threshold=threshold, limit=limit)
        if output_json(results, ctx):
            return
        if not results:
            echo_if_output("No similar discussions", ctx)
            return
        for r in results:
            keywords = f"  ({', '.join(r['commonKeywords'])})" if r["commonKeywords"] else ""
            echo_if_output(
                f"{round(r['similarity'] * 100):3d}%  {r['discussionId']}  {r['topic']}{keywords}",
                ctx,
            )
    except Exception as e:
        fail(e, ctx)


@app.command("train")
def train_cmd(ctx: typer.Context):
    """Rebuild TF-IDF weights over every stored discussion."""
    from parley import services

    try:
        stats = services.get().train()
        output_json(stats, ctx) or echo_if_output(
            f"Trained on {stats['documents']} discussions, {stats['vocabulary']} terms", ctx
        )
    except Exception as e:
        fail(e, ctx)


@app.command("merge")
def merge_cmd(
    ctx: typer.Context,
    target_id: str = typer.Argument(..., help="Discussion to merge into"),
    source_ids: list[str] = typer.Argument(..., help="Discussions to fold in and delete"),
):
    """Merge discussions into a target, deleting the sources."""
    from parley import services

    try:
        result = services.get().merge(target_id, source_ids)
        if output_json(result, ctx):
            return
        echo_if_output(
            f"Merged {len(result['mergedSourceIds'])} discussions into {target_id}: "
            f"{result['mergedMessagesCount']} messages, "
            f"{result['mergedConflictsCount']} conflicts",
            ctx,
        )
        for skipped in result["skippedSourceIds"]:
            echo_if_output(f"  skipped {skipped}", ctx)
    except Exception as e:
        fail(e, ctx)
