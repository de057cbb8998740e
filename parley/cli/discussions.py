"""Discussion subcommand app: create, say, list, show."""

import typer

from parley.core.models import discussion_to_record

from .format import echo_if_output, fail, format_local_time, output_json

app = typer.Typer(help="Create discussions and add messages")


@app.command("create")
def create_cmd(
    ctx: typer.Context,
    topic: str = typer.Argument(..., help="Discussion topic"),
    participant: list[str] = typer.Option(None, "--participant", "-p", help="Participant role"),
):
    """Create a new discussion."""
    from parley import services

    try:
        discussion = services.get().store.create(topic, participants=participant or [])
        output_json(
            {"status": "success", "discussion_id": discussion.id}, ctx
        ) or echo_if_output(f"Created discussion: {discussion.id}", ctx)
    except Exception as e:
        fail(e, ctx)


@app.command("say")
def say_cmd(
    ctx: typer.Context,
    discussion_id: str = typer.Argument(..., help="Discussion id"),
    role: str = typer.Argument(..., help="Speaking role"),
    content: str = typer.Argument(..., help="Message content"),
    reply_to: str = typer.Option(None, "--reply-to", help="Message id being answered"),
):
    """Add a message to a discussion."""
    from parley import services

    try:
        message = services.get().store.add_message(discussion_id, role, content, reply_to=reply_to)
        output_json(
            {"status": "success", "message_id": message.id}, ctx
        ) or echo_if_output(f"Added {message.id}", ctx)
    except Exception as e:
        fail(e, ctx)


@app.command("list")
def list_cmd(ctx: typer.Context):
    """List discussions."""
    from parley import services

    try:
        discussions = services.get().store.list()
        if output_json(
            [
                {
                    "id": d.id,
                    "topic": d.topic,
                    "status": d.status,
                    "message_count": len(d.messages),
                }
                for d in discussions
            ],
            ctx,
        ):
            return
        if not discussions:
            echo_if_output("No discussions found", ctx)
            return
        for d in discussions:
            echo_if_output(
                f"{format_local_time(d.created_at)}  {d.id}  [{d.status}] {d.topic} "
                f"({len(d.messages)} msgs)",
                ctx,
            )
    except Exception as e:
        fail(e, ctx)


@app.command("show")
def show_cmd(ctx: typer.Context, discussion_id: str = typer.Argument(..., help="Discussion id")):
    """Show a discussion and its messages."""
    from parley import services

    try:
        discussion = services.get().store.require(discussion_id)
        if output_json(discussion_to_record(discussion), ctx):
            return
        echo_if_output(f"{discussion.topic} [{discussion.status}]", ctx)
        for m in discussion.messages:
            echo_if_output(f"  {m.id} [{m.role}] {m.content}", ctx)
    except Exception as e:
        fail(e, ctx)
