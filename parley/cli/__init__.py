"""parley CLI: thin command wrappers over the services container."""

import logging

import typer

from . import branches, discussions, format, restore, similar, snapshots

app = typer.Typer(no_args_is_help=False, add_completion=False)


@app.callback(invoke_without_command=True)
def main_callback(
    ctx: typer.Context,
    json_output: bool = typer.Option(False, "--json", "-j", help="Output in JSON format."),
    quiet_output: bool = typer.Option(
        False, "--quiet", "-q", help="Suppress non-essential output."
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log to stderr."),
):
    """Discussion snapshots, branches, restores and similarity."""
    format.set_flags(ctx, json_output, quiet_output)
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="[parley] %(name)s: %(message)s")
    if ctx.resilient_parsing:
        return
    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())


@app.command("init")
def init_cmd(ctx: typer.Context):
    """Create ~/.parley/config.yaml from the packaged defaults."""
    from parley.lib import config

    try:
        config.init_config()
        format.output_json(
            {"status": "success", "config": str(config.config_file())}, ctx
        ) or format.echo_if_output(f"Config: {config.config_file()}", ctx)
    except Exception as e:
        format.fail(e, ctx)


@app.command("serve")
def serve_cmd():
    """Run the HTTP API with uvicorn."""
    from parley.api.main import main

    main()


app.add_typer(discussions.app, name="discussion")
app.add_typer(snapshots.app, name="snapshot")
app.add_typer(restore.app, name="restore")
app.add_typer(branches.app, name="branch")
app.add_typer(similar.app, name="similar")


def main():
    app()
