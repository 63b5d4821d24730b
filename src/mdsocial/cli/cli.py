"""CLI entrypoint: Typer app definition and command registration"""

import typer

from mdsocial.cli.commands import del_cmd, get_cmd, init_cmd, run_cmd, set_cmd, show_cmd


app = typer.Typer(name="mdsocial", no_args_is_help=True, help="Enrich markdown posts and share them to social channels once")

app.command(name="run")(run_cmd)
app.command(name="show")(show_cmd)
app.command(name="get")(get_cmd)
app.command(name="set")(set_cmd)
app.command(name="del")(del_cmd)
app.command(name="init")(init_cmd)
