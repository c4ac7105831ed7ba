"""CLI entrypoint: Typer app definition and command registration"""

import typer

from mdenrich.cli.commands import (
    clean_excerpts_cmd, excerpts_cmd, init_cmd, list_cmd, load_cmd, read_time_cmd, start_cmd, tag_cmd,
)


app = typer.Typer(name="mdenrich", no_args_is_help=True, help="Markdown article ingestion and enrichment")

app.command(name="init")(init_cmd)
app.command(name="load")(load_cmd)
app.command(name="start")(start_cmd)
app.command(name="list")(list_cmd)
app.command(name="tag")(tag_cmd)
app.command(name="read-time")(read_time_cmd)
app.command(name="excerpts")(excerpts_cmd)
app.command(name="clean-excerpts")(clean_excerpts_cmd)
