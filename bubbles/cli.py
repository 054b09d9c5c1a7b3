"""CLI entry point for bubbles.

Commands:
    bubbles init     write a starter bubbles.config.json in the current directory
    bubbles migrate  create or upgrade the database schema
    bubbles serve    start the API server
    bubbles render   print or save one project's graph
"""

import asyncio
import json
import logging
import os
import sys
from pathlib import Path
from typing import Any

import click

from bubbles.config import (
    CONFIG_FILENAME,
    DEFAULTS,
    ConfigError,
    default_config,
    load_config,
)

DEFAULT_DB_PATH = "~/.bubbles/state.db"

DEFAULT_CONFIG = {"db_path": DEFAULT_DB_PATH, **DEFAULTS}


def _resolve_config(config_path: str | None) -> dict[str, Any]:
    """Load the config file, or fall back to $BUBBLES_DB and defaults.

    An explicitly named config file must exist.
    """
    try:
        return load_config(config_path)
    except ConfigError:
        if config_path is not None:
            raise
    db_path = os.environ.get("BUBBLES_DB", DEFAULT_DB_PATH)
    return default_config(db_path)


@click.group()
@click.option(
    "--config",
    "config_path",
    default=None,
    help=f"Path to config file (default ./{CONFIG_FILENAME})",
)
@click.pass_context
def main(ctx: click.Context, config_path: str | None) -> None:
    """bubbles: precedence graphs of activities, rendered with Graphviz."""
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path


def _config(ctx: click.Context) -> dict[str, Any]:
    try:
        config = _resolve_config(ctx.obj["config_path"])
    except ConfigError as e:
        click.echo(f"Config error: {e}", err=True)
        sys.exit(1)
    logging.basicConfig(
        level=str(config["log_level"]).upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    return config


@main.command()
def init() -> None:
    """Create a starter bubbles.config.json."""
    config_path = Path.cwd() / CONFIG_FILENAME

    if config_path.exists():
        click.echo(f"Config already exists: {config_path}")
        return

    config_path.write_text(json.dumps(DEFAULT_CONFIG, indent=2) + "\n")
    click.echo(f"Created {config_path}")


@main.command()
@click.option("--db", "db_path", default=None, help="Database path (overrides config)")
@click.pass_context
def migrate(ctx: click.Context, db_path: str | None) -> None:
    """Create or upgrade the database schema."""
    from db.migrations import init_db

    config = _config(ctx)
    db_path = db_path or config["db_path"]
    conn = init_db(db_path)
    conn.close()
    click.echo(f"Database ready: {db_path}")


@main.command()
@click.option("--host", default=None, help="Bind address (overrides config)")
@click.option("--port", default=None, type=int, help="Port (overrides config)")
@click.pass_context
def serve(ctx: click.Context, host: str | None, port: int | None) -> None:
    """Start the bubbles API server."""
    import uvicorn

    from api.app import create_app
    from db.migrations import init_db

    config = _config(ctx)
    init_db(config["db_path"]).close()

    app = create_app(db_path=config["db_path"], config=config)
    host = host or config["host"]
    port = port or config["port"]
    click.echo(f"Starting server on http://{host}:{port}")
    uvicorn.run(app, host=host, port=port, log_level=config["log_level"])


@main.command()
@click.argument("project_id", type=int)
@click.option(
    "--format",
    "fmt",
    type=click.Choice(["dot", "svg", "png"]),
    default="dot",
    show_default=True,
)
@click.option("--vertical", is_flag=True, help="Lay the graph out top-to-bottom")
@click.option(
    "--output", "-o", type=click.Path(dir_okay=False), default=None, help="Output file"
)
@click.pass_context
def render(
    ctx: click.Context, project_id: int, fmt: str, vertical: bool, output: str | None
) -> None:
    """Render one project's graph as DOT source, SVG, or PNG."""
    from bubbles import engine
    from bubbles.dot import to_dot
    from bubbles.renderer import render as run_renderer
    from db.migrations import init_db

    config = _config(ctx)
    conn = init_db(config["db_path"])
    try:
        graph = engine.read_graph(conn, project_id)
    finally:
        conn.close()

    if graph is None:
        click.echo(f"Error: project '{project_id}' not found", err=True)
        sys.exit(1)

    source = to_dot(graph, vertical=vertical)
    if fmt == "dot":
        data = source.encode("utf-8")
    else:
        result = asyncio.run(
            run_renderer(
                source,
                fmt,
                command=config["renderer_command"],
                timeout=config["render_timeout"],
            )
        )
        if not result.ok:
            click.echo(f"Renderer error: {result.error}", err=True)
            click.echo(source, err=True)
            sys.exit(1)
        data = result.output

    if output:
        Path(output).write_bytes(data)
        click.echo(f"Wrote {output}")
    else:
        click.echo(data, nl=False)
