# src/waypoint/cli.py
"""Waypoint Command Line Interface.

Operator tooling for a Waypoint database: bootstrap tables and inspect
persisted status and recovery state.
"""

from collections.abc import Iterable
from pathlib import Path

import typer
from dynaconf.vendor.ruamel.yaml.parser import ParserError as YamlParserError
from dynaconf.vendor.ruamel.yaml.scanner import ScannerError as YamlScannerError
from pydantic import ValidationError
from sqlalchemy import Table, inspect

from waypoint import __version__
from waypoint.contracts import EntityKind, RecordNotFoundError, SchemaError
from waypoint.core.config import WaypointSettings, load_settings
from waypoint.core.logging import configure_logging
from waypoint.core.store import RECOVERY_TABLES, PersistenceDB
from waypoint.core.tracking import ENTITY_TABLES
from waypoint.persistence import Persistence

__all__ = [
    "app",
]

app = typer.Typer(
    name="waypoint",
    help="Waypoint: status and suspend/recover persistence for workflow engines.",
    no_args_is_help=True,
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"waypoint version {__version__}")
        raise typer.Exit()


def _load_dotenv(env_file: Path | None = None) -> bool:
    """Load environment variables from .env file.

    Args:
        env_file: Explicit path to .env file. If None, searches for .env
                 in current directory and parent directories.

    Returns:
        True if .env was found and loaded, False otherwise.

    Raises:
        typer.Exit: If explicit env_file path doesn't exist.
    """
    from dotenv import load_dotenv

    if env_file is not None:
        if not env_file.exists():
            _error(f"Error: .env file not found: {env_file}")
            raise typer.Exit(1)
        return load_dotenv(env_file, override=False)

    return load_dotenv(override=False)  # Don't override existing env vars


@app.callback()
def main(
    version: bool | None = typer.Option(
        None,
        "--version",
        "-V",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    no_dotenv: bool = typer.Option(
        False,
        "--no-dotenv",
        help="Skip loading .env file.",
    ),
    env_file: Path | None = typer.Option(
        None,
        "--env-file",
        help="Path to .env file (skips automatic search).",
        exists=False,  # We handle existence check ourselves for better error message
    ),
) -> None:
    """Waypoint persistence tooling."""
    if not no_dotenv:
        _load_dotenv(env_file=env_file)
    elif env_file is not None:
        typer.secho(
            "Warning: --env-file ignored because --no-dotenv is set.",
            fg=typer.colors.YELLOW,
            err=True,
        )


def _error(message: str) -> None:
    typer.secho(message, fg=typer.colors.RED, err=True)


def _load_config(settings: str) -> WaypointSettings:
    """Load settings and configure logging, exiting 1 on any config error."""
    settings_path = Path(settings).expanduser()
    try:
        config = load_settings(settings_path)
    except (YamlParserError, YamlScannerError) as e:
        _error(f"YAML syntax error in {settings}: {e.problem}")
        raise typer.Exit(1) from None
    except FileNotFoundError:
        _error(f"Error: Settings file not found: {settings}")
        raise typer.Exit(1) from None
    except ValidationError as e:
        _error("Configuration errors:")
        for error in e.errors():
            loc = ".".join(str(x) for x in error["loc"])
            _error(f"  - {loc}: {error['msg']}")
        raise typer.Exit(1) from None

    configure_logging(json_output=config.logging.json_output, level=config.logging.level)
    return config


def _open(config: WaypointSettings) -> Persistence:
    # Inspection commands never create tables
    db = PersistenceDB(config.database.url, echo=config.database.echo, create_tables=False)
    return Persistence(db, status_tracking=config.status_tracking, suspend=config.suspend)



def _require_tables(persistence: Persistence, tables: Iterable[Table]) -> None:
    """Exit 1 unless every table the command reads exists."""
    inspector = inspect(persistence.db.engine)
    missing = [table.name for table in tables if not inspector.has_table(table.name)]
    if missing:
        _error(f"Database not initialized (missing tables: {', '.join(missing)}); run `waypoint init`")
        raise typer.Exit(1)

@app.command()
def init(
    settings: str = typer.Option(
        ...,
        "--settings",
        "-s",
        help="Path to settings YAML file.",
    ),
) -> None:
    """Create the tables of every enabled table group."""
    config = _load_config(settings)

    with _open(config) as persistence:
        try:
            created = persistence.bootstrap()
        except SchemaError as e:
            _error(f"Schema bootstrap failed: {e}")
            raise typer.Exit(1) from None

    if created:
        typer.echo(f"Created tables: {', '.join(created)}")
    else:
        typer.echo("All tables already exist")


@app.command()
def show(
    kind: EntityKind = typer.Argument(..., help="Entity kind: flow, process or step."),
    entity_id: str = typer.Argument(..., help="Entity id."),
    settings: str = typer.Option(
        ...,
        "--settings",
        "-s",
        help="Path to settings YAML file.",
    ),
) -> None:
    """Print the persisted status record of one flow, process or step."""
    config = _load_config(settings)
    if not config.status_tracking:
        _error("Status tracking is disabled in this configuration")
        raise typer.Exit(1)

    with _open(config) as persistence:
        _require_tables(persistence, [ENTITY_TABLES[kind].table])
        try:
            record = persistence.tracker(kind).get(entity_id)
        except RecordNotFoundError as e:
            _error(str(e))
            raise typer.Exit(1) from None

    typer.echo(f"{record.kind.value} {record.id}")
    typer.echo(f"  name:     {record.name}")
    typer.echo(f"  status:   {record.status.name}")
    if record.flow_id is not None:
        typer.echo(f"  flow_id:  {record.flow_id}")
    if record.proc_id is not None:
        typer.echo(f"  proc_id:  {record.proc_id}")
    typer.echo(f"  created:  {record.created_at.isoformat() if record.created_at else '-'}")
    typer.echo(f"  updated:  {record.updated_at.isoformat() if record.updated_at else '-'}")
    typer.echo(f"  finished: {record.finished_at.isoformat() if record.finished_at else '-'}")


@app.command("recover-status")
def recover_status(
    root_uid: str = typer.Argument(..., help="Root execution unit id."),
    settings: str = typer.Option(
        ...,
        "--settings",
        "-s",
        help="Path to settings YAML file.",
    ),
) -> None:
    """Print the pending suspend point of a root, if any."""
    config = _load_config(settings)
    if not config.suspend:
        _error("Suspend persistence is disabled in this configuration")
        raise typer.Exit(1)

    with _open(config) as persistence:
        _require_tables(persistence, RECOVERY_TABLES)
        resume_point = persistence.recovery.get_resume_point(root_uid)

    if resume_point is None:
        typer.echo(f"Root {root_uid}: nothing to recover")
        return

    record = resume_point.record
    typer.echo(f"Root {root_uid}: pending recovery {record.recover_id}")
    typer.echo(f"  name:        {record.name}")
    typer.echo(f"  saved:       {record.created_at.isoformat() if record.created_at else '-'}")
    typer.echo(f"  checkpoints: {len(resume_point.checkpoints)}")


if __name__ == "__main__":
    app()
