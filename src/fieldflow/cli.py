# src/fieldflow/cli.py
"""fieldflow Command Line Interface.

Every command reads a graph document ({"nodes": [...], "edges": [...]}) or
an exported MappingConfiguration from a JSON or YAML file and writes JSON
to stdout, or to --output. Logs go to stderr.
"""

from __future__ import annotations

import json
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING, Any

import typer
import yaml
from pydantic import ValidationError

from fieldflow import __version__
from fieldflow.contracts.configuration import MappingConfiguration
from fieldflow.contracts.errors import FieldflowError
from fieldflow.contracts.graph import GraphSnapshot
from fieldflow.core.config import FieldflowSettings, load_settings

if TYPE_CHECKING:
    from fieldflow.engine.options import ResolutionOptions

__all__ = [
    "app",
]

app = typer.Typer(
    name="fieldflow",
    help="fieldflow: evaluate, compile and replay visual field-mapping graphs.",
    no_args_is_help=True,
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"fieldflow version {__version__}")
        raise typer.Exit()


def _load_dotenv(env_file: Path | None = None) -> bool:
    """Load environment variables from .env file.

    Raises:
        typer.Exit: If explicit env_file path doesn't exist.
    """
    from dotenv import load_dotenv

    if env_file is not None:
        if not env_file.exists():
            typer.secho(f"Error: .env file not found: {env_file}", fg=typer.colors.RED, err=True)
            raise typer.Exit(1)
        return load_dotenv(env_file, override=False)

    return load_dotenv(override=False)  # Don't override existing env vars


def _load_cli_settings(settings_path: Path | None) -> FieldflowSettings:
    if settings_path is None:
        return FieldflowSettings()
    try:
        return load_settings(settings_path.expanduser())
    except FileNotFoundError:
        typer.echo(f"Error: Settings file not found: {settings_path}", err=True)
        raise typer.Exit(1) from None
    except ValidationError as e:
        typer.echo("Configuration errors:", err=True)
        for error in e.errors():
            loc = ".".join(str(x) for x in error["loc"])
            typer.echo(f"  - {loc}: {error['msg']}", err=True)
        raise typer.Exit(1) from None


@app.callback()
def main(
    ctx: typer.Context,
    version: bool | None = typer.Option(
        None,
        "--version",
        "-V",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    settings: Path | None = typer.Option(
        None,
        "--settings",
        "-s",
        help="Path to settings YAML file (defaults apply when omitted).",
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
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose/debug logging.",
    ),
    json_logs: bool = typer.Option(
        False,
        "--json-logs",
        help="Output structured JSON logs (for machine processing).",
    ),
) -> None:
    """fieldflow: evaluate, compile and replay visual field-mapping graphs."""
    from fieldflow.core.logging import configure_logging

    if not no_dotenv:
        _load_dotenv(env_file=env_file)
    elif env_file is not None:
        typer.secho("Warning: --env-file ignored because --no-dotenv is set.", fg=typer.colors.YELLOW, err=True)

    loaded = _load_cli_settings(settings)
    log_level = "DEBUG" if verbose else loaded.logging.level
    configure_logging(json_output=json_logs or loaded.logging.json_output, level=log_level)
    ctx.obj = loaded


def _settings(ctx: typer.Context) -> FieldflowSettings:
    if isinstance(ctx.obj, FieldflowSettings):
        return ctx.obj
    return FieldflowSettings()


def _read_document(path: Path) -> Any:
    """Parse a JSON or YAML file (by suffix), exiting with a message on failure."""
    try:
        text = path.expanduser().read_text(encoding="utf-8")
    except FileNotFoundError:
        typer.echo(f"Error: File not found: {path}", err=True)
        raise typer.Exit(1) from None
    try:
        if path.suffix.lower() in (".yaml", ".yml"):
            return yaml.safe_load(text)
        return json.loads(text)
    except json.JSONDecodeError as e:
        typer.echo(f"JSON syntax error in {path}: {e.msg} (line {e.lineno})", err=True)
        raise typer.Exit(1) from None
    except yaml.YAMLError as e:
        typer.echo(f"YAML syntax error in {path}: {e}", err=True)
        raise typer.Exit(1) from None


def _load_graph(path: Path) -> GraphSnapshot:
    try:
        return GraphSnapshot.from_dict(_read_document(path))
    except FieldflowError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1) from None


def _load_configuration(path: Path) -> MappingConfiguration:
    try:
        return MappingConfiguration.from_dict(_read_document(path))
    except FieldflowError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1) from None


def _emit(payload: Any, output: Path | None) -> None:
    text = json.dumps(payload, indent=2, ensure_ascii=False)
    if output is None:
        typer.echo(text)
    else:
        output.expanduser().write_text(text + "\n", encoding="utf-8")
        typer.echo(f"Wrote {output}", err=True)


def _options(ctx: typer.Context, today: datetime | None) -> ResolutionOptions:
    from fieldflow.engine.options import ResolutionOptions

    return ResolutionOptions.from_settings(_settings(ctx), today=today.date() if today is not None else None)


_OUTPUT_OPTION = typer.Option(None, "--output", "-o", help="Write JSON here instead of stdout.")
_TODAY_OPTION = typer.Option(
    None,
    "--today",
    formats=["%Y-%m-%d"],
    help="Reference date for *_today conditions (default: current date).",
)


@app.command()
def resolve(
    ctx: typer.Context,
    graph: Path = typer.Argument(..., help="Graph document (JSON or YAML)."),
    output: Path | None = _OUTPUT_OPTION,
    today: datetime | None = _TODAY_OPTION,
) -> None:
    """Recompute target node output and print the resolved graph."""
    from fieldflow.engine.resolver import resolve_target_data

    snapshot = _load_graph(graph)
    nodes = resolve_target_data(snapshot.nodes, snapshot.edges, _options(ctx, today))
    _emit(GraphSnapshot(nodes=nodes, edges=snapshot.edges).to_wire(), output)


@app.command("compile")
def compile_command(
    graph: Path = typer.Argument(..., help="Graph document (JSON or YAML)."),
    output: Path | None = _OUTPUT_OPTION,
) -> None:
    """Compile a graph into ordered execution steps."""
    from fieldflow.engine.compiler import compile_steps

    snapshot = _load_graph(graph)
    steps = compile_steps(snapshot.nodes, snapshot.edges)
    _emit([step.to_wire() for step in steps], output)


@app.command("export")
def export_command(
    ctx: typer.Context,
    graph: Path = typer.Argument(..., help="Graph document (JSON or YAML)."),
    name: str = typer.Option("Untitled Mapping", "--name", "-n", help="Mapping name."),
    output: Path | None = _OUTPUT_OPTION,
) -> None:
    """Export a graph as a MappingConfiguration document."""
    from fieldflow.engine.exchange import export_mapping_configuration

    snapshot = _load_graph(graph)
    configuration = export_mapping_configuration(snapshot.nodes, snapshot.edges, name, _settings(ctx).export)
    _emit(configuration.to_wire(), output)


@app.command("import")
def import_command(
    configuration: Path = typer.Argument(..., help="Exported MappingConfiguration (JSON or YAML)."),
    output: Path | None = _OUTPUT_OPTION,
) -> None:
    """Rebuild the graph document from a MappingConfiguration."""
    from fieldflow.engine.exchange import import_mapping_configuration

    nodes, edges = import_mapping_configuration(_load_configuration(configuration))
    _emit(GraphSnapshot(nodes=nodes, edges=edges).to_wire(), output)


@app.command()
def replay(
    ctx: typer.Context,
    configuration: Path = typer.Argument(..., help="Exported MappingConfiguration (JSON or YAML)."),
    record: Path | None = typer.Option(
        None,
        "--input",
        "-i",
        help="Input record (JSON or YAML object). Sample values are replayed when omitted.",
    ),
    output: Path | None = _OUTPUT_OPTION,
    today: datetime | None = _TODAY_OPTION,
) -> None:
    """Replay the execution steps of a MappingConfiguration."""
    from fieldflow.engine.replay import replay_steps

    document = _load_configuration(configuration)
    input_record: dict[str, Any] | None = None
    if record is not None:
        loaded = _read_document(record)
        if not isinstance(loaded, dict):
            typer.echo(f"Error: Input record must be an object, got {type(loaded).__name__}", err=True)
            raise typer.Exit(1)
        input_record = loaded
    outputs = replay_steps(document.execution.steps, input_record, _options(ctx, today))
    _emit(outputs, output)


@app.command()
def validate(
    graph: Path = typer.Argument(..., help="Graph document (JSON or YAML)."),
) -> None:
    """Report dangling edges, unresolvable handles and cycles.

    Exits with status 1 when any issue is found.
    """
    from fieldflow.engine.validation import validate_graph

    snapshot = _load_graph(graph)
    issues = validate_graph(snapshot.nodes, snapshot.edges)
    if not issues:
        typer.echo(f"Graph is valid: {len(snapshot.nodes)} nodes, {len(snapshot.edges)} edges")
        return
    for issue in issues:
        typer.echo(f"{issue.code}: {issue.message}")
    typer.echo(f"{len(issues)} issue(s) found", err=True)
    raise typer.Exit(1)
