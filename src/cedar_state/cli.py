"""CLI tool for inspecting Cedar state documents and diff records."""

import json
from pathlib import Path
from typing import Any, Optional

import jsonpatch
import typer
import yaml
from pydantic import ValidationError
from typing_extensions import Annotated

from cedar_state.config import load_config
from cedar_state.execution.validation import validate_against_schema
from cedar_state.models.diff_state import DiffHistoryState
from cedar_state.models.patch import to_json_patch
from cedar_state.ui.diff_viz import format_history_markdown
from cedar_state.utils import apply_state_diff, compute_state_diff


app = typer.Typer(help="Cedar state engine CLI")
config_app = typer.Typer(help="Inspect configuration")

app.add_typer(config_app, name="config")


def _load_json(file_path: Path) -> Any:
    if not file_path.exists():
        typer.echo(f"Error: File not found: {file_path}", err=True)
        raise typer.Exit(code=1)
    try:
        with open(file_path, "r") as f:
            return json.load(f)
    except json.JSONDecodeError as e:
        typer.echo(f"Error parsing JSON in {file_path}: {str(e)}", err=True)
        raise typer.Exit(code=1)


@app.command("diff")
def diff(
    old: Annotated[Path, typer.Argument(help="JSON file with the old value")],
    new: Annotated[Path, typer.Argument(help="JSON file with the new value")],
):
    """Prints the JSON Patch that turns OLD into NEW."""
    patches = compute_state_diff(_load_json(old), _load_json(new))
    typer.echo(json.dumps(to_json_patch(patches), indent=2))


@app.command("apply")
def apply(
    document: Annotated[Path, typer.Argument(help="JSON file with the base value")],
    patch: Annotated[Path, typer.Argument(help="JSON file with a JSON Patch list")],
):
    """Prints DOCUMENT with PATCH applied."""
    ops = _load_json(patch)
    if not isinstance(ops, list):
        typer.echo("Error: A JSON Patch must be a list of operations.", err=True)
        raise typer.Exit(code=1)
    try:
        result = apply_state_diff(_load_json(document), ops)
    except (
        jsonpatch.JsonPatchException,
        jsonpatch.JsonPointerException,
        ValidationError,
    ) as e:
        typer.echo(f"Error applying patch: {str(e)}", err=True)
        raise typer.Exit(code=1)
    typer.echo(json.dumps(result, indent=2))


@app.command("inspect")
def inspect(
    history_file: Annotated[
        Path, typer.Argument(help="JSON file with an exported diff record")
    ],
):
    """Summarises an exported diff record."""
    try:
        record = DiffHistoryState.model_validate(_load_json(history_file))
    except ValidationError as e:
        typer.echo(f"Invalid diff record: {str(e)}", err=True)
        raise typer.Exit(code=1)
    typer.echo(format_history_markdown(record))


@app.command("validate-args")
def validate_args(
    schema_file: Annotated[Path, typer.Argument(help="JSON file with the args schema")],
    args_file: Annotated[Path, typer.Argument(help="JSON file with the args")],
):
    """Validates setter arguments against a JSON Schema."""
    result = validate_against_schema(_load_json(args_file), _load_json(schema_file))
    if result.ok:
        typer.echo(f"Arguments in {args_file} are valid.")
        return

    typer.echo(f"Found {len(result.errors)} violation(s):", err=True)
    for v in result.errors:
        typer.echo(f"- {v.path} [{v.code}]: {v.message}", err=True)
    raise typer.Exit(code=1)


@config_app.command("show")
def config_show(
    file: Annotated[
        Optional[Path], typer.Option(help="Path to a YAML config file")
    ] = None,
):
    """Prints the effective store configuration."""
    try:
        config = load_config(file)
    except FileNotFoundError:
        typer.echo(f"Error: File not found: {file}", err=True)
        raise typer.Exit(code=1)
    except (ValueError, yaml.YAMLError) as e:
        typer.echo(f"Error loading config: {str(e)}", err=True)
        raise typer.Exit(code=1)
    typer.echo(yaml.safe_dump(config.model_dump(mode="json"), sort_keys=False))


if __name__ == "__main__":
    app()
