"""Command line entry point: generate data from a schema, or inspect it."""

from pathlib import Path
from typing import Optional

import typer

from crudio.config.logging import setup_logging
from crudio.config.settings import get_settings
from crudio.generation.engine.pipeline import build_data_model, write_tables
from crudio.generation.errors import CrudioError
from crudio.model.registry import build_registry
from crudio.utils.model_io import save_model_to_json
from crudio.utils.schema_io import load_schema

app = typer.Typer(help="Crudio: populated relational test data from a declarative schema")


@app.command()
def generate(
    schema: Path,
    out_dir: Path,
    include: Optional[Path] = typer.Option(None, "--include", help="Extra schema file to merge"),
    seed: Optional[int] = typer.Option(None, "--seed", help="Random seed for reproducible output"),
):
    """
    Build the data model and write one CSV per table plus a model.json snapshot.

    Args:
        schema: Path to the schema JSON file
        out_dir: Output directory for generated files
    """
    setup_logging()
    settings = get_settings()

    typer.echo(f"Loading schema from {schema}")
    try:
        document = load_schema(schema, include=include)
        typer.echo("Generating data...")
        model = build_data_model(document, settings=settings, seed=seed)
    except (CrudioError, FileNotFoundError, ValueError) as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)

    out_dir = Path(out_dir)
    write_tables(model, out_dir)
    save_model_to_json(model, out_dir / "model.json")

    for table_name, rows in model.summary().items():
        typer.echo(f"  {table_name}: {rows} rows")
    typer.echo(f"✓ Complete! Data written to {out_dir}")


@app.command()
def inspect(
    schema: Path,
    include: Optional[Path] = typer.Option(None, "--include", help="Extra schema file to merge"),
):
    """
    List entity types, tables and relationships declared by a schema.

    Args:
        schema: Path to the schema JSON file
    """
    setup_logging(level="WARNING")

    try:
        registry = build_registry(load_schema(schema, include=include))
    except (CrudioError, FileNotFoundError, ValueError) as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)

    for entity_type in registry:
        kind = "abstract" if entity_type.abstract else "join" if entity_type.is_join else "table"
        count = entity_type.row_count if entity_type.row_count is not None else "default"
        typer.echo(f"{entity_type.name} ({kind}: {entity_type.table_name}, count={count})")
        for f in entity_type.fields:
            flags = [flag for flag, on in (("key", f.is_key), ("unique", f.is_unique)) if on]
            suffix = f" [{', '.join(flags)}]" if flags else ""
            typer.echo(f"  {f.name}: {f.field_type}{suffix}")
        for r in entity_type.relationships:
            typer.echo(f"  -> {r.name}: {r.relationship_type} {r.to_entity}")


def main():
    """Entry point for CLI."""
    app()


if __name__ == "__main__":
    main()
