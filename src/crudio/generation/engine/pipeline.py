"""Main pipeline for schema → populated data model."""

import time
from pathlib import Path
from typing import Callable, Optional

from crudio.config.logging import get_logger
from crudio.config.settings import Settings
from crudio.generation.context import GenerationContext
from crudio.generation.error_logging import log_error
from crudio.generation.errors import CrudioError
from crudio.model.data_model import DataModel
from crudio.model.registry import build_registry
from crudio.schema.document import SchemaDocument
from . import assignments, connector
from .writer import write_csv

logger = get_logger(__name__)


def _run_stage(name: str, stage: Callable[[], None]) -> None:
    start = time.time()
    logger.info(f"Stage: {name}")
    try:
        stage()
    except CrudioError as e:
        log_error(error=e, operation=name)
        raise
    logger.debug(f"Stage '{name}' completed in {time.time() - start:.3f}s")


def fill_data_tables(model: DataModel) -> None:
    """
    Run every population and connection stage in order.

    Token expansion must precede many-to-many synthesis and named
    relationships, because both select rows by generated values.
    """
    for table in model.tables:
        table.clear()
        model.context.clear_unique(table.entity_type.name)

    def fill_tables() -> None:
        for table in model.tables:
            if not table.entity_type.is_join:
                model.fill_table(table)

    _run_stage("fill tables", fill_tables)
    _run_stage("connect one-to-many", lambda: connector.connect_one_to_many_relationships(model))
    _run_stage("expand tokens", model.process_all_tokens)
    _run_stage("connect many-to-many", lambda: connector.connect_many_to_many_relationships(model))
    _run_stage("connect named relationships", lambda: connector.connect_named_relationships(model))
    _run_stage("apply assignments", lambda: assignments.process_assignments(model))


def build_data_model(
    document: SchemaDocument,
    settings: Optional[Settings] = None,
    seed: Optional[int] = None,
) -> DataModel:
    """
    Build a fully populated data model from a schema document.

    Args:
        document: Schema document with includes already merged
        settings: Optional settings (defaults to the global settings)
        seed: Optional RNG seed, overriding settings.seed

    Returns:
        Populated DataModel

    Raises:
        CrudioError: On any schema, generation, relationship or script failure
    """
    pipeline_start = time.time()
    document = document.model_copy(deep=True)
    context = GenerationContext.from_settings(document.generators, settings=settings, seed=seed)

    try:
        registry = build_registry(document)
    except CrudioError as e:
        log_error(error=e, operation="type registration")
        raise

    model = DataModel(document, registry, context)
    logger.info(f"Created {len(model.tables)} in-memory table(s)")

    fill_data_tables(model)

    total_rows = sum(len(t) for t in model.tables)
    logger.info(
        f"Data model populated: {len(model.tables)} table(s), {total_rows} row(s) "
        f"in {time.time() - pipeline_start:.3f}s"
    )
    return model


def write_tables(model: DataModel, out_dir: Path) -> None:
    """Write one CSV file per table."""
    out_dir = Path(out_dir)
    out_dir.mkdir(parents=True, exist_ok=True)
    for name, df in model.to_frames().items():
        write_csv(df, out_dir / f"{name}.csv")
