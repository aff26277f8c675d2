"""Utilities for saving and loading populated data models as JSON snapshots."""

import json
from pathlib import Path
from typing import Any, Dict, Optional

from crudio.config.settings import Settings
from crudio.generation.context import GenerationContext
from crudio.generation.errors import CrudioError, SchemaError
from crudio.generation.uniqueness import normalise_unique
from crudio.model.data_model import DataModel
from crudio.model.instance import InstanceRef
from crudio.model.registry import build_registry
from crudio.schema.document import SchemaDocument

REF_TAG = "$ref"


def encode_value(value: Any) -> Any:
    if isinstance(value, InstanceRef):
        return {REF_TAG: [value.table, value.index]}
    if isinstance(value, list):
        return [encode_value(v) for v in value]
    return value


def decode_value(value: Any) -> Any:
    if isinstance(value, dict) and REF_TAG in value:
        table, index = value[REF_TAG]
        return InstanceRef(table, int(index))
    if isinstance(value, list):
        return [decode_value(v) for v in value]
    return value


def model_to_dict(model: DataModel) -> Dict[str, Any]:
    """
    Snapshot a data model.

    Each instance is tagged with its entity type name so that it can be
    rebuilt against the type registry on load.
    """
    return {
        "document": model.document.model_dump(mode="json"),
        "tables": {
            table.name: [
                {
                    "entity": row.type_name,
                    "values": {k: encode_value(v) for k, v in row.values.items()},
                }
                for row in table
            ]
            for table in model.tables
        },
    }


def model_from_dict(
    data: Dict[str, Any],
    settings: Optional[Settings] = None,
    seed: Optional[int] = None,
) -> DataModel:
    """
    Rebuild a data model from a snapshot.

    The registry is rebuilt from the stored document and each instance is
    attached to the entity type named by its tag.

    Raises:
        SchemaError: If the snapshot names an unknown table or entity type
    """
    if "document" not in data or "tables" not in data:
        raise SchemaError("Snapshot must contain 'document' and 'tables'")

    document = SchemaDocument.model_validate(data["document"])
    registry = build_registry(document)
    context = GenerationContext.from_settings(document.generators, settings=settings, seed=seed)
    model = DataModel(document, registry, context)

    for table_name, rows in data["tables"].items():
        try:
            table = model.table(table_name)
        except CrudioError as e:
            raise SchemaError(f"Snapshot holds unknown table '{table_name}'", table=table_name) from e

        for row in rows:
            entity_type = registry.get(row["entity"])
            if entity_type is not table.entity_type:
                raise SchemaError(
                    f"Snapshot row of type '{row['entity']}' can not be stored in table '{table_name}'",
                    table=table_name,
                )
            instance = table.new_instance()
            instance.values = {k: decode_value(v) for k, v in row["values"].items()}
            instance.resolved = True
            for f in entity_type.unique_fields():
                if instance.values.get(f.name) is not None:
                    context.add_unique(entity_type.name, f.name, normalise_unique(instance.values[f.name]))

    return model


def save_model_to_json(model: DataModel, path: Path) -> None:
    """
    Save a data model snapshot to a JSON file.

    Note:
        Creates parent directories if they don't exist.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(model_to_dict(model), indent=2, default=str), encoding="utf-8")


def load_model_from_json(path: Path, settings: Optional[Settings] = None) -> DataModel:
    """
    Load a data model snapshot from a JSON file.

    Raises:
        FileNotFoundError: If the file doesn't exist
        ValueError: If the file is empty or not valid JSON
        SchemaError: If the snapshot does not match its own document
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Model file not found: {path}")

    file_content = path.read_text(encoding="utf-8").strip()
    if not file_content:
        raise ValueError(f"Model file is empty or corrupted: {path}")

    try:
        data = json.loads(file_content)
    except json.JSONDecodeError as e:
        raise ValueError(f"Failed to load model from {path}: {e}") from e
    return model_from_dict(data, settings=settings)
