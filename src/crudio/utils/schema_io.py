"""Utilities for loading schema documents (with includes) from JSON files."""

import json
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from crudio.config.logging import get_logger
from crudio.generation.errors import SchemaError
from crudio.schema.document import SchemaDocument

logger = get_logger(__name__)

LIST_SECTIONS = ("generators", "triggers", "assign")


def read_json(path: Path) -> Dict[str, Any]:
    """
    Read a JSON object from a file.

    Raises:
        FileNotFoundError: If the file doesn't exist
        ValueError: If the file is empty
        SchemaError: If the content is not a JSON object
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Schema file not found: {path}")

    file_content = path.read_text(encoding="utf-8").strip()
    if not file_content:
        raise ValueError(f"Schema file is empty: {path}")

    try:
        data = json.loads(file_content)
    except json.JSONDecodeError as e:
        raise SchemaError(f"Invalid JSON in {path}: {e}") from e
    if not isinstance(data, dict):
        raise SchemaError(f"Schema file {path} must contain a JSON object")
    return data


def merge_document(target: Dict[str, Any], included: Dict[str, Any]) -> None:
    """Merge an included (already expanded) document into the including one."""
    for section in LIST_SECTIONS:
        if included.get(section):
            target[section] = list(target.get(section) or []) + list(included[section])

    if included.get("snippets"):
        target["snippets"] = {**(target.get("snippets") or {}), **included["snippets"]}

    if included.get("entities"):
        target["entities"] = {**included["entities"], **(target.get("entities") or {})}


def _expand_includes(path: Path, extra: List[Path], stack: List[Path]) -> Dict[str, Any]:
    path = Path(path).resolve()
    if path in stack:
        chain = " -> ".join(p.name for p in stack + [path])
        raise SchemaError(f"Circular include detected: {chain}")

    data = read_json(path)
    includes = [Path(p) for p in extra] + [path.parent / name for name in data.get("include") or []]

    stack.append(path)
    try:
        for include_path in includes:
            logger.debug(f"Merging {include_path} into {path.name}")
            merge_document(data, _expand_includes(include_path, [], stack))
    finally:
        stack.pop()

    data["include"] = []
    return data


def load_schema(path: Path, include: Optional[Path] = None) -> SchemaDocument:
    """
    Load a schema document, merging every included file.

    Args:
        path: Path to the schema JSON file
        include: Optional extra file merged before the document's own includes

    Returns:
        Validated SchemaDocument with includes merged

    Raises:
        FileNotFoundError: If a file doesn't exist
        ValueError: If a file is empty
        SchemaError: On invalid JSON, an invalid document or a circular include
    """
    data = _expand_includes(Path(path), [include] if include else [], [])
    try:
        document = SchemaDocument.model_validate(data)
    except ValidationError as e:
        raise SchemaError(f"Invalid schema document {path}: {e}") from e

    logger.info(
        f"Loaded schema {path}: {len(document.entities)} entities, "
        f"{len(document.generators)} generators"
    )
    return document
