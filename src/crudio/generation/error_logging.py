"""Error logging for fatal build errors."""

import logging
import traceback
from typing import Any, Dict, Optional
from crudio.config.logging import get_logger
from .errors import CrudioError

logger = get_logger(__name__)


def describe_error(
    error: Exception,
    operation: Optional[str] = None,
    table_name: Optional[str] = None,
    field_name: Optional[str] = None,
    context: Optional[Dict[str, Any]] = None,
) -> str:
    """
    Build the single-line diagnostic for an error.

    For CrudioError the message already carries table/field/script, so
    explicit table and field names are only added when they differ.
    """
    known = (error.table, error.field) if isinstance(error, CrudioError) else (None, None)

    parts = [f"[{type(error).__name__}] {error}"]
    if operation:
        parts.append(f"Operation: {operation}")
    if table_name and table_name != known[0]:
        parts.append(f"Table: {table_name}")
    if field_name and field_name != known[1]:
        parts.append(f"Field: {field_name}")
    if context:
        parts.append("Context: " + ", ".join(f"{k}={v}" for k, v in context.items()))
    return " | ".join(parts)


def log_error(
    error: Exception,
    context: Optional[Dict[str, Any]] = None,
    operation: Optional[str] = None,
    table_name: Optional[str] = None,
    field_name: Optional[str] = None,
    log_level: str = "error",
) -> None:
    """
    Log an error before it propagates out of the pipeline.

    Args:
        error: Exception being reported
        context: Additional context (e.g., {'rows': 50})
        operation: Stage or operation being performed
        table_name: Table being processed
        field_name: Field being processed
        log_level: 'error', 'warning' or 'critical'
    """
    level = {"critical": logging.CRITICAL, "warning": logging.WARNING}.get(log_level.lower(), logging.ERROR)
    logger.log(level, describe_error(error, operation, table_name, field_name, context))
    logger.debug(f"Full traceback for {type(error).__name__}:\n{traceback.format_exc()}")
