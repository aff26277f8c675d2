"""CSV output for populated tables."""

import time
from pathlib import Path

import pandas as pd

from crudio.config.logging import get_logger
from crudio.generation.error_logging import log_error

logger = get_logger(__name__)


def write_csv(df: pd.DataFrame, path: Path) -> None:
    """
    Write one table to path, header row first, without the index column.

    Raises:
        OSError: If the file can not be written
    """
    path = Path(path)
    started = time.time()
    try:
        df.to_csv(path, index=False)
    except OSError as e:
        log_error(
            error=e,
            operation="write table",
            context={"path": str(path), "rows": len(df), "directory_exists": path.parent.is_dir()},
        )
        raise
    logger.info(f"{path.name}: {len(df)} row(s) x {df.shape[1]} column(s) in {time.time() - started:.3f}s")
