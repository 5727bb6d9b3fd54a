# server/core/logging_config.py
"""
Logging setup shared by the API process and the CLI entrypoint
"""

import logging
import sys
from pathlib import Path
from typing import Optional, Union

DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logging(
    component_name: str = "cloudbsd-admin",
    level: Union[int, str] = logging.INFO,
    log_file: Optional[str] = None,
    format_string: Optional[str] = None,
) -> logging.Logger:
    """
    Configure the root logger once per process.

    Args:
        component_name: Label printed in every line
        level: Logging level name or number
        log_file: Optional file path for a second handler
        format_string: Custom format string (default provided)
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    if format_string is None:
        format_string = f"[%(asctime)s] [{component_name.upper()}] %(levelname)s - %(name)s - %(message)s"

    logging.basicConfig(
        level=level,
        format=format_string,
        datefmt=DATE_FORMAT,
        handlers=[logging.StreamHandler(sys.stdout)],
    )

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path)
        file_handler.setFormatter(logging.Formatter(format_string, datefmt=DATE_FORMAT))
        logging.getLogger().addHandler(file_handler)

    logger = logging.getLogger(component_name)
    logger.info(f"{component_name} logging initialized (level={logging.getLevelName(level)})")
    return logger
