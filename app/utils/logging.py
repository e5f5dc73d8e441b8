"""
Logging utility module.

Console logging is configured in ``main.py``; this module adds an optional
daily log file on top of it.
"""

import logging
from datetime import datetime
from pathlib import Path

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Create logger
logger = logging.getLogger("app")

def setup_file_logging(log_dir: str = "logs") -> Path:
    """
    Set up file logging in addition to console logging.

    Args:
        log_dir: Directory to store log files

    Returns:
        Path of the log file in use
    """
    # Create log directory if it doesn't exist
    log_path = Path(log_dir)
    log_path.mkdir(parents=True, exist_ok=True)

    timestamp = datetime.now().strftime("%Y%m%d")
    log_file = log_path / f"app_{timestamp}.log"

    # Calling twice must not duplicate every line
    for handler in logger.handlers:
        if isinstance(handler, logging.FileHandler) and Path(handler.baseFilename) == log_file.resolve():
            return log_file

    file_handler = logging.FileHandler(log_file, encoding="utf-8")
    file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(file_handler)
    return log_file
