"""
Logging setup for a11y-intelligence.

Every module logs through a child of the "a11y-intelligence" logger
(get_logger("audit_store") -> "a11y-intelligence.audit_store"), so one
audit's adapter, reconciler, scoring and persistence lines land in the same
rotating file in order.

Environment:
- LOG_LEVEL: level for the project logger (default INFO)
- LOG_DIR: directory of the shared log file (default logs)
- LOG_TO_FILE: "false" keeps output on the console only
- LOG_MAX_BYTES / LOG_BACKUP_COUNT: rotation (default 10 MB x 5)
"""

import logging
import os
import sys
from pathlib import Path
from logging.handlers import RotatingFileHandler

from dotenv import load_dotenv


# Load environment
load_dotenv()

PROJECT_LOGGER = "a11y-intelligence"

CONSOLE_FORMAT = "%(levelname)s [%(component)s] %(message)s"
FILE_FORMAT = "%(asctime)s - %(component)s - %(levelname)s - %(threadName)s - %(message)s"


class ComponentFilter(logging.Filter):
    """Adds `component`: the logger name without the project prefix."""

    def filter(self, record: logging.LogRecord) -> bool:
        prefix = PROJECT_LOGGER + "."
        record.component = record.name[len(prefix):] if record.name.startswith(prefix) else record.name
        return True


def _qualified(name: str) -> str:
    if not name or name == PROJECT_LOGGER or name.startswith(PROJECT_LOGGER + "."):
        return name or PROJECT_LOGGER
    return f"{PROJECT_LOGGER}.{name}"


def setup_logging(
    name: str = PROJECT_LOGGER,
    log_level: str = None,
    log_file: str = None,
) -> logging.Logger:
    """
    Install console and rotating file handlers on the project logger.

    Args:
        name: Component name; handlers always go on the project logger
        log_level: Log level (default: from LOG_LEVEL env var or INFO)
        log_file: Log file path (default: {LOG_DIR}/a11y-intelligence.log)

    Returns:
        The logger for `name`
    """
    if log_level is None:
        log_level = os.getenv("LOG_LEVEL", "INFO").upper()
    numeric_level = getattr(logging, log_level, logging.INFO)

    root = logging.getLogger(PROJECT_LOGGER)
    root.setLevel(numeric_level)

    # Remove existing handlers to avoid duplicates
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()

    component_filter = ComponentFilter()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(numeric_level)
    console_handler.setFormatter(logging.Formatter(CONSOLE_FORMAT))
    console_handler.addFilter(component_filter)
    root.addHandler(console_handler)

    to_file = os.getenv("LOG_TO_FILE", "true").lower() not in ("0", "false", "no")
    if log_file is not None or to_file:
        if log_file is None:
            logs_dir = Path(os.getenv("LOG_DIR", "logs"))
            logs_dir.mkdir(parents=True, exist_ok=True)
            log_file = logs_dir / f"{PROJECT_LOGGER}.log"

        file_handler = RotatingFileHandler(
            log_file,
            maxBytes=int(os.getenv("LOG_MAX_BYTES", str(10 * 1024 * 1024))),
            backupCount=int(os.getenv("LOG_BACKUP_COUNT", "5")),
        )
        file_handler.setLevel(numeric_level)
        file_handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
        file_handler.addFilter(component_filter)
        root.addHandler(file_handler)

    root.debug(f"Logging initialized: level={log_level}, file={log_file or 'disabled'}")

    return logging.getLogger(_qualified(name))


def get_logger(name: str = PROJECT_LOGGER) -> logging.Logger:
    """
    Get the logger for a component, configuring the project logger on first use.

    Args:
        name: Component name (e.g. "audit_store")

    Returns:
        Logger named "a11y-intelligence.<name>"
    """
    if not logging.getLogger(PROJECT_LOGGER).handlers:
        setup_logging(name)

    return logging.getLogger(_qualified(name))
