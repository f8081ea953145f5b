# -*- coding: utf-8 -*-
"""
Centralized logging configuration for the Formation importer.

Provides consistent logging setup across all modules with optional file output and
real-time log streaming. The CLI entry point calls setup_logging() once, then each
module uses logger = get_logger(__name__). Driver and HTTP library loggers are
held at WARNING so per-entity progress lines stay readable during long imports.

Author: Formation Graph maintainers
Created: 2025-12-21
Modified: 2026-10-19

References:
    - See formation_graph/graph/neo4j_import_processor.py for the --log-file
      and --verbose flags

Examples:
    # In main script or entry point
    from formation_graph.utils.logger import setup_logging
    setup_logging(log_file="logs/import.log")

    # In any module
    from formation_graph.utils.logger import get_logger
    logger = get_logger(__name__)
    logger.info("Merging Product 42")
"""
# Standard library
import logging
import sys
from pathlib import Path
from typing import Optional

DEFAULT_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

# Libraries that log every connection or query at INFO/DEBUG
NOISY_LOGGERS = ("neo4j", "urllib3")

# Global flag to prevent duplicate configuration
_logging_configured = False


def setup_logging(
    level: int = logging.INFO,
    log_file: Optional[str] = None,
    format_string: str = DEFAULT_FORMAT
) -> None:
    """
    Configure logging for an import run.

    Sets up console output and optional file output with consistent formatting.
    Should be called once at the application entry point. Safe to call multiple
    times (will only configure on first call).

    Args:
        level: Logging level (default: logging.INFO, DEBUG with --verbose)
        log_file: Optional path to log file. If provided, creates the parent
                  directory and appends to the file in addition to console
        format_string: Log message format (default: timestamp, module, level, message)

    Example:
        >>> setup_logging(logging.DEBUG, log_file="logs/import_vogue_de.log")
        >>> get_logger(__name__).debug("Merging Product 42")
    """
    global _logging_configured

    # Only configure once to avoid duplicate handlers
    if _logging_configured:
        return

    formatter = logging.Formatter(format_string)
    handlers = []

    # Console handler (always included)
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    handlers.append(console_handler)

    # File handler (optional)
    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_file, mode='a')
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    logging.basicConfig(
        level=level,
        handlers=handlers,
        force=True  # Override any existing configuration
    )

    # Keep library chatter out of the progress log, even with --verbose
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))

    # Unbuffered output so progress lines show up while the import runs
    if hasattr(sys.stdout, 'reconfigure'):
        sys.stdout.reconfigure(line_buffering=True)
    if hasattr(sys.stderr, 'reconfigure'):
        sys.stderr.reconfigure(line_buffering=True)

    _logging_configured = True


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance for a module.

    Every importer module calls this at import time, so the logger names
    follow the package layout (formation_graph.graph.entity_sequencer, ...)
    and can be filtered per component.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Logger instance

    Example:
        >>> logger = get_logger(__name__)
        >>> logger.info("Page 1: 200 entities")
    """
    return logging.getLogger(name)
