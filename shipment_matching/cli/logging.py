"""
Logging utilities for shipment_matching CLI.

Provides logging setup and header printing functions with tqdm compatibility.
"""

import logging
import sys
import time
from pathlib import Path

from shipment_matching.utils.tqdm_logging import TqdmLoggingHandler

PACKAGE_LOGGER = "shipment_matching"


class FlushingFileHandler(logging.FileHandler):
    """File handler that flushes after every record."""

    def emit(self, record):
        super().emit(record)
        self.flush()


def _console_handler(tqdm_compatible: bool, level: int) -> logging.Handler:
    if tqdm_compatible:
        return TqdmLoggingHandler(level=level)
    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    return handler


def setup_logging(
    script_name: str,
    execute: bool = False,
    log_dir: Path = Path("logs"),
    tqdm_compatible: bool = True,
    verbose: bool = False,
) -> logging.Logger:
    """
    Set up logging for a script.

    Args:
        script_name: Name of the script (for log file naming)
        execute: If True, log to file + console. If False, only console.
        log_dir: Directory for log files
        tqdm_compatible: If True, use TqdmLoggingHandler for clean progress bar output
        verbose: Show package DEBUG output on the console

    Returns:
        Configured logger instance
    """
    console_formatter = logging.Formatter("%(message)s")

    logger = logging.getLogger(script_name)
    logger.setLevel(logging.DEBUG)
    logger.handlers = []
    logger.propagate = False

    console_handler = _console_handler(tqdm_compatible, logging.INFO)
    console_handler.setFormatter(console_formatter)
    logger.addHandler(console_handler)

    # Package loggers: lookup warnings on the console, per-line summaries only when verbose
    pkg_logger = logging.getLogger(PACKAGE_LOGGER)
    pkg_logger.setLevel(logging.DEBUG)
    pkg_logger.handlers = []
    pkg_console_handler = _console_handler(
        tqdm_compatible, logging.DEBUG if verbose else logging.WARNING
    )
    pkg_console_handler.setFormatter(console_formatter)
    pkg_logger.addHandler(pkg_console_handler)
    pkg_logger.propagate = False

    # Suppress noisy driver logging
    logging.getLogger("neo4j").setLevel(logging.ERROR)

    if execute:
        log_dir.mkdir(parents=True, exist_ok=True)
        timestamp = time.strftime("%Y%m%d_%H%M%S")
        log_file = log_dir / f"{script_name}_{timestamp}.log"

        # File handler: DEBUG and above (detailed logs)
        file_handler = FlushingFileHandler(log_file, mode="a", encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(
            logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
        )
        logger.addHandler(file_handler)
        pkg_logger.addHandler(file_handler)

        logger.info(f"Log file: {log_file}")

    return logger


def print_dry_run_header(title: str, logger: logging.Logger | None = None):
    """
    Print a standard dry-run header.

    Args:
        title: Title for the dry-run section
        logger: Optional logger instance
    """
    if logger is None:
        logger = logging.getLogger(__name__)

    logger.info("=" * 70)
    logger.info(f"{title} (Dry Run)")
    logger.info("=" * 70)


def print_execute_header(title: str, logger: logging.Logger | None = None):
    """
    Print a standard execute mode header.

    Args:
        title: Title for the execute section
        logger: Optional logger instance
    """
    if logger is None:
        logger = logging.getLogger(__name__)

    logger.info("=" * 70)
    logger.info(title)
    logger.info("=" * 70)
