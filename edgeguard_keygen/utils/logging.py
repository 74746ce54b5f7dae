"""Logging configuration for the keygen CLI."""

import logging
import sys
from typing import Optional


def setup_logging(verbose: bool = False, log_file: Optional[str] = None) -> None:
    """
    Setup logging configuration for the CLI.

    Args:
        verbose: Enable verbose/debug logging
        log_file: Optional log file path
    """
    level = logging.DEBUG if verbose else logging.INFO

    formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    # stderr keeps `list --format json` output clean on stdout
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    # Replace handlers from an earlier call in the same process
    for handler in list(root_logger.handlers):
        if getattr(handler, "_keygen_handler", False):
            root_logger.removeHandler(handler)
            handler.close()

    console_handler._keygen_handler = True
    root_logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(formatter)
        file_handler._keygen_handler = True
        root_logger.addHandler(file_handler)
