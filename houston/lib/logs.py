"""Logging setup for the houston CLI."""

import logging
import os

LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


def resolve_level(verbose: bool = False) -> int:
    """Pick the log level from --verbose or HOUSTON_LOG_LEVEL."""
    if verbose:
        return logging.DEBUG
    raw = os.environ.get("HOUSTON_LOG_LEVEL", "").strip().lower()
    return LEVELS.get(raw, logging.WARNING)


def setup_logging(verbose: bool = False) -> None:
    """Configure the root logger once. Logs go to stderr."""
    logging.basicConfig(
        level=resolve_level(verbose),
        format="%(levelname)s %(name)s: %(message)s",
    )
