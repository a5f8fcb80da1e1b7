#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/safemd/utils/decorators.py
"""Timing helpers for the render pipeline."""

from __future__ import annotations

import logging
import time
from contextlib import contextmanager
from typing import Generator


@contextmanager
def debug_timer(logger: logging.Logger, operation: str) -> Generator[None, None, None]:
    """Time a pipeline pass and log the elapsed time at DEBUG level.

    Nothing is measured when DEBUG logging is disabled for ``logger``.

    Parameters
    ----------
    logger : logging.Logger
        Logger receiving the timing message
    operation : str
        Name of the pass, e.g. ``"Sanitizing"``

    Examples
    --------
        >>> with debug_timer(logger, "Parsing"):
        ...     document = markdown_to_ast(text)
        ... # Logs: "Parsing completed in 0.0012s"

    """
    if not logger.isEnabledFor(logging.DEBUG):
        yield
        return

    start_time = time.perf_counter()
    try:
        yield
    finally:
        elapsed = time.perf_counter() - start_time
        logger.debug(f"{operation} completed in {elapsed:.4f}s")
