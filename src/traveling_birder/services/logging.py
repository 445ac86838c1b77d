"""Logging setup for command-line entry points.

Library modules only call ``logging.getLogger(__name__)``; configuring
handlers is left to whoever owns the process.
"""

from __future__ import annotations

import logging

DEFAULT_FORMAT = "[%(asctime)s] %(levelname)s - %(name)s - %(message)s"


def setup_logging(level: str | int = "INFO", fmt: str = DEFAULT_FORMAT) -> None:
    """Configure the root logger once for a CLI run."""
    if isinstance(level, str):
        level = level.upper()
    logging.basicConfig(level=level, format=fmt)
    # urllib3 logs every retry at DEBUG, which drowns out search progress.
    logging.getLogger("urllib3").setLevel(max(logging.getLogger().level, logging.INFO))
