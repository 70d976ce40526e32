"""
quotesmith.logging - Package logger and CLI log level.
"""

from __future__ import annotations

import logging

LOG_FORMAT = "%(levelname)s %(name)s: %(message)s"

logger = logging.getLogger("quotesmith")


def configure_logging(verbose: bool = False) -> None:
    """Set the quotesmith log level; --verbose shows retries and rotations.

    Only the package logger's level changes, so litellm and other libraries
    keep their own. A stderr handler is added to the root if none exists.
    """
    logging.basicConfig(format=LOG_FORMAT)
    logger.setLevel(logging.DEBUG if verbose else logging.WARNING)
