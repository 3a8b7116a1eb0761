"""
Logging setup for the hostmon server.

Adds a VERBOSE level between DEBUG and INFO for per-point write records.
"""

import logging

VERBOSE = 15
logging.addLevelName(VERBOSE, "VERBOSE")

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def setup_logging(level: str = "INFO") -> None:
    """Configure root logging from a level name (DEBUG, VERBOSE, INFO, ...)."""
    resolved = logging.getLevelName(level.upper())
    if not isinstance(resolved, int):
        resolved = logging.INFO
    logging.basicConfig(level=resolved, format=LOG_FORMAT)
    logging.getLogger("hostmon").setLevel(resolved)
