"""Logging configuration for ytorder.

Console output goes to stderr. With a log file, every record down to DEBUG is
also appended there, so the move log of a halted run is still around when
the next run resumes it.
"""

import sys
from pathlib import Path

from loguru import logger

# Remove default handler
logger.remove()

_info_format = "<level>{level: <7}</level> | {message}"
_debug_format = "<dim>{time:HH:mm:ss}</dim> | <level>{level: <7}</level> | {message}"
_file_format = "{time:YYYY-MM-DDTHH:mm:ss.SSSZZ} [{level}] {name}:{function} {message}"


def configure_logging(verbose: bool = False, log_file: Path | str | None = None) -> None:
    """Configure logging based on verbosity.

    Args:
        verbose: If True, show DEBUG level with timestamps. If False, show INFO and above.
        log_file: Append all records (DEBUG and up) to this file as well
    """
    logger.remove()
    if verbose:
        logger.add(sys.stderr, format=_debug_format, level="DEBUG")
    else:
        # Moves, skips and halts are all reported at INFO or above
        logger.add(sys.stderr, format=_info_format, level="INFO")

    if log_file is not None:
        path = Path(log_file).expanduser()
        path.parent.mkdir(parents=True, exist_ok=True)
        logger.add(path, format=_file_format, level="DEBUG", encoding="utf-8")
        logger.debug("Logging to {}", path)


__all__ = ["logger", "configure_logging"]
