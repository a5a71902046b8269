"""Logging configuration for the Aitoonic site."""

import logging
import sys
from pathlib import Path


def setup_logging(log_level: str = "INFO") -> None:
    """Set up logging configuration."""
    # Create logs directory if it doesn't exist
    log_dir = Path("logs")
    log_dir.mkdir(exist_ok=True)

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, log_level.upper()))

    # Already configured
    if any(getattr(handler, "_aitoonic", False) for handler in root_logger.handlers):
        return

    file_handler = logging.FileHandler(log_dir / "aitoonic.log")
    file_handler.setFormatter(logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s"))
    file_handler._aitoonic = True
    root_logger.addHandler(file_handler)

    # Stream handler for INFO and above
    stream_handler = logging.StreamHandler(sys.stdout)
    stream_handler.setFormatter(logging.Formatter("%(name)s - %(levelname)s - %(message)s"))
    stream_handler.setLevel(logging.INFO)
    stream_handler._aitoonic = True
    root_logger.addHandler(stream_handler)

    # MinIO's HTTP pool is chatty at DEBUG
    logging.getLogger("urllib3").setLevel(logging.WARNING)
