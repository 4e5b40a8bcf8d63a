"""Logging setup for the CLI"""

import logging
import sys


LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(log_level: str = "INFO") -> None:
    """Configure root logging once; later calls only adjust the level."""
    level = log_level.upper()
    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(level=level, format=LOG_FORMAT, handlers=[logging.StreamHandler(sys.stderr)])
    root.setLevel(level)

    # markdown-it is chatty at DEBUG
    logging.getLogger("markdown_it").setLevel(logging.WARNING)
