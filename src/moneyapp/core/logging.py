"""Shared logging setup for the API process and the sync CLI."""

import logging
import sys

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logging(level: str = "INFO", json_output: bool = False) -> None:
    """
    Configure the root logger with a single console handler.

    Args:
        level: Log level ('DEBUG', 'INFO', 'WARNING', 'ERROR')
        json_output: Emit one JSON object per line instead of plain text
    """
    from moneyapp.api.middleware.logging import JSONLogFormatter

    log_level = getattr(logging, level.upper(), logging.INFO)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(log_level)
    if json_output:
        handler.setFormatter(JSONLogFormatter())
    else:
        handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    # Replace handlers so repeated calls (reload, CLI + app) don't duplicate output.
    root_logger.handlers = [handler]
