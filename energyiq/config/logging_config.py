"""
Logging setup for the CLI.
"""

import logging
from typing import Union

from rich.console import Console
from rich.logging import RichHandler

_LOGGING_CONFIGURED = False


def setup_logging(level: Union[int, str] = logging.INFO, console: Console = None) -> logging.Logger:
    """Attach a Rich handler to the energyiq logger once.

    Log records go to stderr so they never mix with the chat transcript.
    """
    global _LOGGING_CONFIGURED

    logger = logging.getLogger("energyiq")
    logger.setLevel(level)

    if _LOGGING_CONFIGURED:
        return logger

    handler = RichHandler(
        console=console or Console(stderr=True),
        show_path=False,
        rich_tracebacks=True
    )
    handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))
    logger.addHandler(handler)

    _LOGGING_CONFIGURED = True
    return logger
