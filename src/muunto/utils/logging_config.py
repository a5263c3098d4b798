"""Logging setup for applications hosting muunto.

Library modules only create their own ``logging.getLogger(__name__)``
loggers; this helper is for the hosting process to route them to
stdout at a configured level.
"""

import logging
import sys
from typing import Optional

# Global flag to track if logging has been set up
_LOGGING_CONFIGURED = False

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(level: Optional[str] = None) -> None:
    """Configure root logging once.

    Repeated calls are ignored so that handlers are never duplicated.

    :param level: Logging level name, defaults to ``settings.log_level``
    :type level: Optional[str]
    :return: None
    :rtype: None
    """
    global _LOGGING_CONFIGURED

    if _LOGGING_CONFIGURED:
        logging.getLogger(__name__).debug(
            "Logging already configured, skipping duplicate setup"
        )
        return

    if level is None:
        from ..config.settings import settings

        level = settings.log_level

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))

    logging.basicConfig(
        level=getattr(logging, level.upper()),
        handlers=[handler],
        force=True,
    )
    logging.getLogger("muunto").setLevel(getattr(logging, level.upper()))

    _LOGGING_CONFIGURED = True


def reset_logging() -> None:
    """Allow ``setup_logging`` to run again (used by tests)."""
    global _LOGGING_CONFIGURED
    _LOGGING_CONFIGURED = False
