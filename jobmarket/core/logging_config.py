"""
Logging setup.

Modules log through `logging.getLogger(__name__)`; this only installs the
root handler and level once per process.
"""

import logging

from jobmarket.core.config import Settings

LOG_FORMAT = "%(asctime)s %(levelname)-8s [%(name)s] %(message)s"


def configure_logging(settings: Settings) -> None:
    """Configure the root logger from settings."""
    level = logging.DEBUG if settings.debug else settings.log_level.upper()
    root = logging.getLogger()

    if not root.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(handler)

    root.setLevel(level)

    # SQL echo is controlled by the engine, keep the logger quiet otherwise
    if not settings.sql_debug:
        logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
