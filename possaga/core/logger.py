"""
Logger lookup for possaga modules.

Every module asks ``get_logger(__name__)`` for its logger, so all records
land under the ``possaga`` tree that ``setup_transaction_logging``
configures. An application that logs through something else can install
its own object with ``set_logger``; it needs debug/info/warning/error/
critical methods accepting ``exc_info`` and ``extra``.
"""

import logging
from typing import Any

_override: Any = None


def set_logger(logger: Any) -> None:
    """Route every possaga module to ``logger``. ``None`` restores stdlib logging."""
    global _override
    _override = logger


def get_logger(name: str = "possaga") -> Any:
    """Return the override if one is installed, else ``logging.getLogger(name)``."""
    if _override is not None:
        return _override

    logger = logging.getLogger(name)
    # Library default: stay silent until the application adds handlers
    if not logger.handlers:
        logger.addHandler(logging.NullHandler())
    return logger
