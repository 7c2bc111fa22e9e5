"""
Package logger. Writes to stderr at WARNING unless a gateway asks for more.
"""

import logging
from typing import Optional

LOGGER_NAME = "mediawiki_gateway"
LOG_FORMAT = "%(asctime)s %(name)s %(levelname)s: %(message)s"
DEFAULT_LEVEL = logging.WARNING


class GatewayLogger(logging.Logger):
    def __init__(self, name, level=logging.NOTSET):
        super().__init__(name, level)
        self._notices = set()

    def once(self, level, msg, *args, **kwargs) -> bool:
        """Log a notice (e.g. a deprecated argument) the first time it is seen.

        Returns True when the message was emitted.
        """
        key = (logging.getLevelName(level), msg % args if args else msg)
        if key in self._notices:
            return False
        self._notices.add(key)
        self.log(level, msg, *args, **kwargs)
        return True


logger = GatewayLogger(LOGGER_NAME, DEFAULT_LEVEL)


def configure_logging(level: Optional[int] = None) -> GatewayLogger:
    """Attach the stderr handler once and apply ``level`` when given."""
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)
    if level is not None:
        logger.setLevel(level)
    return logger


configure_logging()
