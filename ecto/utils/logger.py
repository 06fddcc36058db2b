"""
Console logging setup and a handle over the console backend.

Tasks that restart applications swap the console handlers out for the
duration of the restart so shutdown/startup chatter never reaches the
terminal.
"""

import logging
import sys
from typing import Dict, List, Optional

CONSOLE = 'console'
LOG_FORMAT = '%(asctime)s [%(levelname)s] %(name)s: %(message)s'


def _is_console(handler: logging.Handler) -> bool:
    # FileHandler subclasses StreamHandler but writes to disk
    return isinstance(handler, logging.StreamHandler) and not isinstance(handler, logging.FileHandler)


def console_handler(stream=None) -> logging.Handler:
    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    return handler


def configure_logging(level='INFO', logger: Optional[logging.Logger] = None) -> logging.Logger:
    """Attach a single console handler to the root logger (idempotent)."""
    logger = logger or logging.getLogger()
    logger.setLevel(level.upper() if isinstance(level, str) else level)
    if not any(_is_console(h) for h in logger.handlers):
        logger.addHandler(console_handler())
    return logger


class LoggerBackends:
    """Add/remove named logging backends on a logger.

    Only the ``console`` backend is known: every non-file StreamHandler
    attached to the wrapped logger.
    """

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or logging.getLogger()
        self._removed: Dict[str, List[logging.Handler]] = {}

    def _check(self, name):
        if name != CONSOLE:
            raise ValueError(f"unknown logger backend: {name!r}")

    def remove_backend(self, name: str) -> List[logging.Handler]:
        self._check(name)
        handlers = [h for h in self.logger.handlers if _is_console(h)]
        for handler in handlers:
            self.logger.removeHandler(handler)
        self._removed.setdefault(name, []).extend(handlers)
        return handlers

    def add_backend(self, name: str, flush: bool = False) -> List[logging.Handler]:
        self._check(name)
        handlers = self._removed.pop(name, [])
        if not handlers and not any(_is_console(h) for h in self.logger.handlers):
            handlers = [console_handler()]
        for handler in handlers:
            if handler not in self.logger.handlers:
                self.logger.addHandler(handler)
            if flush:
                handler.flush()
        return handlers


# Default handle used by the migration tasks
console_backends = LoggerBackends()
