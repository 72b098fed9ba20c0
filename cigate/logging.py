"""Root logger setup for the ci-gate service.

LOGGING_LEVEL picks DEBUG, INFO, WARNING or ERROR; an unknown name means
INFO. At DEBUG every webhook payload and every public log request line is
logged. LOGGING_FORMAT replaces the line format, which by default names
the server thread that handled the delivery.
"""

import logging

from cigate.config import LoggingConfig

LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
}

DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - [%(threadName)s] %(message)s"

# HTTP client libraries log every connection at DEBUG
QUIET_LOGGERS = ("urllib3", "requests")


def _resolve_level(level: str) -> int:
    return LEVELS.get(level.upper().strip(), logging.INFO)


class CigateLogging:
    """Applies LoggingConfig to the root logger once at startup."""

    def __init__(self, config: LoggingConfig) -> None:
        self.level = _resolve_level(config.level)
        self._format = config.format or DEFAULT_FORMAT

    def setup(self) -> None:
        logging.basicConfig(level=self.level, format=self._format, force=True)
        for name in QUIET_LOGGERS:
            logging.getLogger(name).setLevel(max(self.level, logging.INFO))
