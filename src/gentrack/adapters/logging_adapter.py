import logging

from gentrack.core.interfaces.logging import LoggingPort
from gentrack.core.logging_config import coerce_level


class LoggingAdapter(LoggingPort):
    """LoggingPort backed by a stdlib logger.

    Adds no handlers of its own; sinks and the correlation id filter are set
    up once by `configure_logging`. Messages use the `[area:event] key=value`
    shape so scheduler, probe and callback lines can be filtered by prefix.
    """

    def __init__(self, name: str = "gentrack", log_level: int | str = logging.INFO):
        self._logger = logging.getLogger(name)
        self._logger.setLevel(coerce_level(log_level))
        self._logger.propagate = True

    @property
    def name(self) -> str:
        return self._logger.name

    def info(self, msg: str, *args):
        self._logger.info(msg, *args)

    def warning(self, msg: str, *args):
        self._logger.warning(msg, *args)

    def error(self, msg: str, *args):
        self._logger.error(msg, *args)

    def debug(self, msg: str, *args):
        self._logger.debug(msg, *args)
