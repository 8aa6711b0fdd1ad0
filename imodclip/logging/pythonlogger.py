import logging
import sys
from pathlib import Path
from typing import Union

from imodclip.logging.ilogger import ILogger
from imodclip.logging.loglevel import LogLevel

LOGGER_NAME = "imodclip"


def _formatter() -> logging.Formatter:
    return logging.Formatter(
        "%(name)s: %(asctime)s | %(levelname)s | %(filename)s:%(lineno)s >>> %(message)s"
    )


def _stack_level(additional_depth: int) -> int:
    """
    Stack level for ``logging``: skips the wrapper and the holder, so the
    reported file name and line number are those of the caller.
    """
    default_stack_level = 3
    return default_stack_level + additional_depth


class PythonLogger(ILogger):
    """
    Logs messages to the ``imodclip`` logger of the standard library
    ``logging`` framework.

    Handlers added by a previous :class:`PythonLogger` are removed first, so
    configuring twice does not duplicate the output.
    """

    def __init__(
        self,
        log_level: LogLevel,
        add_default_stream_handler: bool,
        add_default_file_handler: bool,
        log_file: Union[str, Path] = "imodclip.log",
    ) -> None:
        self.logger = logging.getLogger(LOGGER_NAME)
        self.logger.setLevel(log_level.value)
        self._remove_own_handlers()

        if add_default_stream_handler:
            self._add_handler(logging.StreamHandler(stream=sys.stdout))
        if add_default_file_handler:
            self._add_handler(logging.FileHandler(log_file))

    def debug(self, message: str, additional_depth: int = 0) -> None:
        self.logger.debug(message, stacklevel=_stack_level(additional_depth))

    def info(self, message: str, additional_depth: int = 0) -> None:
        self.logger.info(message, stacklevel=_stack_level(additional_depth))

    def warning(self, message: str, additional_depth: int = 0) -> None:
        self.logger.warning(message, stacklevel=_stack_level(additional_depth))

    def error(self, message: str, additional_depth: int = 0) -> None:
        self.logger.error(message, stacklevel=_stack_level(additional_depth))

    def critical(self, message: str, additional_depth: int = 0) -> None:
        self.logger.critical(message, stacklevel=_stack_level(additional_depth))

    def _add_handler(self, handler: logging.Handler) -> None:
        handler.setFormatter(_formatter())
        handler._imodclip = True
        self.logger.addHandler(handler)

    def _remove_own_handlers(self) -> None:
        for handler in list(self.logger.handlers):
            if getattr(handler, "_imodclip", False):
                self.logger.removeHandler(handler)
                handler.close()
