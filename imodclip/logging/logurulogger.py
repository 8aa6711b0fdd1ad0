import sys
from pathlib import Path
from typing import Union

from loguru import logger

from imodclip.logging.ilogger import ILogger
from imodclip.logging.loglevel import LogLevel


def _depth_level(additional_depth: int) -> int:
    """
    Depth for ``logger.opt``: skips the wrapper and the holder, so loguru
    reports the caller's file name and line number.
    """
    default_depth = 2
    return default_depth + additional_depth


class LoguruLogger(ILogger):
    """
    Logs messages with the loguru logging framework.

    Note that this removes all handlers of the global loguru logger, including
    the default stderr handler.
    """

    def __init__(
        self,
        log_level: LogLevel,
        add_default_stream_handler: bool,
        add_default_file_handler: bool,
        log_file: Union[str, Path] = "imodclip.log",
    ) -> None:
        logger.remove()

        if add_default_stream_handler:
            logger.add(sys.stdout, level=log_level.value)
        if add_default_file_handler:
            logger.add(log_file, level=log_level.value)

    def debug(self, message: str, additional_depth: int = 0) -> None:
        logger.opt(depth=_depth_level(additional_depth)).debug(message)

    def info(self, message: str, additional_depth: int = 0) -> None:
        logger.opt(depth=_depth_level(additional_depth)).info(message)

    def warning(self, message: str, additional_depth: int = 0) -> None:
        logger.opt(depth=_depth_level(additional_depth)).warning(message)

    def error(self, message: str, additional_depth: int = 0) -> None:
        logger.opt(depth=_depth_level(additional_depth)).error(message)

    def critical(self, message: str, additional_depth: int = 0) -> None:
        logger.opt(depth=_depth_level(additional_depth)).critical(message)
