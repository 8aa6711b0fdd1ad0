from enum import Enum
from pathlib import Path
from typing import Union

import imodclip

from .loglevel import LogLevel
from .logurulogger import LoguruLogger
from .nulllogger import NullLogger
from .pythonlogger import PythonLogger


class LoggerType(Enum):
    """
    Logging frameworks to choose from in :func:`configure`.
    """

    PYTHON = "python"
    """
    Standard library ``logging``, on the ``imodclip`` logger.
    """
    LOGURU = "loguru"
    """
    ``loguru``.
    """
    NULL = "null"
    """
    Discards all messages; the default until configured.
    """


def configure(
    logger_type: LoggerType,
    log_level: LogLevel = LogLevel.WARNING,
    add_default_stream_handler: bool = True,
    add_default_file_handler: bool = False,
    log_file: Union[str, Path] = "imodclip.log",
) -> None:
    """
    Route the messages of imodclip to a logging framework.

    Parameters
    ----------
    logger_type : LoggerType
    log_level : LogLevel
        Messages below this level are dropped. WARNING by default.
    add_default_stream_handler : bool
        Print messages on stdout. True by default.
    add_default_file_handler : bool
        Append messages to ``log_file``. False by default.
    log_file : str or Path
        ``imodclip.log`` in the working directory by default.
    """
    if logger_type is LoggerType.NULL:
        imodclip.logging.logger.instance = NullLogger()
        return

    framework = {
        LoggerType.PYTHON: PythonLogger,
        LoggerType.LOGURU: LoguruLogger,
    }[logger_type]
    imodclip.logging.logger.instance = framework(
        log_level, add_default_stream_handler, add_default_file_handler, log_file
    )
