"""
Logging support for imodclip.

Nothing is logged until a logging framework is configured:

>>> import imodclip
>>> from imodclip.logging import LoggerType, LogLevel
>>>
>>> imodclip.logging.configure(LoggerType.LOGURU, LogLevel.INFO)

Write the log to a file as well, using the standard library ``logging``:

>>> imodclip.logging.configure(
>>>     LoggerType.PYTHON,
>>>     LogLevel.INFO,
>>>     add_default_file_handler=True,
>>>     log_file="clip.log",
>>> )

To integrate into an existing ``logging`` setup, configure without default
handlers; messages are then emitted on the ``imodclip`` logger and handled by
the handlers of the root logger.

>>> imodclip.logging.configure(
>>>     LoggerType.PYTHON, LogLevel.INFO, add_default_stream_handler=False
>>> )
"""

from imodclip.logging._loggerholder import _LoggerHolder
from imodclip.logging.config import LoggerType, configure
from imodclip.logging.ilogger import ILogger  # noqa: I001
from imodclip.logging.loglevel import LogLevel
from imodclip.logging.logging_decorators import standard_log_decorator

logger = _LoggerHolder()
