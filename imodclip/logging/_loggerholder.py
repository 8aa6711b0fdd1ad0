from imodclip.logging.ilogger import ILogger
from imodclip.logging.nulllogger import NullLogger


class _LoggerHolder(ILogger):
    """
    Forwards every call to the logger configured at that moment.

    Modules bind ``imodclip.logging.logger`` at import time, e.g. as a default
    argument. Since the holder object stays the same and only its
    :attr:`instance` is replaced by :func:`imodclip.logging.configure`, such
    bindings pick up a logger that is configured later on.
    """

    def __init__(self) -> None:
        self._instance: ILogger = NullLogger()

    @property
    def instance(self) -> ILogger:
        """
        The actual ILogger object.
        """
        return self._instance

    @instance.setter
    def instance(self, value: ILogger) -> None:
        self._instance = value

    def debug(self, message: str, additional_depth: int = 0) -> None:
        self.instance.debug(message, additional_depth)

    def info(self, message: str, additional_depth: int = 0) -> None:
        self.instance.info(message, additional_depth)

    def warning(self, message: str, additional_depth: int = 0) -> None:
        self.instance.warning(message, additional_depth)

    def error(self, message: str, additional_depth: int = 0) -> None:
        self.instance.error(message, additional_depth)

    def critical(self, message: str, additional_depth: int = 0) -> None:
        self.instance.critical(message, additional_depth)
