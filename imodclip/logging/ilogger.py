from abc import ABC, abstractmethod

from imodclip.logging.loglevel import LogLevel


class ILogger(ABC):
    """
    Interface of the logger wrappers.

    Every method accepts an ``additional_depth``, added to the stack depth
    that determines the reported file name and line number. Log from a
    decorator with ``additional_depth`` set, so the decorated call is
    reported instead of the decorator.
    """

    @abstractmethod
    def debug(self, message: str, additional_depth: int = 0) -> None: ...

    @abstractmethod
    def info(self, message: str, additional_depth: int = 0) -> None: ...

    @abstractmethod
    def warning(self, message: str, additional_depth: int = 0) -> None: ...

    @abstractmethod
    def error(self, message: str, additional_depth: int = 0) -> None: ...

    @abstractmethod
    def critical(self, message: str, additional_depth: int = 0) -> None: ...

    def log(self, loglevel: LogLevel, message: str, additional_depth: int = 0) -> None:
        """
        Log ``message`` with severity ``loglevel``.
        """
        if not isinstance(loglevel, LogLevel):
            raise ValueError(f"Unknown log level {loglevel!r}")
        method = getattr(self, loglevel.name.lower())
        method(message, additional_depth)
