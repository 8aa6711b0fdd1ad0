from enum import Enum


class LogLevel(Enum):
    """
    Severity levels understood by all logger wrappers.

    The values match the numeric levels of the standard library ``logging``
    module, which loguru accepts as well.
    """

    DEBUG = 10
    """
    Detailed information: every companion file copied, every record count.
    """
    INFO = 20
    """
    Progress information: every file processed, the run summary.
    """
    WARNING = 30
    """
    Something is off, but the file was still handled: e.g. a missing
    associated file or an inconsistent column count.
    """
    ERROR = 40
    """
    A file could not be clipped and was skipped or copied instead.
    """
    CRITICAL = 50
    """
    The run cannot continue.
    """

    @classmethod
    def from_name(cls, name: str) -> "LogLevel":
        try:
            return cls[name.upper()]
        except KeyError:
            valid = ", ".join(level.name for level in cls)
            raise ValueError(f"Unknown log level {name!r}, expected one of: {valid}")
