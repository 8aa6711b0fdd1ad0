from imodclip.logging.ilogger import ILogger


class NullLogger(ILogger):
    """
    Discards every message. Used until :func:`imodclip.logging.configure` is
    called.
    """

    def debug(self, message: str, additional_depth: int = 0) -> None:
        pass

    def info(self, message: str, additional_depth: int = 0) -> None:
        pass

    def warning(self, message: str, additional_depth: int = 0) -> None:
        pass

    def error(self, message: str, additional_depth: int = 0) -> None:
        pass

    def critical(self, message: str, additional_depth: int = 0) -> None:
        pass
