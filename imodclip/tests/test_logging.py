import logging
from unittest.mock import patch

import pytest

import imodclip.logging
from imodclip.logging import LoggerType, LogLevel, standard_log_decorator
from imodclip.logging.logurulogger import LoguruLogger
from imodclip.logging.nulllogger import NullLogger
from imodclip.logging.pythonlogger import LOGGER_NAME, PythonLogger


def test_logging_no_configuration():
    # Arrange.
    logger = imodclip.logging.logger

    # Assert.
    assert isinstance(logger.instance, NullLogger)


@pytest.mark.parametrize(
    ("logger_type", "logger_class"),
    [
        (LoggerType.NULL, NullLogger),
        (LoggerType.PYTHON, PythonLogger),
        (LoggerType.LOGURU, LoguruLogger),
    ],
)
def test_logging_configure_logger(logger_type, logger_class):
    # Arrange.
    imodclip.logging.configure(logger_type)
    logger = imodclip.logging.logger

    # Assert.
    assert isinstance(logger.instance, logger_class)


def test_logging_change_logger_during_runtime():
    def test_method(logger=imodclip.logging.logger):
        assert isinstance(logger.instance, LoguruLogger)

    # Arrange.
    imodclip.logging.configure(LoggerType.PYTHON)
    assert isinstance(imodclip.logging.logger.instance, PythonLogger)

    # Act.
    imodclip.logging.configure(LoggerType.LOGURU)

    # Assert
    test_method()
    assert isinstance(imodclip.logging.logger.instance, LoguruLogger)


@pytest.mark.parametrize(
    ("logger_type", "patched_logger"),
    [
        (LoggerType.NULL, "imodclip.logging.config.NullLogger"),
        (LoggerType.PYTHON, "imodclip.logging.config.PythonLogger"),
        (LoggerType.LOGURU, "imodclip.logging.config.LoguruLogger"),
    ],
)
def test_logging_calls_forwarded_to_loggers(logger_type, patched_logger):
    with patch(patched_logger) as MockClass:
        # Arrange.
        imodclip.logging.configure(logger_type)
        logger = imodclip.logging.logger

        # Act.
        logger.debug("debug message")
        logger.info("info message")
        logger.warning("warning message")
        logger.error("error message")
        logger.critical("critical message")

        # Assert.
        logger_instance = MockClass.return_value
        logger_instance.debug.assert_called_with("debug message", 0)
        logger_instance.info.assert_called_with("info message", 0)
        logger_instance.warning.assert_called_with("warning message", 0)
        logger_instance.error.assert_called_with("error message", 0)
        logger_instance.critical.assert_called_with("critical message", 0)


@pytest.mark.parametrize(
    "logger_level",
    [
        LogLevel.DEBUG,
        LogLevel.INFO,
        LogLevel.WARNING,
        LogLevel.ERROR,
        LogLevel.CRITICAL,
    ],
)
@pytest.mark.parametrize("add_default_stream_handler", [True, False])
@pytest.mark.parametrize("add_default_file_handler", [True, False])
@pytest.mark.parametrize(
    ("logger_type", "patched_logger"),
    [
        (LoggerType.PYTHON, "imodclip.logging.config.PythonLogger"),
        (LoggerType.LOGURU, "imodclip.logging.config.LoguruLogger"),
    ],
)
def test_logging_configure_param_forwarded_to_loggers(
    logger_type,
    patched_logger,
    logger_level,
    add_default_stream_handler,
    add_default_file_handler,
):
    with patch(patched_logger) as MockClass:
        # Arrange/ Act.
        imodclip.logging.configure(
            logger_type,
            logger_level,
            add_default_stream_handler,
            add_default_file_handler,
            "clip.log",
        )

        # Assert.
        MockClass.assert_called_with(
            logger_level, add_default_stream_handler, add_default_file_handler, "clip.log"
        )


def test_log_level_dispatch():
    with patch("imodclip.logging.config.PythonLogger") as MockClass:
        imodclip.logging.configure(LoggerType.PYTHON)
        imodclip.logging.logger.log(LogLevel.WARNING, "warning message")
        MockClass.return_value.warning.assert_called_with("warning message", 0)


def test_standard_log_decorator():
    class Runner:
        @standard_log_decorator()
        def run(self, value):
            return value * 2

    with patch("imodclip.logging.config.PythonLogger") as MockClass:
        imodclip.logging.configure(LoggerType.PYTHON)
        assert Runner().run(3) == 6

        messages = [c.args[0] for c in MockClass.return_value.info.call_args_list]
        assert messages[0] == "Starting Runner.run ..."
        assert messages[1].startswith("Finished Runner.run in")


def test_python_logger_file_handler(tmp_path):
    log_file = tmp_path / "clip.log"
    imodclip.logging.configure(
        LoggerType.PYTHON,
        LogLevel.INFO,
        add_default_stream_handler=False,
        add_default_file_handler=True,
        log_file=log_file,
    )
    imodclip.logging.logger.info("written to file")
    imodclip.logging.logger.debug("below level")
    for handler in logging.getLogger(LOGGER_NAME).handlers:
        handler.flush()

    text = log_file.read_text()
    assert "written to file" in text
    assert "below level" not in text


def test_python_logger_configured_twice():
    imodclip.logging.configure(LoggerType.PYTHON)
    imodclip.logging.configure(LoggerType.PYTHON)
    handlers = logging.getLogger(LOGGER_NAME).handlers
    assert len([h for h in handlers if getattr(h, "_imodclip", False)]) == 1


@pytest.mark.parametrize(
    "name, level", [("debug", LogLevel.DEBUG), ("Warning", LogLevel.WARNING)]
)
def test_log_level_from_name(name, level):
    assert LogLevel.from_name(name) == level


def test_log_level_from_unknown_name():
    with pytest.raises(ValueError, match="Unknown log level"):
        LogLevel.from_name("verbose")
