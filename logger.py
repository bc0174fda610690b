"""
Run logging for bbplus.

One named logger, "bbplus", writes to stdout and, unless disabled, to a
timestamped file under logs/. Modules import this module and call the level
helpers directly (log.info(...)), so nothing else needs to hold a Logger.
"""
import logging
import os
import sys
from datetime import datetime

DEBUG = logging.DEBUG
INFO = logging.INFO
WARNING = logging.WARNING
ERROR = logging.ERROR
CRITICAL = logging.CRITICAL

LOGGER_NAME = "bbplus"
LOG_DIR = "logs"

LINE_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_logger = None


def _formatter():
    return logging.Formatter(LINE_FORMAT, datefmt=DATE_FORMAT)


def _console_handler(level):
    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(_formatter())
    return handler


def _file_handler(level):
    """Open logs/bbplus_<timestamp>.log, creating the directory on first use."""
    os.makedirs(LOG_DIR, exist_ok=True)
    stamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    handler = logging.FileHandler(os.path.join(LOG_DIR, f"{LOGGER_NAME}_{stamp}.log"))
    handler.setLevel(level)
    handler.setFormatter(_formatter())
    return handler


def setup_logger(level=logging.INFO, log_to_file=True, console_level=None):
    """
    Configure the bbplus logger once per process.

    Later calls return the logger already built and ignore their arguments.

    Args:
        level (int): Logger and file level
        log_to_file (bool): Also write to logs/bbplus_<timestamp>.log
        console_level (int, optional): Level for stdout, defaults to level

    Returns:
        logging.Logger: The bbplus logger
    """
    global _logger
    if _logger is not None:
        return _logger

    built = logging.getLogger(LOGGER_NAME)
    built.setLevel(level)
    built.handlers = [_console_handler(level if console_level is None else console_level)]
    if log_to_file:
        built.addHandler(_file_handler(level))

    _logger = built
    return _logger


def get_logger():
    """Return the bbplus logger, configuring it with defaults on first use."""
    return _logger if _logger is not None else setup_logger()


def attach(name, level=logging.DEBUG):
    """
    Send another library's logger to the bbplus console and log file.

    --debug uses this for the selenium logger, which carries the WebDriver
    command traffic.

    Returns:
        logging.Logger: The attached logger
    """
    target = logging.getLogger(name)
    target.setLevel(level)
    target.propagate = False
    for handler in get_logger().handlers:
        if handler not in target.handlers:
            target.addHandler(handler)
    return target


def _forward(method):
    def emit(msg, *args, **kwargs):
        getattr(get_logger(), method)(msg, *args, **kwargs)

    emit.__name__ = method
    emit.__doc__ = f"Log msg at {method.upper()} level on the bbplus logger."
    return emit


debug = _forward("debug")
info = _forward("info")
warning = _forward("warning")
error = _forward("error")
critical = _forward("critical")
