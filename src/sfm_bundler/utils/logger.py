import logging
import sys
from datetime import datetime
from pathlib import Path

LOG_LEVELS = ["debug", "info", "warning", "error", "critical"]


def get_logger(name: str = None) -> logging.Logger:
    return logging.getLogger(name)


def change_logger_level(name: str = None, level: str = "warning"):
    """Set the level of every handler attached to the logger `name`."""
    logger = get_logger(name)
    log_level = logging.getLevelName(level.upper())
    for handler in logger.handlers:
        handler.setLevel(log_level)


def setup_logger(
    name: str = None,
    log_level: str = "info",
    log_folder: str = None,
    logfile_basename: str = "sfm_bundler",
) -> logging.Logger:
    """
    Configures and returns a logging.Logger instance.

    If a logger with the same name already has handlers, it is returned
    untouched, so importing the package more than once does not duplicate the
    console output.

    Args:
        name (str, optional): The name of the logger. If None, the root logger
            is used. Defaults to None.
        log_level (str, optional): Level for both console and file outputs, one
            of 'debug', 'info', 'warning', 'error', 'critical'. Defaults to 'info'.
        log_folder (str, optional): Directory where the log file is written.
            If None, only the console handler is created. Defaults to None.
        logfile_basename (str, optional): Base name of the log file. A
            timestamp is appended. Defaults to "sfm_bundler".

    Returns:
        logging.Logger: The configured logger.
    """
    if log_level not in LOG_LEVELS:
        raise ValueError(f"Invalid log level {log_level}. Valid options are: {LOG_LEVELS}")

    if logging.getLogger(name).hasHandlers():
        logger = logging.getLogger(name)
        logger.debug(f"Logger {logger.name} already exists")
        return logger

    if log_level == "debug":
        log_line_template = "%(color_on)s%(asctime)s | [%(filename)s -> %(funcName)s], line %(lineno)d - [%(levelname)-8s] %(message)s%(color_off)s"
    else:
        log_line_template = "%(color_on)s%(asctime)s | [%(levelname)-8s] %(message)s%(color_off)s"

    if log_folder is not None:
        log_folder = Path(log_folder)
        log_folder.mkdir(exist_ok=True, parents=True)
        current_date = datetime.now().strftime("%Y_%m_%d_%H-%M")
        log_file = log_folder / f"{logfile_basename}_{current_date}.log"
    else:
        log_file = None

    return configure_logging(
        name=name,
        console_log_output="stdout",
        console_log_level=log_level,
        console_log_color=True,
        logfile_file=log_file,
        logfile_log_level=log_level,
        logfile_log_color=False,
        log_line_template=log_line_template,
    )


class LogFormatter(logging.Formatter):
    """Formatter that wraps each record in an ANSI color chosen by level."""

    COLOR_CODES = {
        logging.CRITICAL: "\033[1;35m",  # bright/bold magenta
        logging.ERROR: "\033[1;31m",  # bright/bold red
        logging.WARNING: "\033[1;33m",  # bright/bold yellow
        logging.INFO: "\033[0;37m",  # white / light gray
        logging.DEBUG: "\033[1;30m",  # bright/bold black / dark gray
    }

    RESET_CODE = "\033[0m"

    def __init__(self, color, *args, **kwargs):
        super(LogFormatter, self).__init__(*args, **kwargs)
        self.color = color

    def format(self, record, *args, **kwargs):
        if self.color is True and record.levelno in self.COLOR_CODES:
            record.color_on = self.COLOR_CODES[record.levelno]
            record.color_off = self.RESET_CODE
        else:
            record.color_on = ""
            record.color_off = ""
        return super(LogFormatter, self).format(record, *args, **kwargs)


def configure_logging(
    name,
    console_log_output,
    console_log_level,
    console_log_color,
    logfile_file,
    logfile_log_level,
    logfile_log_color,
    log_line_template,
) -> logging.Logger:
    logger = logging.getLogger(name)

    # Handlers filter by their own level, the logger lets everything through
    logger.setLevel(logging.DEBUG)

    console_log_output = console_log_output.lower()
    if console_log_output == "stdout":
        stream = sys.stdout
    elif console_log_output == "stderr":
        stream = sys.stderr
    else:
        raise ValueError(f"Invalid console output: '{console_log_output}'")

    console_handler = logging.StreamHandler(stream)
    console_handler.setLevel(console_log_level.upper())
    console_handler.setFormatter(
        LogFormatter(
            fmt=log_line_template,
            color=console_log_color,
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )
    logger.addHandler(console_handler)

    if logfile_file is not None:
        logfile_handler = logging.FileHandler(logfile_file)
        logfile_handler.setLevel(logfile_log_level.upper())
        logfile_handler.setFormatter(LogFormatter(fmt=log_line_template, color=logfile_log_color))
        logger.addHandler(logfile_handler)

    return logger
