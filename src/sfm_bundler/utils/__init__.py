from .logger import change_logger_level, get_logger, setup_logger
from .timer import Timer
