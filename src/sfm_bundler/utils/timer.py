import logging
import time
from collections import OrderedDict


class Timer:
    """
    Collects the time spent in the named stages of an export run.

    Attributes:
        times (OrderedDict): Elapsed seconds for each stage, in the order the
            stages were first updated. Updating a stage again overwrites it.
        logger (logging.Logger): Logger used by `print`.
    """

    def __init__(self, logger: logging.Logger | None = None):
        self.start_time = None
        self.last_time = None
        self.times = OrderedDict()
        self.logger = logger if logger is not None else logging.getLogger(__name__)

        self.reset()

    def start(self):
        self.reset()

    def reset(self):
        now = time.time()
        self.start_time = now
        self.last_time = now
        self.times.clear()

    def update(self, name: str):
        """Record the time elapsed since the previous update under `name`."""
        now = time.time()
        self.times[name] = now - self.last_time
        self.last_time = now

    def print(self, text: str = "Timer", sep: str = ", "):
        """Log all the recorded stages plus the total time, then reset."""
        msg = f"[Timer] | [{text}] "
        for key, val in self.times.items():
            msg += f"{key}={val:.3f}{sep}"
        msg += f"Total execution={time.time() - self.start_time:.3f}"
        self.logger.info(msg)

        self.reset()
