"""
Build log writer handed to the build step.
"""
import traceback
from typing import Optional, TextIO

from .types import Build
from utils.logger import get_logger

logger = get_logger(__name__)

FAILURE_BANNER_RULE = "-" * 72


class BuildListener:
    """Appends lines to the build log and mirrors them to the application log"""

    def __init__(self, build: Build):
        self.build = build
        self._log: Optional[TextIO] = None

    def __enter__(self) -> "BuildListener":
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def open(self) -> None:
        if self._log is None:
            self.build.log_path.parent.mkdir(parents=True, exist_ok=True)
            self._log = open(self.build.log_path, "a", encoding="utf-8")

    def close(self) -> None:
        if self._log is not None:
            self._log.close()
            self._log = None

    def println(self, message: str) -> None:
        self.open()
        self._log.write(message + "\n")
        self._log.flush()
        logger.debug(f"[{self.build.display_name}] {message}")

    def error(self, message: str) -> None:
        self.println(f"ERROR: {message}")

    def fatal_error(self, message: str, exc: Optional[BaseException] = None) -> None:
        self.println(f"FATAL: {message}")
        if exc is not None:
            for line in traceback.format_exception(type(exc), exc, exc.__traceback__):
                self.println(line.rstrip("\n"))

    def print_failure_message(self) -> None:
        self.println(FAILURE_BANNER_RULE)
        self.println("SONAR ANALYSIS FAILED")
        self.println(FAILURE_BANNER_RULE)
