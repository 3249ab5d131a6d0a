"""
debug.py - Debug and logging functionality for the Connect Four engine

This module provides centralized debug and logging capabilities with configurable
levels, per-component filtering and performance timers. Search components tag
their messages with a component name ("board", "eval", "safety", "memo", "pvs",
"engine", "env", "cli") so a single tier can be traced in isolation.
"""

import logging
import sys
import time
from contextlib import contextmanager
from enum import Enum
from typing import Dict, Iterator, List, Optional, Set


class DebugLevel(Enum):
    NONE = 0
    ERROR = 1
    WARNING = 2
    INFO = 3
    DEBUG = 4
    TRACE = 5


# Python logging has no TRACE, so register one just below DEBUG
TRACE_LEVEL = logging.DEBUG - 5
logging.addLevelName(TRACE_LEVEL, "TRACE")

LEVEL_MAP = {
    DebugLevel.NONE: logging.CRITICAL + 10,
    DebugLevel.ERROR: logging.ERROR,
    DebugLevel.WARNING: logging.WARNING,
    DebugLevel.INFO: logging.INFO,
    DebugLevel.DEBUG: logging.DEBUG,
    DebugLevel.TRACE: TRACE_LEVEL,
}

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


class DebugManager:
    """Manages debug and logging output for the engine and its collaborators."""

    def __init__(self, logger_name: str = "connect4engine"):
        self._level = DebugLevel.INFO
        self._enabled = True
        self._log_file: Optional[str] = None
        self._enabled_components: Set[str] = set()  # Empty set means all components
        self._logger = self._setup_logger(logger_name)
        self._performance_markers: Dict[str, float] = {}

    def _setup_logger(self, logger_name: str) -> logging.Logger:
        """Configure and return the package logger."""
        logger = logging.getLogger(logger_name)
        logger.setLevel(LEVEL_MAP[self._level])
        logger.propagate = False

        # Importing the package twice (e.g. under a test runner) must not stack handlers
        if not any(isinstance(h, logging.StreamHandler) and not isinstance(h, logging.FileHandler)
                   for h in logger.handlers):
            console_handler = logging.StreamHandler(sys.stdout)
            console_handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt='%H:%M:%S'))
            logger.addHandler(console_handler)

        return logger

    @property
    def level(self) -> DebugLevel:
        return self._level

    @property
    def logger(self) -> logging.Logger:
        return self._logger

    def configure(self, level: Optional[DebugLevel] = None,
                  enabled: Optional[bool] = None,
                  log_file: Optional[str] = None,
                  components: Optional[List[str]] = None):
        """
        Configure the debug manager settings.

        Args:
            level: Debug level to set
            enabled: Whether logging is enabled at all
            log_file: Path to log file ("" removes file logging, None leaves it unchanged)
            components: Components to log (empty list for all)
        """
        if level is not None:
            self._level = level
            self._logger.setLevel(LEVEL_MAP[level])

        if enabled is not None:
            self._enabled = enabled

        if log_file is not None:
            for handler in self._logger.handlers[:]:
                if isinstance(handler, logging.FileHandler):
                    self._logger.removeHandler(handler)
                    handler.close()

            self._log_file = log_file or None
            if self._log_file:
                file_handler = logging.FileHandler(self._log_file)
                file_handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt='%Y-%m-%d %H:%M:%S'))
                self._logger.addHandler(file_handler)

        if components is not None:
            self._enabled_components = set(components)

    def is_enabled_for(self, level: DebugLevel, component: Optional[str] = None) -> bool:
        """Whether a message at this level and component would be emitted.

        Hot search loops call this before building expensive messages.
        """
        if not self._enabled or self._level == DebugLevel.NONE:
            return False
        if level.value > self._level.value:
            return False
        if component and self._enabled_components and component not in self._enabled_components:
            return False
        return True

    def log(self, level: DebugLevel, message: str, component: Optional[str] = None):
        """
        Log a message at the specified level.

        Args:
            level: Debug level for the message
            message: The message to log
            component: Optional component name for filtering
        """
        if level == DebugLevel.NONE or not self.is_enabled_for(level, component):
            return

        if component:
            message = f"[{component}] {message}"
        self._logger.log(LEVEL_MAP[level], message)

    def error(self, message: str, component: Optional[str] = None):
        """Log an error message."""
        self.log(DebugLevel.ERROR, message, component)

    def warning(self, message: str, component: Optional[str] = None):
        """Log a warning message."""
        self.log(DebugLevel.WARNING, message, component)

    def info(self, message: str, component: Optional[str] = None):
        """Log an info message."""
        self.log(DebugLevel.INFO, message, component)

    def debug(self, message: str, component: Optional[str] = None):
        """Log a debug message."""
        self.log(DebugLevel.DEBUG, message, component)

    def trace(self, message: str, component: Optional[str] = None):
        """Log a trace message."""
        self.log(DebugLevel.TRACE, message, component)

    # Performance tracking
    def start_timer(self, marker_name: str):
        """Start a named timer."""
        self._performance_markers[marker_name] = time.perf_counter()

    def end_timer(self, marker_name: str, component: Optional[str] = None) -> Optional[float]:
        """
        End a timer and log the elapsed time.

        Args:
            marker_name: Name of the marker to end
            component: Optional component name for the log entry

        Returns:
            Elapsed time in seconds, or None if the marker was never started
        """
        started = self._performance_markers.pop(marker_name, None)
        if started is None:
            self.warning(f"Timer '{marker_name}' not started", "debug")
            return None

        elapsed = time.perf_counter() - started
        self.debug(f"Performance [{marker_name}]: {elapsed:.6f} seconds", component)
        return elapsed

    @contextmanager
    def timed(self, marker_name: str, component: Optional[str] = None) -> Iterator[None]:
        """Time the enclosed block with start_timer/end_timer."""
        self.start_timer(marker_name)
        try:
            yield
        finally:
            self.end_timer(marker_name, component)

    def set_from_string(self, level_str: str):
        """Set debug level from a string (for command line arguments)."""
        try:
            level = DebugLevel[level_str.strip().upper()]
        except KeyError:
            self.warning(f"Unknown debug level: {level_str}")
            return
        self.configure(level=level)
        self.info(f"Debug level set to {level.name}")


# Singleton instance shared by every module
debug = DebugManager()
