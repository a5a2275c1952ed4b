"""Logging infrastructure for brec.

Provides the Logger interface used for dependency injection of diagnostic
output throughout the package.
"""

from __future__ import annotations

import enum
from abc import ABC, abstractmethod


class LogLevel(enum.Enum):
    """Log verbosity levels for brec diagnostic messages.

    Lower numeric values represent higher severity / less verbosity.
    """
    FATAL = 0  # Only errors that end the run (missing brec.py, cycles, failed recipes)
    ERROR = 1  # Fatal errors plus other errors
    WARN = 2   # Errors plus warnings about configuration issues
    INFO = 3   # Warnings plus normal execution progress (default)
    DEBUG = 4  # Info plus graph structure, loaded settings
    TRACE = 5  # Debug plus fine-grained scheduling events

    @classmethod
    def from_name(cls, name: str) -> LogLevel:
        """Look up a level by name, ignoring case.

        Raises:
            ValueError: If no level has that name
        """
        try:
            return cls[name.strip().upper()]
        except KeyError:
            valid = ", ".join(level.name.lower() for level in cls)
            raise ValueError(f"Invalid log level '{name}' (expected one of: {valid})") from None


class Logger(ABC):
    """Abstract logger with a stack of active levels."""

    @abstractmethod
    def log(self, level: LogLevel = LogLevel.INFO, *args, **kwargs) -> None:
        ...

    @abstractmethod
    def push_level(self, level: LogLevel) -> None:
        ...

    @abstractmethod
    def pop_level(self) -> LogLevel:
        ...

    def is_enabled(self, level: LogLevel) -> bool:
        """Whether a message at this level would be emitted.

        Lets callers skip building output nobody will see.
        """
        return True

    def fatal(self, *args, **kwargs) -> None:
        self.log(LogLevel.FATAL, *args, **kwargs)

    def error(self, *args, **kwargs) -> None:
        self.log(LogLevel.ERROR, *args, **kwargs)

    def warn(self, *args, **kwargs) -> None:
        self.log(LogLevel.WARN, *args, **kwargs)

    def info(self, *args, **kwargs) -> None:
        self.log(LogLevel.INFO, *args, **kwargs)

    def debug(self, *args, **kwargs) -> None:
        self.log(LogLevel.DEBUG, *args, **kwargs)

    def trace(self, *args, **kwargs) -> None:
        self.log(LogLevel.TRACE, *args, **kwargs)


class NullLogger(Logger):
    """Logger that discards everything. Used when no logger is injected."""

    def is_enabled(self, level: LogLevel) -> bool:
        return False

    def log(self, level: LogLevel = LogLevel.INFO, *args, **kwargs) -> None:
        pass

    def push_level(self, level: LogLevel) -> None:
        pass

    def pop_level(self) -> LogLevel:
        return LogLevel.INFO
