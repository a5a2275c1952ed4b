from rich.console import Console

from brec.logging import Logger, LogLevel


class ConsoleLogger(Logger):
    """Logger that prints to a rich Console.

    Messages go straight to ``Console.print``, so markup strings and rich
    renderables (tables, trees) both work. A message is printed when its
    level is at least as severe as the active one; the CLI runs at whatever
    level ``--log-level`` or the config files chose.
    """

    def __init__(self, console: Console, level: LogLevel = LogLevel.INFO) -> None:
        self._console = console
        self._levels = [level]

    @property
    def level(self) -> LogLevel:
        """The level on top of the stack."""
        return self._levels[-1]

    def is_enabled(self, level: LogLevel) -> bool:
        return level.value <= self.level.value

    def log(self, level: LogLevel = LogLevel.INFO, *args, **kwargs) -> None:
        if self.is_enabled(level):
            self._console.print(*args, **kwargs)

    def push_level(self, level: LogLevel) -> None:
        self._levels.append(level)

    def pop_level(self) -> LogLevel:
        """Drop the level pushed last and return it.

        Raises:
            RuntimeError: If only the level given at construction is left
        """
        if len(self._levels) == 1:
            raise RuntimeError("Cannot pop the base log level")
        return self._levels.pop()
