"""Configure the shared logger for interCDB."""

import sys
from pathlib import Path
from typing import TYPE_CHECKING, Any, Optional

from loguru import logger as _logger

if TYPE_CHECKING:
    from loguru import Logger  # only for type checking

_CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
    "<level>{message}</level>"
)
_FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}"


class Log:
    """Keep one configured loguru logger for the reader and the CLI.

    ``Log()`` returns the current configuration untouched; passing any
    option replaces every sink.
    """

    _instance: Optional["Log"] = None

    level: str
    log_file: Optional[Path]

    def __new__(cls: type["Log"], *args: Any, **kwargs: Any) -> "Log":
        """Create the singleton, or reconfigure it when options are given."""
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._configure(*args, **kwargs)
        elif args or kwargs:
            cls._instance._configure(*args, **kwargs)
        return cls._instance

    def __repr__(self) -> str:
        return f"Log(level={self.level!r}, log_file={self.log_file!r})"

    def _configure(
        self,
        log_file: str | Path | None = None,
        level: str = "INFO",
        rotation: str = "10 MB",
        retention: str = "10 days",
        debug_mode: bool = False,
        console: bool = True,
    ) -> None:
        """Replace all sinks with a console sink and an optional file sink."""
        _logger.remove()
        self.level = "DEBUG" if debug_mode else level
        self.log_file = None if log_file is None else Path(log_file)

        if console:
            _logger.add(sys.stderr, level=self.level, format=_CONSOLE_FORMAT, enqueue=False)

        if self.log_file is not None:
            self.log_file.parent.mkdir(parents=True, exist_ok=True)
            _logger.add(
                self.log_file,
                level=self.level,
                rotation=rotation,
                retention=retention,
                format=_FILE_FORMAT,
                enqueue=False,
                mode="w",  # one log per import run
            )

    @property
    def logger(self) -> "Logger":
        """Return the configured loguru logger."""
        return _logger
