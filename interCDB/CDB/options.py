"""Configuration dataclasses for the CDB importer."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Literal

from ..Log import Log
from .ElementTypes import ELEMENT_REGISTRY, ElementRegistry

LogLevel = Literal["TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR"]


@dataclass(slots=True)
class ReaderOptions:
    """Input handling for :class:`~interCDB.CDB.CDB.CDBReader`.

    Attributes:
        encoding (str): Text encoding used to open ``.cdb`` files. ANSYS
            writes plain ASCII, so ``"utf-8"`` reads every valid file.
        registry (ElementRegistry | None): Element type table used to resolve
            element shapes. ``None`` selects the built-in table.
    """

    encoding: str = "utf-8"
    registry: ElementRegistry | None = None

    def element_registry(self) -> ElementRegistry:
        return self.registry if self.registry is not None else ELEMENT_REGISTRY


@dataclass(slots=True)
class LogOptions:
    """Logger sinks for a command line run.

    Attributes:
        level (LogLevel): Minimum level written to the console and log file.
        log_file (Path | None): Optional file receiving a copy of the log.
        rotation (str): loguru rotation policy for ``log_file``.
        retention (str): loguru retention policy for rotated files.
        debug_mode (bool): Force DEBUG output, which includes one line per
            block read.
        console (bool): Write to stderr. With ``False`` only ``log_file``
            receives messages.
    """

    level: LogLevel = "INFO"
    log_file: Path | None = None
    rotation: str = "10 MB"
    retention: str = "10 days"
    debug_mode: bool = False
    console: bool = True

    def apply(self) -> Log:
        """Configure the shared logger with these options."""
        return Log(
            log_file=self.log_file,
            level=self.level,
            rotation=self.rotation,
            retention=self.retention,
            debug_mode=self.debug_mode,
            console=self.console,
        )
