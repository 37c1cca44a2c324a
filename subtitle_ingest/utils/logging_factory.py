"""Centralized logging setup for the ingest package.

Logging is configured once per process. Console output goes through rich's
``RichHandler``; an optional log directory adds a plain ``app.log`` file handler.

Usage:
    LoggingFactory.initialize(level=logging.INFO)

    logger = get_logger(__name__)
    logger.info("Ingest started")
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

PACKAGE_LOGGER = "subtitle_ingest"


class LoggingFactory:
    """One-time logging configuration with per-component levels.

    Class Attributes:
        _initialized: Flag to ensure single initialization
        _log_dir: Directory for the optional ``app.log`` file
    """

    _initialized = False
    _log_dir: Optional[Path] = None

    @classmethod
    def initialize(
        cls,
        level: int = logging.INFO,
        log_dir: Optional[Path] = None,
        console: Optional[Console] = None,
        format_string: Optional[str] = None,
    ) -> None:
        """Configure the root logger once.

        Subsequent calls are ignored; use ``set_level`` or ``configure_verbose``
        to adjust verbosity afterwards.

        Args:
            level: Root logging level
            log_dir: If given, also log to ``log_dir / "app.log"``
            console: Rich console to render to; stderr when None
            format_string: Format for the file handler
        """
        if cls._initialized:
            return

        handlers: list = [
            RichHandler(
                console=console or Console(stderr=True),
                show_time=True,
                show_path=level <= logging.DEBUG,
                rich_tracebacks=True,
            )
        ]

        if log_dir:
            cls._log_dir = Path(log_dir)
            cls._log_dir.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(cls._log_dir / "app.log")
            file_handler.setFormatter(
                logging.Formatter(
                    format_string or "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
                )
            )
            handlers.append(file_handler)

        logging.basicConfig(level=level, format="%(message)s", handlers=handlers)

        # Cache hit/miss chatter stays at INFO unless verbose mode is on
        logging.getLogger(f"{PACKAGE_LOGGER}.cache").setLevel(max(level, logging.INFO))
        # httpx logs every request at INFO
        logging.getLogger("httpx").setLevel(logging.WARNING)

        cls._initialized = True

    @classmethod
    def get_logger(cls, name: str) -> logging.Logger:
        """Get a logger, initializing logging with defaults on first use."""
        if not cls._initialized:
            cls.initialize()
        return logging.getLogger(name)

    @classmethod
    def set_level(cls, name: str, level: int) -> None:
        """Set the logging level for a specific logger."""
        logging.getLogger(name).setLevel(level)

    @classmethod
    def configure_verbose(cls, verbose: bool = False) -> None:
        """Switch the package loggers between DEBUG and INFO."""
        level = logging.DEBUG if verbose else logging.INFO
        logging.getLogger().setLevel(level)
        logging.getLogger(PACKAGE_LOGGER).setLevel(level)
        logging.getLogger(f"{PACKAGE_LOGGER}.cache").setLevel(level)

    @classmethod
    def reset(cls) -> None:
        """Forget the initialization flag. Intended for tests."""
        cls._initialized = False
        cls._log_dir = None


def get_logger(name: str) -> logging.Logger:
    """Convenience wrapper around ``LoggingFactory.get_logger``."""
    return LoggingFactory.get_logger(name)
