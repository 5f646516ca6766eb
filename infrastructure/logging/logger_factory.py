# infrastructure/logging/logger_factory.py
from __future__ import annotations

from typing import Optional, TextIO

from application.ports.logger import LoggerPort
from infrastructure.config.env_settings import Settings
from infrastructure.logging.console_logger import ConsoleLogger
from infrastructure.logging.log_setup import setup_console_logging
from infrastructure.logging.loguru_logger import LoguruLogger


def build_logger(settings: Settings, stream: Optional[TextIO] = None) -> LoggerPort:
    """stream: where log lines go; stdout when None."""
    if settings.logger == "loguru":
        setup_console_logging(settings.log_level, stream)
        return LoguruLogger()
    return ConsoleLogger(level=settings.log_level.lower(), stream=stream)
