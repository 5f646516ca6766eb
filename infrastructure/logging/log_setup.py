# infrastructure/logging/log_setup.py
from typing import Optional, TextIO

from loguru import logger

LOG_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <5} | {message} | {extra}"


def setup_console_logging(level: str = "INFO", stream: Optional[TextIO] = None) -> None:
    logger.remove()
    sink = stream if stream is not None else (lambda msg: print(msg, end=""))
    logger.add(sink, level=level.upper(), format=LOG_FORMAT)
