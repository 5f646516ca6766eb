# infrastructure/config/env_settings.py
from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Mapping, Optional, Tuple

from dotenv import dotenv_values

from application.services.document_renderer import OUTPUT_FORMATS
from domain.exceptions import ValidationError

# .env at the project root; process environment wins over the file
_env_path = Path(__file__).parent.parent.parent / ".env"

PREFIX = "CLRHTTP_"
LOGGERS = ("console", "loguru")
LOG_LEVELS = ("DEBUG", "INFO", "ERROR")


@dataclass(frozen=True)
class Settings:
    log_level: str = "INFO"
    logger: str = "console"
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    output_format: str = "xml"


def _read_env(env_file: Optional[Path]) -> Dict[str, str]:
    values: Dict[str, str] = {}
    if env_file is not None and env_file.exists():
        values.update({k: v for k, v in dotenv_values(env_file).items() if v is not None})
    values.update(os.environ)
    return values


def _choice(raw: Mapping[str, str], key: str, default: str, allowed: Tuple[str, ...]) -> str:
    value = raw.get(PREFIX + key, default).strip()
    normalized = value.upper() if value.upper() in allowed else value.lower()
    if normalized not in allowed:
        raise ValidationError(f"{PREFIX}{key} must be one of {', '.join(allowed)}: {value!r}")
    return normalized


def load_settings(env_file: Optional[Path] = _env_path) -> Settings:
    """
    Read CLRHTTP_* settings.

    CLRHTTP_LOG_LEVEL    DEBUG | INFO | ERROR   (INFO)
    CLRHTTP_LOGGER       console | loguru       (console)
    CLRHTTP_API_HOST                            (0.0.0.0)
    CLRHTTP_API_PORT                            (8000)
    CLRHTTP_OUTPUT_FORMAT xml | json            (xml)
    """
    raw = _read_env(env_file)
    defaults = Settings()

    port_text = raw.get(PREFIX + "API_PORT", str(defaults.api_port)).strip()
    try:
        port = int(port_text)
    except ValueError:
        raise ValidationError(f"{PREFIX}API_PORT must be an integer: {port_text!r}") from None

    return Settings(
        log_level=_choice(raw, "LOG_LEVEL", defaults.log_level, LOG_LEVELS),
        logger=_choice(raw, "LOGGER", defaults.logger, LOGGERS),
        api_host=raw.get(PREFIX + "API_HOST", defaults.api_host).strip(),
        api_port=port,
        output_format=_choice(raw, "OUTPUT_FORMAT", defaults.output_format, OUTPUT_FORMATS),
    )
