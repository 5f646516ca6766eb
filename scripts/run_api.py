#!/usr/bin/env python3
"""
Start the FastAPI server
"""
import sys
from pathlib import Path

# project root on PYTHONPATH
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

import uvicorn

from infrastructure.config.env_settings import load_settings

if __name__ == "__main__":
    settings = load_settings()
    uvicorn.run(
        "api.main:app",
        host=settings.api_host,
        port=settings.api_port,
        log_level=settings.log_level.lower(),
    )
