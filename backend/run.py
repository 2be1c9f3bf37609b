#!/usr/bin/env python3
"""
clustergate server
Starts the FastAPI gateway under uvicorn.
"""

import uvicorn
from dotenv import load_dotenv

# Load .env before settings are read
load_dotenv()

from clustergate.config import get_settings
from clustergate.core.logging import setup_logging

# Use the application's logging setup instead of uvicorn's default log_config
setup_logging()

if __name__ == "__main__":
    settings = get_settings()
    uvicorn.run(
        "clustergate.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.is_debug,
        log_level=settings.log_level.lower(),
        log_config=None,
    )
