#!/usr/bin/env python3
"""Startup script for the Cards Against Humanity backend"""

import logging

import uvicorn

from .settings import ServerSettings

logger = logging.getLogger(__name__)


def main():
    settings = ServerSettings.from_env()
    logging.basicConfig(level=settings.log_level.upper())

    logger.info(f"Starting CAH game backend on {settings.host}:{settings.port}")
    logger.info(f"Health check available at: http://{settings.host}:{settings.port}/health")
    logger.info(f"WebSocket endpoint: ws://{settings.host}:{settings.port}/ws")

    uvicorn.run(
        "cah_engine.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.reload,
        log_level=settings.log_level,
    )


if __name__ == "__main__":
    main()
