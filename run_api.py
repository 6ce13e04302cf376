#!/usr/bin/env python3
"""
Script to run the Library Management API server.
"""

import uvicorn

from api.config import APIConfig
from utilities.logger import setup_logging, get_logger


def main():
    """Run the API server."""
    config = APIConfig()

    setup_logging(
        log_level=config.log_level,
        log_format=config.log_format,
        log_file=config.get_log_file_path(),
        debug=config.debug
    )

    logger = get_logger(__name__)
    logger.info(
        "Starting Library Management API server",
        host=config.host,
        port=config.port,
        environment=config.environment,
        database=config.mongodb_database
    )

    uvicorn.run(
        "api.main:create_app",
        factory=True,
        host=config.host,
        port=config.port,
        reload=config.debug,
        log_level=config.log_level.lower(),
        access_log=True
    )


if __name__ == "__main__":
    main()
