#!/usr/bin/env python3
"""
Startup script for the cellint HTTP API.

This script starts the FastAPI server with the configured log level.
"""

import logging
import os
import sys

import uvicorn

from cellint.config import config


def main():
    """Start the FastAPI server."""
    log_level = config.get_log_level()
    logging.basicConfig(level=log_level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    host = os.getenv("CELLINT_HOST", "0.0.0.0")
    port = int(os.getenv("CELLINT_PORT", "8000"))

    print("Starting cellint API...")
    print(f"Engine: {config.get_engine()}")
    print(f"Server will be available at: http://localhost:{port}")
    print(f"API documentation will be available at: http://localhost:{port}/docs")

    try:
        uvicorn.run(
            "cellint.main:app",
            host=host,
            port=port,
            log_level=log_level.lower()
        )
    except KeyboardInterrupt:
        print("\nServer stopped by user")
    except Exception as e:
        print(f"\nServer failed to start: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
