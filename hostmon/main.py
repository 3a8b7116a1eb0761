#!/usr/bin/env python3
"""
hostmon server entry point
"""

import argparse
import uvicorn

from .core.config import load_config_from
from .core.server import create_app


def main():
    """Main entry point for hostmon server."""
    parser = argparse.ArgumentParser(description="hostmon server")
    parser.add_argument("-c", "--config", help="Path to YAML config", default="config.yaml")
    args = parser.parse_args()

    # Load configuration
    config = load_config_from(args.config)

    # Create FastAPI app
    app = create_app(config)

    uvicorn.run(app, host=config.host, port=config.port, reload=False, access_log=False)


if __name__ == "__main__":
    main()
