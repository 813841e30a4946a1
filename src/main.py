"""
Home Gateway - Main Entry Point
"""

import argparse
import asyncio
import sys
import logging
import os

from services.gateway_server import GatewayServer

logger = logging.getLogger(__name__)


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Web gateway for CoAP lighting and shade controllers")
    parser.add_argument('-c', '--config', default=os.environ.get('CONFIG_FILE'),
                        help="YAML configuration file (default: $CONFIG_FILE, then config/config.yaml)")
    return parser.parse_args(argv)


async def main(argv=None):
    """Main entry point"""
    args = parse_args(argv)
    server = None

    # uvicorn handles SIGINT/SIGTERM and returns from serve() on shutdown
    try:
        server = GatewayServer(config_path=args.config)
        await server.start()

    except Exception as e:
        logger.error(f"Server failed: {e}")
        return 1
    finally:
        if server:
            await server.stop()

    return 0


if __name__ == "__main__":
    try:
        sys.exit(asyncio.run(main()))
    except KeyboardInterrupt:
        print("\nServer stopped by user")
        sys.exit(0)
