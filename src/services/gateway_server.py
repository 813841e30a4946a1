"""
Gateway Server - Main orchestrator for all services
"""

import asyncio
import logging
from typing import List, Optional

import uvicorn

from config_loader import load_config, setup_logging
from coap_helper import CoapClient
from discovery.directory import ServiceDirectory
from discovery.manager import ServiceDiscovery
from api.main_api import GatewayAPI

logger = logging.getLogger(__name__)


class GatewayServer:
    """Main server running service discovery, directory cleanup and the HTTP front end"""

    def __init__(self, config_path: Optional[str] = None):
        self.config = load_config(config_path)
        setup_logging(self.config)

        self.directory = ServiceDirectory()
        self.discovery = ServiceDiscovery(self.config, self.directory)
        self.coap = CoapClient()
        self.api = GatewayAPI(self.discovery, self.coap)

        self.running = False
        self.tasks: List[asyncio.Task] = []
        self._server: Optional[uvicorn.Server] = None

    async def start(self):
        """Start background services, then serve HTTP until shut down"""
        logger.info("Starting Home Gateway...")

        try:
            await self.coap.start()

            self.running = True
            self.tasks = self.discovery.start()
            logger.info(f"All services started successfully ({len(self.tasks)} background tasks)")

            await self._start_api_server()

        except Exception as e:
            logger.error(f"Server startup failed: {e}")
            await self.stop()
            raise

    async def stop(self):
        """Stop all server services gracefully"""
        logger.info("Stopping server...")
        self.running = False

        if self._server is not None:
            self._server.should_exit = True

        await self.discovery.stop()
        self.tasks = []
        await self.coap.stop()
        logger.info("Server stopped")

    async def _start_api_server(self):
        """Start the FastAPI server"""
        config = uvicorn.Config(
            self.api.app,
            host=self.config['api']['host'],
            port=self.config['api']['port'],
            log_level="info",
            access_log=False  # We handle our own logging
        )

        self._server = uvicorn.Server(config)

        logger.info(f"Starting HTTP server on {self.config['api']['host']}:{self.config['api']['port']}")
        logger.info(f"Discovering via {self.config['network']['multicast_address']} "
                    f"every {self.discovery.discovery_period}s")

        await self._server.serve()
