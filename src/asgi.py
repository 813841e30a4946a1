"""
ASGI entry point for uvicorn
This module exposes the FastAPI app for use with uvicorn command line:

    uvicorn asgi:app --host :: --port 3000
"""

import logging
import os
from contextlib import asynccontextmanager

from config_loader import load_config, setup_logging
from coap_helper import CoapClient
from discovery.directory import ServiceDirectory
from discovery.manager import ServiceDiscovery
from api.main_api import GatewayAPI

# Load configuration
config = load_config(os.environ.get('CONFIG_FILE'))
setup_logging(config)

logger = logging.getLogger(__name__)

logger.info("Initializing application components...")

directory = ServiceDirectory()
discovery = ServiceDiscovery(config, directory)
coap = CoapClient()


@asynccontextmanager
async def lifespan(app):
    """Run discovery and cleanup for as long as the app is served"""
    logger.info("Starting up application...")
    await coap.start()
    discovery.start()
    logger.info("Discovery and cleanup services started")
    try:
        yield
    finally:
        logger.info("Shutting down application...")
        await discovery.stop()
        await coap.stop()
        logger.info("Application shut down complete")


api = GatewayAPI(discovery, coap, lifespan=lifespan)

# Expose the FastAPI app for uvicorn
app = api.app

logger.info("ASGI app ready for uvicorn")
