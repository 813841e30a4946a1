"""
Main FastAPI application setup
HTML front end for discovered CoAP services plus a small JSON system API
"""

from fastapi import FastAPI
import logging

from .service_routes import create_service_routes
from .system_routes import create_system_routes

logger = logging.getLogger(__name__)


class GatewayAPI:
    """HTTP front end of the home gateway"""

    def __init__(self, discovery, coap, lifespan=None):
        self.discovery = discovery
        self.coap = coap
        self.app = FastAPI(
            title="Home Gateway",
            description="Front end for CoAP lighting and shade controllers discovered on the local network",
            version="1.0.0",
            lifespan=lifespan,
        )
        self._setup_routes()

    def _setup_routes(self):
        """Setup FastAPI routes using modular approach"""
        service_router = create_service_routes(self.discovery.directory, self.coap)
        system_router = create_system_routes(self.discovery)

        self.app.include_router(service_router)
        self.app.include_router(system_router)
