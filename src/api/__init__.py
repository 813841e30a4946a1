"""
API module for the operator front end and system monitoring
"""

from .main_api import GatewayAPI
from .service_routes import create_service_routes
from .system_routes import create_system_routes

__all__ = ['GatewayAPI', 'create_service_routes', 'create_system_routes']
