"""
Service orchestration for the home gateway
"""

from .gateway_server import GatewayServer

__all__ = ['GatewayServer']
