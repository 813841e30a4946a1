"""
Discovery module for CoAP service discovery
"""

from .directory import ServiceDirectory
from .manager import ServiceDiscovery
from .models import DeviceRecord, DiscoveredService, DiscoveryResult, ServiceAddress
from .network_discovery import CoapServiceDiscovery

__all__ = ['ServiceDirectory', 'ServiceDiscovery', 'DeviceRecord', 'DiscoveredService',
           'DiscoveryResult', 'ServiceAddress', 'CoapServiceDiscovery']
