"""
Discovery data structures and models
"""

from typing import List, NamedTuple, Optional
from dataclasses import dataclass


class ServiceAddress(NamedTuple):
    """CoAP endpoint of a discovered service"""
    host: str
    port: int

    @property
    def netloc(self) -> str:
        """URI authority for this endpoint, IPv6 hosts in brackets"""
        if ':' in self.host:
            # zone identifiers must be percent-encoded inside a URI (RFC 6874)
            return f"[{self.host.replace('%', '%25')}]:{self.port}"
        return f"{self.host}:{self.port}"

    def __str__(self) -> str:
        return self.netloc


class DiscoveredService(NamedTuple):
    """One (id, type, address) triple returned by service discovery"""
    service_id: str
    service_type: Optional[str]
    address: ServiceAddress


@dataclass(frozen=True)
class DeviceRecord:
    """Directory entry for a discovered device"""
    service_id: str
    service_type: Optional[str]
    address: ServiceAddress
    last_seen: float


@dataclass
class DiscoveryResult:
    """Results from one discovery cycle"""
    services: List[DiscoveredService]
    started_at: float
    duration_seconds: float
