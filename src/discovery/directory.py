"""
In-memory directory of discovered services

One lock guards the whole map. Every operation holds it only for a single
insert, scan or copy and never across an await, so request handlers can read
from any thread or task without further synchronization.
"""

import threading
from typing import Dict, List, Optional, Tuple

from .models import DeviceRecord, ServiceAddress


class ServiceDirectory:
    """Process-lifetime cache of discovered services keyed by service id"""

    def __init__(self):
        self._lock = threading.Lock()
        self._services: Dict[str, DeviceRecord] = {}

    def upsert(self, service_id: str, service_type: Optional[str],
               address: ServiceAddress, now: float) -> None:
        """Insert or wholesale replace the record for service_id"""
        record = DeviceRecord(service_id, service_type, address, now)
        with self._lock:
            self._services[service_id] = record

    def expire(self, horizon: float, now: float) -> List[str]:
        """
        Remove every record whose age has reached horizon.
        Negative ages (clock stepped backwards) count as zero.
        Returns the removed service ids.
        """
        with self._lock:
            expired = [
                service_id for service_id, record in self._services.items()
                if max(now - record.last_seen, 0.0) >= horizon
            ]
            for service_id in expired:
                del self._services[service_id]
        return expired

    def snapshot_all(self) -> List[Tuple[str, Optional[str], ServiceAddress]]:
        """Copy of every current (id, type, address), unordered"""
        with self._lock:
            return [
                (record.service_id, record.service_type, record.address)
                for record in self._services.values()
            ]

    def lookup(self, service_id: str) -> Optional[Tuple[Optional[str], ServiceAddress]]:
        """(type, address) for service_id, or None if it is not known"""
        with self._lock:
            record = self._services.get(service_id)
        if record is None:
            return None
        return record.service_type, record.address

    def get(self, service_id: str) -> Optional[DeviceRecord]:
        with self._lock:
            return self._services.get(service_id)

    def records(self) -> List[DeviceRecord]:
        with self._lock:
            return list(self._services.values())

    def __len__(self) -> int:
        with self._lock:
            return len(self._services)
