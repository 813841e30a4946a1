"""
Service discovery manager
Keeps the service directory populated from the network and ages out services
that stopped answering.
"""

import asyncio
import logging
import time
from typing import Dict, List, Optional

from .directory import ServiceDirectory
from .models import DiscoveryResult
from .network_discovery import CoapServiceDiscovery

logger = logging.getLogger(__name__)

DISCOVERY_PERIOD = 600
CLEANUP_INITIAL_DELAY = 30
CLEANUP_PERIOD = 600
CLEANUP_TIMEOUT = 3600


class ServiceDiscovery:
    """Runs the periodic discovery and cleanup services over one directory"""

    def __init__(self, config: Dict, directory: Optional[ServiceDirectory] = None,
                 client=None, clock=time.time):
        self.config = config
        self.directory = directory if directory is not None else ServiceDirectory()
        self.client = client if client is not None else CoapServiceDiscovery(config.get('network', {}))
        self.clock = clock

        discovery = config.get('discovery', {})
        cleanup = config.get('cleanup', {})
        self.discovery_period = discovery.get('period_seconds', DISCOVERY_PERIOD)
        self.cleanup_initial_delay = cleanup.get('initial_delay_seconds', CLEANUP_INITIAL_DELAY)
        self.cleanup_period = cleanup.get('period_seconds', CLEANUP_PERIOD)
        self.cleanup_timeout = cleanup.get('timeout_seconds', CLEANUP_TIMEOUT)

        self.running = False
        self.tasks: List[asyncio.Task] = []
        self._sleep = asyncio.sleep

        # Status tracking
        self.last_discovery: Optional[float] = None
        self.last_cleanup: Optional[float] = None
        self.discovery_count = 0
        self.error_count = 0

    def start(self) -> List[asyncio.Task]:
        """Spawn the discovery and cleanup services on the running loop"""
        self.running = True
        self.tasks = [
            asyncio.create_task(self._discovery_service()),
            asyncio.create_task(self._cleanup_service()),
        ]
        return self.tasks

    async def stop(self):
        self.running = False
        for task in self.tasks:
            task.cancel()
        if self.tasks:
            await asyncio.gather(*self.tasks, return_exceptions=True)
        self.tasks = []

    async def refresh(self) -> DiscoveryResult:
        """
        Run one discovery cycle. The full response set is gathered before the
        directory is touched, so a failing query leaves it unchanged.
        """
        start_time = self.clock()
        services = await self.client.service_discovery(None, None)

        for service in services:
            self.directory.upsert(service.service_id, service.service_type, service.address, self.clock())

        self.last_discovery = self.clock()
        self.discovery_count += 1
        result = DiscoveryResult(services, start_time, self.last_discovery - start_time)
        logger.info(f"Discovery found {len(services)} services in {result.duration_seconds:.1f}s "
                    f"({len(self.directory)} known)")
        return result

    def expire_stale(self) -> List[str]:
        """Drop services not rediscovered within the cleanup timeout"""
        now = self.clock()
        expired = self.directory.expire(self.cleanup_timeout, now)
        self.last_cleanup = now
        for service_id in expired:
            logger.info(f"Service {service_id} expired (not seen for {self.cleanup_timeout}s)")
        return expired

    async def _discovery_service(self):
        """Background service for periodic service discovery"""
        logger.info(f"Discovery service started (every {self.discovery_period}s)")

        while self.running:
            try:
                await self.refresh()
            except Exception as e:
                self.error_count += 1
                logger.error(f"Service discovery failed: {e!r}")
            await self._sleep(self.discovery_period)

    async def _cleanup_service(self):
        """Background service removing stale directory entries"""
        logger.info(f"Cleanup service started (first run in {self.cleanup_initial_delay}s, "
                    f"then every {self.cleanup_period}s, timeout {self.cleanup_timeout}s)")

        await self._sleep(self.cleanup_initial_delay)
        while self.running:
            self.expire_stale()
            await self._sleep(self.cleanup_period)
