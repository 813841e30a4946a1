"""
System health and directory API routes
"""

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel
from typing import List, Optional
from datetime import datetime, timezone
import logging

from service_labels import service_label

logger = logging.getLogger(__name__)


def _timestamp(value: Optional[float]) -> Optional[datetime]:
    return datetime.fromtimestamp(value, tz=timezone.utc) if value is not None else None


# Response models
class ServiceResponse(BaseModel):
    service_id: str
    name: str
    service_type: Optional[str]
    host: str
    port: int
    last_seen: datetime


class HealthResponse(BaseModel):
    status: str
    service_count: int
    last_discovery: Optional[datetime]
    last_cleanup: Optional[datetime]
    discovery_count: int
    discovery_errors: int
    timestamp: datetime


class ScanResponse(BaseModel):
    message: str
    services_found: int
    duration_seconds: float


def create_system_routes(discovery):
    """Create system monitoring routes"""
    router = APIRouter(prefix="/api", tags=["system"])

    @router.get("/services", response_model=List[ServiceResponse])
    async def list_services():
        """Directory contents"""
        return [
            ServiceResponse(
                service_id=record.service_id,
                name=service_label(record.service_id),
                service_type=record.service_type,
                host=record.address.host,
                port=record.address.port,
                last_seen=_timestamp(record.last_seen),
            )
            for record in sorted(discovery.directory.records(), key=lambda r: r.service_id)
        ]

    @router.get("/system/health", response_model=HealthResponse)
    async def system_health():
        """System health check"""
        return HealthResponse(
            status="healthy" if discovery.running else "stopped",
            service_count=len(discovery.directory),
            last_discovery=_timestamp(discovery.last_discovery),
            last_cleanup=_timestamp(discovery.last_cleanup),
            discovery_count=discovery.discovery_count,
            discovery_errors=discovery.error_count,
            timestamp=datetime.now(timezone.utc),
        )

    @router.post("/discovery/scan", response_model=ScanResponse)
    async def trigger_discovery():
        """Run one discovery cycle immediately"""
        try:
            result = await discovery.refresh()
        except Exception as e:
            discovery.error_count += 1
            logger.error(f"Manual discovery failed: {e!r}")
            raise HTTPException(status_code=502, detail=f"Discovery failed: {e}")

        return ScanResponse(
            message="Discovery scan completed",
            services_found=len(result.services),
            duration_seconds=result.duration_seconds,
        )

    return router
