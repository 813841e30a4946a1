"""
Shade position controllers
"""

from typing import Any, Dict

from pydantic import Field

from coap_helper import cbor_map_get_byte
from .base import DeviceState


class ShcntState(DeviceState):
    pos: int = Field(ge=0, le=255)

    def to_payload(self) -> Dict[str, Any]:
        return {"val": self.pos}

    @classmethod
    def from_payload(cls, service_id: str, data: Dict[str, Any]) -> "ShcntState":
        # devices report the current position under "r", but are set via "val"
        return cls(pos=cbor_map_get_byte(service_id, data, "r"))
