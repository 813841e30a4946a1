"""
RGBW lighting fixtures
"""

import re
from typing import Any, Dict

from pydantic import Field, field_validator

from coap_helper import cbor_map_get_byte
from .base import DeviceState

TRANSITION_MS = 3000

_HEX_COLOR = re.compile(r'#?([0-9a-fA-F]{6})')


class RgbwState(DeviceState):
    """Colour as six lowercase hex digits plus the white channel"""
    rgb: str
    w: int = Field(ge=0, le=255)

    @field_validator('rgb')
    @classmethod
    def _normalize_rgb(cls, value: str) -> str:
        match = _HEX_COLOR.fullmatch(value)
        if match is None:
            raise ValueError("expected 6 hex digits, optionally prefixed with '#'")
        return match.group(1).lower()

    def channel(self, idx: int) -> int:
        return int(self.rgb[2 * idx:2 * idx + 2], 16)

    @property
    def r(self) -> int:
        return self.channel(0)

    @property
    def g(self) -> int:
        return self.channel(1)

    @property
    def b(self) -> int:
        return self.channel(2)

    def to_payload(self) -> Dict[str, Any]:
        return {"r": self.r, "g": self.g, "b": self.b, "w": self.w, "d": TRANSITION_MS}

    @classmethod
    def from_payload(cls, service_id: str, data: Dict[str, Any]) -> "RgbwState":
        rgb = "".join(f"{cbor_map_get_byte(service_id, data, channel):02x}" for channel in ("r", "g", "b"))
        return cls(rgb=rgb, w=cbor_map_get_byte(service_id, data, "w"))
