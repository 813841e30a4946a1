"""
Supported device classes
"""

from typing import Dict, Type

from .base import DeviceState
from .rgbw import RgbwState, TRANSITION_MS
from .shcnt import ShcntState

DEVICE_TYPES: Dict[str, Type[DeviceState]] = {
    "rgbw": RgbwState,
    "shcnt": ShcntState,
}

__all__ = ['DeviceState', 'RgbwState', 'ShcntState', 'DEVICE_TYPES', 'TRANSITION_MS']
