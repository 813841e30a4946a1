"""
Common behaviour of device state models
"""

import re
from abc import ABC, abstractmethod
from typing import Any, Dict, Mapping

from pydantic import BaseModel, ValidationError, ValidationInfo, field_validator

from gateway_errors import InvalidForm

_DECIMAL = re.compile(r'\+?[0-9]+')


class DeviceState(BaseModel, ABC):
    """
    State of one device, as shown on its page and sent over CoAP.
    Base class only; each service type provides a concrete subclass.
    """

    @field_validator('*', mode='before')
    @classmethod
    def _plain_decimal(cls, value: Any, info: ValidationInfo) -> Any:
        # form fields arrive as text; only unsigned decimal digits are numbers
        if cls.model_fields[info.field_name].annotation is int and isinstance(value, str):
            if not _DECIMAL.fullmatch(value):
                raise ValueError("expected a decimal integer")
            return int(value)
        return value

    @classmethod
    def parse_form(cls, service_id: str, form: Mapping[str, Any]) -> "DeviceState":
        """Validate submitted form fields, raising InvalidForm on failure"""
        try:
            return cls.model_validate(dict(form))
        except ValidationError as e:
            problems = "; ".join(
                f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
                for error in e.errors()
            )
            raise InvalidForm(service_id, problems) from e

    @classmethod
    @abstractmethod
    def from_payload(cls, service_id: str, data: Dict[str, Any]) -> "DeviceState":
        """Build the state from a decoded CoAP GET response"""

    @abstractmethod
    def to_payload(self) -> Dict[str, Any]:
        """CBOR map sent with a CoAP SET"""
