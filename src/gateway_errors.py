"""
Errors surfaced to the operator when a service page cannot be served
"""

from typing import Optional


class GatewayError(Exception):
    """Base class: a failure concerning one service, shown as an error page"""
    kind = "Gateway error"
    status_code = 502

    def __init__(self, service_id: str, detail: Optional[str] = None):
        self.service_id = service_id
        self.detail = detail
        super().__init__(self.message)

    @property
    def message(self) -> str:
        if self.detail:
            return f"{self.kind}: {self.detail} (service {self.service_id})"
        return f"{self.kind} (service {self.service_id})"


class NotDiscovered(GatewayError):
    kind = "Service not discovered"
    status_code = 404


class Untyped(GatewayError):
    kind = "Missing type for the discovered service"


class UnknownType(GatewayError):
    kind = "Unknown service type"

    def __init__(self, service_id: str, service_type: str):
        self.service_type = service_type
        super().__init__(service_id, service_type)


class TransportFailure(GatewayError):
    kind = "Invalid response"


class MissingContentType(GatewayError):
    kind = "Missing content type"


class UnexpectedContentType(GatewayError):
    kind = "Unexpected content type"


class UnexpectedPayloadShape(GatewayError):
    kind = "Unexpected CBOR element"


class InvalidForm(GatewayError):
    kind = "Invalid form"
    status_code = 400
