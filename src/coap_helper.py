# CoAP Helper for Device Connections
# Unicast GET/SET against discovered services and CBOR payload extraction

import logging
from typing import Any, Dict, Optional

import aiocoap
import cbor2
from aiocoap.error import Error as CoapError
from aiocoap.numbers import ContentFormat

from discovery.models import ServiceAddress
from gateway_errors import (
    MissingContentType,
    TransportFailure,
    UnexpectedContentType,
    UnexpectedPayloadShape,
)

logger = logging.getLogger(__name__)


def service_uri(address: ServiceAddress, service_id: str) -> str:
    return f"coap://{address.netloc}/{service_id}"


class CoapClient:
    """Shared aiocoap client context for device requests"""

    def __init__(self):
        self.context: Optional[aiocoap.Context] = None

    async def start(self):
        if self.context is None:
            self.context = await aiocoap.Context.create_client_context()
            logger.info("CoAP client context created")

    async def stop(self):
        if self.context is not None:
            await self.context.shutdown()
            self.context = None
            logger.info("CoAP client context closed")

    async def get(self, address: ServiceAddress, service_id: str) -> aiocoap.Message:
        """Read the current state of a service"""
        request = aiocoap.Message(code=aiocoap.GET, uri=service_uri(address, service_id))
        return await self._request(request, service_id)

    async def set(self, address: ServiceAddress, service_id: str, payload: Dict[str, Any]) -> aiocoap.Message:
        """Write a new state to a service as a CBOR map"""
        request = aiocoap.Message(
            code=aiocoap.PUT,
            uri=service_uri(address, service_id),
            payload=cbor2.dumps(payload),
            content_format=ContentFormat.CBOR,
        )
        return await self._request(request, service_id)

    async def _request(self, request: aiocoap.Message, service_id: str) -> aiocoap.Message:
        await self.start()
        try:
            return await self.context.request(request).response_raising
        except (CoapError, OSError) as e:
            logger.warning(f"CoAP {request.code} to {service_id} failed: {e!r}")
            raise TransportFailure(service_id, str(e) or type(e).__name__) from e


def extract_cbor_map(service_id: str, response: aiocoap.Message) -> Dict[str, Any]:
    """
    Decode a CBOR map response, keeping only text keys.
    Raises MissingContentType, UnexpectedContentType or UnexpectedPayloadShape.
    """
    content_format = response.opt.content_format
    if content_format is None:
        raise MissingContentType(service_id)
    if content_format != ContentFormat.CBOR:
        raise UnexpectedContentType(service_id, f"content format {int(content_format)}")

    try:
        data = cbor2.loads(response.payload)
    except cbor2.CBORDecodeError as e:
        raise UnexpectedPayloadShape(service_id, f"undecodable payload ({e})") from e

    if not isinstance(data, dict):
        raise UnexpectedPayloadShape(service_id, f"expected a map, got {type(data).__name__}")

    return {key: value for key, value in data.items() if isinstance(key, str)}


def cbor_map_get_byte(service_id: str, data: Dict[str, Any], key: str) -> int:
    """Integer value in 0..255 stored under key"""
    if key not in data:
        raise UnexpectedPayloadShape(service_id, f'missing value for parameter "{key}"')
    value = data[key]
    if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value <= 255:
        raise UnexpectedPayloadShape(service_id, f'invalid value {value!r} for parameter "{key}"')
    return value
