"""
Operator front end routes
"""

from fastapi import APIRouter, Request
from fastapi.responses import HTMLResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
import logging

from coap_helper import extract_cbor_map
from devices import DEVICE_TYPES
from gateway_errors import GatewayError, InvalidForm, NotDiscovered, UnknownType, Untyped
from service_labels import service_label
from . import pages

logger = logging.getLogger(__name__)


def create_service_routes(directory, coap):
    """Create HTML routes over the service directory and a CoAP client"""
    router = APIRouter(tags=["services"])

    @router.get("/", response_class=HTMLResponse)
    async def index():
        return pages.render_index()

    @router.get("/services", response_class=HTMLResponse)
    async def list_services():
        """List every discovered service, grouped by type"""
        services = [
            (service_id, service_label(service_id), service_type, address)
            for service_id, service_type, address in directory.snapshot_all()
        ]
        services.sort(key=lambda s: (s[2] is None, s[2] or "", s[1]))
        return pages.render_services(services)

    @router.api_route("/service/{service_id}", methods=["GET", "POST"], response_class=HTMLResponse)
    async def service(service_id: str, request: Request):
        """Show (GET) or set (POST) the state of one service"""
        try:
            entry = directory.lookup(service_id)
            if entry is None:
                raise NotDiscovered(service_id)
            service_type, address = entry
            if service_type is None:
                raise Untyped(service_id)
            state_model = DEVICE_TYPES.get(service_type)
            if state_model is None:
                raise UnknownType(service_id, service_type)

            if request.method == "POST":
                try:
                    form = await request.form()
                except StarletteHTTPException as e:
                    raise InvalidForm(service_id, e.detail) from e
                state = state_model.parse_form(service_id, form)
                await coap.set(address, service_id, state.to_payload())
                logger.info(f"Set {service_id} at {address}: {state.to_payload()}")
            else:
                response = await coap.get(address, service_id)
                state = state_model.from_payload(service_id, extract_cbor_map(service_id, response))

        except GatewayError as e:
            logger.warning(f"{request.method} /service/{service_id}: {e.message}")
            return HTMLResponse(pages.render_error(e), status_code=e.status_code)

        return pages.render_service(service_type, service_label(service_id), state)

    return router
