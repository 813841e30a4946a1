"""
CoAP multicast service discovery (CoRE Link Format, RFC 6690)
"""

import socket
import asyncio
import random
import secrets
import time
import logging
from typing import List, Optional, Tuple
from urllib.parse import unquote, urlsplit

import aiocoap
import link_header
from aiocoap.error import UnparsableMessage
from aiocoap.numbers import COAP_PORT, MCAST_IPV4_ALLCOAPNODES

from .models import DiscoveredService, ServiceAddress

logger = logging.getLogger(__name__)

WELL_KNOWN_CORE = ('.well-known', 'core')


def build_discovery_request(service_id: Optional[str] = None,
                            service_type: Optional[str] = None) -> aiocoap.Message:
    """Non-confirmable GET /.well-known/core with optional href/rt filters"""
    request = aiocoap.Message(code=aiocoap.GET)
    # sent on a plain socket, so the message layer fields are filled in here
    request.mtype = aiocoap.NON
    request.mid = random.randint(0, 0xffff)
    request.token = secrets.token_bytes(4)
    request.opt.uri_path = WELL_KNOWN_CORE
    query = []
    if service_id is not None:
        query.append(f"href=/{service_id}")
    if service_type is not None:
        query.append(f"rt={service_type}")
    request.opt.uri_query = tuple(query)
    return request


def parse_discovery_response(payload: bytes, sender: ServiceAddress) -> List[DiscoveredService]:
    """
    Turn a link-format payload into discovered services.
    Relative link targets live on the sender; absolute coap:// targets are
    announced on behalf of another host (e.g. by a proxy).
    """
    links = link_header.parse(payload.decode('utf-8'))

    services = []
    for link in links.links:
        target = urlsplit(link.href)
        if target.scheme:
            if target.scheme != 'coap' or not target.hostname:
                logger.debug(f"Ignoring non-coap link {link.href} from {sender}")
                continue
            address = ServiceAddress(unquote(target.hostname), target.port or COAP_PORT)
        else:
            address = sender

        service_id = target.path.lstrip('/')
        if not service_id or service_id.startswith('.well-known/'):
            continue

        service_type = None
        for key, value in link.attr_pairs:
            if key == 'rt' and value:
                service_type = value.split()[0]
                break

        services.append(DiscoveredService(service_id, service_type, address))
    return services


class _DiscoveryProtocol(asyncio.DatagramProtocol):
    """Collects every datagram arriving during the response window"""

    def __init__(self):
        self.datagrams: List[Tuple[bytes, tuple]] = []
        self.error: Optional[Exception] = None

    def datagram_received(self, data, addr):
        self.datagrams.append((data, addr))

    def error_received(self, exc):
        self.error = exc


class CoapServiceDiscovery:
    """Sends multicast discovery queries and gathers the replies"""

    def __init__(self, config: dict):
        self.config = config
        self.multicast_address = config.get('multicast_address', MCAST_IPV4_ALLCOAPNODES)
        self.port = config.get('coap_port', COAP_PORT)
        self.discovery_timeout = config.get('discovery_timeout', 3)

    async def service_discovery(self, service_id: Optional[str] = None,
                                service_type: Optional[str] = None) -> List[DiscoveredService]:
        """
        Query the multicast group and return every (id, type, address)
        announced within the response window, in arrival order.
        Raises OSError when the query cannot be sent.
        """
        request = build_discovery_request(service_id, service_type)
        loop = asyncio.get_running_loop()

        addrinfo = await loop.getaddrinfo(self.multicast_address, self.port, type=socket.SOCK_DGRAM)
        family, _, _, _, group = addrinfo[0]

        sock = self._create_socket(family)
        transport, protocol = await loop.create_datagram_endpoint(_DiscoveryProtocol, sock=sock)

        start_time = time.time()
        try:
            logger.debug(f"Sending CoAP discovery to {self.multicast_address}:{self.port}")
            transport.sendto(request.encode(), group)
            await asyncio.sleep(self.discovery_timeout)
        finally:
            transport.close()

        if protocol.error is not None:
            raise protocol.error

        services = []
        for data, addr in protocol.datagrams:
            services.extend(self._parse_datagram(request, data, ServiceAddress(addr[0], addr[1])))

        logger.debug(f"Discovery window closed after {time.time() - start_time:.1f}s: "
                     f"{len(protocol.datagrams)} responses, {len(services)} services")
        return services

    def _create_socket(self, family: int) -> socket.socket:
        sock = socket.socket(family, socket.SOCK_DGRAM)
        try:
            # single-link discovery only
            if family == socket.AF_INET6:
                sock.setsockopt(socket.IPPROTO_IPV6, socket.IPV6_MULTICAST_HOPS, 1)
                sock.bind(('::', 0))
            else:
                sock.setsockopt(socket.IPPROTO_IP, socket.IP_MULTICAST_TTL, 1)
                sock.bind(('', 0))
            sock.setblocking(False)
        except OSError:
            sock.close()
            raise
        return sock

    def _parse_datagram(self, request: aiocoap.Message, data: bytes,
                        sender: ServiceAddress) -> List[DiscoveredService]:
        try:
            response = aiocoap.Message.decode(data)
        except (UnparsableMessage, ValueError) as e:
            logger.warning(f"Unparsable discovery response from {sender}: {e}")
            return []

        if response.token != request.token:
            logger.debug(f"Ignoring unrelated message from {sender}")
            return []
        if response.code != aiocoap.CONTENT:
            logger.debug(f"Ignoring {response.code} discovery response from {sender}")
            return []
        if not response.payload:
            return []

        try:
            return parse_discovery_response(response.payload, sender)
        except (link_header.ParseException, UnicodeDecodeError) as e:
            logger.warning(f"Invalid link format from {sender}: {e}")
            return []
