"""Test doubles shared by the gateway tests"""

import aiocoap
import cbor2
from aiocoap.numbers import ContentFormat

from config_loader import _apply_defaults
from discovery.models import DiscoveredService, ServiceAddress


def default_config():
    return _apply_defaults({})


def cbor_response(data):
    return aiocoap.Message(code=aiocoap.CONTENT, payload=cbor2.dumps(data),
                           content_format=ContentFormat.CBOR)


LL = DiscoveredService("ll", "rgbw", ServiceAddress("192.0.2.5", 5683))
K = DiscoveredService("k", "shcnt", ServiceAddress("192.0.2.6", 5683))


class FakeClock:
    def __init__(self, now=1_000_000.0):
        self.now = now

    def __call__(self):
        return self.now


class FakeDiscoveryClient:
    """Returns (or raises) one prepared result per service_discovery call"""

    def __init__(self, *results):
        self.results = list(results)
        self.calls = []

    async def service_discovery(self, service_id=None, service_type=None):
        self.calls.append((service_id, service_type))
        result = self.results.pop(0) if self.results else []
        if isinstance(result, Exception):
            raise result
        return result


class FakeCoap:
    """Records GET/SET requests and answers GETs with a prepared response"""

    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.gets = []
        self.sets = []

    async def get(self, address, service_id):
        self.gets.append((address, service_id))
        if self.error is not None:
            raise self.error
        return self.response

    async def set(self, address, service_id, payload):
        self.sets.append((address, service_id, payload))
        if self.error is not None:
            raise self.error
        return aiocoap.Message(code=aiocoap.CHANGED)
