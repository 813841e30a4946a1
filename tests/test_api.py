import unittest

from fastapi.testclient import TestClient

from api.main_api import GatewayAPI
from discovery.directory import ServiceDirectory
from discovery.manager import ServiceDiscovery
from discovery.models import ServiceAddress
from gateway_errors import TransportFailure

from .fixtures import K, LL, FakeClock, FakeCoap, FakeDiscoveryClient, cbor_response, default_config


class WithGateway(unittest.TestCase):
    """Front end over a directory holding ll (rgbw) and k (shcnt)"""

    discovered = [LL, K]

    def setUp(self):
        self.clock = FakeClock()
        self.directory = ServiceDirectory()
        for service in self.discovered:
            self.directory.upsert(service.service_id, service.service_type, service.address, self.clock.now)
        self.discovery_client = FakeDiscoveryClient()
        self.discovery = ServiceDiscovery(default_config(), self.directory,
                                          client=self.discovery_client, clock=self.clock)
        self.coap = FakeCoap()
        self.client = TestClient(GatewayAPI(self.discovery, self.coap).app)


class TestPages(WithGateway):

    def test_index(self):
        response = self.client.get("/")
        self.assertEqual(response.status_code, 200)
        self.assertIn('href="/services"', response.text)

    def test_services_sorted_by_type_then_label(self):
        for service_id, service_type in [("ls", None), ("bbl", "rgbw"), ("x", "zzz")]:
            self.directory.upsert(service_id, service_type, ServiceAddress("192.0.2.1", 5683), self.clock.now)

        response = self.client.get("/services")
        self.assertEqual(response.status_code, 200)
        text = response.text
        # rgbw: "Bedroom lights over the bed" < "Living room lights"; then shcnt, zzz, untyped last
        order = [text.index(f'href="/service/{service_id}"') for service_id in ("bbl", "ll", "k", "x", "ls")]
        self.assertEqual(order, sorted(order))
        self.assertIn("Living room lights", text)
        self.assertIn("Kitchen shades", text)

    def test_unlabelled_service_listed_by_id(self):
        self.directory.upsert("zz9", "rgbw", ServiceAddress("192.0.2.1", 5683), self.clock.now)
        self.assertIn(">zz9</a>", self.client.get("/services").text)

    def test_get_rgbw(self):
        self.coap.response = cbor_response({"r": 10, "g": 20, "b": 30, "w": 40})
        response = self.client.get("/service/ll")
        self.assertEqual(response.status_code, 200)
        self.assertIn("0a141e", response.text)
        self.assertIn('name="w" min="0" max="255" value="40"', response.text)
        self.assertEqual(self.coap.gets, [(LL.address, "ll")])

    def test_post_rgbw(self):
        response = self.client.post("/service/ll", data={"rgb": "#ff0000", "w": "0"})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(self.coap.sets, [
            (ServiceAddress("192.0.2.5", 5683), "ll", {"r": 255, "g": 0, "b": 0, "w": 0, "d": 3000}),
        ])
        self.assertIn("ff0000", response.text)
        self.assertIn('value="0"', response.text)
        self.assertEqual(self.coap.gets, [])

    def test_get_shcnt(self):
        self.coap.response = cbor_response({"r": 77})
        response = self.client.get("/service/k")
        self.assertEqual(response.status_code, 200)
        self.assertIn("Position: 77", response.text)

    def test_post_shcnt(self):
        response = self.client.post("/service/k", data={"pos": "50"})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(self.coap.sets, [(K.address, "k", {"val": 50})])
        self.assertIn("Position: 50", response.text)


class TestErrorPages(WithGateway):

    def test_not_discovered(self):
        response = self.client.get("/service/unknown")
        self.assertEqual(response.status_code, 404)
        self.assertIn("Service not discovered", response.text)
        self.assertIn("unknown", response.text)
        self.assertEqual(self.coap.gets, [])

    def test_untyped(self):
        self.directory.upsert("ls", None, ServiceAddress("192.0.2.7", 5683), self.clock.now)
        response = self.client.get("/service/ls")
        self.assertEqual(response.status_code, 502)
        self.assertIn("Missing type", response.text)

    def test_unknown_type(self):
        self.directory.upsert("kt", "tmp", ServiceAddress("192.0.2.7", 5683), self.clock.now)
        response = self.client.get("/service/kt")
        self.assertIn("Unknown service type", response.text)
        self.assertIn("tmp", response.text)

    def test_transport_failure(self):
        self.coap.error = TransportFailure("ll", "timed out")
        response = self.client.get("/service/ll")
        self.assertEqual(response.status_code, 502)
        self.assertIn("Invalid response", response.text)

    def test_missing_key(self):
        self.coap.response = cbor_response({"r": 10, "g": 20, "b": 30})
        response = self.client.get("/service/ll")
        self.assertEqual(response.status_code, 502)
        self.assertIn("Unexpected CBOR element", response.text)

    def test_invalid_form_does_not_set(self):
        response = self.client.post("/service/ll", data={"rgb": "#ff00", "w": "0"})
        self.assertEqual(response.status_code, 400)
        self.assertIn("Invalid form", response.text)
        self.assertEqual(self.coap.sets, [])

    def test_malformed_form_body(self):
        response = self.client.post("/service/ll", content=b"garbage",
                                    headers={"content-type": "multipart/form-data"})
        self.assertEqual(response.status_code, 400)
        self.assertTrue(response.headers["content-type"].startswith("text/html"))
        self.assertIn("Invalid form", response.text)
        self.assertIn("service ll", response.text)
        self.assertEqual(self.coap.sets, [])

    def test_out_of_range_position(self):
        response = self.client.post("/service/k", data={"pos": "300"})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(self.coap.sets, [])


class TestColdStart(WithGateway):
    discovered = []

    def test_empty_list(self):
        response = self.client.get("/services")
        self.assertEqual(response.status_code, 200)
        self.assertIn("No services discovered yet", response.text)


class TestSystemApi(WithGateway):

    def test_services_json(self):
        services = self.client.get("/api/services").json()
        self.assertEqual([s["service_id"] for s in services], ["k", "ll"])
        self.assertEqual(services[1]["name"], "Living room lights")
        self.assertEqual(services[1]["host"], "192.0.2.5")
        self.assertEqual(services[1]["port"], 5683)

    def test_health(self):
        health = self.client.get("/api/system/health").json()
        self.assertEqual(health["service_count"], 2)
        self.assertEqual(health["discovery_errors"], 0)
        self.assertIsNone(health["last_discovery"])

    def test_scan(self):
        moved = LL._replace(address=ServiceAddress("192.0.2.55", 5683))
        self.discovery_client.results = [[moved]]
        response = self.client.post("/api/discovery/scan")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["services_found"], 1)
        self.assertEqual(self.directory.lookup("ll"), ("rgbw", moved.address))

    def test_scan_failure(self):
        self.discovery_client.results = [OSError("no route")]
        response = self.client.post("/api/discovery/scan")
        self.assertEqual(response.status_code, 502)
        self.assertEqual(len(self.directory), 2)
        self.assertEqual(self.discovery.error_count, 1)
