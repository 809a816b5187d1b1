"""Tests for cfspeed.metadata -- cf-meta-* header extraction."""

import unittest

from fakes import FakeTransport, ScriptedTransport, make_response

from cfspeed.errors import TransportError
from cfspeed.metadata import Metadata, fetch_metadata

FULL = {
    "cf-meta-city": "Berlin",
    "cf-meta-country": "DE",
    "cf-meta-ip": "203.0.113.7",
    "cf-meta-asn": "3320",
    "cf-meta-colo": "TXL",
}


class TestFromHeaders(unittest.TestCase):
    def test_all_present(self):
        md = Metadata.from_headers(FULL)
        self.assertEqual(md.city, "Berlin")
        self.assertEqual(md.country, "DE")
        self.assertEqual(md.ip, "203.0.113.7")
        self.assertEqual(md.asn, "3320")
        self.assertEqual(md.colo, "TXL")

    def test_missing_city(self):
        headers = {k: v for k, v in FULL.items() if k != "cf-meta-city"}
        md = Metadata.from_headers(headers)
        self.assertEqual(md.city, "City N/A")
        self.assertEqual(md.colo, "TXL")

    def test_all_missing(self):
        md = Metadata.from_headers({})
        self.assertEqual(
            md,
            Metadata("City N/A", "Country N/A", "IP N/A", "ASN N/A", "Colo N/A"),
        )

    def test_value_unmodified(self):
        md = Metadata.from_headers({"cf-meta-city": "  São Paulo "})
        self.assertEqual(md.city, "  São Paulo ")

    def test_case_insensitive_names(self):
        md = Metadata.from_headers({"CF-Meta-Colo": "FRA"})
        self.assertEqual(md.colo, "FRA")

    def test_to_dict(self):
        d = Metadata.from_headers(FULL).to_dict()
        self.assertEqual(d["city"], "Berlin")
        self.assertEqual(set(d), {"city", "country", "ip", "asn", "colo"})


class TestFetchMetadata(unittest.IsolatedAsyncioTestCase):
    async def test_single_zero_byte_request(self):
        transport = FakeTransport(lambda req: make_response(headers=FULL))
        md = await fetch_metadata(transport, "http://speed.test")
        self.assertEqual(md.city, "Berlin")
        self.assertEqual(len(transport.requests), 1)
        self.assertEqual(transport.requests[0].method, "GET")
        self.assertEqual(transport.requests[0].url, "http://speed.test/__down?bytes=0")

    async def test_missing_headers_do_not_fail(self):
        transport = ScriptedTransport([make_response(status=200)])
        md = await fetch_metadata(transport, "http://speed.test")
        self.assertEqual(md.asn, "ASN N/A")

    async def test_transport_error_propagates(self):
        transport = ScriptedTransport([TransportError("dns failure")])
        with self.assertRaises(TransportError):
            await fetch_metadata(transport, "http://speed.test")


if __name__ == "__main__":
    unittest.main()
