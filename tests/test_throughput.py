"""Tests for cfspeed.throughput -- rate formula and the sampling loop."""

import unittest

from fakes import FakeTransport, ScriptedTransport, cloudflare_responder, make_response

from cfspeed.errors import ProtocolError, TransportError
from cfspeed.stats import summarize
from cfspeed.throughput import Measurement, TestType, ThroughputTester, compute_mbit

BASE = "http://speed.test"


class TestComputeMbit(unittest.TestCase):
    def test_formula(self):
        # 1 MB in 0.1 s = 80 Mbit/s
        self.assertAlmostEqual(compute_mbit(1_000_000, 0.1), 80.0)

    def test_always_positive(self):
        for size in (1, 100_000, 1_000_000, 25_000_000):
            for elapsed in (0.001, 0.5, 3.0, 120.0):
                mbit = compute_mbit(size, elapsed)
                self.assertGreater(mbit, 0)
                self.assertAlmostEqual(mbit, size * 8 / 1_000_000 / elapsed)

    def test_zero_payload(self):
        self.assertEqual(compute_mbit(0, 1.0), 0.0)

    def test_zero_elapsed_rejected(self):
        with self.assertRaises(ProtocolError):
            compute_mbit(1_000, 0.0)


class TestMeasurement(unittest.TestCase):
    def test_structural_equality(self):
        self.assertEqual(
            Measurement(TestType.DOWNLOAD, 100, 1.0),
            Measurement(TestType.DOWNLOAD, 100, 1.0),
        )

    def test_immutable(self):
        m = Measurement(TestType.UPLOAD, 100, 1.0)
        with self.assertRaises(AttributeError):
            m.mbit = 2.0

    def test_to_dict(self):
        d = Measurement(TestType.UPLOAD, 1_000, 12.34567).to_dict()
        self.assertEqual(d, {"test_type": "Upload", "payload_size": 1_000, "mbit": 12.346})


class TestBuildRequest(unittest.TestCase):
    def setUp(self):
        self.tester = ThroughputTester(FakeTransport(lambda r: make_response()), BASE)

    def test_download(self):
        req = self.tester.build_request(TestType.DOWNLOAD, 100_000)
        self.assertEqual(req.method, "GET")
        self.assertEqual(req.url, "http://speed.test/__down?bytes=100000")
        self.assertIsNone(req.body)

    def test_upload(self):
        req = self.tester.build_request(TestType.UPLOAD, 1_000)
        self.assertEqual(req.method, "POST")
        self.assertEqual(req.url, "http://speed.test/__up")
        self.assertEqual(len(req.body), 1_000)
        self.assertEqual(set(req.body), {1})


class TestThroughputRun(unittest.IsolatedAsyncioTestCase):
    async def test_three_downloads_at_80_mbit(self):
        transport = FakeTransport(cloudflare_responder(elapsed=0.1))
        tester = ThroughputTester(transport, BASE)

        ms = await tester.run(TestType.DOWNLOAD, [1_000_000], 3)

        self.assertEqual(len(ms), 3)
        for m in ms:
            self.assertEqual(m.test_type, TestType.DOWNLOAD)
            self.assertEqual(m.payload_size, 1_000_000)
            self.assertAlmostEqual(m.mbit, 80.0)

        s = summarize(ms)
        self.assertAlmostEqual(s.min, 80.0)
        self.assertAlmostEqual(s.max, 80.0)
        self.assertAlmostEqual(s.mean, 80.0)

    async def test_sizes_run_in_order_and_fully(self):
        transport = FakeTransport(cloudflare_responder(elapsed=0.5))
        tester = ThroughputTester(transport, BASE)

        ms = await tester.run(TestType.DOWNLOAD, [100_000, 1_000_000], 2)

        self.assertEqual([m.payload_size for m in ms], [100_000, 100_000, 1_000_000, 1_000_000])
        self.assertEqual(
            [r.url for r in transport.requests],
            [f"{BASE}/__down?bytes=100000"] * 2 + [f"{BASE}/__down?bytes=1000000"] * 2,
        )

    async def test_upload_posts_exact_body(self):
        transport = FakeTransport(cloudflare_responder(elapsed=0.25))
        tester = ThroughputTester(transport, BASE)

        ms = await tester.run(TestType.UPLOAD, [100_000], 2)

        self.assertEqual(len(transport.requests), 2)
        for req in transport.requests:
            self.assertEqual(req.method, "POST")
            self.assertEqual(len(req.body), 100_000)
        self.assertAlmostEqual(ms[0].mbit, 3.2)

    async def test_progress_reports_each_run(self):
        transport = ScriptedTransport([
            make_response(elapsed=0.1, size=1_000_000),
            make_response(elapsed=0.2, size=1_000_000, status=201),
        ])
        tester = ThroughputTester(transport, BASE)
        calls = []
        tester.on_progress = lambda i, total, status: calls.append((i, total, status))

        await tester.run(TestType.DOWNLOAD, [1_000_000], 2)

        self.assertEqual([(i, total) for i, total, _ in calls], [(0, 2), (1, 2)])
        self.assertEqual(calls[0][2], "80.00 mbit/s with 1MB in 100ms -> get: 200")
        self.assertEqual(calls[1][2], "40.00 mbit/s with 1MB in 200ms -> get: 201")

    async def test_upload_status_line(self):
        transport = ScriptedTransport([make_response(elapsed=1.0)])
        tester = ThroughputTester(transport, BASE)
        calls = []
        tester.on_progress = lambda i, total, status: calls.append(status)

        await tester.run(TestType.UPLOAD, [1_000], 1)

        self.assertEqual(calls, ["0.01 mbit/s with 1KB in 1000ms -> post: 200"])

    async def test_transport_error_aborts(self):
        transport = ScriptedTransport([
            make_response(elapsed=0.1, size=1_000),
            TransportError("connection reset"),
            make_response(elapsed=0.1, size=1_000),
        ])
        tester = ThroughputTester(transport, BASE)

        with self.assertRaises(TransportError):
            await tester.run(TestType.DOWNLOAD, [1_000], 3)
        # no retry after the failure
        self.assertEqual(len(transport.requests), 2)

    async def test_no_payloads(self):
        transport = FakeTransport(cloudflare_responder())
        ms = await ThroughputTester(transport, BASE).run(TestType.DOWNLOAD, [], 5)
        self.assertEqual(ms, [])
        self.assertEqual(transport.requests, [])


if __name__ == "__main__":
    unittest.main()
