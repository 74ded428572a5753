import io
import json
import unittest
import urllib.error
from unittest import mock

import api_client


class FakeResponse(io.BytesIO):
    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()


def reply(payload):
    return FakeResponse(json.dumps(payload).encode("utf-8"))


class TestApiClient(unittest.TestCase):
    def setUp(self):
        api_client.set_caller("0xaaa")
        self.addCleanup(api_client.set_caller, None)
        patcher = mock.patch("api_client.get_api_url",
                             side_effect=lambda p: "http://registry.test/" + p.lstrip("/"))
        patcher.start()
        self.addCleanup(patcher.stop)

    def sent_request(self, urlopen):
        return urlopen.call_args[0][0]

    @mock.patch("urllib.request.urlopen")
    def test_register_sends_caller_and_body(self, urlopen):
        urlopen.return_value = reply({"success": True})
        self.assertTrue(api_client.register("Alice", 555123))

        req = self.sent_request(urlopen)
        self.assertEqual(req.get_method(), "POST")
        self.assertEqual(req.full_url, "http://registry.test/api/v1/registry/register")
        self.assertEqual(req.get_header("X-caller"), "0xaaa")
        self.assertEqual(json.loads(req.data), {"name": "Alice", "phone_number": 555123})

    @mock.patch("urllib.request.urlopen")
    def test_transfer_returns_name(self, urlopen):
        urlopen.return_value = reply({"found": True, "name": "Alice"})
        self.assertEqual(api_client.transfer(555123, 10), "Alice")

    @mock.patch("urllib.request.urlopen")
    def test_lookup_by_phone_not_found(self, urlopen):
        urlopen.return_value = reply({"found": False, "profile": None})
        self.assertIsNone(api_client.get_by_phone_number(42))
        self.assertEqual(self.sent_request(urlopen).full_url,
                         "http://registry.test/api/v1/registry/phone/42")

    @mock.patch("urllib.request.urlopen")
    def test_admin_delete_quotes_address(self, urlopen):
        urlopen.return_value = reply({"success": True})
        api_client.admin_delete("a/b")
        req = self.sent_request(urlopen)
        self.assertEqual(req.get_method(), "DELETE")
        self.assertTrue(req.full_url.endswith("/api/v1/admin/profiles/a%2Fb"))

    @mock.patch("urllib.request.urlopen")
    def test_http_error_detail_becomes_runtime_error(self, urlopen):
        urlopen.side_effect = urllib.error.HTTPError(
            "http://registry.test/x", 403, "Forbidden", {},
            io.BytesIO(b'{"detail": "admin_update requires the owner identity"}'))
        with self.assertRaises(RuntimeError) as ctx:
            api_client.admin_update("0xbbb", "Bob", 1)
        self.assertIn("owner", str(ctx.exception))

    @mock.patch("urllib.request.urlopen")
    def test_connection_error(self, urlopen):
        urlopen.side_effect = urllib.error.URLError("refused")
        with self.assertRaises(RuntimeError) as ctx:
            api_client.count()
        self.assertIn("Cannot connect", str(ctx.exception))

    @mock.patch("urllib.request.urlopen")
    def test_queries_are_anonymous(self, urlopen):
        urlopen.return_value = reply({"count": 3})
        self.assertEqual(api_client.count(), 3)
        self.assertIsNone(self.sent_request(urlopen).get_header("X-caller"))


if __name__ == "__main__":
    unittest.main()
