import json
import os
import tempfile
import unittest
from unittest import mock

import config


class TestConfig(unittest.TestCase):
    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        self.addCleanup(self.tmpdir.cleanup)
        self.path = os.path.join(self.tmpdir.name, "cfg.json")

    def test_defaults_without_file(self):
        cfg = config.load_config(self.path, environ={})
        self.assertEqual(cfg["owner"], config.DEFAULT_OWNER)
        self.assertEqual(cfg["port"], 8443)

    def test_file_then_environment(self):
        config.save_config({"owner": "0xfile", "port": 9000}, self.path)
        cfg = config.load_config(self.path, environ={"CHAINPAY_OWNER": "0xenv"})
        self.assertEqual(cfg["owner"], "0xenv")
        self.assertEqual(cfg["port"], 9000)

    def test_invalid_values_fall_back(self):
        with open(self.path, "w") as f:
            f.write("{not json")
        cfg = config.load_config(self.path, environ={"CHAINPAY_PORT": "abc"})
        self.assertEqual(cfg["port"], 8443)

    def test_get_api_url(self):
        with mock.patch.dict(config.CONFIG, {"api_base_url": "http://h:1/"}):
            self.assertEqual(config.get_api_url("/api/v1/x"), "http://h:1/api/v1/x")


if __name__ == "__main__":
    unittest.main()
