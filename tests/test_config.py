import logging
import os
import tempfile
import unittest
from pathlib import Path

import yaml

from config_loader import TimezoneFormatter, get_sample_config, load_config


class TestLoadConfig(unittest.TestCase):

    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.tmp = Path(self._tmp.name)
        self._cwd = os.getcwd()
        os.chdir(self.tmp)

    def tearDown(self):
        os.chdir(self._cwd)
        self._tmp.cleanup()

    def _write(self, data, name="gateway.yaml"):
        path = self.tmp / name
        path.write_text(yaml.safe_dump(data))
        return str(path)

    def test_defaults_without_file(self):
        config = load_config()
        self.assertEqual(config['discovery']['period_seconds'], 600)
        self.assertEqual(config['cleanup'], {
            'initial_delay_seconds': 30,
            'period_seconds': 600,
            'timeout_seconds': 3600,
        })
        self.assertEqual(config['api']['port'], 3000)
        self.assertEqual(config['network']['coap_port'], 5683)

    def test_default_path_is_used_when_present(self):
        (self.tmp / "config").mkdir()
        (self.tmp / "config" / "config.yaml").write_text("api:\n  port: 8080\n")
        config = load_config()
        self.assertEqual(config['api']['port'], 8080)
        self.assertEqual(config['api']['host'], '::')

    def test_explicit_missing_file(self):
        with self.assertRaises(FileNotFoundError):
            load_config(str(self.tmp / "missing.yaml"))

    def test_overrides_merge_with_defaults(self):
        path = self._write({'cleanup': {'timeout_seconds': 7200}, 'extra': {'keep': True}})
        config = load_config(path)
        self.assertEqual(config['cleanup']['timeout_seconds'], 7200)
        self.assertEqual(config['cleanup']['period_seconds'], 600)
        self.assertEqual(config['extra'], {'keep': True})

    def test_empty_file(self):
        path = self.tmp / "empty.yaml"
        path.write_text("")
        self.assertEqual(load_config(str(path))['discovery']['period_seconds'], 600)

    def test_invalid_values(self):
        for data in [
            {'discovery': {'period_seconds': 0}},
            {'cleanup': {'timeout_seconds': 'soon'}},
            {'cleanup': {'initial_delay_seconds': -1}},
            {'api': {'port': 70000}},
            {'network': []},
            {'logging': {'timezone': 'Mars/Olympus'}},
        ]:
            with self.subTest(data=data):
                with self.assertRaises(ValueError):
                    load_config(self._write(data))

    def test_short_timeout_warns(self):
        path = self._write({'discovery': {'period_seconds': 600}, 'cleanup': {'timeout_seconds': 300}})
        with self.assertLogs('config_loader', level='WARNING'):
            load_config(path)

    def test_sample_config_is_valid(self):
        config = load_config(self._write(get_sample_config()))
        self.assertEqual(config['logging']['timezone'], 'Europe/Prague')


class TestTimezoneFormatter(unittest.TestCase):

    def test_renders_in_configured_zone(self):
        formatter = TimezoneFormatter("%(asctime)s %(message)s", "UTC")
        record = logging.LogRecord("x", logging.INFO, __file__, 1, "hello", None, None)
        record.created = 0
        self.assertEqual(formatter.format(record), "1970-01-01 00:00:00 UTC hello")
