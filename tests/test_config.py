from __future__ import annotations

import tempfile
import unittest
from pathlib import Path

from fb_graph.config import config_sha256, load_config, resolve_runtime_secrets, retry_policy
from fb_graph.errors import ConfigError


_VALID_YAML = """\
graph:
  api_version: v2.3
  access_token_env: FB_TOKEN
  timeout_seconds: 15
  app_namespace: cookbook

oauth:
  client_id_env: FB_CLIENT_ID
  client_secret_env: FB_CLIENT_SECRET
  redirect_uri: https://example.com/cb

paging:
  default_limit: 50
  max_pages: 3

rate_limit:
  threshold_percentage: 75

retry:
  max_attempts: 2
  base_delay_seconds: 0.1
  max_delay_seconds: 1.0
  jitter_ratio: 0
"""


class TestConfig(unittest.TestCase):
    def _write(self, td: str, text: str) -> Path:
        path = Path(td) / "config.yaml"
        path.write_text(text, encoding="utf-8")
        return path

    def test_load_config_ok(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            cfg = load_config(self._write(td, _VALID_YAML))

        self.assertEqual(cfg.graph.access_token_env, "FB_TOKEN")
        self.assertEqual(cfg.graph.app_namespace, "cookbook")
        self.assertEqual(cfg.paging.default_limit, 50)
        self.assertEqual(cfg.rate_limit.threshold_percentage, 75)
        self.assertEqual(retry_policy(cfg).max_attempts, 2)

    def test_empty_file_uses_defaults(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            cfg = load_config(self._write(td, ""))

        self.assertEqual(cfg.graph.base_url, "https://graph.facebook.com")
        self.assertEqual(cfg.graph.api_version, "v2.3")
        self.assertEqual(cfg.graph.access_token_env, "FACEBOOK_ACCESS_TOKEN")
        self.assertEqual(cfg.paging.default_limit, 25)
        self.assertEqual(cfg.rate_limit.threshold_percentage, 80)

    def test_rejects_invalid_values(self) -> None:
        bad = [
            _VALID_YAML.replace("api_version: v2.3", "api_version: latest"),
            _VALID_YAML.replace("threshold_percentage: 75", "threshold_percentage: 150"),
            _VALID_YAML.replace("max_delay_seconds: 1.0", "max_delay_seconds: 0.01"),
            _VALID_YAML + "unknown_section: {}\n",
            "graph: [1, 2]\n",
            "- just\n- a list\n",
            "graph: {api_version: [\n",
        ]
        for text in bad:
            with self.subTest(text=text[-40:]):
                with tempfile.TemporaryDirectory() as td:
                    with self.assertRaises(ConfigError):
                        load_config(self._write(td, text))

    def test_error_message_names_the_field(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            path = self._write(td, "rate_limit:\n  threshold_percentage: 0\n")
            with self.assertRaises(ConfigError) as ctx:
                load_config(path)
        self.assertIn("rate_limit.threshold_percentage", str(ctx.exception))

    def test_missing_file(self) -> None:
        with self.assertRaises(ConfigError):
            load_config("/nonexistent/config.yaml")

    def test_resolve_runtime_secrets(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            cfg = load_config(self._write(td, _VALID_YAML))

        with self.assertRaises(ConfigError) as ctx:
            resolve_runtime_secrets(cfg, environ={})
        self.assertIn("FB_TOKEN", str(ctx.exception))

        secrets = resolve_runtime_secrets(cfg, environ={"FB_TOKEN": " t0k ", "FB_CLIENT_ID": "id"})
        self.assertEqual(secrets.access_token, "t0k")
        self.assertEqual(secrets.client_id, "id")
        self.assertIsNone(secrets.client_secret)

    def test_config_sha256_is_stable(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            a = load_config(self._write(td, _VALID_YAML))
            b = load_config(self._write(td, _VALID_YAML))
            c = load_config(self._write(td, _VALID_YAML.replace("max_pages: 3", "max_pages: 4")))

        self.assertEqual(config_sha256(a), config_sha256(b))
        self.assertNotEqual(config_sha256(a), config_sha256(c))


if __name__ == "__main__":
    unittest.main()
