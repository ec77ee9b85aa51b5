"""Tests for verifier configuration loading."""

import textwrap
from pathlib import Path

import httpx
import pytest

from adaverc.config import MAX_DEPTH_CEILING, VerifierConfig, load_config
from adaverc.dispatch import DEFAULT_MAX_DEPTH
from adaverc.errors import ConfigError
from adaverc.lookup import DEFAULT_TIMEOUT, VerificationClient

EXAMPLE_PATH = Path(__file__).parent.parent / "examples" / "verifier.yaml"


def _write(tmp_path, body: str) -> Path:
    path = tmp_path / "verifier.yaml"
    path.write_text(textwrap.dedent(body))
    return path


# ---------------------------------------------------------------------------
# Defaults and sources
# ---------------------------------------------------------------------------

class TestDefaults:
    def test_no_sources(self):
        config = load_config(env={})
        assert config == VerifierConfig()
        assert config.endpoint == ""
        assert config.timeout == DEFAULT_TIMEOUT
        assert config.payload_key == "digest"
        assert config.max_depth == DEFAULT_MAX_DEPTH
        assert config.log_level == "WARNING"

    def test_empty_file(self, tmp_path):
        path = _write(tmp_path, "")
        assert load_config(path, env={}) == VerifierConfig()


class TestExampleConfig:
    def test_example_exists(self):
        assert EXAMPLE_PATH.exists()

    def test_example_loads(self):
        config = load_config(EXAMPLE_PATH, env={})
        assert config.endpoint.startswith("https://")
        assert config.payload_key == "hash"
        assert config.timeout == 15.0
        assert config.headers == {"X-Client": "adaverc"}


class TestFileLoading:
    def test_flat_keys(self, tmp_path):
        path = _write(tmp_path, """\
            endpoint: http://localhost:3000/api/verify
            timeout: 5
            max_depth: 20
        """)
        config = load_config(path, env={})
        assert config.endpoint == "http://localhost:3000/api/verify"
        assert config.timeout == 5.0
        assert config.max_depth == 20

    def test_verifier_section(self, tmp_path):
        path = _write(tmp_path, """\
            verifier:
              endpoint: https://v.example.org
              log_level: debug
        """)
        config = load_config(path, env={})
        assert config.endpoint == "https://v.example.org"
        assert config.log_level == "DEBUG"

    def test_path_from_env(self, tmp_path):
        path = _write(tmp_path, "endpoint: https://from-env.example.org\n")
        config = load_config(env={"ADAVERC_CONFIG": str(path)})
        assert config.endpoint == "https://from-env.example.org"

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigError, match="not found"):
            load_config(tmp_path / "missing.yaml", env={})

    def test_invalid_yaml(self, tmp_path):
        path = _write(tmp_path, "endpoint: [unclosed\n")
        with pytest.raises(ConfigError, match="Invalid YAML"):
            load_config(path, env={})

    def test_root_not_mapping(self, tmp_path):
        path = _write(tmp_path, "- a\n- b\n")
        with pytest.raises(ConfigError, match="mapping"):
            load_config(path, env={})


# ---------------------------------------------------------------------------
# Interpolation and overrides
# ---------------------------------------------------------------------------

class TestEnvironment:
    def test_interpolation(self, tmp_path):
        path = _write(tmp_path, """\
            endpoint: https://${HOST}/api/verify
            headers:
              Authorization: Bearer ${TOKEN}
        """)
        config = load_config(path, env={"HOST": "v.example.org", "TOKEN": "s3cret"})
        assert config.endpoint == "https://v.example.org/api/verify"
        assert config.headers == {"Authorization": "Bearer s3cret"}

    def test_missing_variable(self, tmp_path):
        path = _write(tmp_path, "endpoint: https://${NOPE}/x\n")
        with pytest.raises(ConfigError, match="NOPE"):
            load_config(path, env={})

    def test_overrides_win(self, tmp_path):
        path = _write(tmp_path, "endpoint: https://file.example.org\ntimeout: 5\n")
        config = load_config(path, env={
            "ADAVERC_ENDPOINT": "https://env.example.org",
            "ADAVERC_TIMEOUT": "2.5",
            "ADAVERC_PAYLOAD_KEY": "hash",
            "ADAVERC_MAX_DEPTH": "7",
            "ADAVERC_LOG_LEVEL": "info",
        })
        assert config.endpoint == "https://env.example.org"
        assert config.timeout == 2.5
        assert config.payload_key == "hash"
        assert config.max_depth == 7
        assert config.log_level == "INFO"

    def test_uses_os_environ_by_default(self, monkeypatch):
        monkeypatch.delenv("ADAVERC_CONFIG", raising=False)
        monkeypatch.setenv("ADAVERC_ENDPOINT", "https://os.example.org")
        assert load_config().endpoint == "https://os.example.org"


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------

class TestValidation:
    @pytest.mark.parametrize("body, match", [
        ("endpoint: ftp://x\n", "http"),
        ("timeout: 0\n", "positive"),
        ("timeout: soon\n", "number"),
        ("max_depth: 0\n", "between"),
        (f"max_depth: {MAX_DEPTH_CEILING + 1}\n", "between"),
        ("max_depth: 500\n", "between"),
        ("max_depth: deep\n", "integer"),
        ("payload_key: ''\n", "payload_key"),
        ("headers: [a]\n", "headers"),
        ("log_level: loud\n", "log_level"),
        ("endpoints: https://x\n", "Unknown config keys"),
    ])
    def test_rejected(self, tmp_path, body, match):
        path = _write(tmp_path, body)
        with pytest.raises(ConfigError, match=match):
            load_config(path, env={})

    def test_ceiling_accepted(self, tmp_path):
        path = _write(tmp_path, f"max_depth: {MAX_DEPTH_CEILING}\n")
        assert load_config(path, env={}).max_depth == MAX_DEPTH_CEILING


class TestBuildClient:
    def test_client_settings(self):
        config = VerifierConfig(
            endpoint="https://v.example.org", timeout=3.0, payload_key="hash",
            headers={"X-Key": "k"},
        )
        client = config.build_client(transport=httpx.MockTransport(lambda r: httpx.Response(200)))
        assert isinstance(client, VerificationClient)
        assert client.endpoint == "https://v.example.org"
        assert client.timeout == 3.0
        assert client.payload_key == "hash"
        assert client.headers["X-Key"] == "k"
