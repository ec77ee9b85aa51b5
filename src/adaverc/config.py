"""
Verifier configuration.

Loaded from a YAML file (optionally nested under a ``verifier:`` key)
with ``${VAR}`` interpolation in string values, then overridden by
``ADAVERC_*`` environment variables. Invalid values fail fast with
ConfigError.

Example::

    verifier:
      endpoint: https://verify.example.org/api/verify
      payload_key: hash
      timeout: 15
      headers:
        Authorization: Bearer ${ADAVERC_TOKEN}
"""

from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping, Optional, Union

import yaml

from .dispatch import DEFAULT_MAX_DEPTH
from .errors import ConfigError
from .lookup import DEFAULT_PAYLOAD_KEY, DEFAULT_TIMEOUT

logger = logging.getLogger("adaverc.config")

CONFIG_ENV_VAR = "ADAVERC_CONFIG"

# Hard ceiling for max_depth. Canonicalization and serialization each
# recurse per level and together must stay under the interpreter limit.
MAX_DEPTH_CEILING = 200

_ENV_PATTERN = re.compile(r"\$\{([A-Za-z_][A-Za-z0-9_]*)\}")

_KNOWN_KEYS = frozenset({
    "endpoint", "timeout", "payload_key", "max_depth", "headers", "log_level",
})

# Environment variable -> config key
_ENV_OVERRIDES = {
    "ADAVERC_ENDPOINT": "endpoint",
    "ADAVERC_TIMEOUT": "timeout",
    "ADAVERC_PAYLOAD_KEY": "payload_key",
    "ADAVERC_MAX_DEPTH": "max_depth",
    "ADAVERC_LOG_LEVEL": "log_level",
}

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass
class VerifierConfig:
    endpoint: str = ""
    timeout: float = DEFAULT_TIMEOUT
    payload_key: str = DEFAULT_PAYLOAD_KEY
    max_depth: int = DEFAULT_MAX_DEPTH
    headers: dict[str, str] = field(default_factory=dict)
    log_level: str = "WARNING"

    def build_client(self, **kwargs: Any):
        """Create a VerificationClient from this configuration."""
        from .lookup import VerificationClient

        return VerificationClient(
            self.endpoint,
            timeout=self.timeout,
            payload_key=self.payload_key,
            headers=self.headers,
            **kwargs,
        )


# =============================================================================
# LOADING
# =============================================================================

def _interpolate(value: Any, env: Mapping[str, str]) -> Any:
    """Replace ``${VAR}`` in strings, recursing into lists and mappings."""
    if isinstance(value, str):
        def _sub(match: re.Match) -> str:
            name = match.group(1)
            if name not in env:
                raise ConfigError(f"Environment variable {name} is not set")
            return env[name]
        return _ENV_PATTERN.sub(_sub, value)
    if isinstance(value, list):
        return [_interpolate(v, env) for v in value]
    if isinstance(value, dict):
        return {k: _interpolate(v, env) for k, v in value.items()}
    return value


def _read_file(path: Union[str, Path]) -> dict:
    path = Path(path).expanduser()
    try:
        with open(path) as f:
            data = yaml.safe_load(f)
    except FileNotFoundError:
        raise ConfigError(f"Config file not found: {path}") from None
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Config root must be a mapping: {path}")
    if "verifier" in data:
        data = data["verifier"] or {}
        if not isinstance(data, dict):
            raise ConfigError("'verifier' section must be a mapping")
    return data


def _build(raw: dict) -> VerifierConfig:
    unknown = sorted(set(raw) - _KNOWN_KEYS)
    if unknown:
        raise ConfigError(f"Unknown config keys: {', '.join(unknown)}")

    config = VerifierConfig()

    endpoint = raw.get("endpoint") or ""
    if endpoint and not str(endpoint).startswith(("http://", "https://")):
        raise ConfigError(f"endpoint must be an http(s) URL, got {endpoint!r}")
    config.endpoint = str(endpoint)

    if "timeout" in raw:
        try:
            config.timeout = float(raw["timeout"])
        except (TypeError, ValueError):
            raise ConfigError(f"timeout must be a number, got {raw['timeout']!r}") from None
        if config.timeout <= 0:
            raise ConfigError("timeout must be positive")

    if "payload_key" in raw:
        key = raw["payload_key"]
        if not isinstance(key, str) or not key.strip():
            raise ConfigError("payload_key must be a non-empty string")
        config.payload_key = key.strip()

    if "max_depth" in raw:
        try:
            config.max_depth = int(raw["max_depth"])
        except (TypeError, ValueError):
            raise ConfigError(f"max_depth must be an integer, got {raw['max_depth']!r}") from None
        if not 1 <= config.max_depth <= MAX_DEPTH_CEILING:
            raise ConfigError(f"max_depth must be between 1 and {MAX_DEPTH_CEILING}")

    headers = raw.get("headers") or {}
    if not isinstance(headers, dict):
        raise ConfigError("headers must be a mapping")
    config.headers = {str(k): str(v) for k, v in headers.items()}

    if "log_level" in raw:
        level = str(raw["log_level"]).upper()
        if level not in _LOG_LEVELS:
            raise ConfigError(f"log_level must be one of {', '.join(_LOG_LEVELS)}")
        config.log_level = level

    return config


def load_config(
    path: Optional[Union[str, Path]] = None,
    env: Optional[Mapping[str, str]] = None,
) -> VerifierConfig:
    """Load configuration from ``path`` (or $ADAVERC_CONFIG) and the environment.

    Either source may be absent; defaults fill the rest.
    """
    env = os.environ if env is None else env
    path = path or env.get(CONFIG_ENV_VAR)

    raw: dict = {}
    if path:
        raw = _interpolate(_read_file(path), env)
        logger.debug("Loaded config from %s", path)

    for var, key in _ENV_OVERRIDES.items():
        if env.get(var):
            raw[key] = env[var]

    return _build(raw)
