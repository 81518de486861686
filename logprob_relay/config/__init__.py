"""Unified configuration layer for the relay.

Goals
-----
* Build one immutable ``RelayConfig`` at startup; requests only read it.
* Merge sources in a predictable order (later wins):
    1. Built-in defaults (``config.defaults`` and ``base.timeouts``)
    2. Optional external config file (JSON or YAML) named by
       ``LOGPROB_RELAY_CONFIG_FILE``
    3. Environment variables
    4. In-code overrides passed to ``load_relay_config``

Environment Variables
---------------------
OPENAI_API_KEY, OPENAI_BASE_URL, LOGPROB_RELAY_MODELS (``id=Name,...``),
LOGPROB_RELAY_CORS_ORIGINS (comma-separated), LOGPROB_RELAY_USE_MOCKS,
LOGPROB_RELAY_START_TIMEOUT_SECONDS, LOGPROB_RELAY_STREAM_IDLE_TIMEOUT_SECONDS.
A ``.env`` file (path from ``DOTENV_FILE``, default ``.env``) is read once.

External Config File
--------------------
JSON is tried first, then YAML. Example::

    models:
      gpt-4o-mini: GPT-4o mini
    cors_origins: [http://localhost:5173]
    start_timeout_seconds: 20

Public API
----------
* RelayConfig
* load_relay_config(overrides: dict | None = None) -> RelayConfig
"""
from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple

import yaml

from ..base.models import ModelInfo
from ..base.timeouts import TimeoutConfig, get_timeout_config
from .defaults import DEFAULT_BASE_URL, DEFAULT_CORS_ORIGINS, DEFAULT_MODELS, DEFAULT_VERSION
from .env import (
    BASE_URL_ENV,
    CONFIG_FILE_ENV,
    CORS_ENV,
    MODELS_ENV,
    USE_MOCKS_ENV,
    env_flag,
    is_placeholder,
    parse_csv,
    parse_models,
    resolve_api_key,
)

_DOTENV_LOADED = False


@dataclass(frozen=True)
class RelayConfig:
    """Process-wide, read-only relay configuration.

    Attributes:
        api_key: Upstream credential; ``None`` makes every completion fail
            with HTTP 500 before any upstream call.
        base_url: Optional upstream endpoint override.
        models: Entries served by ``GET /models`` (may be empty).
        cors_origins: Origins allowed by the CORS middleware.
        use_mocks: Serve completions from the scripted upstream.
        version: Reported by ``GET /health``.
        start_timeout_seconds: Upstream open / non-stream call deadline.
        stream_idle_timeout_seconds: Maximum wait between fragments.
    """

    api_key: Optional[str] = None
    base_url: Optional[str] = DEFAULT_BASE_URL
    models: Tuple[ModelInfo, ...] = field(default_factory=lambda: tuple(ModelInfo(i, n) for i, n in DEFAULT_MODELS))
    cors_origins: Tuple[str, ...] = field(default_factory=lambda: tuple(parse_csv(DEFAULT_CORS_ORIGINS)))
    use_mocks: bool = False
    version: str = DEFAULT_VERSION
    start_timeout_seconds: float = TimeoutConfig.start_timeout_seconds
    stream_idle_timeout_seconds: float = TimeoutConfig.stream_idle_timeout_seconds

    @property
    def has_credentials(self) -> bool:
        return bool(self.api_key)

    @property
    def timeouts(self) -> TimeoutConfig:
        return TimeoutConfig(
            start_timeout_seconds=self.start_timeout_seconds,
            stream_idle_timeout_seconds=self.stream_idle_timeout_seconds,
            http_timeout_seconds=get_timeout_config().http_timeout_seconds,
        )


def _load_dotenv_once() -> None:
    """Lightweight .env loader.

    Parses KEY=VALUE lines, ignoring comments and blank lines. Existing
    environment variables win unless their value looks like a placeholder.
    """
    global _DOTENV_LOADED  # noqa: PLW0603 - module-level once flag
    if _DOTENV_LOADED:
        return
    path = os.getenv("DOTENV_FILE", ".env")
    if not os.path.isfile(path):
        _DOTENV_LOADED = True
        return
    try:
        with open(path, "r", encoding="utf-8") as fh:
            for line in fh:
                line = line.strip()
                if not line or line.startswith("#") or "=" not in line:
                    continue
                k, v = line.split("=", 1)
                k = k.strip()
                v = v.strip().strip('"').strip("'")
                if k and (k not in os.environ or is_placeholder(os.environ.get(k))):
                    os.environ[k] = v
    finally:
        _DOTENV_LOADED = True


def _load_external_config() -> Dict[str, Any]:
    """Read the optional config file (JSON first, then YAML); ``{}`` when absent."""
    path = os.getenv(CONFIG_FILE_ENV)
    if not path:
        return {}
    p = Path(path)
    if not p.exists():
        return {}
    text = p.read_text(encoding="utf-8")
    try:
        data = json.loads(text)
    except ValueError:
        data = yaml.safe_load(text) or {}
    return data if isinstance(data, dict) else {}


def _coerce_models(value: Any) -> Tuple[ModelInfo, ...]:
    """Accept ``{id: name}``, ``[{id, name}]``, ``[id, ...]`` or ``"id=Name,..."``."""
    if isinstance(value, str):
        return tuple(ModelInfo(i, n) for i, n in parse_models(value))
    if isinstance(value, Mapping):
        return tuple(ModelInfo(str(i), str(n)) for i, n in value.items())
    out = []
    for item in value or ():
        if isinstance(item, ModelInfo):
            out.append(item)
        elif isinstance(item, Mapping) and item.get("id"):
            out.append(ModelInfo(str(item["id"]), str(item.get("name") or item["id"])))
        elif isinstance(item, (tuple, list)) and item:
            out.append(ModelInfo(str(item[0]), str(item[1] if len(item) > 1 else item[0])))
        elif isinstance(item, str) and item:
            out.append(ModelInfo(item, item))
    return tuple(out)


def _coerce_origins(value: Any) -> Tuple[str, ...]:
    if isinstance(value, str):
        return tuple(parse_csv(value))
    return tuple(str(v) for v in value or ())


def _env_overrides() -> Dict[str, Any]:
    out: Dict[str, Any] = {}
    if key := resolve_api_key():
        out["api_key"] = key
    if base_url := os.getenv(BASE_URL_ENV):
        out["base_url"] = base_url
    if models := os.getenv(MODELS_ENV):
        out["models"] = models
    if origins := os.getenv(CORS_ENV):
        out["cors_origins"] = origins
    mocks = env_flag(USE_MOCKS_ENV)
    if mocks is not None:
        out["use_mocks"] = mocks
    timeouts = get_timeout_config()
    defaults = TimeoutConfig()
    # Only env-provided timeouts override the file; defaults do not.
    if timeouts.start_timeout_seconds != defaults.start_timeout_seconds:
        out["start_timeout_seconds"] = timeouts.start_timeout_seconds
    if timeouts.stream_idle_timeout_seconds != defaults.stream_idle_timeout_seconds:
        out["stream_idle_timeout_seconds"] = timeouts.stream_idle_timeout_seconds
    return out


_FIELDS: Iterable[str] = tuple(RelayConfig.__dataclass_fields__)


def load_relay_config(overrides: Optional[Dict[str, Any]] = None) -> RelayConfig:
    """Return the merged :class:`RelayConfig`.

    Merge order (later wins): defaults -> external config -> env vars -> overrides.
    Unknown keys are ignored; ``None`` override values do not clear a setting.
    """
    _load_dotenv_once()
    cfg: Dict[str, Any] = {}
    cfg |= {k: v for k, v in _load_external_config().items() if k in _FIELDS}
    cfg |= _env_overrides()
    if overrides:
        cfg |= {k: v for k, v in overrides.items() if v is not None and k in _FIELDS}

    if "models" in cfg:
        cfg["models"] = _coerce_models(cfg["models"])
    if "cors_origins" in cfg:
        cfg["cors_origins"] = _coerce_origins(cfg["cors_origins"])
    if "api_key" in cfg and (not cfg["api_key"] or is_placeholder(cfg["api_key"])):
        cfg["api_key"] = None
    for name in ("start_timeout_seconds", "stream_idle_timeout_seconds"):
        if name in cfg:
            cfg[name] = float(cfg[name])
    if "use_mocks" in cfg:
        cfg["use_mocks"] = bool(cfg["use_mocks"])
    return RelayConfig(**cfg)


__all__ = ["RelayConfig", "load_relay_config"]
