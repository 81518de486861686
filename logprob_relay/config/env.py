"""logprob_relay.config.env
=========================

Environment helpers for the upstream credential and list-valued settings.

Failure Modes
-------------
Helpers never raise on unset or malformed variables; they return ``None`` or
an empty result and let the caller decide how to proceed. A missing
credential is reported per request (HTTP 500), not at startup.
"""

from __future__ import annotations

import os
from typing import List, Optional, Tuple

API_KEY_ENV = "OPENAI_API_KEY"  # pragma: allowlist secret - env var name, not a secret
BASE_URL_ENV = "OPENAI_BASE_URL"
MODELS_ENV = "LOGPROB_RELAY_MODELS"
CORS_ENV = "LOGPROB_RELAY_CORS_ORIGINS"
USE_MOCKS_ENV = "LOGPROB_RELAY_USE_MOCKS"
CONFIG_FILE_ENV = "LOGPROB_RELAY_CONFIG_FILE"

_TRUTHY = {"1", "true", "yes", "on"}


def is_placeholder(val: Optional[str]) -> bool:
    """Return True if the value looks like a placeholder/test credential.

    Heuristics: contains 'placeholder', 'changeme', 'example', or starts with
    'test_' (case-insensitive, surrounding spaces ignored).
    """
    if val is None:
        return False
    v = str(val).strip().lower()
    return "placeholder" in v or "changeme" in v or "example" in v or v.startswith("test_")


def resolve_api_key() -> Optional[str]:
    """Return the upstream API key from the environment, ignoring placeholders."""
    val = os.getenv(API_KEY_ENV)
    if not val or not val.strip() or is_placeholder(val):
        return None
    return val.strip()


def env_flag(name: str) -> Optional[bool]:
    """Parse a boolean flag; ``None`` when unset."""
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return None
    return raw.strip().lower() in _TRUTHY


def parse_csv(raw: Optional[str]) -> List[str]:
    """Split a comma-separated value, dropping blanks."""
    if not raw:
        return []
    return [part.strip() for part in raw.split(",") if part.strip()]


def parse_models(raw: Optional[str]) -> List[Tuple[str, str]]:
    """Parse ``id=Name,id2=Name2`` (a bare ``id`` uses the id as its name)."""
    out: List[Tuple[str, str]] = []
    for item in parse_csv(raw):
        model_id, _, name = item.partition("=")
        model_id = model_id.strip()
        if model_id:
            out.append((model_id, name.strip() or model_id))
    return out


__all__ = [
    "API_KEY_ENV",
    "BASE_URL_ENV",
    "MODELS_ENV",
    "CORS_ENV",
    "USE_MOCKS_ENV",
    "CONFIG_FILE_ENV",
    "is_placeholder",
    "resolve_api_key",
    "env_flag",
    "parse_csv",
    "parse_models",
]
