"""Shared constants for the relay.

Central location to avoid scattering magic strings and numeric bounds.

Security
--------
Only generic sentinel strings live here; no credentials.

# pragma: allowlist secret
"""
from __future__ import annotations

# Missing credential sentinel
MISSING_API_KEY_ERROR = "Missing OPENAI_API_KEY on server"  # pragma: allowlist secret - message, not a secret

# Non-streaming upstream answered without token-level data
LOGPROBS_UNAVAILABLE_ERROR = "Model response lacked token logprobs. Pick a supported model."

INVALID_REQUEST_ERROR = "Invalid request"
UPSTREAM_ERROR = "Upstream OpenAI error"

# Wire protocol
NDJSON_MEDIA_TYPE = "application/x-ndjson"
REQUEST_ID_HEADER = "X-Request-ID"

# RunParameters bounds (inclusive) and defaults
TEMPERATURE_RANGE = (0.0, 2.0)
TOP_P_RANGE = (0.0, 1.0)
PENALTY_RANGE = (-2.0, 2.0)
MAX_TOKENS_RANGE = (1, 256)
TOP_LOGPROBS_RANGE = (1, 10)

DEFAULT_TEMPERATURE = 0.7
DEFAULT_TOP_P = 1.0
DEFAULT_PRESENCE_PENALTY = 0.0
DEFAULT_FREQUENCY_PENALTY = 0.0
DEFAULT_MAX_TOKENS = 128
DEFAULT_TOP_LOGPROBS = 5

# Continuation modes accepted with ``force_prefix``
CONTINUATION_ASSISTANT_PREFIX = "assistant-prefix"
CONTINUATION_HINT = "hint"

# Finish reasons used when the upstream does not supply one
FALLBACK_FINISH_REASON = "stop"
UNKNOWN_FINISH_REASON = "unknown"

__all__ = [
    "MISSING_API_KEY_ERROR",
    "LOGPROBS_UNAVAILABLE_ERROR",
    "INVALID_REQUEST_ERROR",
    "UPSTREAM_ERROR",
    "NDJSON_MEDIA_TYPE",
    "REQUEST_ID_HEADER",
    "TEMPERATURE_RANGE",
    "TOP_P_RANGE",
    "PENALTY_RANGE",
    "MAX_TOKENS_RANGE",
    "TOP_LOGPROBS_RANGE",
    "DEFAULT_TEMPERATURE",
    "DEFAULT_TOP_P",
    "DEFAULT_PRESENCE_PENALTY",
    "DEFAULT_FREQUENCY_PENALTY",
    "DEFAULT_MAX_TOKENS",
    "DEFAULT_TOP_LOGPROBS",
    "CONTINUATION_ASSISTANT_PREFIX",
    "CONTINUATION_HINT",
    "FALLBACK_FINISH_REASON",
    "UNKNOWN_FINISH_REASON",
]
