"""logprob_relay.config.defaults
=============================

Small, stable default values for the relay and its dev server. Every value
can be overridden through the external config file, the environment or
explicit overrides (see ``logprob_relay.config``).

This module performs no I/O and imports nothing from the rest of the package.
"""

from __future__ import annotations

# ---- Upstream ----

# Models offered by ``GET /models`` when nothing else is configured.
DEFAULT_MODELS = (
    ("gpt-4o-mini", "GPT-4o mini"),
    ("gpt-4o", "GPT-4o"),
)

# SDK default endpoint is used when this stays None.
DEFAULT_BASE_URL = None

# ---- Service / HTTP layer ----

# Comma-separated list of allowed origins (Vite dev server by default).
DEFAULT_CORS_ORIGINS = "http://localhost:5173,http://127.0.0.1:5173"

# Reported by ``GET /health``.
DEFAULT_VERSION = "0.1.0"

# ---- Dev server ----
DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 8787

__all__ = [
    "DEFAULT_MODELS",
    "DEFAULT_BASE_URL",
    "DEFAULT_CORS_ORIGINS",
    "DEFAULT_VERSION",
    "DEFAULT_HOST",
    "DEFAULT_PORT",
]
