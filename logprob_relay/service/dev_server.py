from __future__ import annotations

import os

import uvicorn

from logprob_relay.config.defaults import DEFAULT_HOST, DEFAULT_PORT


def _parse_port(value: str | None, default: int) -> int:
    """Best-effort parse of a port from string, falling back to a sane default."""
    if not value:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def main() -> None:
    """Start the development server for the relay FastAPI app.

    - LOGPROB_RELAY_HOST: interface to bind (default "127.0.0.1")
    - LOGPROB_RELAY_PORT: port to bind (default 8787)
    - LOGPROB_RELAY_RELOAD: "true"/"false" to toggle auto-reload (default true)
    """
    host = os.getenv("LOGPROB_RELAY_HOST", DEFAULT_HOST)
    port = _parse_port(os.getenv("LOGPROB_RELAY_PORT"), DEFAULT_PORT)
    reload_env = os.getenv("LOGPROB_RELAY_RELOAD")
    reload_enabled = True if reload_env is None else reload_env.lower() == "true"

    uvicorn.run(
        "logprob_relay.service.app:app",
        host=host,
        port=port,
        reload=reload_enabled,
    )


if __name__ == "__main__":
    main()
