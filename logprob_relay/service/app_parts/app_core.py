"""Shared service plumbing: per-app state, body validation, error payloads.

Route modules stay thin; everything here is plain functions over
``RelayServices`` so handlers can be exercised without an HTTP client.
"""
from __future__ import annotations

import json
import time
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from pydantic import ValidationError
from starlette.requests import Request

from logprob_relay.base.constants import (
    INVALID_REQUEST_ERROR,
    MISSING_API_KEY_ERROR,
    UPSTREAM_ERROR,
)
from logprob_relay.base.dto import CompleteRequestDTO
from logprob_relay.base.errors import ErrorCode, RelayError, status_for
from logprob_relay.base.interfaces import UpstreamProvider
from logprob_relay.base.logging import LogContext
from logprob_relay.config import RelayConfig


@dataclass
class RelayServices:
    """Process-wide collaborators attached to ``app.state.services``.

    ``config`` is immutable; ``provider`` is built once on first use (or
    injected) and shared read-only by concurrent requests.
    """

    config: RelayConfig
    provider: Optional[UpstreamProvider] = None
    injected: bool = False
    started_at: float = field(default_factory=time.monotonic)

    @property
    def uptime(self) -> float:
        return round(time.monotonic() - self.started_at, 3)


def get_services(request: Request) -> RelayServices:
    """FastAPI dependency returning the app's ``RelayServices``."""
    return request.app.state.services


def get_request_id(request: Request) -> str:
    """Return the correlation id assigned by ``RequestIdMiddleware``."""
    return getattr(request.state, "request_id", None) or ""


def log_context(request: Request, model: Optional[str] = None) -> LogContext:
    return LogContext(model=model, request_id=get_request_id(request), route=request.url.path)


async def read_body(request: Request) -> CompleteRequestDTO:
    """Parse and validate a completion body.

    Raises
    ------
    RelayError
        ``VALIDATION`` for non-JSON bodies or schema violations; ``details``
        carries the Pydantic error list.
    """
    raw = await request.body()
    try:
        payload: Any = json.loads(raw or b"null")
    except ValueError as exc:
        raise RelayError(ErrorCode.VALIDATION, INVALID_REQUEST_ERROR, details=[{"msg": f"invalid JSON: {exc}"}]) from exc
    try:
        return CompleteRequestDTO.model_validate(payload)
    except ValidationError as exc:
        raise RelayError(
            ErrorCode.VALIDATION,
            INVALID_REQUEST_ERROR,
            details=exc.errors(include_url=False, include_context=False),
        ) from exc


def resolve_provider(services: RelayServices) -> UpstreamProvider:
    """Return the upstream provider, enforcing the credential precondition.

    Raises
    ------
    RelayError
        ``CONFIGURATION`` when the OpenAI upstream is selected without a key.
    """
    if services.provider is not None and services.injected:
        return services.provider
    config = services.config
    if config.use_mocks:
        if services.provider is None:
            from logprob_relay.mock import ScriptedUpstream

            services.provider = ScriptedUpstream(delay=0.02, record=False)
        return services.provider
    if not config.has_credentials:
        raise RelayError(ErrorCode.CONFIGURATION, MISSING_API_KEY_ERROR)
    if services.provider is None:
        from logprob_relay.openai import OpenAIUpstream

        services.provider = OpenAIUpstream.from_config(config)
    return services.provider


def error_payload(err: RelayError, request_id: str) -> Dict[str, Any]:
    """Shape the single JSON error object returned for pre-stream failures."""
    status = status_for(err.code)
    body: Dict[str, Any] = {"error": err.message, "code": err.code.value}
    if status == 502:
        body["error"] = UPSTREAM_ERROR
        body["details"] = err.message
    elif err.details is not None:
        body["details"] = err.details
    body["request_id"] = request_id
    return body


def build_health(services: RelayServices, request_id: str) -> Dict[str, Any]:
    return {
        "status": "ok",
        "uptime": services.uptime,
        "version": services.config.version,
        "request_id": request_id,
    }


__all__ = [
    "RelayServices",
    "build_health",
    "error_payload",
    "get_request_id",
    "get_services",
    "log_context",
    "read_body",
    "resolve_provider",
]
