"""FastAPI application for the logprob relay.

Routes (mounted at the root and again under ``/api``):

- ``GET /models``: configured model list.
- ``GET /health``: status, uptime, version and request id.
- ``POST /complete``: one ``CompletionLP`` (+ ``request_id``).
- ``POST /complete/stream``: NDJSON event stream (see ``chat_stream``).

``create_app`` builds an isolated application from an explicit
``RelayConfig`` and optional provider; the module-level ``app`` uses the
environment-derived configuration and is what the dev server runs.
"""
from __future__ import annotations

import logging
import time
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from logprob_relay import __version__
from logprob_relay.base.errors import RelayError, status_for
from logprob_relay.base.interfaces import UpstreamProvider
from logprob_relay.base.logging import get_logger, normalized_log_event
from logprob_relay.base.nonstream import complete_once
from logprob_relay.base.request_build import build_upstream_request
from logprob_relay.config import RelayConfig, load_relay_config

from .app_parts.app_core import (
    RelayServices,
    build_health,
    error_payload,
    get_request_id,
    get_services,
    log_context,
    read_body,
    resolve_provider,
)
from .chat_stream import post_complete_stream
from .request_id import RequestIdMiddleware

_logger = get_logger("service")

router = APIRouter()


@router.get("/models")
def get_models(services: RelayServices = Depends(get_services)) -> List[Dict[str, str]]:
    """Return the selectable models (an empty list is valid)."""
    return [m.to_dict() for m in services.config.models]


@router.get("/health")
def health(request: Request, services: RelayServices = Depends(get_services)) -> Dict[str, Any]:
    """Report liveness with uptime (seconds) and the correlation id."""
    return build_health(services, get_request_id(request))


@router.post("/complete")
async def post_complete(request: Request, services: RelayServices = Depends(get_services)) -> Dict[str, Any]:
    """Run one non-streaming completion.

    Errors surface as ``RelayError`` and are rendered by the app's handler:
    400 invalid body, 500 missing credential, 409 no token logprobs, 502
    upstream failure.
    """
    started_at = time.perf_counter()
    body = await read_body(request)
    provider = resolve_provider(services)
    completion = await complete_once(
        provider,
        build_upstream_request(body),
        ctx=log_context(request, model=body.model),
        timeouts=services.config.timeouts,
        started_at=started_at,
    )
    return {**completion.to_dict(), "request_id": get_request_id(request)}


router.add_api_route("/complete/stream", post_complete_stream, methods=["POST"])


async def _relay_error_handler(request: Request, exc: RelayError) -> JSONResponse:
    request_id = get_request_id(request)
    status = status_for(exc.code)
    normalized_log_event(
        _logger,
        "http.error",
        log_context(request, model=exc.model),
        phase="respond",
        error_code=exc.code.value,
        emitted=False,
        tokens=None,
        level=logging.WARNING if status < 500 else logging.ERROR,
        status=status,
        error=exc.message[:260],
    )
    return JSONResponse(error_payload(exc, request_id), status_code=status)


def create_app(
    config: Optional[RelayConfig] = None,
    provider: Optional[UpstreamProvider] = None,
) -> FastAPI:
    """Build a relay application.

    Parameters
    ----------
    config: RelayConfig | None
        Immutable configuration; ``load_relay_config()`` when omitted.
    provider: UpstreamProvider | None
        Upstream to use for every request. When omitted the provider is
        chosen from ``config`` (scripted mock or OpenAI) on first use.
    """
    config = config or load_relay_config()
    application = FastAPI(title="Logprob Relay", version=__version__)
    application.state.services = RelayServices(config=config, provider=provider, injected=provider is not None)
    application.add_middleware(
        CORSMiddleware,
        allow_origins=list(config.cors_origins),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )
    # Added last so it wraps CORS and every response carries the header.
    application.add_middleware(RequestIdMiddleware)
    application.add_exception_handler(RelayError, _relay_error_handler)
    application.include_router(router)
    application.include_router(router, prefix="/api")
    return application


app = create_app()


def get_app() -> FastAPI:
    """Return the module-level FastAPI application instance."""
    return app


__all__ = ["app", "create_app", "get_app", "router"]
