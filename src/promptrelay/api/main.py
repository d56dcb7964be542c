"""Prompt Relay — FastAPI Application.

This module is the single entry point for the web application.  It defines
the FastAPI ``app`` instance, all routes, and the ``main()`` CLI function
that launches the uvicorn server.

Architecture
------------
The application is a stateless relay in front of two hosted models:

- **Configuration** comes from :mod:`promptrelay.core.config`
  (``PROMPTRELAY_*`` environment variables).
- **Outbound calls** go through one :class:`~promptrelay.core.inference.InferenceClient`
  created in the lifespan handler and closed on shutdown.
- **Pipeline logic** lives in :class:`~promptrelay.core.orchestrator.PromptOrchestrator`.
  Its operations return explicit results; the routes below turn failures
  into the ``{"error": ...}`` envelope with status 500.
- **Malformed request bodies** take the same path: validation errors are
  reported through the error envelope, not as 422.

Endpoints
---------
========  ===============  ==============================================
Method    Path             Purpose
========  ===============  ==============================================
OPTIONS   any              CORS preflight, empty body
POST      ``/analyze``     Extract an element map from a prompt
POST      ``/enrich``      Turn a prompt or element map into one sentence
POST      ``/`` or other   Generate a PNG image
other     any              405 Method not allowed
========  ===============  ==============================================

Usage
-----
CLI (installed entry point)::

    promptrelay

Direct invocation::

    python -m promptrelay.api.main
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, PlainTextResponse, Response

from promptrelay import __version__
from promptrelay.api.models import (
    AnalyzeRequest,
    AnalyzeResponse,
    EnrichRequest,
    EnrichResponse,
    ErrorResponse,
    GenerateRequest,
)
from promptrelay.core.config import config
from promptrelay.core.inference import InferenceClient
from promptrelay.core.orchestrator import PromptOrchestrator

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# CORS policy.  Every OPTIONS request, browser preflight or not, gets the
# static preflight headers from the route below; every other response
# carries the allow-origin header.
# ---------------------------------------------------------------------------
PREFLIGHT_HEADERS: dict[str, str] = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
}
ORIGIN_HEADERS: dict[str, str] = {"Access-Control-Allow-Origin": "*"}

# Methods answered with 405.  OPTIONS and POST have their own routes.
_REJECTED_METHODS = ["GET", "HEAD", "PUT", "PATCH", "DELETE", "TRACE"]

# ---------------------------------------------------------------------------
# Application lifecycle — inference client setup and teardown.
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Manage application startup and shutdown lifecycle.

    On startup:
        Creates the :class:`InferenceClient` and the
        :class:`PromptOrchestrator` that uses it, and stores both on
        ``app.state``.

    On shutdown:
        Closes the client's connection pool.

    Args:
        app: The FastAPI application instance.

    Yields:
        Control back to the application for the duration of its lifetime.
    """
    # --- Startup -----------------------------------------------------------
    client = InferenceClient(config)
    app.state.inference_client = client
    app.state.orchestrator = PromptOrchestrator(client, config)
    logger.info(
        "Inference client ready (chat=%s, image=%s).",
        config.chat_model,
        config.image_model,
    )

    yield  # Application runs here.

    # --- Shutdown ----------------------------------------------------------
    await client.aclose()


# ---------------------------------------------------------------------------
# FastAPI application instance.  The generated docs routes are disabled
# because every non-POST path answers 405.
# ---------------------------------------------------------------------------
app = FastAPI(
    title="Prompt Relay",
    description="Prompt analysis, enrichment and image generation relay.",
    version=__version__,
    lifespan=lifespan,
    openapi_url=None,
    docs_url=None,
    redoc_url=None,
)


# ---------------------------------------------------------------------------
# Response helpers.
# ---------------------------------------------------------------------------


def _error_response(message: str) -> JSONResponse:
    """Wrap *message* in the error envelope with status 500."""
    return JSONResponse(
        content=ErrorResponse(error=message).model_dump(),
        status_code=500,
        headers=ORIGIN_HEADERS,
    )


def _orchestrator(request: Request) -> PromptOrchestrator:
    return request.app.state.orchestrator


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Report malformed request bodies through the generic error envelope.

    Args:
        request: The offending request.
        exc: Validation error raised by FastAPI while parsing the body.

    Returns:
        A 500 ``{"error": ...}`` response naming each invalid field.
    """
    details = "; ".join(
        f"{'.'.join(str(part) for part in err.get('loc', ()))}: {err.get('msg', '')}"
        for err in exc.errors()
    )
    logger.error("Rejected request to %s: %s", request.url.path, details)
    return _error_response(f"Invalid request: {details}")


# ---------------------------------------------------------------------------
# Routes.
# ---------------------------------------------------------------------------


@app.options("/{path:path}")
async def preflight(path: str) -> Response:
    """Answer any OPTIONS request with the permissive CORS policy."""
    return Response(status_code=200, headers=PREFLIGHT_HEADERS)


@app.post("/analyze")
async def analyze(req: AnalyzeRequest, request: Request) -> Response:
    """Extract an element map from a free-text prompt.

    Args:
        req: Validated :class:`AnalyzeRequest` payload.
        request: The incoming request (for access to ``app.state``).

    Returns:
        ``{"analysis": {...}}``, plus ``"parseError": true`` when the
        model reply was unusable and the raw prompt was substituted.
        On failure, the 500 error envelope.
    """
    result = await _orchestrator(request).analyze(req.prompt)
    if not result.ok:
        return _error_response(result.error)

    analysis = result.value
    if analysis.fallback_used:
        body = AnalyzeResponse(analysis=analysis.elements, parse_error=True)
    else:
        body = AnalyzeResponse(analysis=analysis.elements)
    # exclude_unset drops parseError unless the fallback set it.
    return JSONResponse(
        content=body.model_dump(by_alias=True, exclude_unset=True),
        headers=ORIGIN_HEADERS,
    )


@app.post("/enrich")
async def enrich(req: EnrichRequest, request: Request) -> Response:
    """Turn a raw prompt, or an element map, into one descriptive sentence.

    ``structure`` takes precedence over ``prompt`` when both are sent.

    Args:
        req: Validated :class:`EnrichRequest` payload.
        request: The incoming request.

    Returns:
        ``{"enriched": "..."}``, or the 500 error envelope.
    """
    result = await _orchestrator(request).enrich(
        prompt=req.prompt,
        system_prompt=req.system_prompt,
        structure=req.structure,
    )
    if not result.ok:
        return _error_response(result.error)
    return JSONResponse(
        content=EnrichResponse(enriched=result.value).model_dump(),
        headers=ORIGIN_HEADERS,
    )


@app.post("/")
@app.post("/{path:path}")
async def generate(req: GenerateRequest, request: Request) -> Response:
    """Generate an image and return it as ``image/png``.

    Every POST path other than ``/analyze`` and ``/enrich`` lands here.

    Args:
        req: Validated :class:`GenerateRequest` payload.
        request: The incoming request.

    Returns:
        The raw image bytes, or the 500 error envelope.
    """
    orchestrator = _orchestrator(request)
    if req.enrich:
        result = await orchestrator.enrich_and_generate(
            req.prompt,
            steps=req.steps,
            system_prompt=req.system_prompt,
        )
    else:
        result = await orchestrator.generate(req.prompt, steps=req.steps)

    if not result.ok:
        return _error_response(result.error)
    return Response(content=result.value, media_type="image/png", headers=ORIGIN_HEADERS)


@app.api_route("/{path:path}", methods=_REJECTED_METHODS)
async def method_not_allowed(path: str) -> Response:
    """Reject every method other than POST and OPTIONS without reading the body."""
    return PlainTextResponse("Method not allowed", status_code=405, headers=ORIGIN_HEADERS)


# ---------------------------------------------------------------------------
# CLI entry point.
# ---------------------------------------------------------------------------


def main() -> None:
    """Launch the uvicorn ASGI server.

    Reads host, port and log level from :data:`~promptrelay.core.config.config`
    (``PROMPTRELAY_SERVER_HOST``, ``PROMPTRELAY_SERVER_PORT``,
    ``PROMPTRELAY_LOG_LEVEL``).  Defaults to ``0.0.0.0:8787``.

    This function is registered as the ``promptrelay`` console script in
    ``pyproject.toml``.
    """
    import uvicorn

    logging.basicConfig(
        level=config.log_level.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    if not config.account_id or not config.api_token:
        logger.warning("PROMPTRELAY_ACCOUNT_ID or PROMPTRELAY_API_TOKEN is not set.")

    uvicorn.run(
        "promptrelay.api.main:app",
        host=config.server_host,
        port=config.server_port,
        reload=False,
    )


if __name__ == "__main__":
    main()
