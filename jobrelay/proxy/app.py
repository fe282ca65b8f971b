"""FastAPI application exposing the job relay endpoint."""

from __future__ import annotations

import json
import logging
from typing import Any

import httpx
from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.requests import ClientDisconnect

from jobrelay.audit.logger import AuditLogger
from jobrelay.config import RelaySettings
from jobrelay.models import AuditEvent, AuditEventType, RiskLevel, iso_timestamp
from jobrelay.proxy.auth import API_KEY_HEADER, ApiKeyVerifier
from jobrelay.webhook.models import JobPayload, RelayResult
from jobrelay.webhook.relay import FORWARD_TIMEOUT_SECONDS, Clock, JobRelayPipeline, utc_now

logger = logging.getLogger(__name__)

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type, X-API-KEY",
}

REDACTED = "[redacted]"


class _BodyError(Exception):
    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


def create_app_from_env() -> FastAPI:
    """Factory for uvicorn --factory: reads config from environment variables."""
    settings = RelaySettings.from_env()
    return create_app(settings, AuditLogger.from_settings(settings))


def create_app(
    settings: RelaySettings,
    audit_logger: AuditLogger | None = None,
    clock: Clock = utc_now,
    transport: httpx.AsyncBaseTransport | None = None,
    timeout: float = FORWARD_TIMEOUT_SECONDS,
) -> FastAPI:
    """Create the relay app. ``transport`` replaces the outbound network layer."""
    app = FastAPI(docs_url=None, redoc_url=None, openapi_url=None)
    verifier = ApiKeyVerifier(settings.secret_api_key, audit_logger)
    pipeline = JobRelayPipeline(
        settings,
        audit_logger=audit_logger,
        clock=clock,
        timeout=timeout,
        transport=transport,
    )

    if not verifier.enabled:
        logger.warning("SECRET_API_KEY is not set; accepting unauthenticated requests")

    @app.exception_handler(Exception)
    async def unhandled_error(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return _json(500, {"success": False, "error": "Internal server error"})

    # Unrouted methods surface from the router as 405; they are reported as 404.
    @app.exception_handler(StarletteHTTPException)
    async def http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        if exc.status_code in (404, 405):
            return _json(404, {"success": False, "error": "Not found"})
        return _json(exc.status_code, {"success": False, "error": str(exc.detail)})

    @app.options("/{path:path}")
    async def preflight(path: str) -> Response:
        return Response(status_code=204, headers=CORS_HEADERS)

    @app.get("/")
    @app.get("/health")
    async def health() -> JSONResponse:
        return _json(200, {"ok": True, "ts": iso_timestamp(clock())})

    @app.post("/debug")
    async def debug(request: Request) -> JSONResponse:
        try:
            body = await _read_json(request)
        except _BodyError as exc:
            return _json(400, {"success": False, "error": exc.message})

        matched = verifier.matches(request.headers)
        headers = {
            name: REDACTED if name == API_KEY_HEADER else value
            for name, value in request.headers.items()
        }
        if audit_logger:
            audit_logger.log(AuditEvent(
                event_type=AuditEventType.DEBUG_REQUEST,
                source_ip=request.client.host if request.client else None,
                action="POST /debug",
                result="success" if matched else "failure",
                risk_level=RiskLevel.LOW,
                details={"api_key_match": matched},
            ))
        return _json(
            200 if matched else 403,
            {
                "success": matched,
                "api_key_match": matched,
                "auth_enabled": verifier.enabled,
                "headers": headers,
                "body": body,
            },
        )

    @app.post("/{path:path}")
    async def forward(request: Request, path: str) -> JSONResponse:
        try:
            body = await _read_json(request)
        except _BodyError as exc:
            return _json(400, {"success": False, "error": exc.message})

        if not verifier.authenticate(request):
            return _json(
                403, {"success": False, "error": "Forbidden: missing or invalid X-API-KEY"},
            )

        payload = JobPayload.from_json(body)
        result = await pipeline.relay(
            payload, source_ip=request.client.host if request.client else None,
        )
        return _result(result)

    @app.api_route("/{path:path}", methods=["GET", "HEAD", "PUT", "PATCH", "DELETE"])
    async def not_found(path: str) -> JSONResponse:
        return _json(404, {"success": False, "error": "Not found"})

    return app


async def _read_json(request: Request) -> Any:
    """Read the body as text; an empty body parses to an empty object."""
    try:
        raw = (await request.body()).decode("utf-8", errors="replace")
    except ClientDisconnect as exc:
        raise _BodyError("Failed to read request body") from exc
    if not raw:
        return {}
    try:
        return json.loads(raw, parse_constant=_reject_constant)
    except (ValueError, RecursionError) as exc:
        raise _BodyError("Malformed JSON") from exc


def _reject_constant(name: str) -> Any:
    """NaN and Infinity are not JSON."""
    raise ValueError(f"Invalid JSON constant: {name}")


def _json(status_code: int, content: dict[str, Any]) -> JSONResponse:
    return JSONResponse(content, status_code=status_code, headers=CORS_HEADERS)


def _result(result: RelayResult) -> JSONResponse:
    return _json(result.status_code, result.body())
