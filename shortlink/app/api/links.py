"""Short link creation endpoint.

Thin wrapper around LinkService: parses the request body, maps the error
taxonomy to HTTP status codes and adds the CORS header every browser
caller needs to read the response body.
"""

import json
from typing import Any

from fastapi import APIRouter, Depends, Request, Response
from fastapi.responses import JSONResponse

from shortlink.app.core.config import settings
from shortlink.app.core.http_client import build_timeout, get_http_client
from shortlink.app.core.logging import get_log_context, get_logger
from shortlink.app.exceptions import (
    ConfigurationError,
    ConflictError,
    ShortLinkError,
    UpstreamError,
    UpstreamReason,
    ValidationError,
)
from shortlink.app.services.content_store import GitHubContentStore
from shortlink.app.services.link_service import LinkService, LinkServiceConfig

logger = get_logger(__name__)
router = APIRouter()

CORS_HEADERS = {"Access-Control-Allow-Origin": "*"}
PREFLIGHT_HEADERS = {
    **CORS_HEADERS,
    "Access-Control-Allow-Methods": "POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
}


def cors_json(content: dict[str, Any], status_code: int = 200) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=content, headers=CORS_HEADERS)


def status_for(exc: ShortLinkError) -> int:
    """HTTP status for a rule store error."""
    if isinstance(exc, ValidationError):
        return 400
    if isinstance(exc, ConflictError):
        return 409
    if isinstance(exc, UpstreamError):
        if exc.reason is UpstreamReason.CORRUPT_DOCUMENT:
            return 500
        return 502
    return 500


def error_message(exc: ShortLinkError) -> str:
    if isinstance(exc, UpstreamError) and exc.reason is UpstreamReason.FETCH_FAILED:
        status = exc.upstream_status if exc.upstream_status is not None else "timeout"
        return f"Failed to fetch file from GitHub: {status}"
    return exc.message


def get_link_service() -> LinkService:
    """Build a LinkService for the current request from settings.

    Raises:
        ConfigurationError: GitHub settings are incomplete
    """
    config = LinkServiceConfig.from_settings(settings)
    store = GitHubContentStore(
        http_client=get_http_client(),
        owner=config.owner,
        repo=config.repo,
        branch=config.branch,
        token=config.token,
        api_base_url=settings.github_api_base_url,
        timeout=build_timeout(settings),
        user_agent=settings.github_user_agent,
    )
    return LinkService(config, store)


@router.options("/")
async def preflight() -> Response:
    """Permissive CORS preflight."""
    return Response(status_code=200, headers=PREFLIGHT_HEADERS)


@router.post("/")
async def create_link(
    request: Request,
    service: LinkService = Depends(get_link_service),
) -> JSONResponse:
    """Create a short link in the intermediate rule table."""
    try:
        body = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        return cors_json({"error": "Invalid JSON body"}, status_code=400)
    if not isinstance(body, dict):
        return cors_json({"error": "Invalid JSON body"}, status_code=400)

    link = await service.create_rule(
        body.get("pathname"), body.get("url"), body.get("expired_at")
    )
    return cors_json({
        "success": True,
        "message": "Short link created",
        "short_url": link.short_url,
        "commit_url": link.commit_url,
    })


def shortlink_error_response(exc: ShortLinkError) -> JSONResponse:
    status_code = status_for(exc)
    if isinstance(exc, ConfigurationError):
        logger.error(f"Missing settings: {', '.join(exc.missing)}")
    elif isinstance(exc, UpstreamError):
        logger.error(
            f"Short link creation failed: {exc.message}",
            extra=get_log_context(upstream_status=exc.upstream_status),
        )
    return cors_json({"error": error_message(exc)}, status_code=status_code)
