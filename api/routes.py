"""
routes.py — Public sharing endpoints under /api.

    POST    /api/share-round        publish a round (id reused as public id)
    GET     /api/share-round?id=    read a published round
    GET     /api/oembed?url=        oEmbed descriptor for /shared/{id} links
    OPTIONS on both                 CORS preflight

Error bodies are {"error": "..."} with fixed messages; internal details go
to the log only.
"""

from __future__ import annotations

import logging
import re
from typing import Optional

import httpx
from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse, Response
from pydantic import ValidationError

from core.config import AppConfig
from core.models import SharedRound
from core.shared_storage import InvalidRoundIdError, RoundStorage, RoundStorageError

logger = logging.getLogger("wktimer.api")

router = APIRouter()

SHARE_CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
}

OEMBED_CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET",
    "Access-Control-Allow-Headers": "Content-Type",
}

OEMBED_CACHE_CONTROL = "public, max-age=3600"
OEMBED_WIDTH = 430
OEMBED_HEIGHT = 720
PROVIDER_NAME = "Wettkämpfe Timer"
UPSTREAM_TIMEOUT = 10.0

_SHARED_URL_RE = re.compile(r"/shared/([^/?]+)")


# ─── Helpers ─────────────────────────────────────────────────────────

def get_config(request: Request) -> AppConfig:
    return request.app.state.config


def get_round_storage(request: Request) -> RoundStorage:
    return request.app.state.round_storage_provider.get()


def _base_url(request: Request) -> str:
    return get_config(request).resolve_base_url(str(request.base_url))


def _request_id(request: Request) -> str:
    return request.headers.get("x-request-id", "-")


def _error(status: int, message: str, headers: dict) -> JSONResponse:
    return JSONResponse(status_code=status, content={"error": message}, headers=headers)


# ═══════════════════════════════════════════════════════════════════════
# SHARE ROUND
# ═══════════════════════════════════════════════════════════════════════

@router.post("/share-round")
async def share_round(request: Request,
                      storage: RoundStorage = Depends(get_round_storage)):
    req_id = _request_id(request)
    try:
        body = await request.json()
    except ValueError as exc:
        logger.warning("[%s] Unreadable share body: %s", req_id, exc)
        return _error(500, "Failed to share round", SHARE_CORS_HEADERS)

    if not isinstance(body, dict):
        return _error(400, "Invalid round data", SHARE_CORS_HEADERS)

    # Accept {"roundData": {...}} as well as the flat round document
    round_data = body.get("roundData") if isinstance(body.get("roundData"), dict) else body
    if not round_data.get("id") or round_data.get("laps") is None or not round_data.get("teamName"):
        return _error(400, "Invalid round data", SHARE_CORS_HEADERS)

    try:
        shared = SharedRound.model_validate(round_data)
    except ValidationError as exc:
        logger.info("[%s] Rejected round payload: %s", req_id, exc.error_count())
        return _error(400, "Invalid round data", SHARE_CORS_HEADERS)

    if shared.description is None and isinstance(body.get("description"), str):
        shared.description = body["description"] or None

    try:
        storage.store(shared.to_document())
    except InvalidRoundIdError:
        logger.warning("[%s] Refused unsafe round id %r", req_id, shared.id)
        return _error(400, "Invalid round data", SHARE_CORS_HEADERS)
    except RoundStorageError:
        logger.exception("[%s] Storing shared round %s failed", req_id, shared.id)
        return _error(500, "Failed to share round", SHARE_CORS_HEADERS)

    shared_url = f"{_base_url(request)}/shared/{shared.id}"
    logger.info("[%s] Shared round %s (%s)", req_id, shared.id, shared.team_name)
    return JSONResponse(
        content={"success": True, "shareableId": shared.id, "sharedUrl": shared_url},
        headers=SHARE_CORS_HEADERS,
    )


@router.get("/share-round")
async def get_shared_round(request: Request,
                           id: Optional[str] = Query(None),
                           storage: RoundStorage = Depends(get_round_storage)):
    if not id:
        return _error(400, "Round ID is required", SHARE_CORS_HEADERS)

    try:
        data = storage.retrieve(id)
    except InvalidRoundIdError:
        return _error(400, "Invalid round ID", SHARE_CORS_HEADERS)
    except RoundStorageError:
        logger.exception("[%s] Loading shared round %s failed", _request_id(request), id)
        return _error(500, "Failed to load shared round", SHARE_CORS_HEADERS)

    if data is None:
        return _error(404, "Shared round not found", SHARE_CORS_HEADERS)
    return JSONResponse(content=data, headers=SHARE_CORS_HEADERS)


@router.options("/share-round")
async def share_round_options():
    return Response(status_code=200, headers=SHARE_CORS_HEADERS)


# ═══════════════════════════════════════════════════════════════════════
# OEMBED
# ═══════════════════════════════════════════════════════════════════════

def build_oembed(round_data: dict, round_id: str, base_url: str) -> dict:
    title = round_data.get("description") or f"{round_data.get('teamName')} - Geteilter Durchgang"
    return {
        "version": "1.0",
        "type": "rich",
        "width": OEMBED_WIDTH,
        "height": OEMBED_HEIGHT,
        "title": title,
        "author_name": PROVIDER_NAME,
        "author_url": base_url,
        "provider_name": PROVIDER_NAME,
        "provider_url": base_url,
        "html": (
            f'<iframe src="{base_url}/embed/{round_id}" width="{OEMBED_WIDTH}" '
            f'height="{OEMBED_HEIGHT}" frameborder="0" allowfullscreen></iframe>'
        ),
        "thumbnail_url": f"{base_url}/icon-512x512.png",
        "thumbnail_width": 512,
        "thumbnail_height": 512,
    }


@router.get("/oembed")
async def oembed(request: Request,
                 url: Optional[str] = Query(None),
                 format: str = Query("json")):
    if not url:
        return _error(400, "Missing url parameter", OEMBED_CORS_HEADERS)
    if format != "json":
        return _error(501, "Only JSON format is supported", OEMBED_CORS_HEADERS)

    match = _SHARED_URL_RE.search(url)
    if not match:
        return _error(400, "Invalid shared URL format", OEMBED_CORS_HEADERS)
    round_id = match.group(1)

    base_url = _base_url(request)
    transport = getattr(request.app.state, "share_transport", None)
    try:
        async with httpx.AsyncClient(transport=transport, timeout=UPSTREAM_TIMEOUT) as client:
            resp = await client.get(f"{base_url}/api/share-round", params={"id": round_id})
        if not resp.is_success:
            return _error(404, "Round not found", OEMBED_CORS_HEADERS)
        round_data = resp.json()
    except Exception:
        logger.exception("[%s] oEmbed lookup for %s failed", _request_id(request), round_id)
        return _error(500, "Internal server error", OEMBED_CORS_HEADERS)

    return JSONResponse(
        content=build_oembed(round_data, round_id, base_url),
        headers={**OEMBED_CORS_HEADERS, "Cache-Control": OEMBED_CACHE_CONTROL},
    )


@router.options("/oembed")
async def oembed_options():
    return Response(status_code=200, headers=OEMBED_CORS_HEADERS)
