"""
Wettkämpfe Timer — Server entry point.

Serves the public sharing API (/api/share-round, /api/oembed) and the
read-only shared round pages (/shared/{id}, /embed/{id}).
Usage:
    python server.py
    # or: uvicorn server:app --host 0.0.0.0 --port 3000 --reload
"""

import logging
import uuid
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates
from pydantic import ValidationError

from api.routes import router as api_router
from core.config import AppConfig
from core.models import SharedRound
from core.scoring import ScoringParameters, calculate_total_score, format_points
from core.shared_storage import RoundStorage, RoundStorageError, RoundStorageProvider
from core.timing_engine import calculate_activity_times, format_time

logger = logging.getLogger("wktimer")

BASE_DIR = Path(__file__).parent
PORT = 3000

templates = Jinja2Templates(directory=str(BASE_DIR / "web" / "templates"))


def configure_logging(level: str = "INFO") -> None:
    root = logging.getLogger("wktimer")
    if not root.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(
            logging.Formatter("%(asctime)s | %(levelname)s | %(name)s | %(message)s"),
        )
        root.addHandler(handler)
    root.setLevel(level)


# ─── Request id / embed headers (pure ASGI) ──────────────────────────

class RequestContextMiddleware:
    """Give every HTTP request an x-request-id and allow /embed/ in frames."""

    def __init__(self, app):
        self.app = app

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        headers = list(scope.get("headers", []))
        req_id = dict(headers).get(b"x-request-id")
        if not req_id:
            req_id = str(uuid.uuid4()).encode()
            headers.append((b"x-request-id", req_id))
            scope = {**scope, "headers": headers}

        is_embed = scope.get("path", "").startswith("/embed/")

        async def send_with_headers(message):
            if message["type"] == "http.response.start":
                out = list(message.get("headers", []))
                out.append((b"x-request-id", req_id))
                if is_embed:
                    out.append((b"x-frame-options", b"ALLOWALL"))
                    out.append((b"content-security-policy", b"frame-ancestors *"))
                message = {**message, "headers": out}
            await send(message)

        await self.app(scope, receive, send_with_headers)


# ─── Shared round pages ──────────────────────────────────────────────

def _round_view(data: dict) -> dict:
    """Template context for a published round document."""
    shared = SharedRound.model_validate(data)
    activities = [
        {"name": a.name, "time": format_time(a.time, "seconds")}
        for a in calculate_activity_times(shared.laps)
    ]
    context = {
        "round": shared,
        "title": shared.description or f"{shared.team_name} - Geteilter Durchgang",
        "total_time": format_time(shared.total_time or 0),
        "activities": activities,
        "score": None,
    }
    result = calculate_total_score(ScoringParameters(
        b_part_time=(shared.total_time or 0) / 1000,
        team_average_age=shared.team_average_age,
        a_part_error_points=shared.a_part_error_points,
        knot_time=shared.knot_time,
        a_part_penalty_seconds=shared.a_part_penalty_seconds,
        b_part_error_points=shared.b_part_error_points,
        overall_impression=shared.overall_impression,
    ))
    if result.can_calculate:
        context["score"] = {
            "a_part": format_points(result.a_part_points),
            "b_part": format_points(result.b_part_points),
            "overall_impression": format_points(result.overall_impression),
            "total": format_points(result.total_points),
        }
    return context


def _render_round(request: Request, round_id: str, embed: bool):
    storage = request.app.state.round_storage_provider.get()
    try:
        data = storage.retrieve(round_id)
    except RoundStorageError as e:
        logger.info("Shared page for %s unavailable: %s", round_id, e)
        data = None

    context = None
    if data is not None:
        try:
            context = _round_view(data)
        except ValidationError as e:
            logger.warning("Shared round %s is not a valid round document (%d errors)",
                           round_id, e.error_count())

    if context is None:
        return templates.TemplateResponse(
            request, "shared_round.html",
            {"round": None, "title": "Durchgang nicht gefunden", "embed": embed},
            status_code=404,
        )
    return templates.TemplateResponse(
        request, "shared_round.html", {**context, "embed": embed},
    )


# ─── App factory ─────────────────────────────────────────────────────

@asynccontextmanager
async def lifespan(app: FastAPI):
    config: AppConfig = app.state.config
    storage = app.state.round_storage_provider.get()
    logger.info("Wettkämpfe Timer starting (env=%s, storage=%s, base_url=%s)",
                config.environment, type(storage).__name__, config.resolve_base_url())
    yield
    logger.info("Wettkämpfe Timer stopped")


def create_app(config: Optional[AppConfig] = None,
               storage: Optional[RoundStorage] = None) -> FastAPI:
    config = config or AppConfig.from_env()
    configure_logging(config.log_level)

    app = FastAPI(title="Wettkämpfe Timer", lifespan=lifespan)
    app.state.config = config
    app.state.round_storage_provider = RoundStorageProvider(config)
    if storage is not None:
        app.state.round_storage_provider.set(storage)
    # Transport for the oEmbed self-lookup; None means real HTTP
    app.state.share_transport = None

    app.add_middleware(RequestContextMiddleware)
    app.include_router(api_router, prefix="/api")

    @app.get("/shared/{round_id}", response_class=HTMLResponse)
    async def shared_page(request: Request, round_id: str):
        return _render_round(request, round_id, embed=False)

    @app.get("/embed/{round_id}", response_class=HTMLResponse)
    async def embed_page(request: Request, round_id: str):
        return _render_round(request, round_id, embed=True)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("server:app", host="0.0.0.0", port=PORT, log_level="warning")
