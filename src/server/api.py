"""FastAPI endpoints for session lifecycle, snapshots, history and media search."""

from __future__ import annotations

import logging
from typing import Any

from fastapi import Depends, FastAPI, Header, HTTPException, Query, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel

from src.database.identity import parse_bearer
from src.server.media import MAX_RESULTS
from src.server.services import Services
from src.session.errors import SessionError
from src.session.models import Participant, Track

logger = logging.getLogger(__name__)

_STATUS_BY_CODE = {
    "not_found": 404,
    "forbidden": 403,
    "already_full": 409,
    "conflict": 409,
    "stale": 409,
    "code_exhausted": 503,
    "unknown_event": 400,
}


class ApiModel(BaseModel):
    model_config = {"alias_generator": to_camel, "populate_by_name": True}


class CreateSessionResponse(ApiModel):
    session_id: str
    invite_code: str


class JoinSessionRequest(ApiModel):
    invite_code: str = Field(min_length=1, max_length=12)


class JoinSessionResponse(ApiModel):
    session_id: str


class LogActivityRequest(ApiModel):
    zone: str = Field(min_length=1, max_length=50)
    activity: str = Field(min_length=1, max_length=500)


class ActivityResponse(ApiModel):
    id: str
    zone: str
    activity: str
    date: str


class HistoryResponse(ApiModel):
    logs: list[ActivityResponse]


class SearchResponse(ApiModel):
    results: list[Track]


def create_api(services: Services) -> FastAPI:
    app = FastAPI(title="Duet API", version="0.1.0")
    app.state.services = services

    @app.exception_handler(SessionError)
    async def session_error_handler(request: Request, exc: SessionError) -> JSONResponse:
        return JSONResponse(
            status_code=_STATUS_BY_CODE.get(exc.code, 400),
            content={"error": exc.code, "detail": exc.message},
        )

    def get_participant(authorization: str | None = Header(default=None)) -> Participant:
        token = parse_bearer(authorization)
        participant = services.identity.verify(token) if token else None
        if participant is None:
            raise HTTPException(status_code=401, detail="Invalid or missing token")
        return participant

    @app.get("/healthz")
    def healthz() -> dict[str, Any]:
        return {"status": "ok", "sessions": len(services.registry)}

    @app.post("/api/sessions", response_model=CreateSessionResponse)
    def create_session(
        participant: Participant = Depends(get_participant),
    ) -> CreateSessionResponse:
        session = services.registry.create_session(participant.id, participant.display_name)
        return CreateSessionResponse(session_id=session.id, invite_code=session.invite_code)

    @app.post("/api/sessions/join", response_model=JoinSessionResponse)
    def join_session(
        payload: JoinSessionRequest,
        participant: Participant = Depends(get_participant),
    ) -> JoinSessionResponse:
        session = services.registry.redeem_invite_code(
            payload.invite_code, participant.id, participant.display_name
        )
        if session.host_id != participant.id:
            services.router.notify_partner_joined(session, participant)
        return JoinSessionResponse(session_id=session.id)

    @app.get("/api/sessions/{session_id}")
    def get_session(
        session_id: str,
        participant: Participant = Depends(get_participant),
    ) -> dict[str, Any]:
        return services.router.snapshot(session_id, participant.id)

    @app.delete("/api/sessions/{session_id}", status_code=204)
    def close_session(
        session_id: str,
        participant: Participant = Depends(get_participant),
    ) -> None:
        services.router.close_session(session_id, participant.id)

    @app.post("/api/history/log", response_model=ActivityResponse)
    def log_activity(
        payload: LogActivityRequest,
        participant: Participant = Depends(get_participant),
    ) -> ActivityResponse:
        entry = services.activity_log.log(participant.id, payload.zone, payload.activity)
        return ActivityResponse(
            id=entry.id, zone=entry.zone, activity=entry.activity,
            date=entry.created_at.isoformat(),
        )

    @app.get("/api/history", response_model=HistoryResponse)
    def history(participant: Participant = Depends(get_participant)) -> HistoryResponse:
        entries = services.activity_log.history(participant.id)
        return HistoryResponse(
            logs=[
                ActivityResponse(
                    id=e.id, zone=e.zone, activity=e.activity,
                    date=e.created_at.isoformat(),
                )
                for e in entries
            ]
        )

    @app.get("/api/media/search", response_model=SearchResponse)
    def search_media(
        q: str = Query(min_length=1),
        participant: Participant = Depends(get_participant),
    ) -> SearchResponse:
        if services.media_search is None:
            raise HTTPException(status_code=503, detail="Media search is not configured")
        try:
            results = services.media_search.search(q)
        except Exception:
            logger.exception("Media search failed for %r", q)
            raise HTTPException(status_code=502, detail="Search failed")
        return SearchResponse(results=results[:MAX_RESULTS])

    return app
