"""FastAPI-powered Chaum-Pedersen authentication service."""

from __future__ import annotations

import logging
from typing import Dict, Type

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from . import params as group_params
from .auth import AuthService
from .config import Settings
from .crypto import decode_int, encode_int
from .errors import (
    AlreadyRegistered,
    AuthenticationFailed,
    ConfigurationError,
    CPAuthError,
    InvalidOrExpiredSession,
    UnknownOrExpiredChallenge,
    UnknownUser,
)
from .store import IdentityRegistry

logger = logging.getLogger(__name__)

ERROR_STATUS: Dict[Type[CPAuthError], int] = {
    AlreadyRegistered: 409,
    UnknownUser: 404,
    UnknownOrExpiredChallenge: 404,
    AuthenticationFailed: 401,
    InvalidOrExpiredSession: 401,
    ConfigurationError: 500,
}


class RegisterRequest(BaseModel):
    user_name: str
    y1: str
    y2: str


class EmptyResponse(BaseModel):
    pass


class ChallengeRequest(BaseModel):
    user_name: str
    r1: str
    r2: str


class ChallengeResponse(BaseModel):
    auth_id: str
    c: str


class VerifyRequest(BaseModel):
    auth_id: str
    s: str


class VerifyResponse(BaseModel):
    session_id: str


class SessionResponse(BaseModel):
    user_name: str


class ParamsResponse(BaseModel):
    p: str
    q: str
    g: str
    h: str


def build_service(settings: Settings) -> AuthService:
    group = group_params.load(settings.group)
    registry = IdentityRegistry(settings.store_path)
    return AuthService(
        group,
        registry,
        challenge_ttl=settings.challenge_ttl,
        session_ttl=settings.session_ttl,
    )


def create_app(service: AuthService | None = None, settings: Settings | None = None) -> FastAPI:
    if service is None:
        service = build_service(settings or Settings.from_env())
    width = service.params.byte_length

    app = FastAPI(title="CPAuth", description="Chaum-Pedersen zero-knowledge authentication")
    app.state.service = service

    def _decode(name: str, value: str) -> int:
        try:
            return decode_int(value, width)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=f"{name}: {exc}") from exc

    @app.exception_handler(CPAuthError)
    async def _protocol_error(request: Request, exc: CPAuthError) -> JSONResponse:
        return JSONResponse(
            status_code=ERROR_STATUS.get(type(exc), 400),
            content={"detail": str(exc), "error": type(exc).__name__},
        )

    @app.exception_handler(ValueError)
    async def _invalid_input(request: Request, exc: ValueError) -> JSONResponse:
        return JSONResponse(status_code=400, content={"detail": str(exc), "error": "ValueError"})

    @app.get("/params", response_model=ParamsResponse)
    async def get_params() -> ParamsResponse:
        group = service.params
        return ParamsResponse(
            p=encode_int(group.p, width),
            q=encode_int(group.q, width),
            g=encode_int(group.g, width),
            h=encode_int(group.h, width),
        )

    @app.post("/register", response_model=EmptyResponse)
    async def register(request: RegisterRequest) -> EmptyResponse:
        y1 = _decode("y1", request.y1)
        y2 = _decode("y2", request.y2)
        try:
            service.register(request.user_name, y1, y2)
        except AlreadyRegistered:
            logger.info("Rejected duplicate registration for %r", request.user_name)
            raise
        logger.info("Registered %r", request.user_name)
        return EmptyResponse()

    @app.post("/challenge", response_model=ChallengeResponse)
    async def create_challenge(request: ChallengeRequest) -> ChallengeResponse:
        r1 = _decode("r1", request.r1)
        r2 = _decode("r2", request.r2)
        auth_id, challenge = service.create_challenge(request.user_name, r1, r2)
        logger.info("Issued challenge %s for %r", auth_id, request.user_name)
        return ChallengeResponse(auth_id=auth_id, c=encode_int(challenge, width))

    @app.post("/verify", response_model=VerifyResponse)
    async def verify(request: VerifyRequest) -> VerifyResponse:
        response = _decode("s", request.s)
        try:
            session_id = service.verify(request.auth_id, response)
        except AuthenticationFailed:
            logger.warning("Proof rejected for attempt %s", request.auth_id)
            raise
        except UnknownOrExpiredChallenge:
            logger.info("Unknown or expired attempt %s", request.auth_id)
            raise
        logger.info("Attempt %s verified", request.auth_id)
        return VerifyResponse(session_id=session_id)

    @app.get("/session/{session_id}", response_model=SessionResponse)
    async def validate_session(session_id: str) -> SessionResponse:
        return SessionResponse(user_name=service.validate_session(session_id))

    @app.delete("/session/{session_id}", response_model=EmptyResponse)
    async def revoke_session(session_id: str) -> EmptyResponse:
        service.revoke_session(session_id)
        return EmptyResponse()

    return app


__all__ = ["ERROR_STATUS", "build_service", "create_app"]
