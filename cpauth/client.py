"""Prover-side client for the HTTP authentication service."""

from __future__ import annotations

from typing import Dict, Type

import httpx

from . import errors
from .crypto import ChaumPedersenProver, decode_int, encode_int, public_key
from .params import GroupParameters

_ERRORS: Dict[str, Type[errors.CPAuthError]] = {
    cls.__name__: cls
    for cls in (
        errors.AlreadyRegistered,
        errors.UnknownUser,
        errors.UnknownOrExpiredChallenge,
        errors.AuthenticationFailed,
        errors.InvalidOrExpiredSession,
        errors.ConfigurationError,
    )
}


class AuthClient:
    """Drive register and login flows over an ``httpx.Client``.

    ``http`` may be any ``httpx.Client`` including FastAPI's ``TestClient``.
    Protocol errors returned by the server are re-raised as the matching
    :mod:`cpauth.errors` class.
    """

    def __init__(self, http: httpx.Client, params: GroupParameters) -> None:
        self.http = http
        self.params = params
        self.width = params.byte_length

    @classmethod
    def connect(cls, http: httpx.Client) -> "AuthClient":
        """Build a client using the group published by the server."""

        return cls(http, fetch_params(http))

    def _post(self, path: str, payload: Dict[str, str]) -> Dict[str, str]:
        return _unwrap(self.http.post(path, json=payload))

    def register(self, username: str, secret: int) -> None:
        y1, y2 = public_key(self.params, secret)
        self._post(
            "/register",
            {
                "user_name": username,
                "y1": encode_int(y1, self.width),
                "y2": encode_int(y2, self.width),
            },
        )

    def login(self, username: str, secret: int) -> str:
        prover = ChaumPedersenProver(self.params, secret)
        commitment = prover.commit()
        challenge = self._post(
            "/challenge",
            {
                "user_name": username,
                "r1": encode_int(commitment.r1, self.width),
                "r2": encode_int(commitment.r2, self.width),
            },
        )
        c = decode_int(challenge["c"], self.width)
        response = prover.respond(c, commitment)
        answer = self._post(
            "/verify",
            {"auth_id": challenge["auth_id"], "s": encode_int(response, self.width)},
        )
        return answer["session_id"]

    def whoami(self, session_id: str) -> str:
        return _unwrap(self.http.get(f"/session/{session_id}"))["user_name"]

    def logout(self, session_id: str) -> None:
        _unwrap(self.http.delete(f"/session/{session_id}"))


def fetch_params(http: httpx.Client) -> GroupParameters:
    return GroupParameters.from_dict(_unwrap(http.get("/params")))


def _unwrap(response: httpx.Response) -> Dict[str, str]:
    if response.is_success:
        return response.json()
    try:
        body = response.json()
    except ValueError:
        body = {}
    error_cls = _ERRORS.get(body.get("error", ""))
    detail = body.get("detail", response.text)
    if error_cls is not None:
        raise error_cls(detail)
    response.raise_for_status()
    return body


__all__ = ["AuthClient", "fetch_params"]
