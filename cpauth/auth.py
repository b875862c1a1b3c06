"""Authentication state machine tying the registry, challenges and sessions together."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Optional, Tuple

from . import crypto
from .challenges import ChallengeStore
from .constants import CHALLENGE_TTL, SESSION_TTL
from .errors import AuthenticationFailed, UnknownOrExpiredChallenge
from .params import GroupParameters
from .sessions import SessionIssuer
from .store import Identity, IdentityRegistry


class AttemptState(enum.Enum):
    CREATED = "created"
    CHALLENGE_ISSUED = "challenge_issued"
    VERIFIED = "verified"
    REJECTED = "rejected"
    EXPIRED = "expired"

    @property
    def terminal(self) -> bool:
        return self in (AttemptState.VERIFIED, AttemptState.REJECTED, AttemptState.EXPIRED)


@dataclass(frozen=True)
class AttemptOutcome:
    """Result of running one attempt through :func:`authenticate`."""

    state: AttemptState
    session_id: Optional[str] = None


class AuthService:
    """Verifier side of the three-message Chaum-Pedersen login.

    ``register`` stores ``(y1, y2)``. ``create_challenge`` records the prover's
    commitments and answers with a fresh ``c``. ``verify`` consumes that
    challenge whatever the outcome and issues a session only when both
    verification equations hold. Errors are raised to the caller unchanged.
    """

    def __init__(
        self,
        params: GroupParameters,
        registry: IdentityRegistry | None = None,
        challenges: ChallengeStore | None = None,
        sessions: SessionIssuer | None = None,
        *,
        challenge_ttl: float = CHALLENGE_TTL,
        session_ttl: float = SESSION_TTL,
    ) -> None:
        self.params = params
        self.registry = registry if registry is not None else IdentityRegistry()
        self.challenges = challenges if challenges is not None else ChallengeStore(params, challenge_ttl)
        self.sessions = sessions if sessions is not None else SessionIssuer(session_ttl)

    def _require_elements(self, **values: int) -> None:
        for name, value in values.items():
            if not self.params.is_element(value):
                raise ValueError(f"{name} is not an element of the group")

    def register(self, username: str, y1: int, y2: int) -> Identity:
        if not username:
            raise ValueError("Username must not be empty")
        self._require_elements(y1=y1, y2=y2)
        return self.registry.register(username, y1, y2)

    def create_challenge(self, username: str, r1: int, r2: int) -> Tuple[str, int]:
        self.registry.lookup(username)
        self._require_elements(r1=r1, r2=r2)
        pending = self.challenges.create(username, r1, r2)
        return pending.auth_id, pending.c

    def verify(self, auth_id: str, s: int) -> str:
        pending = self.challenges.consume(auth_id)
        identity = self.registry.lookup(pending.username)
        if not crypto.verify(
            self.params,
            identity.y1,
            identity.y2,
            pending.r1,
            pending.r2,
            pending.c,
            s,
        ):
            raise AuthenticationFailed("Proof rejected")
        return self.sessions.issue(identity.username).session_id

    def validate_session(self, session_id: str) -> str:
        return self.sessions.validate(session_id)

    def revoke_session(self, session_id: str) -> None:
        self.sessions.revoke(session_id)

    def purge_expired(self) -> Tuple[int, int]:
        return self.challenges.purge_expired(), self.sessions.purge_expired()


def register_user(service: AuthService, username: str, secret: int) -> Identity:
    """Register the key pair derived from ``secret``."""

    y1, y2 = crypto.public_key(service.params, secret)
    return service.register(username, y1, y2)


def authenticate(service: AuthService, username: str, secret: int) -> AttemptOutcome:
    """Run a complete in-process attempt for ``username``."""

    prover = crypto.ChaumPedersenProver(service.params, secret)
    commitment = prover.commit()
    auth_id, challenge = service.create_challenge(username, commitment.r1, commitment.r2)
    response = prover.respond(challenge, commitment)
    try:
        session_id = service.verify(auth_id, response)
    except AuthenticationFailed:
        return AttemptOutcome(state=AttemptState.REJECTED)
    except UnknownOrExpiredChallenge:
        return AttemptOutcome(state=AttemptState.EXPIRED)
    return AttemptOutcome(state=AttemptState.VERIFIED, session_id=session_id)


__all__ = [
    "AttemptOutcome",
    "AttemptState",
    "AuthService",
    "authenticate",
    "register_user",
]
