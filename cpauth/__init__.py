"""Chaum-Pedersen zero-knowledge authentication package."""

from .auth import AttemptOutcome, AttemptState, AuthService, authenticate, register_user
from .challenges import ChallengeStore, PendingChallenge
from .crypto import (
    ChaumPedersenProver,
    ChaumPedersenVerifier,
    Commitment,
    commit,
    decode_int,
    encode_int,
    public_key,
    respond,
    sample_scalar,
    secret_from_password,
    verify,
)
from .errors import (
    AlreadyRegistered,
    AuthenticationFailed,
    ConfigurationError,
    CPAuthError,
    InvalidOrExpiredSession,
    UnknownOrExpiredChallenge,
    UnknownUser,
)
from .params import GroupParameters, load
from .sessions import Session, SessionIssuer
from .store import Identity, IdentityRegistry

__version__ = "0.1.0"

__all__ = [
    "AttemptOutcome",
    "AttemptState",
    "AuthService",
    "authenticate",
    "register_user",
    "ChallengeStore",
    "PendingChallenge",
    "ChaumPedersenProver",
    "ChaumPedersenVerifier",
    "Commitment",
    "commit",
    "decode_int",
    "encode_int",
    "public_key",
    "respond",
    "sample_scalar",
    "secret_from_password",
    "verify",
    "AlreadyRegistered",
    "AuthenticationFailed",
    "ConfigurationError",
    "CPAuthError",
    "InvalidOrExpiredSession",
    "UnknownOrExpiredChallenge",
    "UnknownUser",
    "GroupParameters",
    "load",
    "Session",
    "SessionIssuer",
    "Identity",
    "IdentityRegistry",
]
