"""Exceptions raised by the authentication engine."""


class CPAuthError(Exception):
    """Base class for all protocol outcomes reported to callers."""


class ConfigurationError(CPAuthError):
    """Domain parameters or settings are unusable."""


class AlreadyRegistered(CPAuthError):
    """The username already has an identity."""


class UnknownUser(CPAuthError):
    """No identity is registered under the username."""


class UnknownOrExpiredChallenge(CPAuthError):
    """The authentication attempt does not exist, was used, or timed out."""


class AuthenticationFailed(CPAuthError):
    """The response did not satisfy the verification equations."""


class InvalidOrExpiredSession(CPAuthError):
    """The session token is unknown, revoked or past its lifetime."""


__all__ = [
    "CPAuthError",
    "ConfigurationError",
    "AlreadyRegistered",
    "UnknownUser",
    "UnknownOrExpiredChallenge",
    "AuthenticationFailed",
    "InvalidOrExpiredSession",
]
