"""Core arithmetic for the Chaum-Pedersen identification protocol."""

from __future__ import annotations

import hashlib
import secrets
import string
from dataclasses import dataclass, field
from typing import Tuple

from .params import GroupParameters


def sample_scalar(params: GroupParameters) -> int:
    """Uniform scalar in ``[0, q)`` from the operating system CSPRNG."""

    return secrets.randbelow(params.q)


def commit(params: GroupParameters, k: int) -> Tuple[int, int]:
    return pow(params.g, k, params.p), pow(params.h, k, params.p)


def public_key(params: GroupParameters, x: int) -> Tuple[int, int]:
    """Derive ``(y1, y2)`` from the secret ``x``."""

    return commit(params, x % params.q)


def respond(params: GroupParameters, k: int, c: int, x: int) -> int:
    # Python's % with a positive modulus never returns a negative remainder.
    return (k - c * x) % params.q


def verify(
    params: GroupParameters,
    y1: int,
    y2: int,
    r1: int,
    r2: int,
    c: int,
    s: int,
) -> bool:
    """Check ``r1 == g^s * y1^c`` and ``r2 == h^s * y2^c`` modulo ``p``."""

    if not all(params.is_element(value) for value in (y1, y2, r1, r2)):
        return False
    if not all(isinstance(value, int) and 0 <= value < params.q for value in (c, s)):
        return False

    p = params.p
    width = params.byte_length
    expected_r1 = (pow(params.g, s, p) * pow(y1, c, p)) % p
    expected_r2 = (pow(params.h, s, p) * pow(y2, c, p)) % p
    first = secrets.compare_digest(expected_r1.to_bytes(width, "big"), r1.to_bytes(width, "big"))
    second = secrets.compare_digest(expected_r2.to_bytes(width, "big"), r2.to_bytes(width, "big"))
    return first and second


def secret_from_password(params: GroupParameters, password: str) -> int:
    """Map a passphrase onto a secret exponent."""

    digest = hashlib.sha512(password.encode("utf-8")).digest()
    return int.from_bytes(digest, "big") % params.q


def generate_secret(params: GroupParameters) -> int:
    return sample_scalar(params)


@dataclass
class Commitment:
    """First protocol message together with the nonce that produced it."""

    r1: int
    r2: int
    nonce: int = field(repr=False)
    spent: bool = field(default=False, repr=False)


class ChaumPedersenProver:
    """Prover that holds the secret and answers challenges.

    Nonces are sampled inside :meth:`commit` and every commitment answers at
    most one challenge: answering two challenges with one nonce reveals the
    secret.
    """

    def __init__(self, params: GroupParameters, secret: int) -> None:
        if not isinstance(secret, int) or not 0 <= secret < params.q:
            raise ValueError("Secret must lie in [0, q)")
        self.params = params
        self.secret = secret

    @property
    def public_key(self) -> Tuple[int, int]:
        return public_key(self.params, self.secret)

    def commit(self) -> Commitment:
        nonce = sample_scalar(self.params)
        r1, r2 = commit(self.params, nonce)
        return Commitment(r1=r1, r2=r2, nonce=nonce)

    def respond(self, challenge: int, commitment: Commitment) -> int:
        if not 0 <= challenge < self.params.q:
            raise ValueError("Challenge outside of [0, q)")
        if commitment.spent:
            raise ValueError("Commitment was already used to answer a challenge")
        commitment.spent = True
        return respond(self.params, commitment.nonce, challenge, self.secret)


class ChaumPedersenVerifier:
    """Verifier that checks responses against a registered key pair."""

    def __init__(self, params: GroupParameters, y1: int, y2: int) -> None:
        if not (params.is_element(y1) and params.is_element(y2)):
            raise ValueError("Invalid public key")
        self.params = params
        self.y1 = y1
        self.y2 = y2

    def random_challenge(self) -> int:
        return sample_scalar(self.params)

    def verify(self, r1: int, r2: int, challenge: int, response: int) -> bool:
        return verify(self.params, self.y1, self.y2, r1, r2, challenge, response)


def encode_int(value: int, length: int) -> str:
    """Fixed-width big-endian hex encoding of a non-negative integer."""

    if value < 0:
        raise ValueError("Cannot encode a negative integer")
    return value.to_bytes(length, "big").hex()


def decode_int(text: str, length: int) -> int:
    """Inverse of :func:`encode_int`; rejects anything of the wrong width."""

    if len(text) != 2 * length or any(char not in string.hexdigits for char in text):
        raise ValueError(f"Expected {2 * length} hex characters")
    return int.from_bytes(bytes.fromhex(text), "big")


__all__ = [
    "ChaumPedersenProver",
    "ChaumPedersenVerifier",
    "Commitment",
    "commit",
    "decode_int",
    "encode_int",
    "generate_secret",
    "public_key",
    "respond",
    "sample_scalar",
    "secret_from_password",
    "verify",
]
