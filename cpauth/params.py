"""Group parameters shared by every protocol operation."""

from __future__ import annotations

import hashlib
import secrets
from dataclasses import dataclass
from functools import lru_cache
from typing import Dict

from .constants import DEFAULT_GROUP, GROUPS, PRIMALITY_ROUNDS
from .errors import ConfigurationError

_SMALL_PRIMES = (2, 3, 5, 7, 11, 13, 17, 19, 23, 29, 31, 37, 41, 43, 47, 53, 59, 61, 67, 71)


def is_probable_prime(n: int, rounds: int = PRIMALITY_ROUNDS) -> bool:
    """Miller-Rabin test with random bases."""

    if n < 2:
        return False
    for small in _SMALL_PRIMES:
        if n % small == 0:
            return n == small

    d, r = n - 1, 0
    while d % 2 == 0:
        d //= 2
        r += 1

    for _ in range(rounds):
        a = secrets.randbelow(n - 3) + 2
        x = pow(a, d, n)
        if x in (1, n - 1):
            continue
        for _ in range(r - 1):
            x = pow(x, 2, n)
            if x == n - 1:
                break
        else:
            return False
    return True


def derive_generator(p: int, q: int, seed: bytes) -> int:
    """Hash ``seed`` into the order-``q`` subgroup of ``Z_p^*``.

    The element is produced without ever choosing an exponent, so its discrete
    logarithm with respect to any other generator is unknown.
    """

    length = (p.bit_length() + 7) // 8 + 16
    cofactor = (p - 1) // q
    counter = 0
    while True:
        stream = b""
        block = 0
        while len(stream) < length:
            stream += hashlib.sha256(
                seed + counter.to_bytes(4, "big") + block.to_bytes(4, "big")
            ).digest()
            block += 1
        candidate = pow(int.from_bytes(stream[:length], "big") % p, cofactor, p)
        if candidate > 1:
            return candidate
        counter += 1


@dataclass(frozen=True)
class GroupParameters:
    """Prime modulus ``p``, subgroup order ``q`` and generators ``g``, ``h``."""

    p: int
    q: int
    g: int
    h: int

    @property
    def byte_length(self) -> int:
        return (self.p.bit_length() + 7) // 8

    def is_element(self, value: int) -> bool:
        """Whether ``value`` is a usable residue modulo ``p``."""

        return isinstance(value, int) and 0 < value < self.p

    def validate(self) -> None:
        if not is_probable_prime(self.p):
            raise ConfigurationError("Modulus p is not prime")
        if not is_probable_prime(self.q):
            raise ConfigurationError("Subgroup order q is not prime")
        if (self.p - 1) % self.q != 0:
            raise ConfigurationError("q does not divide p - 1")
        for name, generator in (("g", self.g), ("h", self.h)):
            if not 1 < generator < self.p:
                raise ConfigurationError(f"Generator {name} is out of range")
            if pow(generator, self.q, self.p) != 1:
                raise ConfigurationError(f"Generator {name} does not have order q")
        if self.g == self.h:
            raise ConfigurationError("Generators g and h must differ")

    @classmethod
    def from_values(
        cls,
        p: int,
        q: int,
        g: int,
        h: int,
        *,
        validate: bool = True,
    ) -> "GroupParameters":
        params = cls(p=p, q=q, g=g, h=h)
        if validate:
            params.validate()
        return params

    def to_dict(self) -> Dict[str, str]:
        return {
            "p": hex(self.p),
            "q": hex(self.q),
            "g": hex(self.g),
            "h": hex(self.h),
        }

    @staticmethod
    def from_dict(data: Dict[str, str], *, validate: bool = True) -> "GroupParameters":
        try:
            values = {key: int(data[key], 16) for key in ("p", "q", "g", "h")}
        except (KeyError, TypeError, ValueError) as exc:
            raise ConfigurationError("Malformed group parameters") from exc
        return GroupParameters.from_values(**values, validate=validate)


@lru_cache(maxsize=None)
def load(name: str = DEFAULT_GROUP, *, validate: bool = True) -> GroupParameters:
    """Return the named built-in group, checking it unless told otherwise."""

    try:
        spec = GROUPS[name]
    except KeyError as exc:
        raise ConfigurationError(f"Unknown group '{name}'") from exc

    h = spec.h if spec.h is not None else derive_generator(spec.p, spec.q, spec.h_seed)
    return GroupParameters.from_values(spec.p, spec.q, spec.g, h, validate=validate)


__all__ = ["GroupParameters", "derive_generator", "is_probable_prime", "load"]
