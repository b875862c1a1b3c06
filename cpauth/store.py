"""Identity registry mapping usernames to their public key pairs."""

from __future__ import annotations

import json
import logging
import os
import threading
from dataclasses import dataclass
from typing import Dict, Optional

from .errors import AlreadyRegistered, UnknownUser

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Identity:
    """Public half of a registered credential. The secret is never stored."""

    username: str
    y1: int
    y2: int

    def to_dict(self) -> Dict[str, str]:
        return {
            "username": self.username,
            "y1": hex(self.y1),
            "y2": hex(self.y2),
        }

    @staticmethod
    def from_dict(data: Dict[str, str]) -> "Identity":
        return Identity(
            username=data["username"],
            y1=int(data["y1"], 16),
            y2=int(data["y2"], 16),
        )


class IdentityRegistry:
    """Thread-safe username to identity map.

    Entries live in memory. When ``path`` is given the registry is loaded from
    that JSON file on start-up and rewritten after every registration.
    """

    def __init__(self, path: Optional[str] = None) -> None:
        self.path = path
        self._lock = threading.Lock()
        self._identities: Dict[str, Identity] = {}
        if path is not None:
            self._ensure_file()
            for raw_user in self._load().get("users", []):
                identity = Identity.from_dict(raw_user)
                self._identities[identity.username] = identity
            logger.info("Loaded %d identities from %s", len(self._identities), path)

    def _ensure_file(self) -> None:
        if not os.path.exists(self.path):
            with open(self.path, "w", encoding="utf-8") as handle:
                json.dump({"users": []}, handle, indent=2)

    def _load(self) -> Dict[str, list]:
        with open(self.path, "r", encoding="utf-8") as handle:
            return json.load(handle)

    def _save(self) -> None:
        payload = {"users": [identity.to_dict() for identity in self._identities.values()]}
        temporary = f"{self.path}.tmp"
        with open(temporary, "w", encoding="utf-8") as handle:
            json.dump(payload, handle, indent=2)
        os.replace(temporary, self.path)

    def register(self, username: str, y1: int, y2: int) -> Identity:
        identity = Identity(username=username, y1=y1, y2=y2)
        with self._lock:
            if username in self._identities:
                raise AlreadyRegistered(f"User '{username}' is already registered")
            self._identities[username] = identity
            if self.path is not None:
                try:
                    self._save()
                except OSError:
                    del self._identities[username]
                    raise
        return identity

    def lookup(self, username: str) -> Identity:
        with self._lock:
            identity = self._identities.get(username)
        if identity is None:
            raise UnknownUser(f"User '{username}' is not registered")
        return identity

    def __contains__(self, username: object) -> bool:
        with self._lock:
            return username in self._identities

    def __len__(self) -> int:
        with self._lock:
            return len(self._identities)


__all__ = ["Identity", "IdentityRegistry"]
