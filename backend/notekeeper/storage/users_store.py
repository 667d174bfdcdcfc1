"""Registered note owners.

One ``user.json`` per account under ``<data>/users/<user_id>/``, next to the
owner's audit log. The user id is the identity token stamped on every note the
account creates.
"""
from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

from notekeeper.storage.fs import atomic_write_json, safe_user_dir


@dataclass(frozen=True)
class UserRecord:
    user_id: str
    password_hash: str
    registered_at: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "user_id": self.user_id,
            "password_hash": self.password_hash,
            "registered_at": self.registered_at,
        }

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> "UserRecord":
        return cls(
            user_id=raw["user_id"],
            password_hash=raw["password_hash"],
            registered_at=raw["registered_at"],
        )


class UsersStore:
    def __init__(self, base_dir: Path):
        self.base_dir = base_dir

    def _account_path(self, user_id: str) -> Path:
        return safe_user_dir(self.base_dir, user_id) / "user.json"

    def get(self, user_id: str) -> Optional[UserRecord]:
        path = self._account_path(user_id)
        if not path.exists():
            return None
        return UserRecord.from_dict(json.loads(path.read_text(encoding="utf-8")))

    def register(self, user_id: str, password_hash: str) -> UserRecord:
        """Store a new account; ``FileExistsError`` if the id is taken."""
        path = self._account_path(user_id)
        if path.exists():
            raise FileExistsError(f"User {user_id} exists")

        record = UserRecord(
            user_id=user_id,
            password_hash=password_hash,
            registered_at=datetime.now(timezone.utc).isoformat(),
        )
        atomic_write_json(path, record.to_dict())
        return record
