"""Metadata records stored next to each signing key."""

import json
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional

from ..utils.timeutils import format_timestamp, parse_timestamp


@dataclass
class KeyMetadata:
    """Metadata written when a key is first stored."""

    id: str
    created_at: datetime
    active: bool = True
    version: int = 1

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "created_at": format_timestamp(self.created_at),
            "active": self.active,
            "version": self.version,
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict())


@dataclass
class KeyStatus:
    """Full lifecycle state of a stored key.

    Written in place of :class:`KeyMetadata` when a key is rotated, and the
    shape every listing returns.
    """

    id: str
    created_time: datetime
    active: bool
    version: int = 1
    rotated_time: Optional[datetime] = None
    rotated_from_id: Optional[str] = None
    last_used: Optional[datetime] = None
    marked_for_deletion: Optional[bool] = None

    @property
    def state(self) -> str:
        if self.active:
            return "ACTIVE"
        if self.rotated_time is not None:
            return "ROTATED"
        return "INACTIVE"

    def age(self, now: datetime):
        """Time since the last relevant event: last use, rotation, then creation."""
        if self.last_used is not None:
            return now - self.last_used
        if self.rotated_time is not None:
            return now - self.rotated_time
        return now - self.created_time

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "id": self.id,
            "created_time": format_timestamp(self.created_time),
            "active": self.active,
            "version": self.version,
        }
        if self.rotated_time is not None:
            data["rotated_time"] = format_timestamp(self.rotated_time)
        if self.rotated_from_id:
            data["rotated_from_id"] = self.rotated_from_id
        if self.last_used is not None:
            data["last_used"] = format_timestamp(self.last_used)
        if self.marked_for_deletion is not None:
            data["marked_for_deletion"] = self.marked_for_deletion
        return data

    def to_json(self) -> str:
        return json.dumps(self.to_dict())

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "KeyStatus":
        """
        Build a status from decoded metadata JSON.

        Accepts both ``created_time`` and the ``created_at`` field written by
        :class:`KeyMetadata`.

        Raises:
            ValueError: If required fields are missing or malformed
        """
        if not isinstance(data, dict):
            raise ValueError("Metadata must be a JSON object")

        key_id = data.get("id")
        if not key_id or not isinstance(key_id, str):
            raise ValueError("Metadata is missing 'id'")

        created = data.get("created_time") or data.get("created_at")
        if not created:
            raise ValueError("Metadata is missing 'created_time'")

        active = data.get("active", False)
        if not isinstance(active, bool):
            raise ValueError(f"'active' must be a boolean, got {active!r}")

        version = data.get("version", 1)
        if isinstance(version, bool) or not isinstance(version, int):
            raise ValueError(f"'version' must be an integer, got {version!r}")

        marked = data.get("marked_for_deletion")
        if marked is not None and not isinstance(marked, bool):
            raise ValueError(f"'marked_for_deletion' must be a boolean, got {marked!r}")

        return cls(
            id=key_id,
            created_time=parse_timestamp(created),
            active=active,
            version=version,
            rotated_time=_optional_timestamp(data.get("rotated_time")),
            rotated_from_id=data.get("rotated_from_id") or None,
            last_used=_optional_timestamp(data.get("last_used")),
            marked_for_deletion=marked,
        )

    @classmethod
    def from_json(cls, text: str) -> "KeyStatus":
        """Parse a metadata secret value. Raises ValueError on bad input."""
        return cls.from_dict(json.loads(text))


def _optional_timestamp(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    if not isinstance(value, str):
        raise ValueError(f"Timestamp must be a string, got {value!r}")
    # zero time written instead of an omitted field
    if value.startswith("0001-01-01"):
        return None
    return parse_timestamp(value)
