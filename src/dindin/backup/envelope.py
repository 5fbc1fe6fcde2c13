#!/usr/bin/env python3
"""
Backup Envelope Model

A versioned, checksum-sealed snapshot of one owner's data. Envelopes are
immutable once produced. Parsing accepts both the current layout and the
legacy layout written by the web application (`data` / `user` with
Portuguese collection keys) without touching the payload, so the stored
checksum still verifies.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from ..core.errors import StructuralError
from ..core.models import BACKUP_COLLECTIONS, ResourceKind
from .checksum import seal

REQUIRED_FIELDS = ("version", "createdAt", "payload", "checksum")


def parse_version(version: Any) -> tuple[int, int, int]:
    """
    Parse a "major.minor.patch" version string.

    Raises:
        StructuralError: If the version is not three dot-separated integers
    """
    parts = version.split(".") if isinstance(version, str) else []
    if len(parts) != 3 or not all(part.isdigit() for part in parts):
        raise StructuralError(f"invalid structure: version must be major.minor.patch, got {version!r}")
    major, minor, patch = (int(part) for part in parts)
    return major, minor, patch


@dataclass(frozen=True)
class BackupEnvelope:
    """Versioned, sealed export of one owner's full data set."""

    version: str
    created_at: str
    owner_snapshot: dict[str, Any]
    payload: dict[str, Any]
    checksum: str

    @classmethod
    def build(
        cls,
        version: str,
        owner_snapshot: dict[str, Any],
        payload: dict[str, Any],
        created_at: datetime | None = None,
    ) -> "BackupEnvelope":
        """Create and seal a new envelope."""
        timestamp = (created_at or datetime.now(timezone.utc)).isoformat().replace("+00:00", "Z")
        return cls(
            version=version,
            created_at=timestamp,
            owner_snapshot=dict(owner_snapshot),
            payload=payload,
            checksum=seal(payload),
        )

    @classmethod
    def from_dict(cls, data: Any) -> "BackupEnvelope":
        """
        Parse an envelope, current or legacy layout.

        Raises:
            StructuralError: If a required field is missing or mistyped, or a
                collection holds anything but a list of objects
        """
        if not isinstance(data, dict):
            raise StructuralError("invalid structure: backup must be a JSON object")

        normalized = dict(data)
        if "payload" not in normalized and "data" in normalized:
            normalized["payload"] = normalized["data"]
        if "ownerSnapshot" not in normalized and isinstance(normalized.get("user"), dict):
            normalized["ownerSnapshot"] = normalized["user"]

        missing = [name for name in REQUIRED_FIELDS if normalized.get(name) in (None, "")]
        if missing:
            raise StructuralError(f"invalid structure: backup is missing {', '.join(missing)}")
        if not isinstance(normalized["payload"], dict):
            raise StructuralError("invalid structure: payload must be an object")

        envelope = cls(
            version=str(normalized["version"]),
            created_at=str(normalized["createdAt"]),
            owner_snapshot=dict(normalized.get("ownerSnapshot") or {}),
            payload=normalized["payload"],
            checksum=str(normalized["checksum"]),
        )
        envelope.check_collections()
        return envelope

    def collection(self, kind: ResourceKind) -> list[dict[str, Any]] | None:
        """
        Rows of one kind from the payload, by current or legacy key.

        Returns:
            The list, or None when the payload doesn't carry this kind
        """
        for key in (kind.value, kind.legacy_key):
            if key in self.payload:
                rows = self.payload[key]
                if rows is None:
                    return None
                if not isinstance(rows, list):
                    raise StructuralError(f"invalid structure: payload.{key} must be a list")
                return rows
        return None

    def check_collections(self) -> None:
        """
        Require every collection in the payload to be a list of objects.

        Raises:
            StructuralError: Naming the first offending collection and row
        """
        for kind in BACKUP_COLLECTIONS:
            for index, row in enumerate(self.collection(kind) or []):
                if not isinstance(row, dict):
                    raise StructuralError(f"invalid structure: {kind.value}[{index}] must be an object")

    def user(self) -> dict[str, Any] | None:
        """User fields from the payload, if any."""
        for key in (ResourceKind.USER.value, ResourceKind.USER.legacy_key):
            value = self.payload.get(key)
            if isinstance(value, dict):
                return value
        return None

    def counts(self) -> dict[str, int]:
        """Number of rows per collection kind."""
        return {kind.value: len(self.collection(kind) or []) for kind in BACKUP_COLLECTIONS}

    def to_dict(self) -> dict[str, Any]:
        return {
            "version": self.version,
            "createdAt": self.created_at,
            "ownerSnapshot": self.owner_snapshot,
            "payload": self.payload,
            "checksum": self.checksum,
        }

    def filename(self) -> str:
        """Attachment filename, e.g. dindin-backup-2024-08-15.json."""
        return f"dindin-backup-{self.created_at[:10]}.json"


def empty_payload() -> dict[str, Any]:
    """Payload skeleton with every collection key in envelope order."""
    payload: dict[str, Any] = {ResourceKind.USER.value: None}
    payload.update({kind.value: [] for kind in BACKUP_COLLECTIONS})
    return payload
