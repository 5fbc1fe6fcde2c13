#!/usr/bin/env python3
"""
Backup and Restore Orchestration

Backup reads every owner-scoped collection (concurrently; the reads touch
disjoint row sets) and seals them into a BackupEnvelope.

Restore is a full replace, driven through these stages:

    RECEIVED -> VALIDATE_STRUCTURE -> VALIDATE_VERSION -> VALIDATE_CHECKSUM
        -> PREVIEW -> DONE
        -> VALIDATE_CONFIRMATION -> EXECUTE_RESTORE -> DONE

Any validation stage may reject. During EXECUTE_RESTORE each collection is
processed independently: a storage failure on one kind is reported in that
kind's outcome and does not stop the others.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from enum import Enum
from typing import Any

from ..core.config import BackupConfig
from ..core.datastore import ScopedStore
from ..core.errors import (
    ChecksumMismatchError,
    ConfirmationRequiredError,
    StorageError,
    VersionIncompatibleError,
)
from ..core.models import BACKUP_COLLECTIONS, OwnerIdentity, ResourceKind, RestoreOutcome, WriteMode
from .checksum import verify
from .envelope import BackupEnvelope, empty_payload, parse_version

logger = logging.getLogger(__name__)

CONFIRM_FLAG = "confirmDelete"

RESTORE_WARNING = (
    "Restoring this backup DELETES all of your current data and replaces it with the backup contents."
)
RESTORE_NOTE = (
    "Transaction category and account links were cleared because the original ids are no longer valid."
)

# Restored user fields; everything else in the user row belongs to the auth system
RESTORABLE_USER_FIELDS = ("nome", "renda_mensal")


class RestoreStage(Enum):
    """Stages of the restore state machine"""

    RECEIVED = "received"
    VALIDATE_STRUCTURE = "validate_structure"
    VALIDATE_VERSION = "validate_version"
    VALIDATE_CHECKSUM = "validate_checksum"
    PREVIEW = "preview"
    VALIDATE_CONFIRMATION = "validate_confirmation"
    EXECUTE_RESTORE = "execute_restore"
    DONE = "done"


class BackupService:
    """Create sealed backups and restore them as a full replace."""

    def __init__(self, store: ScopedStore, config: BackupConfig | None = None):
        self.store = store
        self.config = config or BackupConfig()

    # ------------------------------------------------------------------
    # Backup
    # ------------------------------------------------------------------

    def create_backup(self, identity: OwnerIdentity) -> BackupEnvelope:
        """
        Snapshot every collection of the owner into a sealed envelope.

        Raises:
            StorageError: If any read fails; no partial envelope is produced
        """
        kinds = (ResourceKind.USER, *BACKUP_COLLECTIONS)
        with ThreadPoolExecutor(max_workers=self.config.fetch_workers) as pool:
            futures = {kind: pool.submit(self._fetch, kind) for kind in kinds}
            fetched = {kind: future.result() for kind, future in futures.items()}

        payload = empty_payload()
        user_rows = fetched[ResourceKind.USER]
        payload[ResourceKind.USER.value] = user_rows[0] if user_rows else None
        for kind in BACKUP_COLLECTIONS:
            payload[kind.value] = fetched[kind]

        envelope = BackupEnvelope.build(
            version=self.config.version,
            owner_snapshot={"id": identity.owner_id, "email": identity.email},
            payload=payload,
        )
        logger.info(
            "Created backup v%s for owner %s: %s",
            envelope.version,
            identity.owner_id,
            envelope.counts(),
        )
        return envelope

    def _fetch(self, kind: ResourceKind) -> list[dict[str, Any]]:
        rows = self.store.query(kind.table)
        if kind == ResourceKind.TRANSACTIONS:
            rows.sort(key=lambda row: str(row.get("data") or ""), reverse=True)
        return rows

    # ------------------------------------------------------------------
    # Restore
    # ------------------------------------------------------------------

    def restore(self, data: Any, preview: bool = False, confirm_delete: bool = False) -> dict[str, Any]:
        """
        Validate an envelope and either preview it or replace the owner's data.

        Args:
            data: Envelope as decoded from JSON
            preview: Return per-collection counts without writing
            confirm_delete: Explicit consent to delete current data

        Returns:
            Preview summary, or per-collection {deleted, created, errors}

        Raises:
            StructuralError: Missing envelope fields or malformed version
            VersionIncompatibleError: Major version differs from the supported one
            ChecksumMismatchError: Payload no longer matches its checksum
            ConfirmationRequiredError: Destructive restore without confirmDelete
        """
        self._enter(RestoreStage.RECEIVED)

        self._enter(RestoreStage.VALIDATE_STRUCTURE)
        envelope = BackupEnvelope.from_dict(data)

        self._enter(RestoreStage.VALIDATE_VERSION)
        self._check_version(envelope.version)

        self._enter(RestoreStage.VALIDATE_CHECKSUM)
        if not verify(envelope.payload, envelope.checksum):
            logger.warning("Rejected backup for owner %s: checksum mismatch", self.store.owner_id)
            raise ChecksumMismatchError("backup is corrupted: invalid checksum")

        if preview:
            self._enter(RestoreStage.PREVIEW)
            return self._preview(envelope)

        self._enter(RestoreStage.VALIDATE_CONFIRMATION)
        if not confirm_delete:
            raise ConfirmationRequiredError(
                CONFIRM_FLAG,
                f"confirmation required: send {CONFIRM_FLAG}: true to restore. "
                "This DELETES all of your current data.",
            )

        self._enter(RestoreStage.EXECUTE_RESTORE)
        results = self._execute_restore(envelope)

        self._enter(RestoreStage.DONE)
        return {
            "success": all(not outcome.errors for outcome in results.values()),
            "mode": WriteMode.REPLACE.value,
            "message": "backup restored",
            "results": {kind: outcome.to_dict() for kind, outcome in results.items()},
            "note": RESTORE_NOTE,
        }

    def _enter(self, stage: RestoreStage) -> None:
        logger.debug("Restore for owner %s: %s", self.store.owner_id, stage.value)

    def _check_version(self, version: str) -> None:
        major, _, _ = parse_version(version)
        supported_major, _, _ = parse_version(self.config.version)
        if major != supported_major:
            raise VersionIncompatibleError(
                f"incompatible version: backup version {version} is incompatible "
                f"with supported version {self.config.version}"
            )

    def _preview(self, envelope: BackupEnvelope) -> dict[str, Any]:
        return {
            "success": True,
            "preview": True,
            "backupInfo": {
                "version": envelope.version,
                "createdAt": envelope.created_at,
                "originalUser": envelope.owner_snapshot.get("email"),
            },
            "counts": envelope.counts(),
            "warning": RESTORE_WARNING,
        }

    def _execute_restore(self, envelope: BackupEnvelope) -> dict[str, RestoreOutcome]:
        present = [kind for kind in BACKUP_COLLECTIONS if envelope.collection(kind) is not None]
        results = {kind.value: RestoreOutcome() for kind in present}

        # Delete dependents first, recreate in dependency order
        cleared: set[ResourceKind] = set()
        for kind in reversed(present):
            outcome = results[kind.value]
            try:
                outcome.deleted = self.store.delete_batch(kind.table)
                cleared.add(kind)
            except StorageError as e:
                self._record_failure(outcome, kind, "delete", e)

        for kind in present:
            if kind not in cleared:
                continue
            outcome = results[kind.value]
            rows = [self._restorable_row(kind, row) for row in envelope.collection(kind) or []]
            if not rows:
                continue
            try:
                outcome.created = len(self.store.insert_batch(kind.table, rows))
            except StorageError as e:
                self._record_failure(outcome, kind, "insert", e)

        self._restore_user(envelope, results)

        logger.info(
            "Restored backup for owner %s: %s",
            self.store.owner_id,
            {kind: outcome.to_dict() for kind, outcome in results.items()},
        )
        return results

    def _restorable_row(self, kind: ResourceKind, row: Any) -> dict[str, Any]:
        restored = {key: value for key, value in dict(row).items() if key not in ("id", "user_id")}
        if kind == ResourceKind.TRANSACTIONS:
            restored["category_id"] = None
            restored["account_id"] = None
        return restored

    def _restore_user(self, envelope: BackupEnvelope, results: dict[str, RestoreOutcome]) -> None:
        user = envelope.user()
        if not user:
            return
        patch = {name: user[name] for name in RESTORABLE_USER_FIELDS if user.get(name) is not None}
        if not patch:
            return

        outcome = results.setdefault(ResourceKind.USER.value, RestoreOutcome())
        try:
            self.store.update_batch(ResourceKind.USER.table, {}, patch)
        except StorageError as e:
            self._record_failure(outcome, ResourceKind.USER, "update", e)

    def _record_failure(self, outcome: RestoreOutcome, kind: ResourceKind, action: str, error: StorageError) -> None:
        logger.error("Restore failed: resource=%s action=%s error=%s", kind.table, action, error)
        outcome.errors.append(f"{action} {kind.value} failed: {error.message}")
