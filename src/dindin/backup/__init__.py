"""
Backup Package

Checksum-sealed backup envelopes and full-replace restore.
"""

from .checksum import hash_text, seal, verify
from .envelope import BackupEnvelope, empty_payload, parse_version
from .service import CONFIRM_FLAG, BackupService, RestoreStage

__all__ = [
    "CONFIRM_FLAG",
    "BackupEnvelope",
    "BackupService",
    "RestoreStage",
    "empty_payload",
    "hash_text",
    "parse_version",
    "seal",
    "verify",
]
