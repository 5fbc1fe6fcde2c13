#!/usr/bin/env python3
"""
Configuration Management for dindin

Handles environment-based configuration with secure defaults and validation.
Supports multiple environments (development, test, production).

Services never read this module directly: they receive a settings object
from their caller. `get_config()` exists for the CLI entry point.
"""

import logging
import os
import tempfile
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

from .models import MAX_INSTALLMENTS

# Load environment variables from .env file
load_dotenv()

BACKUP_VERSION = "1.0.0"


class Environment(Enum):
    """Application environment types."""

    DEVELOPMENT = "development"
    TEST = "test"
    PRODUCTION = "production"


@dataclass
class BackupConfig:
    """Backup envelope settings."""

    version: str = BACKUP_VERSION
    fetch_workers: int = 6


@dataclass
class ImportConfig:
    """Bulk import settings."""

    skip_duplicates_default: bool = True
    max_installments: int = MAX_INSTALLMENTS


@dataclass
class FuzzyMatchConfig:
    """Tolerances for fuzzy duplicate detection of loosely structured input."""

    similarity_threshold: float = 0.80
    date_window_days: int = 3
    amount_tolerance_cents: int = 1


@dataclass
class Config:
    """
    Main configuration class for dindin.

    Loads configuration from environment variables with secure defaults
    and validation for each environment type.
    """

    environment: Environment

    data_dir: Path
    store_file: Path

    backup: BackupConfig = field(default_factory=BackupConfig)
    imports: ImportConfig = field(default_factory=ImportConfig)
    fuzzy: FuzzyMatchConfig = field(default_factory=FuzzyMatchConfig)

    # Identity used by the CLI; the API layer gets it from the authenticator
    owner_id: str | None = None
    owner_email: str | None = None

    debug: bool = False
    log_level: str = "INFO"

    @classmethod
    def from_environment(cls) -> "Config":
        """Create configuration from environment variables."""
        env = Environment(os.getenv("DINDIN_ENV", "development"))

        if env == Environment.TEST:
            default_test_dir = Path(tempfile.gettempdir()) / "test_dindin"
            data_dir = Path(os.getenv("DINDIN_DATA_DIR", str(default_test_dir)))
        else:
            data_dir = Path(os.getenv("DINDIN_DATA_DIR", "./data")).expanduser().resolve()

        data_dir.mkdir(parents=True, exist_ok=True)

        store_file = Path(os.getenv("DINDIN_STORE_FILE", str(data_dir / "store.json")))

        backup = BackupConfig(
            fetch_workers=int(os.getenv("DINDIN_BACKUP_FETCH_WORKERS", "6")),
        )

        imports = ImportConfig(
            max_installments=int(os.getenv("DINDIN_MAX_INSTALLMENTS", str(MAX_INSTALLMENTS))),
        )

        fuzzy = FuzzyMatchConfig(
            similarity_threshold=float(os.getenv("DINDIN_FUZZY_SIMILARITY", "0.80")),
            date_window_days=int(os.getenv("DINDIN_FUZZY_DATE_WINDOW_DAYS", "3")),
            amount_tolerance_cents=int(os.getenv("DINDIN_FUZZY_AMOUNT_TOLERANCE_CENTS", "1")),
        )

        return cls(
            environment=env,
            data_dir=data_dir,
            store_file=store_file,
            backup=backup,
            imports=imports,
            fuzzy=fuzzy,
            owner_id=os.getenv("DINDIN_OWNER_ID"),
            owner_email=os.getenv("DINDIN_OWNER_EMAIL"),
            debug=os.getenv("DEBUG", "false").lower() == "true",
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )

    def validate(self) -> list:
        """Validate configuration and return list of errors."""
        errors = []

        if not self.data_dir.exists():
            errors.append(f"data_dir does not exist: {self.data_dir}")

        if self.environment == Environment.PRODUCTION and not self.owner_id:
            errors.append("DINDIN_OWNER_ID is required in production")

        if not 2 <= self.imports.max_installments <= MAX_INSTALLMENTS:
            errors.append(f"Max installments must be between 2 and {MAX_INSTALLMENTS}")
        if not 0.0 < self.fuzzy.similarity_threshold <= 1.0:
            errors.append("Fuzzy similarity threshold must be in (0, 1]")
        if self.fuzzy.date_window_days < 0:
            errors.append("Fuzzy date window must be non-negative")
        if self.fuzzy.amount_tolerance_cents < 0:
            errors.append("Fuzzy amount tolerance must be non-negative")
        if self.backup.fetch_workers <= 0:
            errors.append("Backup fetch workers must be positive")

        return errors

    def setup_logging(self) -> None:
        """Configure logging based on configuration."""
        level = getattr(logging, self.log_level, logging.INFO)

        if self.environment == Environment.DEVELOPMENT:
            format_str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        else:
            format_str = "%(asctime)s - %(levelname)s - %(message)s"

        logging.basicConfig(level=level, format=format_str, datefmt="%Y-%m-%d %H:%M:%S")

    def get_sensitive_fields(self) -> list:
        """Get list of field names that contain sensitive data."""
        return ["owner_email"]

    def to_dict(self, include_sensitive: bool = False) -> dict[str, Any]:
        """Convert configuration to dictionary, optionally excluding sensitive data."""
        result: dict[str, Any] = {}

        for field_name, field_value in self.__dict__.items():
            if not include_sensitive and field_name in self.get_sensitive_fields() and field_value:
                result[field_name] = "***REDACTED***"
            elif hasattr(field_value, "__dataclass_fields__"):
                result[field_name] = dict(field_value.__dict__)
            elif isinstance(field_value, Path):
                result[field_name] = str(field_value)
            elif isinstance(field_value, Enum):
                result[field_name] = field_value.value
            else:
                result[field_name] = field_value

        return result


# Global configuration instance
_config: Config | None = None


def get_config() -> Config:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = Config.from_environment()

        errors = _config.validate()
        if errors:
            raise ValueError(f"Configuration validation failed: {'; '.join(errors)}")

        _config.setup_logging()

    return _config


def reload_config() -> Config:
    """Reload configuration from environment (useful for testing)."""
    global _config
    _config = None
    return get_config()
