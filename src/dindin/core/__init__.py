"""
Core Utilities Package

Shared primitives, models and infrastructure used by every dindin service.

This package provides:
- Currency handling with integer cents for precision
- Month arithmetic and calendar-day parsing
- JavaScript-compatible JSON text for checksums
- Domain models, the error taxonomy and the row-store contract
- Configuration management for environment-specific settings
"""

from .config import (
    BackupConfig,
    Config,
    Environment,
    FuzzyMatchConfig,
    ImportConfig,
    get_config,
    reload_config,
)
from .currency import (
    cents_to_number,
    cents_to_reais_str,
    format_cents,
    safe_to_cents,
    split_evenly,
    to_cents,
    validate_sum_equals_total,
)
from .datastore import InMemoryRowStore, JsonFileRowStore, RowStore, ScopedStore
from .dates import FinancialDate, add_months, first_of_month
from .errors import (
    AuthError,
    ChecksumMismatchError,
    ConfirmationRequiredError,
    InstallmentLimitError,
    NotFoundError,
    ReconciliationError,
    RequestValidationError,
    StorageError,
    StructuralError,
    VersionIncompatibleError,
)
from .models import (
    Account,
    AccountType,
    Category,
    CategoryGroup,
    CategoryType,
    ImportOutcome,
    OwnerIdentity,
    OwnershipType,
    ResourceKind,
    RestoreOutcome,
    Transaction,
    TransactionType,
    ValidationError,
    WriteMode,
)
from .money import Money

__all__ = [
    # Configuration
    "BackupConfig",
    "Config",
    "Environment",
    "FuzzyMatchConfig",
    "ImportConfig",
    "get_config",
    "reload_config",
    # Currency
    "cents_to_number",
    "cents_to_reais_str",
    "format_cents",
    "safe_to_cents",
    "split_evenly",
    "to_cents",
    "validate_sum_equals_total",
    "Money",
    # Dates
    "FinancialDate",
    "add_months",
    "first_of_month",
    # Storage
    "InMemoryRowStore",
    "JsonFileRowStore",
    "RowStore",
    "ScopedStore",
    # Errors
    "AuthError",
    "ChecksumMismatchError",
    "ConfirmationRequiredError",
    "InstallmentLimitError",
    "NotFoundError",
    "ReconciliationError",
    "RequestValidationError",
    "StorageError",
    "StructuralError",
    "VersionIncompatibleError",
    # Models
    "Account",
    "AccountType",
    "Category",
    "CategoryGroup",
    "CategoryType",
    "ImportOutcome",
    "OwnerIdentity",
    "OwnershipType",
    "ResourceKind",
    "RestoreOutcome",
    "Transaction",
    "TransactionType",
    "ValidationError",
    "WriteMode",
]
