"""
dindin - Household Finance Reconciliation Engine

Moves one owner's financial records in and out of the store without
losing, duplicating or corrupting them.

Key Features:
- Checksum-sealed backups with a confirm-gated full-replace restore
- Bulk import with validation and strict duplicate skipping
- Fuzzy duplicate preview for loosely structured candidates (OCR)
- Installment splitting with exact-cent remainders
- JSON and CSV export with date-range filtering

Domain Packages:
- core: Money, dates, models, errors, row store, configuration
- validation: field-level validation of submitted rows
- duplicates: strict and fuzzy duplicate detection
- installments: installment splitter and transaction creation
- backup: checksum codec, envelope and restore
- importer: bulk import
- export: JSON/CSV export
- accounts: account deletion lifecycle
- api: framework-free request handlers
- cli: command-line interface

Example Usage:
    from dindin.core import InMemoryRowStore, ScopedStore
    from dindin.importer import ImportService

    store = ScopedStore(InMemoryRowStore(), "owner-1")
    ImportService(store).run({"transactions": [...]})
"""

__version__ = "0.1.0"
__author__ = "dindin contributors"

from .core.config import Environment, get_config
from .core.models import Account, Category, OwnerIdentity, Transaction
from .core.money import Money

__all__ = [
    "Account",
    "Category",
    "Environment",
    "Money",
    "OwnerIdentity",
    "Transaction",
    "get_config",
]
