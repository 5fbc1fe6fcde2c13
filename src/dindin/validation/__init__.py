"""
Validation Package

Field-level validation for submitted transactions, accounts and categories.
"""

from .validator import (
    VALIDATORS,
    ensure_valid,
    validate_account,
    validate_category,
    validate_request,
    validate_rows,
    validate_transaction,
)

__all__ = [
    "VALIDATORS",
    "ensure_valid",
    "validate_account",
    "validate_category",
    "validate_request",
    "validate_rows",
    "validate_transaction",
]
