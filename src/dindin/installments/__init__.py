"""
Installments Package

Installment splitting, billing-month rules and transaction creation.
"""

from .service import TransactionService
from .splitter import (
    SplitCalculationError,
    billing_month_for,
    check_installment_count,
    default_billing_month,
    split_installments,
)

__all__ = [
    "SplitCalculationError",
    "TransactionService",
    "billing_month_for",
    "check_installment_count",
    "default_billing_month",
    "split_installments",
]
