#!/usr/bin/env python3
"""
Transaction Creation Service

Creates a single transaction or a whole installment series for one owner.
An installment series is written as one batch insert, relying on the
collaborator's batch atomicity: either every installment exists or none.
"""

import logging
from typing import Any

from ..core.dates import FinancialDate
from ..core.datastore import ScopedStore
from ..core.errors import NotFoundError, RequestValidationError
from ..core.models import (
    MAX_INSTALLMENTS,
    AccountType,
    OwnershipType,
    ResourceKind,
    Transaction,
    ValidationError,
)
from ..validation import validate_transaction
from .splitter import billing_month_for, check_installment_count, split_installments

logger = logging.getLogger(__name__)

TRANSACTIONS = ResourceKind.TRANSACTIONS.table
ACCOUNTS = ResourceKind.ACCOUNTS.table
CATEGORIES = ResourceKind.CATEGORIES.table


class TransactionService:
    """Create transactions, splitting purchases into installments when asked."""

    def __init__(self, store: ScopedStore, max_installments: int = MAX_INSTALLMENTS):
        self.store = store
        self.max_installments = max_installments

    def create(self, request: dict[str, Any]) -> dict[str, Any]:
        """
        Create one transaction or an installment series.

        Args:
            request: descricao, valor, tipo, data and optionally recorrente,
                parcelas, mesFatura, categoryId, accountId, tags, notas, ownership

        Returns:
            {"count": n, "transactions": [created rows]}

        Raises:
            InstallmentLimitError: parcelas above the limit (checked first)
            RequestValidationError: invalid fields
            NotFoundError: referenced account/category not owned by the caller
            StorageError: the batch insert failed; nothing was created
        """
        count = request.get("parcelas")
        is_series = count is not None and count != 1 and count != 0
        if is_series:
            check_installment_count(count, self.max_installments)

        row = {
            "descricao": request.get("descricao"),
            "valor": request.get("valor"),
            "tipo": request.get("tipo"),
            "data": request.get("data"),
            "ownership": request.get("ownership"),
        }
        errors = validate_transaction(row, 0)
        billing_raw = request.get("mesFatura")
        explicit_billing = None
        if billing_raw:
            try:
                explicit_billing = FinancialDate.from_value(billing_raw)
            except (TypeError, ValueError):
                errors.append(ValidationError(0, "mesFatura", "mesFatura must be in YYYY-MM-DD format"))
        if errors:
            raise RequestValidationError({ResourceKind.TRANSACTIONS.value: errors})

        account_id = request.get("accountId") or None
        category_id = request.get("categoryId") or None
        account_type = self._account_type(account_id)
        if category_id and self.store.get(CATEGORIES, category_id) is None:
            raise NotFoundError("category", category_id)

        purchase = Transaction.from_dict(
            {
                **row,
                "recorrente": request.get("recorrente", False),
                "tags": request.get("tags") or [],
                "notas": request.get("notas"),
                "ownership": request.get("ownership") or OwnershipType.HOUSEHOLD.value,
                "category_id": category_id,
                "account_id": account_id,
            }
        )

        if is_series:
            transactions = split_installments(
                purchase,
                count,
                first_billing_month=explicit_billing,
                account_type=account_type,
                max_installments=self.max_installments,
            )
        else:
            purchase.billing_month = billing_month_for(purchase.date, explicit_billing, account_type)
            transactions = [purchase]

        created = self.store.insert_batch(TRANSACTIONS, [t.to_row() for t in transactions])
        logger.info("Created %d transaction(s) for %r", len(created), purchase.description)
        return {"count": len(created), "transactions": created}

    def _account_type(self, account_id: str | None) -> AccountType | None:
        if not account_id:
            return None
        account = self.store.get(ACCOUNTS, account_id)
        if account is None:
            raise NotFoundError("account", account_id)
        return AccountType.parse(account.get("tipo"))
