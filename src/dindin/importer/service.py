#!/usr/bin/env python3
"""
Bulk Import Orchestration

Appends externally produced accounts, categories and transactions for one
owner:

    RECEIVED -> VALIDATE_PAYLOAD -> REJECTED (any error, nothing written)
                                 -> PREVIEW -> DONE
                                 -> DEDUP_CHECK -> EXECUTE_IMPORT -> DONE

Kinds are written in a fixed order (accounts, categories, transactions),
each as one batch insert. Batches of different kinds are not linked: a
failed accounts batch is reported and the categories batch still runs.
"""

import logging
from collections.abc import Sequence
from enum import Enum
from typing import Any

from ..core.config import ImportConfig
from ..core.datastore import ScopedStore
from ..core.errors import StorageError, StructuralError
from ..core.models import (
    IMPORT_ORDER,
    Account,
    AccountType,
    Category,
    ImportOutcome,
    ResourceKind,
    Transaction,
    WriteMode,
)
from ..duplicates import DuplicateStrategy, StrictDuplicateStrategy
from ..installments import billing_month_for
from ..validation import ensure_valid

logger = logging.getLogger(__name__)


class ImportStage(Enum):
    """Stages of the import state machine"""

    RECEIVED = "received"
    VALIDATE_PAYLOAD = "validate_payload"
    PREVIEW = "preview"
    DEDUP_CHECK = "dedup_check"
    EXECUTE_IMPORT = "execute_import"
    DONE = "done"


def _flag(request: dict[str, Any], name: str, default: bool) -> bool:
    value = request.get(name, default)
    if value is None:
        return default
    if not isinstance(value, bool):
        raise StructuralError(f"invalid structure: {name} must be true or false")
    return value


def collect_resources(request: Any) -> dict[ResourceKind, list[Any]]:
    """
    Pull the submitted rows for each importable kind out of a request.

    Accepts English keys (accounts, categories, transactions) and the legacy
    keys (contas, categorias, transacoes).

    Raises:
        StructuralError: If the request is not an object or a kind is not a list
    """
    if not isinstance(request, dict):
        raise StructuralError("invalid structure: import request must be a JSON object")

    resources: dict[ResourceKind, list[Any]] = {}
    for kind in IMPORT_ORDER:
        rows = request.get(kind.value, request.get(kind.legacy_key))
        if rows is None:
            continue
        if not isinstance(rows, list):
            raise StructuralError(f"invalid structure: {kind.value} must be a list")
        if rows:
            resources[kind] = rows
    return resources


class ImportService:
    """Validate, deduplicate and append submitted rows for one owner."""

    def __init__(
        self,
        store: ScopedStore,
        config: ImportConfig | None = None,
        strategy: DuplicateStrategy | None = None,
    ):
        self.store = store
        self.config = config or ImportConfig()
        self.strategy = strategy or StrictDuplicateStrategy()

    def run(self, request: Any) -> dict[str, Any]:
        """
        Run an import request end to end.

        Args:
            request: {accounts?, categories?, transactions?, skipDuplicates?, preview?}

        Returns:
            Preview counts, or per-kind {imported, skipped, errors}

        Raises:
            StructuralError: Malformed request or nothing to import
            RequestValidationError: Any invalid row; nothing is written
            StorageError: Reading existing transactions for a preview failed
        """
        self._enter(ImportStage.RECEIVED)
        resources = collect_resources(request)
        if not resources:
            raise StructuralError("nothing to import: send accounts, categories or transactions")
        skip_duplicates = _flag(request, "skipDuplicates", self.config.skip_duplicates_default)
        preview = _flag(request, "preview", False)

        self._enter(ImportStage.VALIDATE_PAYLOAD)
        ensure_valid(resources)

        if preview:
            self._enter(ImportStage.PREVIEW)
            return self._preview(resources)

        results: dict[str, ImportOutcome] = {}

        self._enter(ImportStage.EXECUTE_IMPORT)
        if ResourceKind.ACCOUNTS in resources:
            results[ResourceKind.ACCOUNTS.value] = self._import_accounts(resources[ResourceKind.ACCOUNTS])
        if ResourceKind.CATEGORIES in resources:
            results[ResourceKind.CATEGORIES.value] = self._import_categories(resources[ResourceKind.CATEGORIES])
        if ResourceKind.TRANSACTIONS in resources:
            results[ResourceKind.TRANSACTIONS.value] = self._import_transactions(
                resources[ResourceKind.TRANSACTIONS], skip_duplicates
            )

        self._enter(ImportStage.DONE)
        logger.info(
            "Import for owner %s: %s",
            self.store.owner_id,
            {kind: outcome.to_dict() for kind, outcome in results.items()},
        )
        return {
            "success": all(outcome.errors == 0 for outcome in results.values()),
            "mode": WriteMode.APPEND_WITH_DEDUP.value,
            "message": "import completed",
            "results": {kind: outcome.to_dict() for kind, outcome in results.items()},
        }

    def _enter(self, stage: ImportStage) -> None:
        logger.debug("Import for owner %s: %s", self.store.owner_id, stage.value)

    def _preview(self, resources: dict[ResourceKind, list[Any]]) -> dict[str, Any]:
        data: dict[str, dict[str, int]] = {}
        for kind, rows in resources.items():
            duplicates = 0
            if kind == ResourceKind.TRANSACTIONS:
                existing = self.store.query(kind.table)
                duplicates = len(self.strategy.find_duplicates(rows, existing))
            data[kind.value] = {"total": len(rows), "duplicateCount": duplicates}
        return {"success": True, "preview": True, "data": data, "message": "import preview"}

    def _insert(self, kind: ResourceKind, rows: list[dict[str, Any]], outcome: ImportOutcome) -> None:
        try:
            outcome.imported = len(self.store.insert_batch(kind.table, rows))
        except StorageError as e:
            logger.error("Import failed: resource=%s action=insert rows=%d error=%s", kind.table, len(rows), e)
            outcome.errors = len(rows)

    def _import_accounts(self, rows: Sequence[dict[str, Any]]) -> ImportOutcome:
        outcome = ImportOutcome()
        accounts = [Account.from_dict({**row, "id": None}).to_row() for row in rows]
        self._insert(ResourceKind.ACCOUNTS, accounts, outcome)
        return outcome

    def _import_categories(self, rows: Sequence[dict[str, Any]]) -> ImportOutcome:
        outcome = ImportOutcome()
        categories = [Category.from_dict({**row, "id": None}).to_row() for row in rows]
        self._insert(ResourceKind.CATEGORIES, categories, outcome)
        return outcome

    def _import_transactions(self, rows: Sequence[dict[str, Any]], skip_duplicates: bool) -> ImportOutcome:
        outcome = ImportOutcome()
        kind = ResourceKind.TRANSACTIONS
        to_import = list(rows)

        try:
            if skip_duplicates:
                self._enter(ImportStage.DEDUP_CHECK)
                existing = self.store.query(kind.table)
                duplicates = self.strategy.find_duplicates(to_import, existing)
                to_import = [row for index, row in enumerate(to_import) if index not in duplicates]
                outcome.skipped = len(duplicates)

            if not to_import:
                return outcome

            account_types = self._account_types(to_import)
        except StorageError as e:
            logger.error("Import failed: resource=%s action=query error=%s", kind.table, e)
            outcome.errors = len(to_import)
            return outcome

        transactions = []
        for row in to_import:
            transaction = Transaction.from_dict({**row, "id": None})
            transaction.billing_month = billing_month_for(
                transaction.date,
                transaction.billing_month,
                account_types.get(transaction.account_id) if transaction.account_id else None,
            )
            transactions.append(transaction.to_row())

        self._insert(kind, transactions, outcome)
        return outcome

    def _account_types(self, rows: Sequence[dict[str, Any]]) -> dict[str, AccountType | None]:
        account_ids = sorted({row["account_id"] for row in rows if row.get("account_id")})
        if not account_ids:
            return {}
        accounts = self.store.query(ResourceKind.ACCOUNTS.table, {"id": account_ids})
        return {account["id"]: AccountType.parse(account.get("tipo")) for account in accounts}
