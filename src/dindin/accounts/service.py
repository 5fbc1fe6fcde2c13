#!/usr/bin/env python3
"""
Account Lifecycle

Accounts referenced by transactions are deactivated instead of deleted so
history keeps its links; `force` deletes anyway after unlinking.
"""

import logging
from typing import Any

from ..core.datastore import ScopedStore
from ..core.errors import NotFoundError
from ..core.models import ResourceKind

logger = logging.getLogger(__name__)

ACCOUNTS = ResourceKind.ACCOUNTS.table
TRANSACTIONS = ResourceKind.TRANSACTIONS.table


class AccountService:
    """Owner-scoped account operations."""

    def __init__(self, store: ScopedStore):
        self.store = store

    def delete_account(self, account_id: str, force: bool = False) -> dict[str, Any]:
        """
        Delete or deactivate an account.

        Args:
            account_id: Account to remove
            force: Delete even when transactions reference the account

        Returns:
            {"success": True, "action": "deactivated", "transactionCount": n}
            or {"success": True, "action": "deleted"}

        Raises:
            NotFoundError: The caller owns no such account
            StorageError: A read or write failed
        """
        if not account_id or self.store.get(ACCOUNTS, account_id) is None:
            raise NotFoundError("account", account_id)

        transaction_count = len(self.store.query(TRANSACTIONS, {"account_id": account_id}))

        if transaction_count and not force:
            self.store.update_batch(ACCOUNTS, {"id": account_id}, {"ativo": False})
            logger.info("Deactivated account %s (%d transactions)", account_id, transaction_count)
            return {"success": True, "action": "deactivated", "transactionCount": transaction_count}

        if transaction_count:
            self.store.update_batch(TRANSACTIONS, {"account_id": account_id}, {"account_id": None})
        self.store.delete_batch(ACCOUNTS, {"id": account_id})
        logger.info("Deleted account %s (unlinked %d transactions)", account_id, transaction_count)
        return {"success": True, "action": "deleted"}
