#!/usr/bin/env python3
"""
Finance API

Routes requests to the owner-scoped services and converts engine errors to
status codes. Every handler authenticates first; nothing runs for an
unauthenticated caller.

    GET    /export            format, resource, dateFrom, dateTo
    GET    /backup            envelope as a file attachment
    POST   /backup            envelope + preview / confirmDelete
    POST   /import            {accounts?, categories?, transactions?, skipDuplicates?, preview?}
    POST   /transactions      single transaction or installment series
    DELETE /accounts/{id}     force
    POST   /dedupe/preview    {candidates: [...]}
"""

import logging
from collections.abc import Callable
from typing import Any

from ..accounts import AccountService
from ..backup import CONFIRM_FLAG, BackupService
from ..core.config import Config
from ..core.datastore import RowStore, ScopedStore
from ..core.errors import NotFoundError, ReconciliationError, StorageError, StructuralError
from ..core.models import MAX_INSTALLMENTS, OwnerIdentity, ResourceKind
from ..duplicates import FuzzyDuplicateStrategy, preview_candidates
from ..export import ExportService
from ..importer import ImportService
from ..installments import TransactionService
from .auth import Authenticator, require_identity
from .http import ApiRequest, Response

logger = logging.getLogger(__name__)

Handler = Callable[[ApiRequest, ScopedStore, OwnerIdentity], Response]


def error_response(error: ReconciliationError) -> Response:
    """Convert an engine error to its response."""
    if isinstance(error, StorageError):
        logger.error("Storage failure: resource=%s action=%s error=%s", error.resource, error.action, error)
    else:
        logger.info("Rejected request (%d): %s", error.status, error.message)
    return Response.json(error.to_body(), status=error.status)


class FinanceApi:
    """Framework-free request dispatcher over the reconciliation services."""

    def __init__(self, store: RowStore, authenticator: Authenticator, config: Config | None = None):
        self.store = store
        self.authenticator = authenticator
        self.config = config
        self._routes: dict[tuple[str, str], Handler] = {
            ("GET", "/export"): self.get_export,
            ("GET", "/backup"): self.get_backup,
            ("POST", "/backup"): self.post_backup,
            ("POST", "/import"): self.post_import,
            ("POST", "/transactions"): self.post_transaction,
            ("DELETE", "/accounts"): self.delete_account,
            ("POST", "/dedupe/preview"): self.post_dedupe_preview,
        }

    def handle(self, request: ApiRequest) -> Response:
        """Authenticate, dispatch and map errors for one request."""
        handler = self._resolve(request)
        if handler is None:
            return Response.json({"error": f"no route for {request.method} {request.path}"}, status=404)

        try:
            identity = require_identity(self.authenticator, request)
            scoped = ScopedStore(self.store, identity.owner_id)
            return handler(request, scoped, identity)
        except ReconciliationError as e:
            return error_response(e)

    def _resolve(self, request: ApiRequest) -> Handler | None:
        path = "/" + request.path.strip("/")
        if path.startswith("/accounts/"):
            path = "/accounts"
        return self._routes.get((request.method.upper(), path))

    @staticmethod
    def _path_id(request: ApiRequest) -> str | None:
        parts = request.path.strip("/").split("/")
        return parts[1] if len(parts) > 1 and parts[1] else request.query.get("id")

    @staticmethod
    def _json_body(request: ApiRequest) -> dict[str, Any]:
        if not isinstance(request.body, dict):
            raise StructuralError("invalid structure: request body must be a JSON object")
        return request.body

    # ------------------------------------------------------------------
    # Handlers
    # ------------------------------------------------------------------

    def get_export(self, request: ApiRequest, store: ScopedStore, identity: OwnerIdentity) -> Response:
        result = ExportService(store).export(
            resource=request.query.get("resource", "all"),
            fmt=request.query.get("format", "json"),
            date_from=request.query.get("dateFrom"),
            date_to=request.query.get("dateTo"),
        )
        return Response.attachment(result.body, result.filename, result.content_type)

    def get_backup(self, request: ApiRequest, store: ScopedStore, identity: OwnerIdentity) -> Response:
        envelope = BackupService(store, self.config.backup if self.config else None).create_backup(identity)
        return Response.attachment(envelope.to_dict(), envelope.filename())

    def post_backup(self, request: ApiRequest, store: ScopedStore, identity: OwnerIdentity) -> Response:
        body = self._json_body(request)
        result = BackupService(store, self.config.backup if self.config else None).restore(
            body,
            preview=request.body_flag("preview"),
            confirm_delete=request.body_flag(CONFIRM_FLAG),
        )
        return Response.json(result)

    def post_import(self, request: ApiRequest, store: ScopedStore, identity: OwnerIdentity) -> Response:
        body = self._json_body(request)
        result = ImportService(store, self.config.imports if self.config else None).run(body)
        return Response.json(result)

    def post_transaction(self, request: ApiRequest, store: ScopedStore, identity: OwnerIdentity) -> Response:
        body = self._json_body(request)
        limit = self.config.imports.max_installments if self.config else MAX_INSTALLMENTS
        service = TransactionService(store, limit)
        return Response.json(service.create(body), status=201)

    def delete_account(self, request: ApiRequest, store: ScopedStore, identity: OwnerIdentity) -> Response:
        account_id = self._path_id(request)
        if not account_id:
            raise NotFoundError("account")
        result = AccountService(store).delete_account(account_id, force=request.query_flag("force"))
        return Response.json(result)

    def post_dedupe_preview(self, request: ApiRequest, store: ScopedStore, identity: OwnerIdentity) -> Response:
        body = self._json_body(request)
        candidates = body.get("candidates")
        if not isinstance(candidates, list):
            raise StructuralError("invalid structure: candidates must be a list")

        existing = store.query(ResourceKind.TRANSACTIONS.table)
        strategy = FuzzyDuplicateStrategy(self.config.fuzzy if self.config else None)
        previews = preview_candidates(candidates, existing, strategy)
        return Response.json(
            {
                "success": True,
                "candidates": [preview.to_dict() for preview in previews],
                "duplicateCount": sum(1 for preview in previews if preview.is_duplicate),
            }
        )
