#!/usr/bin/env python3
"""
Export Service

Read-only, owner-scoped snapshot of transactions, accounts and categories,
rendered as a structured object or as one CSV table per kind.
"""

import logging
from dataclasses import dataclass
from datetime import date
from typing import Any

from ..core.dates import has_iso_date_prefix
from ..core.datastore import ScopedStore
from ..core.errors import StructuralError
from ..core.models import ResourceKind
from .csv_writer import rows_to_csv

logger = logging.getLogger(__name__)

EXPORT_FORMATS = ("json", "csv")
EXPORTABLE = (ResourceKind.TRANSACTIONS, ResourceKind.ACCOUNTS, ResourceKind.CATEGORIES)

EXPORT_COLUMNS: dict[ResourceKind, tuple[str, ...]] = {
    ResourceKind.TRANSACTIONS: (
        "id",
        "descricao",
        "valor",
        "tipo",
        "data",
        "mes_fatura",
        "recorrente",
        "parcelas",
        "parcela_atual",
        "tags",
        "notas",
        "ownership",
        "category_id",
        "account_id",
        "created_at",
    ),
    ResourceKind.ACCOUNTS: ("id", "nome", "tipo", "banco", "saldo", "cor", "icone", "ativo", "created_at"),
    ResourceKind.CATEGORIES: ("id", "nome", "tipo", "cor", "icone", "grupo", "limite_mensal", "created_at"),
}


@dataclass
class ExportResult:
    """Rendered export, ready to hand back as a file attachment."""

    format: str
    resource: str
    content_type: str
    filename: str
    body: Any


def parse_resource(resource: str | None) -> list[ResourceKind]:
    """
    Resolve the requested resource to the kinds to export.

    Raises:
        StructuralError: If the resource is not exportable
    """
    if resource in (None, "", "all"):
        return list(EXPORTABLE)
    kind = ResourceKind.parse(resource)
    if kind not in EXPORTABLE:
        raise StructuralError("invalid resource: use 'transactions', 'accounts', 'categories' or 'all'")
    return [kind]


class ExportService:
    """Owner-scoped read-only export."""

    def __init__(self, store: ScopedStore):
        self.store = store

    def export(
        self,
        resource: str | None = "all",
        fmt: str | None = "json",
        date_from: str | None = None,
        date_to: str | None = None,
        today: date | None = None,
    ) -> ExportResult:
        """
        Export one kind or all kinds.

        Args:
            resource: transactions, accounts, categories or all
            fmt: json or csv
            date_from: Inclusive lower bound on the transaction date (YYYY-MM-DD)
            date_to: Inclusive upper bound on the transaction date (YYYY-MM-DD)

        Raises:
            StructuralError: Invalid format, resource or date bound
            StorageError: A read failed
        """
        fmt = fmt or "json"
        if fmt not in EXPORT_FORMATS:
            raise StructuralError("invalid format: use 'json' or 'csv'")
        kinds = parse_resource(resource)
        for name, bound in (("dateFrom", date_from), ("dateTo", date_to)):
            if bound and not has_iso_date_prefix(bound):
                raise StructuralError(f"invalid {name}: expected YYYY-MM-DD")

        data = {kind.value: self._fetch(kind, date_from, date_to) for kind in kinds}
        logger.info(
            "Exported %s as %s for owner %s: %s",
            resource or "all",
            fmt,
            self.store.owner_id,
            {kind: len(rows) for kind, rows in data.items()},
        )

        stamp = (today or date.today()).isoformat()
        label = "export" if len(kinds) > 1 else kinds[0].value

        if fmt == "json":
            return ExportResult("json", label, "application/json", f"dindin-{label}-{stamp}.json", data)

        files = {kind.value: rows_to_csv(data[kind.value], EXPORT_COLUMNS[kind]) for kind in kinds}
        if len(kinds) > 1:
            body = {
                "format": "csv",
                "files": files,
                "message": "save each property as a separate CSV file",
            }
            return ExportResult("csv", label, "application/json", f"dindin-{label}-{stamp}.json", body)

        return ExportResult(
            "csv", label, "text/csv; charset=utf-8", f"dindin-{label}-{stamp}.csv", files[kinds[0].value]
        )

    def _fetch(self, kind: ResourceKind, date_from: str | None, date_to: str | None) -> list[dict[str, Any]]:
        rows = self.store.query(kind.table)
        columns = EXPORT_COLUMNS[kind]

        if kind == ResourceKind.TRANSACTIONS:
            if date_from:
                rows = [row for row in rows if str(row.get("data") or "")[:10] >= date_from[:10]]
            if date_to:
                rows = [row for row in rows if str(row.get("data") or "")[:10] <= date_to[:10]]
            rows.sort(key=lambda row: str(row.get("data") or ""), reverse=True)
        elif kind == ResourceKind.ACCOUNTS:
            rows.sort(key=lambda row: str(row.get("nome") or ""))
        else:
            rows.sort(key=lambda row: (str(row.get("tipo") or ""), str(row.get("nome") or "")))

        return [{column: row.get(column) for column in columns} for row in rows]
