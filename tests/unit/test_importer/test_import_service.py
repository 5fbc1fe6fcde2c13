#!/usr/bin/env python3
"""Tests for the bulk import state machine."""

import pytest

from dindin.core.datastore import InMemoryRowStore, ScopedStore
from dindin.core.errors import RequestValidationError, StorageError, StructuralError
from dindin.importer import ImportService, collect_resources
from dindin.core.models import ResourceKind

OWNER_ID = "owner-1"


class FailingTableStore(InMemoryRowStore):
    def __init__(self, tables=None, fail_table=None):
        super().__init__(tables)
        self.fail_table = fail_table
        self.inserted_tables = []

    def insert_batch(self, table, rows):
        self.inserted_tables.append(table)
        if table == self.fail_table:
            raise StorageError(f"insert into {table} failed")
        return super().insert_batch(table, rows)


@pytest.fixture
def existing_transaction():
    return {"descricao": "Supermercado Extra", "valor": 249.9, "tipo": "EXPENSE", "data": "2024-08-15"}


@pytest.mark.importer
class TestCollectResources:
    def test_english_and_legacy_keys(self, sample_transaction, sample_account):
        resources = collect_resources({"contas": [sample_account], "transactions": [sample_transaction]})
        assert list(resources) == [ResourceKind.ACCOUNTS, ResourceKind.TRANSACTIONS]

    def test_kind_must_be_list(self):
        with pytest.raises(StructuralError):
            collect_resources({"transactions": {"descricao": "x"}})

    def test_request_must_be_object(self):
        with pytest.raises(StructuralError):
            collect_resources([])


@pytest.mark.importer
class TestImportRejections:
    """Test requests rejected before anything is written."""

    def test_zero_value_rejected_with_field_error(self, scoped_store, sample_transaction):
        with pytest.raises(RequestValidationError) as exc_info:
            ImportService(scoped_store).run({"transactions": [sample_transaction, {**sample_transaction, "valor": 0}]})

        body = exc_info.value.to_body()
        assert body["validationErrors"] == [
            {
                "resource": "transactions",
                "errors": [{"index": 1, "field": "valor", "message": "valor must be greater than zero"}],
            }
        ]
        assert scoped_store.query("transacoes") == []

    def test_invalid_row_in_any_kind_blocks_everything(self, scoped_store, sample_account, sample_transaction):
        with pytest.raises(RequestValidationError):
            ImportService(scoped_store).run(
                {"accounts": [sample_account], "transactions": [{**sample_transaction, "data": "ontem"}]}
            )
        assert scoped_store.query("contas") == []

    def test_malformed_billing_month_blocks_everything(self, scoped_store, sample_account, sample_transaction):
        with pytest.raises(RequestValidationError) as exc_info:
            ImportService(scoped_store).run(
                {"accounts": [sample_account], "transactions": [{**sample_transaction, "mes_fatura": "setembro"}]}
            )

        assert exc_info.value.groups["transactions"][0].field == "mes_fatura"
        assert scoped_store.query("contas") == []
        assert scoped_store.query("transacoes") == []

    def test_nothing_to_import(self, scoped_store):
        with pytest.raises(StructuralError, match="nothing to import"):
            ImportService(scoped_store).run({"transactions": [], "skipDuplicates": True})

    def test_non_boolean_flag(self, scoped_store, sample_transaction):
        with pytest.raises(StructuralError):
            ImportService(scoped_store).run({"transactions": [sample_transaction], "preview": "yes"})


@pytest.mark.importer
class TestImportExecution:
    """Test appending rows with duplicate skipping."""

    def test_skip_duplicates_by_default(self, scoped_store, existing_transaction):
        scoped_store.insert_batch("transacoes", [existing_transaction])

        result = ImportService(scoped_store).run({"transactions": [existing_transaction]})

        assert result["mode"] == "append_with_dedup"
        assert result["results"]["transactions"] == {"imported": 0, "skipped": 1, "errors": 0}
        assert len(scoped_store.query("transacoes")) == 1

    def test_keep_duplicates(self, scoped_store, existing_transaction):
        scoped_store.insert_batch("transacoes", [existing_transaction])

        result = ImportService(scoped_store).run({"transactions": [existing_transaction], "skipDuplicates": False})

        assert result["results"]["transactions"] == {"imported": 1, "skipped": 0, "errors": 0}
        assert len(scoped_store.query("transacoes")) == 2

    def test_duplicates_checked_per_owner(self, memory_store, existing_transaction):
        ScopedStore(memory_store, "owner-2").insert_batch("transacoes", [existing_transaction])

        result = ImportService(ScopedStore(memory_store, OWNER_ID)).run({"transacoes": [existing_transaction]})

        assert result["results"]["transactions"]["imported"] == 1

    def test_defaults_applied(self, scoped_store):
        result = ImportService(scoped_store).run(
            {
                "accounts": [{"nome": "Carteira", "tipo": "CASH"}],
                "transactions": [{"descricao": "Cafe", "valor": 7.5, "tipo": "SAIDA", "data": "2024-08-01"}],
            }
        )

        assert result["success"] is True
        account = scoped_store.query("contas")[0]
        assert (account["saldo"], account["cor"], account["ativo"]) == (0, "#6366f1", True)
        transaction = scoped_store.query("transacoes")[0]
        assert transaction["ownership"] == "HOUSEHOLD"
        assert transaction["recorrente"] is False
        assert transaction["tags"] == []
        assert transaction["tipo"] == "EXPENSE"
        assert transaction["mes_fatura"] == "2024-08-01"
        assert transaction["user_id"] == OWNER_ID

    def test_credit_card_billing_month(self, populated_store):
        scoped = ScopedStore(populated_store, OWNER_ID)
        rows = [
            {"descricao": "Livro", "valor": 80, "tipo": "EXPENSE", "data": "2024-12-20", "account_id": "acc-2"},
            {"descricao": "Pix", "valor": 80, "tipo": "EXPENSE", "data": "2024-12-20", "account_id": "acc-1"},
            {
                "descricao": "Hotel",
                "valor": 900,
                "tipo": "EXPENSE",
                "data": "2024-12-20",
                "account_id": "acc-2",
                "mes_fatura": "2025-03-01",
            },
        ]

        ImportService(scoped).run({"transactions": rows})

        billing = {row["descricao"]: row["mes_fatura"] for row in scoped.query("transacoes")}
        assert billing["Livro"] == "2025-01-01"
        assert billing["Pix"] == "2024-12-01"
        assert billing["Hotel"] == "2025-03-01"

    def test_mid_month_billing_month_reduced_to_first_day(self, scoped_store, sample_account, sample_transaction):
        result = ImportService(scoped_store).run(
            {"accounts": [sample_account], "transactions": [{**sample_transaction, "mes_fatura": "2024-09-15"}]}
        )

        assert result["success"] is True
        assert result["results"]["accounts"]["imported"] == 1
        assert scoped_store.query("transacoes")[0]["mes_fatura"] == "2024-09-01"

    def test_submitted_ids_ignored(self, populated_store, sample_account):
        scoped = ScopedStore(populated_store, OWNER_ID)
        ImportService(scoped).run({"accounts": [{**sample_account, "id": "acc-1"}]})
        assert len(scoped.query("contas")) == 3

    def test_kinds_written_in_order(self, sample_account, sample_category, sample_transaction):
        store = FailingTableStore()
        ImportService(ScopedStore(store, OWNER_ID)).run(
            {
                "transactions": [sample_transaction],
                "categories": [sample_category],
                "accounts": [sample_account],
            }
        )
        assert store.inserted_tables == ["contas", "categorias", "transacoes"]

    def test_storage_failure_reported_per_kind(self, sample_account, sample_category, sample_transaction):
        store = FailingTableStore(fail_table="contas")

        result = ImportService(ScopedStore(store, OWNER_ID)).run(
            {
                "accounts": [sample_account, sample_account],
                "categories": [sample_category],
                "transactions": [sample_transaction],
            }
        )

        assert result["success"] is False
        assert result["results"]["accounts"] == {"imported": 0, "skipped": 0, "errors": 2}
        assert result["results"]["categories"] == {"imported": 1, "skipped": 0, "errors": 0}
        assert result["results"]["transactions"] == {"imported": 1, "skipped": 0, "errors": 0}


@pytest.mark.importer
class TestImportPreview:
    def test_preview_counts_without_writing(self, scoped_store, existing_transaction, sample_account):
        scoped_store.insert_batch("transacoes", [existing_transaction])
        other = {**existing_transaction, "descricao": "Padaria"}

        result = ImportService(scoped_store).run(
            {"accounts": [sample_account], "transactions": [existing_transaction, other], "preview": True}
        )

        assert result["preview"] is True
        assert result["data"] == {
            "accounts": {"total": 1, "duplicateCount": 0},
            "transactions": {"total": 2, "duplicateCount": 1},
        }
        assert scoped_store.query("contas") == []
        assert len(scoped_store.query("transacoes")) == 1
