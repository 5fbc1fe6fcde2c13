#!/usr/bin/env python3
"""Tests for the framework-free API handlers."""

import pytest

from dindin.api import ApiRequest, FinanceApi, StaticAuthenticator, error_response
from dindin.core.datastore import InMemoryRowStore
from dindin.core.errors import StorageError
from dindin.core.models import OwnerIdentity


@pytest.fixture
def api(populated_store, identity):
    return FinanceApi(populated_store, StaticAuthenticator(identity))


class TestAuthentication:
    def test_unauthenticated_rejected(self, populated_store):
        api = FinanceApi(populated_store, StaticAuthenticator(None))

        response = api.handle(ApiRequest("GET", "/export"))

        assert response.status == 401
        assert response.body == {"error": "unauthorized"}

    def test_identity_without_owner_rejected(self, populated_store):
        api = FinanceApi(populated_store, StaticAuthenticator(OwnerIdentity(owner_id="")))
        assert api.handle(ApiRequest("GET", "/backup")).status == 401

    def test_unknown_route(self, api):
        assert api.handle(ApiRequest("PATCH", "/export")).status == 404


class TestExportAndBackup:
    def test_export_attachment(self, api):
        response = api.handle(ApiRequest("GET", "/export", query={"format": "csv", "resource": "categories"}))

        assert response.status == 200
        assert response.headers["Content-Type"].startswith("text/csv")
        assert "attachment" in response.headers["Content-Disposition"]
        assert response.body.startswith("id,nome,tipo,cor")

    def test_export_invalid_format(self, api):
        response = api.handle(ApiRequest("GET", "/export", query={"format": "pdf"}))
        assert response.status == 400
        assert "format" in response.body["error"]

    def test_backup_then_restore(self, api):
        backup = api.handle(ApiRequest("GET", "/backup"))
        assert backup.status == 200
        assert 'filename="dindin-backup-' in backup.headers["Content-Disposition"]

        envelope = backup.body
        preview = api.handle(ApiRequest("POST", "/backup", body={**envelope, "preview": True}))
        assert preview.status == 200
        assert preview.body["counts"]["transactions"] == 2

        unconfirmed = api.handle(ApiRequest("POST", "/backup", body=envelope))
        assert unconfirmed.status == 400
        assert "confirmDelete" in unconfirmed.body["error"]

        restored = api.handle(ApiRequest("POST", "/backup", body={**envelope, "confirmDelete": True}))
        assert restored.status == 200
        assert restored.body["results"]["transactions"]["created"] == 2

    def test_confirm_flag_in_query(self, api):
        envelope = api.handle(ApiRequest("GET", "/backup")).body
        response = api.handle(ApiRequest("POST", "/backup", query={"confirmDelete": "true"}, body=envelope))
        assert response.status == 200

    def test_corrupted_backup(self, api):
        envelope = api.handle(ApiRequest("GET", "/backup")).body
        envelope["checksum"] = "0"
        response = api.handle(ApiRequest("POST", "/backup", body={**envelope, "confirmDelete": True}))
        assert response.status == 400
        assert "invalid checksum" in response.body["error"]


class TestImportAndTransactions:
    def test_import_validation_errors(self, api, sample_transaction):
        response = api.handle(
            ApiRequest("POST", "/import", body={"transactions": [{**sample_transaction, "valor": 0}]})
        )

        assert response.status == 400
        assert response.body["validationErrors"][0]["errors"][0]["field"] == "valor"

    def test_import_skips_duplicates(self, api):
        row = {"descricao": "Salario", "valor": 8000, "tipo": "INCOME", "data": "2024-08-05"}
        response = api.handle(ApiRequest("POST", "/import", body={"transactions": [row]}))

        assert response.status == 200
        assert response.body["results"]["transactions"] == {"imported": 0, "skipped": 1, "errors": 0}

    def test_create_installments(self, api):
        body = {
            "descricao": "Sofa",
            "valor": 1000,
            "tipo": "EXPENSE",
            "data": "2024-08-20",
            "parcelas": 3,
            "accountId": "acc-2",
        }
        response = api.handle(ApiRequest("POST", "/transactions", body=body))

        assert response.status == 201
        assert response.body["count"] == 3
        assert sum(round(row["valor"] * 100) for row in response.body["transactions"]) == 100000

    def test_too_many_installments(self, api):
        response = api.handle(ApiRequest("POST", "/transactions", body={"parcelas": 60}))
        assert response.status == 400
        assert "maximum number of installments is 48" in response.body["error"]

    def test_account_of_other_owner_not_found(self, api, sample_transaction):
        response = api.handle(ApiRequest("POST", "/transactions", body={**sample_transaction, "accountId": "acc-9"}))
        assert response.status == 404

    def test_body_must_be_object(self, api):
        assert api.handle(ApiRequest("POST", "/import", body="[]")).status == 400


class TestAccountsAndDedupe:
    def test_delete_account_by_path(self, api):
        response = api.handle(ApiRequest("DELETE", "/accounts/acc-1"))
        assert response.body["action"] == "deactivated"

    def test_force_delete(self, api):
        response = api.handle(ApiRequest("DELETE", "/accounts/acc-1", query={"force": "true"}))
        assert response.body["action"] == "deleted"

    def test_delete_missing_account(self, api):
        assert api.handle(ApiRequest("DELETE", "/accounts/nope")).status == 404

    def test_dedupe_preview(self, api):
        candidates = [
            {"descricao": "SUPERMERCADO EXTRA", "valor": 249.9, "tipo": "EXPENSE", "data": "2024-08-17"},
            {"descricao": "Cinema", "valor": 40, "tipo": "EXPENSE", "data": "2024-08-17"},
        ]
        response = api.handle(ApiRequest("POST", "/dedupe/preview", body={"candidates": candidates}))

        assert response.status == 200
        assert response.body["duplicateCount"] == 1
        assert [c["selected"] for c in response.body["candidates"]] == [False, True]

    def test_dedupe_preview_numeric_date(self, api):
        candidates = [{"descricao": "Supermercado Extra", "valor": 249.9, "tipo": "EXPENSE", "data": 20240815}]
        response = api.handle(ApiRequest("POST", "/dedupe/preview", body={"candidates": candidates}))

        assert response.status == 200
        assert response.body["duplicateCount"] == 0
        assert response.body["candidates"][0]["selected"] is True

    def test_dedupe_preview_non_object_candidate(self, api):
        response = api.handle(ApiRequest("POST", "/dedupe/preview", body={"candidates": ["recibo"]}))
        assert response.status == 400


class TestErrorMapping:
    def test_storage_failure_is_500(self, identity):
        class DownStore(InMemoryRowStore):
            def query(self, table, filters=None):
                raise ConnectionError("database down")

        api = FinanceApi(DownStore(), StaticAuthenticator(identity))
        response = api.handle(ApiRequest("GET", "/export"))

        assert response.status == 500
        assert "database down" in response.body["error"]

    def test_error_response_body(self):
        response = error_response(StorageError("boom", resource="contas", action="insert"))
        assert (response.status, response.body) == (500, {"error": "boom"})
