"""
Pytest Configuration and Shared Fixtures

Provides common test fixtures and configuration for the entire test suite.
"""

from typing import Any

import pytest

from dindin.core.datastore import InMemoryRowStore, ScopedStore
from dindin.core.models import OwnerIdentity

OWNER_ID = "owner-1"
OTHER_OWNER_ID = "owner-2"


@pytest.fixture
def memory_store() -> InMemoryRowStore:
    """Empty in-memory row store shared by several owners."""
    return InMemoryRowStore()


@pytest.fixture
def scoped_store(memory_store) -> ScopedStore:
    """Row store view restricted to the test owner."""
    return ScopedStore(memory_store, OWNER_ID)


@pytest.fixture
def identity() -> OwnerIdentity:
    """Authenticated test owner."""
    return OwnerIdentity(owner_id=OWNER_ID, email="owner@example.com")


@pytest.fixture
def sample_transaction() -> dict[str, Any]:
    """Submitted transaction row in storage column names."""
    return {
        "descricao": "Supermercado Extra",
        "valor": 249.9,
        "tipo": "EXPENSE",
        "data": "2024-08-15",
        "ownership": "HOUSEHOLD",
        "tags": ["mercado"],
    }


@pytest.fixture
def sample_account() -> dict[str, Any]:
    """Submitted account row."""
    return {"nome": "Nubank", "tipo": "CREDIT_CARD", "banco": "Nubank", "saldo": -1500.5}


@pytest.fixture
def sample_category() -> dict[str, Any]:
    """Submitted category row."""
    return {"nome": "Mercado", "tipo": "EXPENSE", "cor": "#22c55e", "grupo": "ESSENTIAL", "limite_mensal": 1200}


@pytest.fixture
def populated_store(memory_store) -> InMemoryRowStore:
    """Store holding data for two owners."""
    memory_store.insert_batch(
        "usuarios",
        [
            {"id": OWNER_ID, "email": "owner@example.com", "nome": "Ana", "renda_mensal": 8000},
            {"id": OTHER_OWNER_ID, "email": "other@example.com", "nome": "Bruno", "renda_mensal": 5000},
        ],
    )
    memory_store.insert_batch(
        "contas",
        [
            {"id": "acc-1", "user_id": OWNER_ID, "nome": "Itau", "tipo": "CHECKING", "saldo": 1000, "ativo": True},
            {"id": "acc-2", "user_id": OWNER_ID, "nome": "Nubank", "tipo": "CREDIT_CARD", "saldo": 0, "ativo": True},
            {"id": "acc-9", "user_id": OTHER_OWNER_ID, "nome": "Bradesco", "tipo": "CHECKING", "saldo": 50},
        ],
    )
    memory_store.insert_batch(
        "categorias",
        [
            {
                "id": "cat-1",
                "user_id": OWNER_ID,
                "nome": "Mercado",
                "tipo": "EXPENSE",
                "cor": "#22c55e",
                "grupo": "ESSENTIAL",
            },
        ],
    )
    memory_store.insert_batch(
        "transacoes",
        [
            {
                "id": "tx-1",
                "user_id": OWNER_ID,
                "descricao": "Salario",
                "valor": 8000,
                "tipo": "INCOME",
                "data": "2024-08-05",
                "account_id": "acc-1",
                "tags": [],
            },
            {
                "id": "tx-2",
                "user_id": OWNER_ID,
                "descricao": "Supermercado Extra",
                "valor": 249.9,
                "tipo": "EXPENSE",
                "data": "2024-08-15",
                "account_id": "acc-2",
                "category_id": "cat-1",
                "tags": ["mercado", "casa"],
            },
            {
                "id": "tx-9",
                "user_id": OTHER_OWNER_ID,
                "descricao": "Padaria",
                "valor": 12.5,
                "tipo": "EXPENSE",
                "data": "2024-08-10",
            },
        ],
    )
    memory_store.insert_batch("metas", [{"id": "goal-1", "user_id": OWNER_ID, "nome": "Viagem", "valor": 5000}])
    return memory_store


@pytest.fixture(autouse=True)
def setup_test_environment(monkeypatch, tmp_path):
    """Set up test environment variables."""
    # Ensure tests don't use real data
    monkeypatch.setenv("DINDIN_ENV", "test")
    monkeypatch.setenv("DINDIN_DATA_DIR", str(tmp_path / "data"))
    monkeypatch.delenv("DINDIN_STORE_FILE", raising=False)
    monkeypatch.delenv("DINDIN_OWNER_ID", raising=False)
    monkeypatch.delenv("LOG_LEVEL", raising=False)

    # Each test builds its configuration from its own environment
    monkeypatch.setattr("dindin.core.config._config", None)


# Test markers for categorizing tests
def pytest_configure(config):
    """Configure custom pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests for individual components")
    config.addinivalue_line("markers", "integration: Integration tests for complete workflows")
    config.addinivalue_line("markers", "currency: Tests for currency handling and precision")
    config.addinivalue_line("markers", "backup: Tests for backup, checksum and restore")
    config.addinivalue_line("markers", "importer: Tests for bulk import")
    config.addinivalue_line("markers", "duplicates: Tests for duplicate detection")
    config.addinivalue_line("markers", "installments: Tests for installment splitting")
    config.addinivalue_line("markers", "slow: Tests that take significant time to run")
