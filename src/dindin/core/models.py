#!/usr/bin/env python3
"""
Core Data Models for the dindin reconciliation engine

Domain records with English attribute names that convert to and from the
stored rows (`from_dict` / `to_row`). Rows keep the column names of the
application database; enumeration values accept the legacy Portuguese
spellings on input.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from .dates import FinancialDate
from .money import Money

_LEGACY_ALIASES: dict[str, dict[str, str]] = {
    "TransactionType": {
        "ENTRADA": "INCOME",
        "SAIDA": "EXPENSE",
        "TRANSFERENCIA": "TRANSFER",
        "INVESTIMENTO": "INVESTMENT",
    },
    "OwnershipType": {"CASA": "HOUSEHOLD", "PESSOAL": "PERSONAL"},
    "AccountType": {
        "CORRENTE": "CHECKING",
        "CARTAO_CREDITO": "CREDIT_CARD",
        "INVESTIMENTO": "INVESTMENT",
        "DINHEIRO": "CASH",
        "POUPANCA": "SAVINGS",
        "OUTRO": "OTHER",
    },
    "CategoryType": {"ENTRADA": "INCOME", "SAIDA": "EXPENSE"},
    "CategoryGroup": {
        "ESSENCIAL": "ESSENTIAL",
        "NAO_ESSENCIAL": "DISCRETIONARY",
        "INVESTIMENTO": "INVESTMENT",
        "DIVIDA": "DEBT",
        "RENDA": "INCOME",
    },
}


class ParseableEnum(Enum):
    """Enum that also accepts the legacy Portuguese spelling of its values."""

    @classmethod
    def parse(cls, value: Any) -> Any:
        """
        Look up a member by value or legacy alias.

        Returns:
            The member, or None when the value is unknown
        """
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            return None
        try:
            return cls(value)
        except ValueError:
            pass
        alias = _LEGACY_ALIASES.get(cls.__name__, {}).get(value)
        return cls(alias) if alias else None


class TransactionType(ParseableEnum):
    INCOME = "INCOME"
    EXPENSE = "EXPENSE"
    TRANSFER = "TRANSFER"
    INVESTMENT = "INVESTMENT"


class OwnershipType(ParseableEnum):
    HOUSEHOLD = "HOUSEHOLD"
    PERSONAL = "PERSONAL"


class AccountType(ParseableEnum):
    CHECKING = "CHECKING"
    CREDIT_CARD = "CREDIT_CARD"
    INVESTMENT = "INVESTMENT"
    CASH = "CASH"
    SAVINGS = "SAVINGS"
    OTHER = "OTHER"


class CategoryType(ParseableEnum):
    INCOME = "INCOME"
    EXPENSE = "EXPENSE"


class CategoryGroup(ParseableEnum):
    ESSENTIAL = "ESSENTIAL"
    DISCRETIONARY = "DISCRETIONARY"
    INVESTMENT = "INVESTMENT"
    DEBT = "DEBT"
    INCOME = "INCOME"


_RESOURCE_TABLES = {
    "user": "usuarios",
    "accounts": "contas",
    "categories": "categorias",
    "transactions": "transacoes",
    "investments": "investimentos",
    "goals": "metas",
}

_RESOURCE_LEGACY_KEYS = {
    "user": "usuario",
    "accounts": "contas",
    "categories": "categorias",
    "transactions": "transacoes",
    "investments": "investimentos",
    "goals": "metas",
}


class ResourceKind(Enum):
    """Kinds of owner data the engine reads and writes."""

    USER = "user"
    ACCOUNTS = "accounts"
    CATEGORIES = "categories"
    TRANSACTIONS = "transactions"
    INVESTMENTS = "investments"
    GOALS = "goals"

    @property
    def table(self) -> str:
        """Storage table holding this kind."""
        return _RESOURCE_TABLES[self.value]

    @property
    def legacy_key(self) -> str:
        """Key used for this kind by older envelopes and requests."""
        return _RESOURCE_LEGACY_KEYS[self.value]

    @classmethod
    def parse(cls, key: str) -> "ResourceKind | None":
        """Resolve an English key, legacy key or table name."""
        for kind in cls:
            if key in (kind.value, kind.legacy_key, kind.table):
                return kind
        return None


# Restore order respects foreign keys: accounts and categories before transactions
BACKUP_COLLECTIONS = (
    ResourceKind.ACCOUNTS,
    ResourceKind.CATEGORIES,
    ResourceKind.TRANSACTIONS,
    ResourceKind.INVESTMENTS,
    ResourceKind.GOALS,
)

IMPORT_ORDER = (ResourceKind.ACCOUNTS, ResourceKind.CATEGORIES, ResourceKind.TRANSACTIONS)

DEFAULT_ACCOUNT_COLOR = "#6366f1"

MIN_INSTALLMENTS = 2
MAX_INSTALLMENTS = 48


@dataclass
class Transaction:
    """
    A single financial transaction.

    `amount` is always positive; direction comes from `type`. Installment
    rows carry both `installment_count` and `installment_index`.
    """

    description: str
    amount: Money
    type: TransactionType
    date: FinancialDate
    billing_month: FinancialDate | None = None
    recurring: bool = False
    installment_count: int | None = None
    installment_index: int | None = None
    tags: list[str] = field(default_factory=list)
    notes: str | None = None
    ownership: OwnershipType = OwnershipType.HOUSEHOLD
    category_id: str | None = None
    account_id: str | None = None
    owner_id: str | None = None
    id: str | None = None

    def __post_init__(self) -> None:
        if not self.amount.is_positive():
            raise ValueError(f"Transaction amount must be positive, got {self.amount}")
        if (self.installment_count is None) != (self.installment_index is None):
            raise ValueError("installment_index and installment_count must be set together")
        if self.installment_count is not None and self.installment_index is not None:
            if not 1 <= self.installment_index <= self.installment_count:
                raise ValueError(
                    f"installment_index {self.installment_index} outside 1..{self.installment_count}"
                )
        if self.billing_month is not None and self.billing_month.date.day != 1:
            raise ValueError(f"billing_month must be the first day of a month, got {self.billing_month}")

    @property
    def is_installment(self) -> bool:
        return self.installment_count is not None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Transaction":
        """
        Create Transaction from a stored or submitted row.

        Raises:
            ValueError: If a required field is missing or malformed
            TypeError: If data or mes_fatura is not a date string
        """
        tx_type = TransactionType.parse(data.get("tipo"))
        if tx_type is None:
            raise ValueError(f"Unknown transaction type: {data.get('tipo')!r}")
        ownership = OwnershipType.parse(data.get("ownership") or OwnershipType.HOUSEHOLD.value)
        if ownership is None:
            raise ValueError(f"Unknown ownership: {data.get('ownership')!r}")

        billing_month = data.get("mes_fatura")
        return cls(
            description=str(data.get("descricao") or "").strip(),
            amount=Money.from_value(data["valor"]),
            type=tx_type,
            date=FinancialDate.from_value(data["data"]),
            billing_month=FinancialDate.from_value(billing_month).first_of_month() if billing_month else None,
            recurring=bool(data.get("recorrente", False)),
            installment_count=data.get("parcelas") or None,
            installment_index=data.get("parcela_atual") or None,
            tags=list(data.get("tags") or []),
            notes=data.get("notas") or None,
            ownership=ownership,
            category_id=data.get("category_id") or None,
            account_id=data.get("account_id") or None,
            owner_id=data.get("user_id"),
            id=data.get("id"),
        )

    def to_row(self) -> dict[str, Any]:
        """Convert to a storage row (id omitted when unset)."""
        row: dict[str, Any] = {
            "descricao": self.description,
            "valor": self.amount.to_number(),
            "tipo": self.type.value,
            "data": self.date.to_iso_string(),
            "mes_fatura": self.billing_month.to_iso_string() if self.billing_month else None,
            "recorrente": self.recurring,
            "parcelas": self.installment_count,
            "parcela_atual": self.installment_index,
            "tags": list(self.tags),
            "notas": self.notes,
            "ownership": self.ownership.value,
            "category_id": self.category_id,
            "account_id": self.account_id,
            "user_id": self.owner_id,
        }
        if self.id is not None:
            row["id"] = self.id
        return row


@dataclass
class Account:
    """A bank account, credit card, wallet or investment account."""

    name: str
    type: AccountType
    balance: Money = field(default_factory=lambda: Money.from_cents(0))
    bank: str | None = None
    color: str = DEFAULT_ACCOUNT_COLOR
    icon: str | None = None
    active: bool = True
    owner_id: str | None = None
    id: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Account":
        """Create Account from a stored or submitted row."""
        account_type = AccountType.parse(data.get("tipo"))
        if account_type is None:
            raise ValueError(f"Unknown account type: {data.get('tipo')!r}")
        return cls(
            name=str(data.get("nome") or "").strip(),
            type=account_type,
            balance=Money.from_value(data.get("saldo") or 0),
            bank=data.get("banco") or None,
            color=data.get("cor") or DEFAULT_ACCOUNT_COLOR,
            icon=data.get("icone") or None,
            active=data.get("ativo") is not False,
            owner_id=data.get("user_id"),
            id=data.get("id"),
        )

    def to_row(self) -> dict[str, Any]:
        row: dict[str, Any] = {
            "nome": self.name,
            "tipo": self.type.value,
            "banco": self.bank,
            "saldo": self.balance.to_number(),
            "cor": self.color,
            "icone": self.icon,
            "ativo": self.active,
            "user_id": self.owner_id,
        }
        if self.id is not None:
            row["id"] = self.id
        return row


@dataclass
class Category:
    """A budgeting category."""

    name: str
    type: CategoryType
    color: str
    group: CategoryGroup
    icon: str | None = None
    monthly_limit: Money | None = None
    owner_id: str | None = None
    id: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Category":
        """Create Category from a stored or submitted row."""
        category_type = CategoryType.parse(data.get("tipo"))
        group = CategoryGroup.parse(data.get("grupo"))
        if category_type is None or group is None:
            raise ValueError(f"Unknown category type/group: {data.get('tipo')!r}/{data.get('grupo')!r}")
        limit = data.get("limite_mensal")
        return cls(
            name=str(data.get("nome") or "").strip(),
            type=category_type,
            color=data["cor"],
            group=group,
            icon=data.get("icone") or None,
            monthly_limit=Money.from_value(limit) if limit else None,
            owner_id=data.get("user_id"),
            id=data.get("id"),
        )

    def to_row(self) -> dict[str, Any]:
        row: dict[str, Any] = {
            "nome": self.name,
            "tipo": self.type.value,
            "cor": self.color,
            "icone": self.icon,
            "grupo": self.group.value,
            "limite_mensal": self.monthly_limit.to_number() if self.monthly_limit else None,
            "user_id": self.owner_id,
        }
        if self.id is not None:
            row["id"] = self.id
        return row


@dataclass(frozen=True)
class ValidationError:
    """One field-level problem in a submitted row."""

    index: int
    field: str
    message: str

    def to_dict(self) -> dict[str, Any]:
        return {"index": self.index, "field": self.field, "message": self.message}


@dataclass
class ImportOutcome:
    """Per-resource result of an import."""

    imported: int = 0
    skipped: int = 0
    errors: int = 0

    def to_dict(self) -> dict[str, int]:
        return {"imported": self.imported, "skipped": self.skipped, "errors": self.errors}


@dataclass
class RestoreOutcome:
    """Per-resource result of a full-replace restore."""

    deleted: int = 0
    created: int = 0
    errors: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {"deleted": self.deleted, "created": self.created, "errors": list(self.errors)}


class WriteMode(Enum):
    """How an orchestrated write treats rows already on file."""

    REPLACE = "replace"  # restore: delete the owner's rows, then recreate
    APPEND_WITH_DEDUP = "append_with_dedup"  # import: keep rows, optionally skip duplicates


@dataclass(frozen=True)
class OwnerIdentity:
    """Authenticated caller: the owner every read and write is scoped to."""

    owner_id: str
    email: str | None = None
