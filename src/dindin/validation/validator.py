#!/usr/bin/env python3
"""
Row Validation

Pure per-resource validators producing structured error lists. Each
validator reports one ValidationError per violated rule, tagged with the
row's position in the submitted array, and returns an empty list when the
row is valid.
"""

from collections.abc import Callable, Mapping, Sequence
from typing import Any

from ..core.currency import safe_to_cents
from ..core.dates import FinancialDate, has_iso_date_prefix
from ..core.errors import RequestValidationError
from ..core.models import (
    MAX_INSTALLMENTS,
    MIN_INSTALLMENTS,
    AccountType,
    CategoryGroup,
    CategoryType,
    OwnershipType,
    ResourceKind,
    TransactionType,
    ValidationError,
)

Validator = Callable[[Any, int], list[ValidationError]]


def _is_blank(value: Any) -> bool:
    return not isinstance(value, str) or not value.strip()


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _not_object(index: int) -> list[ValidationError]:
    return [ValidationError(index, "row", "row must be an object")]


def validate_transaction(row: Any, index: int) -> list[ValidationError]:
    """
    Validate one submitted transaction row.

    Rules: descricao non-blank; valor a number greater than zero; tipo one of
    the transaction types; data and (if present) mes_fatura starting with
    YYYY-MM-DD; tags, if present, a list of strings; ownership, if
    present, one of the ownership types; parcelas / parcela_atual, if present,
    a consistent installment position.
    """
    if not isinstance(row, Mapping):
        return _not_object(index)

    errors: list[ValidationError] = []

    if _is_blank(row.get("descricao")):
        errors.append(ValidationError(index, "descricao", "descricao is required"))

    valor = row.get("valor")
    if valor is None or valor == "":
        errors.append(ValidationError(index, "valor", "valor is required"))
    else:
        cents = safe_to_cents(valor)
        if cents is None or cents <= 0:
            errors.append(ValidationError(index, "valor", "valor must be greater than zero"))

    if TransactionType.parse(row.get("tipo")) is None:
        errors.append(ValidationError(index, "tipo", "tipo must be one of INCOME, EXPENSE, TRANSFER, INVESTMENT"))

    data = row.get("data")
    if not data:
        errors.append(ValidationError(index, "data", "data is required"))
    elif not isinstance(data, str) or not has_iso_date_prefix(data):
        errors.append(ValidationError(index, "data", "data must be in YYYY-MM-DD format"))
    else:
        try:
            FinancialDate.from_string(data)
        except ValueError:
            errors.append(ValidationError(index, "data", f"data is not a valid calendar date: {data}"))

    billing_month = row.get("mes_fatura")
    if billing_month not in (None, ""):
        if not isinstance(billing_month, str) or not has_iso_date_prefix(billing_month):
            errors.append(ValidationError(index, "mes_fatura", "mes_fatura must be in YYYY-MM-DD format"))
        else:
            try:
                FinancialDate.from_string(billing_month)
            except ValueError:
                errors.append(
                    ValidationError(index, "mes_fatura", f"mes_fatura is not a valid calendar date: {billing_month}")
                )

    tags = row.get("tags")
    if tags is not None and (not isinstance(tags, list) or not all(isinstance(tag, str) for tag in tags)):
        errors.append(ValidationError(index, "tags", "tags must be a list of strings"))

    ownership = row.get("ownership")
    if ownership and OwnershipType.parse(ownership) is None:
        errors.append(ValidationError(index, "ownership", "ownership must be HOUSEHOLD or PERSONAL"))

    errors.extend(_validate_installment_position(row, index))

    return errors


def _validate_installment_position(row: Mapping, index: int) -> list[ValidationError]:
    count = row.get("parcelas")
    position = row.get("parcela_atual")
    if not count and not position:
        return []

    if not _is_int(count) or not MIN_INSTALLMENTS <= count <= MAX_INSTALLMENTS:
        return [
            ValidationError(
                index,
                "parcelas",
                f"parcelas must be an integer between {MIN_INSTALLMENTS} and {MAX_INSTALLMENTS}",
            )
        ]
    if not _is_int(position) or not 1 <= position <= count:
        return [ValidationError(index, "parcela_atual", f"parcela_atual must be between 1 and {count}")]
    return []


def validate_account(row: Any, index: int) -> list[ValidationError]:
    """Validate one submitted account row: nome non-blank, tipo an account type."""
    if not isinstance(row, Mapping):
        return _not_object(index)

    errors: list[ValidationError] = []

    if _is_blank(row.get("nome")):
        errors.append(ValidationError(index, "nome", "nome is required"))

    if AccountType.parse(row.get("tipo")) is None:
        allowed = ", ".join(t.value for t in AccountType)
        errors.append(ValidationError(index, "tipo", f"tipo must be one of {allowed}"))

    saldo = row.get("saldo")
    if saldo not in (None, "") and safe_to_cents(saldo) is None:
        errors.append(ValidationError(index, "saldo", "saldo must be a number"))

    return errors


def validate_category(row: Any, index: int) -> list[ValidationError]:
    """Validate one submitted category row: nome, tipo, cor and grupo."""
    if not isinstance(row, Mapping):
        return _not_object(index)

    errors: list[ValidationError] = []

    if _is_blank(row.get("nome")):
        errors.append(ValidationError(index, "nome", "nome is required"))

    if CategoryType.parse(row.get("tipo")) is None:
        errors.append(ValidationError(index, "tipo", "tipo must be INCOME or EXPENSE"))

    if not row.get("cor"):
        errors.append(ValidationError(index, "cor", "cor is required"))

    if CategoryGroup.parse(row.get("grupo")) is None:
        allowed = ", ".join(g.value for g in CategoryGroup)
        errors.append(ValidationError(index, "grupo", f"grupo must be one of {allowed}"))

    limit = row.get("limite_mensal")
    if limit not in (None, "") and safe_to_cents(limit) is None:
        errors.append(ValidationError(index, "limite_mensal", "limite_mensal must be a number"))

    return errors


VALIDATORS: dict[ResourceKind, Validator] = {
    ResourceKind.ACCOUNTS: validate_account,
    ResourceKind.CATEGORIES: validate_category,
    ResourceKind.TRANSACTIONS: validate_transaction,
}


def validate_rows(kind: ResourceKind, rows: Sequence[Any]) -> list[ValidationError]:
    """Run the validator for `kind` over every row, in submission order."""
    validator = VALIDATORS[kind]
    errors: list[ValidationError] = []
    for index, row in enumerate(rows):
        errors.extend(validator(row, index))
    return errors


def validate_request(resources: Mapping[ResourceKind, Sequence[Any]]) -> dict[str, list[ValidationError]]:
    """
    Validate every row of every supplied resource kind.

    Returns:
        Errors grouped by resource name; only kinds with errors appear
    """
    groups: dict[str, list[ValidationError]] = {}
    for kind, rows in resources.items():
        errors = validate_rows(kind, rows)
        if errors:
            groups[kind.value] = errors
    return groups


def ensure_valid(resources: Mapping[ResourceKind, Sequence[Any]]) -> None:
    """
    Fail closed: raise if any row of any resource kind is invalid.

    Raises:
        RequestValidationError: With the full grouped error list
    """
    groups = validate_request(resources)
    if groups:
        raise RequestValidationError(groups)
