#!/usr/bin/env python3
"""
Installment Splitter

Divides one purchase into N dated, individually billed sub-transactions.
Uses integer cents throughout: every installment but the last gets the
per-unit share floored to the cent, the last absorbs the remainder, so the
series always sums exactly to the purchase value.

Billing months:
- An explicit first billing month shifts by one month per installment.
- Otherwise credit-card purchases start billing the month after the
  purchase; every other account type bills in the purchase month.
"""

import logging
from dataclasses import replace

from ..core.currency import validate_sum_equals_total
from ..core.dates import FinancialDate
from ..core.errors import InstallmentLimitError
from ..core.models import MAX_INSTALLMENTS, MIN_INSTALLMENTS, AccountType, Transaction

logger = logging.getLogger(__name__)


class SplitCalculationError(Exception):
    """Raised when installment amounts don't sum to the purchase value"""

    pass


def check_installment_count(count: int, max_installments: int = MAX_INSTALLMENTS) -> None:
    """
    Reject installment counts outside 2..max_installments.

    Raises:
        InstallmentLimitError: With a "too many installments" message above the limit
    """
    if isinstance(count, bool) or not isinstance(count, int):
        raise InstallmentLimitError(f"number of installments must be an integer, got {count!r}")
    if count > max_installments:
        raise InstallmentLimitError(f"too many installments: maximum number of installments is {max_installments}")
    if count < MIN_INSTALLMENTS:
        raise InstallmentLimitError(f"an installment series needs at least {MIN_INSTALLMENTS} installments")


def default_billing_month(purchase_date: FinancialDate, account_type: AccountType | None) -> FinancialDate:
    """
    Billing month for a transaction with no explicit billing month.

    Credit-card purchases land on the next statement; everything else is
    attributed to the month it happened in.
    """
    if account_type == AccountType.CREDIT_CARD:
        return purchase_date.add_months(1).first_of_month()
    return purchase_date.first_of_month()


def billing_month_for(
    purchase_date: FinancialDate,
    explicit: FinancialDate | None = None,
    account_type: AccountType | None = None,
) -> FinancialDate:
    """Billing month for a single (non-installment) transaction."""
    if explicit is not None:
        return explicit.first_of_month()
    return default_billing_month(purchase_date, account_type)


def split_installments(
    purchase: Transaction,
    count: int,
    first_billing_month: FinancialDate | None = None,
    account_type: AccountType | None = None,
    max_installments: int = MAX_INSTALLMENTS,
) -> list[Transaction]:
    """
    Split a purchase into an installment series.

    Args:
        purchase: The whole purchase (description, total value, start date, ...)
        count: Number of installments, 2..max_installments
        first_billing_month: Optional explicit billing month of installment 1
        account_type: Type of the account the purchase was made on

    Returns:
        `count` Transactions with "(i/N)" descriptions, monthly dates and
        billing months, summing exactly to the purchase value

    Raises:
        InstallmentLimitError: If count is outside the supported range
        SplitCalculationError: If the shares don't sum to the purchase value
    """
    check_installment_count(count, max_installments)
    if purchase.amount.to_cents() < count:
        raise InstallmentLimitError(f"{purchase.amount} is too small to split into {count} installments")

    shares = purchase.amount.split(count)
    if not validate_sum_equals_total([s.to_cents() for s in shares], purchase.amount.to_cents()):
        raise SplitCalculationError(f"Installments for {purchase.description!r} don't sum to {purchase.amount}")

    if first_billing_month is None:
        first_billing_month = default_billing_month(purchase.date, account_type)

    installments = []
    for i, share in enumerate(shares):
        installments.append(
            replace(
                purchase,
                description=f"{purchase.description} ({i + 1}/{count})",
                amount=share,
                date=purchase.date.add_months(i),
                billing_month=first_billing_month.add_months(i).first_of_month(),
                recurring=False,
                installment_count=count,
                installment_index=i + 1,
                id=None,
            )
        )

    logger.debug(
        "Split %s into %d installments of %s (last %s)",
        purchase.amount,
        count,
        shares[0],
        shares[-1],
    )
    return installments
