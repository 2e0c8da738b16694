"""Household dashboard aggregation"""

from collections import defaultdict
from typing import Dict, Iterable
from household_ledger.domain.models import DueItem, HouseholdSummary


def payback_progress(withdrawal) -> int:
    """Percentage of a savings withdrawal paid back (100 when nothing was withdrawn)"""
    if withdrawal.withdrawn_cents == 0:
        return 100
    return round(withdrawal.paid_back_cents / withdrawal.withdrawn_cents * 100)


def _totals(pairs: Iterable) -> Dict[str, int]:
    totals: Dict[str, int] = defaultdict(int)
    for currency, cents in pairs:
        totals[currency] += cents
    return dict(totals)


def summarize_household(
    month_year: str,
    due_items: Iterable[DueItem],
    loans: Iterable,
    withdrawals: Iterable,
) -> HouseholdSummary:
    """
    Totals per currency; currencies are never converted into each other.

    Args:
        due_items: Settlement view for the month
        loans: Active loans
        withdrawals: Withdrawals not yet fully paid back
    """
    due_items = list(due_items)
    unpaid = [item for item in due_items if not item.is_paid]

    return HouseholdSummary(
        month_year=month_year,
        loans_outstanding_cents=_totals((loan.currency, loan.remaining_cents) for loan in loans),
        owed_to_savings_cents=_totals(
            (w.currency, max(0, w.withdrawn_cents - w.paid_back_cents)) for w in withdrawals
        ),
        due_this_month_cents=_totals((i.currency, i.amount_cents) for i in due_items),
        unpaid_this_month_cents=_totals((i.currency, i.amount_cents) for i in unpaid),
        unpaid_item_count=len(unpaid),
    )
