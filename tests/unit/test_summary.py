"""Unit tests for household dashboard totals"""

from datetime import date
from household_ledger.domain.models import DueItem
from household_ledger.domain.summary import payback_progress, summarize_household
from household_ledger.infrastructure.database.models import Loan, SavingsWithdrawal


def make_item(currency: str, amount_cents: int, is_paid: bool) -> DueItem:
    return DueItem(
        kind="bill",
        item_id=f"{currency}-{amount_cents}",
        payment_id=None,
        household_id="h1",
        owner_id="member_a",
        name="Bill",
        amount_cents=amount_cents,
        currency=currency,
        category="Other",
        due_day=1,
        due_date=date(2024, 3, 1),
        is_paid=is_paid,
    )


def test_payback_progress():
    assert payback_progress(SavingsWithdrawal(withdrawn_cents=20000, paid_back_cents=5000)) == 25
    assert payback_progress(SavingsWithdrawal(withdrawn_cents=30000, paid_back_cents=10000)) == 33
    assert payback_progress(SavingsWithdrawal(withdrawn_cents=0, paid_back_cents=0)) == 100


def test_summarize_household_keeps_currencies_apart():
    """Test totals are grouped per currency without conversion"""
    items = [
        make_item("EUR", 8000, is_paid=True),
        make_item("EUR", 15000, is_paid=False),
        make_item("HUF", 1200000, is_paid=False),
    ]
    loans = [
        Loan(currency="EUR", remaining_cents=300000),
        Loan(currency="HUF", remaining_cents=50000000),
        Loan(currency="EUR", remaining_cents=20000),
    ]
    withdrawals = [
        SavingsWithdrawal(currency="EUR", withdrawn_cents=50000, paid_back_cents=10000),
        SavingsWithdrawal(currency="EUR", withdrawn_cents=10000, paid_back_cents=12000),  # Overpaid
    ]

    summary = summarize_household("2024-03", items, loans, withdrawals)

    assert summary.month_year == "2024-03"
    assert summary.loans_outstanding_cents == {"EUR": 320000, "HUF": 50000000}
    assert summary.owed_to_savings_cents == {"EUR": 40000}
    assert summary.due_this_month_cents == {"EUR": 23000, "HUF": 1200000}
    assert summary.unpaid_this_month_cents == {"EUR": 15000, "HUF": 1200000}
    assert summary.unpaid_item_count == 2


def test_summarize_empty_household():
    summary = summarize_household("2024-03", [], [], [])

    assert summary.loans_outstanding_cents == {}
    assert summary.unpaid_item_count == 0
