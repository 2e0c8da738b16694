"""Unit tests for the monthly settlement merge"""

from datetime import date, datetime
from household_ledger.domain.settlement import bill_payment_id, build_settlement_view
from household_ledger.infrastructure.database.models import BillPayment, Loan, LoanPayment, RecurringBill


def make_bill(bill_id: str, day: int, name: str = "Bill", amount_cents: int = 1000) -> RecurringBill:
    return RecurringBill(
        id=bill_id,
        household_id="h1",
        owner_id="member_a",
        name=name,
        amount_cents=amount_cents,
        currency="EUR",
        category="Utilities",
        day_of_month=day,
        is_active=True,
    )


def make_loan(loan_id: str, installment_cents, payment_day, name: str = "Loan") -> Loan:
    return Loan(
        id=loan_id,
        household_id="h1",
        owner_id="member_b",
        name=name,
        lender="Bank",
        original_cents=500000,
        remaining_cents=400000,
        currency="EUR",
        interest_rate=3.0,
        monthly_installment_cents=installment_cents,
        payment_day=payment_day,
    )


def make_loan_payment(payment_id: str, loan_id: str, amount_cents: int, paid_at: datetime) -> LoanPayment:
    return LoanPayment(
        id=payment_id,
        loan_id=loan_id,
        household_id="h1",
        amount_cents=amount_cents,
        currency="EUR",
        note="",
        month_year="2024-03",
        paid_at=paid_at,
    )


def test_bill_payment_id_is_deterministic():
    """Test the record key is exactly bill id + underscore + month"""
    assert bill_payment_id("abc", "2024-03") == "abc_2024-03"
    assert bill_payment_id("abc", "2024-03") == bill_payment_id("abc", "2024-03")
    assert bill_payment_id("abc", "2024-04") != bill_payment_id("abc", "2024-03")


def test_items_sorted_by_due_day_with_bills_before_loans_on_ties():
    """Test stable ordering: bills win ties with loans on the same day"""
    bills = [make_bill("b20", 20), make_bill("b10", 10)]
    loans = [make_loan("l10", 5000, 10), make_loan("l1", 5000, 1)]

    items = build_settlement_view("2024-03", bills, [], loans, [])

    assert [(i.kind, i.item_id, i.due_day) for i in items] == [
        ("loan", "l1", 1),
        ("bill", "b10", 10),
        ("loan", "l10", 10),
        ("bill", "b20", 20),
    ]


def test_bill_status_comes_from_month_record():
    """Test bill items pick up paid flag and timestamp from their record"""
    paid_at = datetime(2024, 3, 4, 9, 30)
    bill = make_bill("b1", 5, name="Electric", amount_cents=8000)
    record = BillPayment(
        id="b1_2024-03",
        bill_id="b1",
        household_id="h1",
        amount_cents=7000,  # Snapshot differs from current amount
        currency="EUR",
        month_year="2024-03",
        is_paid=True,
        paid_at=paid_at,
    )

    [item] = build_settlement_view("2024-03", [bill], [record], [], [])

    assert item.kind == "bill"
    assert item.payment_id == "b1_2024-03"
    assert item.amount_cents == 8000
    assert item.is_paid is True
    assert item.paid_at == paid_at


def test_bill_without_record_is_unpaid():
    """Test a missing record defaults to unpaid with the derived key"""
    [item] = build_settlement_view("2024-03", [make_bill("b1", 5)], [], [], [])

    assert item.is_paid is False
    assert item.paid_at is None
    assert item.payment_id == "b1_2024-03"


def test_loan_item_shows_installment_not_payment_amount():
    """Test partial or extra payments do not change the displayed amount due"""
    loan = make_loan("l1", 15000, 10, name="Car")
    payment = make_loan_payment("p1", "l1", 20000, datetime(2024, 3, 9))

    [item] = build_settlement_view("2024-03", [], [], [loan], [payment])

    assert item.name == "Car (Installment)"
    assert item.category == "Loan"
    assert item.amount_cents == 15000
    assert item.is_paid is True
    assert item.payment_id == "p1"


def test_earliest_tagged_payment_sets_paid_at():
    """Test several payments for one month resolve to the first one"""
    loan = make_loan("l1", 15000, 10)
    first = make_loan_payment("p1", "l1", 15000, datetime(2024, 3, 2))
    second = make_loan_payment("p2", "l1", 15000, datetime(2024, 3, 20))

    [item] = build_settlement_view("2024-03", [], [], [loan], [first, second])

    assert item.payment_id == "p1"
    assert item.paid_at == datetime(2024, 3, 2)


def test_loans_without_installment_are_skipped():
    """Test loans with no or zero installment never appear"""
    loans = [make_loan("none", None, 10), make_loan("zero", 0, 10), make_loan("l1", 5000, None)]

    items = build_settlement_view("2024-03", [], [], loans, [])

    assert [i.item_id for i in items] == ["l1"]
    assert items[0].due_day == 1  # Defaults to the 1st when no payment day is set
    assert items[0].is_paid is False
    assert items[0].payment_id is None


def test_due_date_clamps_to_end_of_month():
    """Test a bill due on the 31st falls on the last day of February"""
    [item] = build_settlement_view("2024-02", [make_bill("b1", 31)], [], [], [])

    assert item.due_day == 31
    assert item.due_date == date(2024, 2, 29)
