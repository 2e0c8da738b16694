"""Monthly settlement - merge bills and loan installments into one due list"""

from typing import Dict, Iterable, List
from household_ledger.domain.models import BILL, LOAN, DueItem
from household_ledger.utils.date_utils import due_date_for

LOAN_CATEGORY = "Loan"
DEFAULT_PAYMENT_DAY = 1


def bill_payment_id(bill_id: str, month_year: str) -> str:
    """Deterministic key of the payment record for one bill in one month"""
    return f"{bill_id}_{month_year}"


def installment_name(loan_name: str) -> str:
    return f"{loan_name} (Installment)"


def build_settlement_view(
    month_year: str,
    bills: Iterable,
    bill_payments: Iterable,
    loans: Iterable,
    loan_payments: Iterable,
) -> List[DueItem]:
    """
    Reconcile a month's bills and loan installments.

    Args:
        month_year: Month token the records belong to
        bills: Active recurring bills
        bill_payments: Payment records for the month (any household bills)
        loans: Active loans; those without a positive installment are skipped
        loan_payments: Loan payments tagged with the month, oldest first

    Returns:
        Due items sorted by due day. Sorting is stable over bills followed by
        loans, so on equal days bills come first.

    A loan item shows the loan's current installment as its amount, whatever
    was actually paid; it is paid as soon as any tagged payment exists and
    the earliest such payment supplies paid_at.
    """
    payments_by_bill = {p.bill_id: p for p in bill_payments}

    payments_by_loan: Dict[str, object] = {}
    for payment in loan_payments:
        payments_by_loan.setdefault(payment.loan_id, payment)

    items: List[DueItem] = []

    for bill in bills:
        record = payments_by_bill.get(bill.id)
        items.append(
            DueItem(
                kind=BILL,
                item_id=bill.id,
                payment_id=record.id if record else bill_payment_id(bill.id, month_year),
                household_id=bill.household_id,
                owner_id=bill.owner_id,
                name=bill.name,
                amount_cents=bill.amount_cents,
                currency=bill.currency,
                category=bill.category,
                due_day=bill.day_of_month,
                due_date=due_date_for(month_year, bill.day_of_month),
                is_paid=bool(record and record.is_paid),
                paid_at=record.paid_at if record else None,
            )
        )

    for loan in loans:
        if (loan.monthly_installment_cents or 0) <= 0:
            continue
        payment = payments_by_loan.get(loan.id)
        due_day = loan.payment_day or DEFAULT_PAYMENT_DAY
        items.append(
            DueItem(
                kind=LOAN,
                item_id=loan.id,
                payment_id=payment.id if payment else None,
                household_id=loan.household_id,
                owner_id=loan.owner_id,
                name=installment_name(loan.name),
                amount_cents=loan.monthly_installment_cents,
                currency=loan.currency,
                category=LOAN_CATEGORY,
                due_day=due_day,
                due_date=due_date_for(month_year, due_day),
                is_paid=payment is not None,
                paid_at=payment.paid_at if payment else None,
            )
        )

    return sorted(items, key=lambda item: item.due_day)
