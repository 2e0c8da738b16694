"""Monthly settlement view over bills and loan installments"""

import time
from typing import List
from sqlalchemy.orm import Session
from household_ledger.domain.exceptions import (
    InstallmentReversalError,
    NotFoundError,
)
from household_ledger.domain.models import BILL, LOAN, DueItem, HouseholdSummary
from household_ledger.domain.settlement import build_settlement_view, bill_payment_id
from household_ledger.domain.summary import summarize_household
from household_ledger.infrastructure.database.repositories import (
    BillPaymentRepository,
    BillRepository,
    LoanPaymentRepository,
    LoanRepository,
    SavingsRepository,
)
from household_ledger.infrastructure.observability.logging import log_due_item_paid, log_settlement_view
from household_ledger.infrastructure.observability.metrics import record_due_item_paid, settlement_view_counter
from household_ledger.services.bills import PaymentTrackerService
from household_ledger.services.loans import LoanService
from household_ledger.utils.date_utils import parse_month_year


class SettlementService:
    """What a household owes in a month, and marking it paid"""

    def __init__(self, db: Session):
        self.db = db
        self.bills = BillRepository(db)
        self.bill_payments = BillPaymentRepository(db)
        self.loans = LoanRepository(db)
        self.loan_payments = LoanPaymentRepository(db)
        self.savings = SavingsRepository(db)
        self.tracker = PaymentTrackerService(db)
        self.loan_service = LoanService(db)

    def get_settlement_view(self, household_id: str, month_year: str) -> List[DueItem]:
        """
        Merged, status-annotated due list for a household and month.

        Flow:
        1. Provision missing bill payment records for the month
        2. Join active bills with their month records
        3. Join active loans carrying an installment with the month's tagged payments
        4. Sort by due day, bills before loans on ties
        """
        start_time = time.time()
        self.tracker.ensure_monthly_records(household_id, month_year)

        items = build_settlement_view(
            month_year,
            bills=self.bills.list_active_bills(household_id),
            bill_payments=self.bill_payments.get_payments_for_month(household_id, month_year),
            loans=self.loans.list_active_loans(household_id),
            loan_payments=self.loan_payments.get_payments_for_month(household_id, month_year),
        )

        duration_ms = (time.time() - start_time) * 1000
        settlement_view_counter.inc()
        log_settlement_view(
            household_id,
            month_year,
            item_count=len(items),
            unpaid_count=sum(1 for item in items if not item.is_paid),
            duration_ms=duration_ms,
        )
        return items

    def set_item_paid(self, household_id: str, month_year: str, kind: str, item_id: str, is_paid: bool) -> List[DueItem]:
        """
        Change the paid status of one due item and return the refreshed view.

        Bills toggle freely between paid and unpaid. A loan installment can only
        go from unpaid to paid: paying records an installment-sized ledger
        payment tagged with the month, which also pays the balance down.

        Raises:
            NotFoundError: Unknown bill/loan, another household's item, or a loan without installment
            InstallmentReversalError: Loan item marked unpaid
            InstallmentAlreadyPaidError: Loan item already paid this month
        """
        parse_month_year(month_year)

        if kind == BILL:
            self._set_bill_paid(household_id, month_year, item_id, is_paid)
        elif kind == LOAN:
            self._pay_installment(household_id, month_year, item_id, is_paid)
        else:
            raise ValueError(f"Unknown due item kind: {kind!r}")

        record_due_item_paid(kind, is_paid)
        log_due_item_paid(household_id, month_year, kind, item_id, is_paid)
        return self.get_settlement_view(household_id, month_year)

    def _set_bill_paid(self, household_id: str, month_year: str, bill_id: str, is_paid: bool) -> None:
        bill = self.bills.get_bill_by_id(bill_id)
        if bill is None or bill.household_id != household_id:
            raise NotFoundError("Bill", bill_id)

        # Record may be missing if the month was never viewed
        self.bill_payments.create_payment_if_absent(bill, month_year)
        self.tracker.set_paid_status(bill_payment_id(bill_id, month_year), is_paid)

    def _pay_installment(self, household_id: str, month_year: str, loan_id: str, is_paid: bool) -> None:
        if not is_paid:
            raise InstallmentReversalError("Loan installments cannot be marked unpaid")

        loan = self.loans.get_loan_by_id(loan_id)
        if loan is None or loan.household_id != household_id:
            raise NotFoundError("Loan", loan_id)
        if (loan.monthly_installment_cents or 0) <= 0:
            raise NotFoundError("Installment", loan_id)

        self.loan_service.record_loan_payment(
            loan_id=loan_id,
            household_id=household_id,
            amount_cents=loan.monthly_installment_cents,
            currency=loan.currency,
            note=f"Installment {month_year}",
            month_year=month_year,
            once_per_month=True,
        )

    def get_summary(self, household_id: str, month_year: str) -> HouseholdSummary:
        """Dashboard totals per currency for the month"""
        items = self.get_settlement_view(household_id, month_year)
        return summarize_household(
            month_year,
            items,
            loans=self.loans.list_active_loans(household_id),
            withdrawals=self.savings.list_outstanding_withdrawals(household_id),
        )
