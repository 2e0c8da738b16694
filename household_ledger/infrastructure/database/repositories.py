"""Data access layer for bills, loans and savings records"""

import logging
from datetime import datetime, timezone
from typing import Callable, List, Optional, TypeVar
from sqlalchemy import inspect
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import Session
from sqlalchemy.orm.attributes import flag_modified
from sqlalchemy.orm.exc import StaleDataError
from household_ledger.domain.exceptions import ConcurrentUpdateError, IndexUnavailableError
from household_ledger.domain.settlement import bill_payment_id
from household_ledger.infrastructure.database.models import (
    BillPayment,
    Loan,
    LoanPayment,
    RecurringBill,
    SavingsPayback,
    SavingsWithdrawal,
)
from household_ledger.infrastructure.observability.metrics import index_fallback_counter

T = TypeVar("T")

# Dialects with INSERT ... ON CONFLICT DO NOTHING
_CONFLICT_IGNORING_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}

# (database url, index name) pairs already seen in the catalog
_READY_INDEXES = set()


def require_index(db: Session, table: str, index_name: str) -> None:
    """Raise IndexUnavailableError until the index shows up in the database catalog"""
    key = (str(db.get_bind().url), index_name)
    if key in _READY_INDEXES:
        return
    if index_name not in {ix["name"] for ix in inspect(db.connection()).get_indexes(table)}:
        raise IndexUnavailableError(f"Index {index_name} on {table} is not available")
    _READY_INDEXES.add(key)


def query_with_fallback(
    db: Session,
    table: str,
    index_name: str,
    primary: Callable[[], List[T]],
    fallback: Callable[[], List[T]],
) -> List[T]:
    """
    Run the indexed query, or the scan + in-memory equivalent if the index is unavailable.

    Both callables must return the same rows in the same order; the fallback
    is a one-shot alternative, not a retry loop. Any other store error propagates unchanged.
    """
    try:
        require_index(db, table, index_name)
        return primary()
    except IndexUnavailableError as e:
        index_fallback_counter.labels(collection=table).inc()
        logging.warning(
            f"Index not ready, using fallback query: {e}",
            extra={"collection": table, "index": index_name, "step": "index_fallback"},
        )
        return fallback()


def _bill_sort_key(bill: RecurringBill):
    return (bill.day_of_month, bill.created_at, bill.id)


def _loan_sort_key(loan: Loan):
    return (-loan.remaining_cents, loan.created_at, loan.id)


class BillRepository:
    """Repository for recurring bill definitions"""

    def __init__(self, db: Session):
        self.db = db

    def create_bill(
        self,
        household_id: str,
        owner_id: str,
        name: str,
        amount_cents: int,
        currency: str,
        category: str,
        day_of_month: int,
    ) -> RecurringBill:
        """Persist an active bill"""
        bill = RecurringBill(
            household_id=household_id,
            owner_id=owner_id,
            name=name,
            amount_cents=amount_cents,
            currency=currency,
            category=category,
            day_of_month=day_of_month,
            is_active=True,
        )
        self.db.add(bill)
        self.db.flush()  # Get ID without committing
        return bill

    def get_bill_by_id(self, bill_id: str) -> Optional[RecurringBill]:
        """Fetch a bill regardless of its active flag"""
        return self.db.get(RecurringBill, bill_id)

    def list_active_bills(self, household_id: str) -> List[RecurringBill]:
        """Active bills ordered by due day"""
        return query_with_fallback(
            self.db,
            "recurring_bills",
            "ix_recurring_bills_household_active_day",
            lambda: self._query_active_bills(household_id),
            lambda: self._scan_active_bills(household_id),
        )

    def _query_active_bills(self, household_id: str) -> List[RecurringBill]:
        return (
            self.db.query(RecurringBill)
            .filter(RecurringBill.household_id == household_id, RecurringBill.is_active.is_(True))
            .order_by(RecurringBill.day_of_month.asc(), RecurringBill.created_at.asc(), RecurringBill.id.asc())
            .all()
        )

    def _scan_active_bills(self, household_id: str) -> List[RecurringBill]:
        bills = self.db.query(RecurringBill).filter(RecurringBill.household_id == household_id).all()
        return sorted((b for b in bills if b.is_active), key=_bill_sort_key)

    def deactivate_bill(self, bill: RecurringBill) -> RecurringBill:
        """Soft delete: payment records are left untouched"""
        bill.is_active = False
        self.db.flush()
        return bill


class BillPaymentRepository:
    """Repository for per-month bill payment records"""

    def __init__(self, db: Session):
        self.db = db

    def get_payment_by_id(self, payment_id: str) -> Optional[BillPayment]:
        return self.db.get(BillPayment, payment_id)

    def get_payments_for_month(self, household_id: str, month_year: str) -> List[BillPayment]:
        return (
            self.db.query(BillPayment)
            .filter(BillPayment.household_id == household_id, BillPayment.month_year == month_year)
            .all()
        )

    def create_payment_if_absent(self, bill: RecurringBill, month_year: str) -> str:
        """
        Insert the (bill, month) record unless it already exists.

        The primary key is derived from the bill and month, so concurrent
        callers converge on one record instead of racing on an existence check.
        """
        dialect = self.db.get_bind().dialect.name
        insert = _CONFLICT_IGNORING_INSERTS.get(dialect)
        if insert is None:
            raise RuntimeError(f"Idempotent insert is not supported on dialect {dialect!r}")

        payment_id = bill_payment_id(bill.id, month_year)
        stmt = (
            insert(BillPayment)
            .values(
                id=payment_id,
                bill_id=bill.id,
                household_id=bill.household_id,
                amount_cents=bill.amount_cents,
                currency=bill.currency,
                month_year=month_year,
                is_paid=False,
                paid_at=None,
            )
            .on_conflict_do_nothing(index_elements=[BillPayment.id])
        )
        self.db.execute(stmt)
        return payment_id

    def set_paid_status(self, payment: BillPayment, is_paid: bool) -> BillPayment:
        payment.is_paid = is_paid
        payment.paid_at = datetime.now(timezone.utc) if is_paid else None
        self.db.flush()
        return payment


class LoanRepository:
    """Repository for loans and their remaining balance"""

    def __init__(self, db: Session):
        self.db = db

    def create_loan(
        self,
        household_id: str,
        owner_id: str,
        name: str,
        lender: str,
        original_cents: int,
        currency: str,
        interest_rate: float,
        monthly_installment_cents: Optional[int] = None,
        payment_day: Optional[int] = None,
    ) -> Loan:
        """Persist a loan with its full amount outstanding"""
        loan = Loan(
            household_id=household_id,
            owner_id=owner_id,
            name=name,
            lender=lender,
            original_cents=original_cents,
            remaining_cents=original_cents,
            currency=currency,
            interest_rate=interest_rate,
            monthly_installment_cents=monthly_installment_cents,
            payment_day=payment_day,
        )
        self.db.add(loan)
        self.db.flush()
        return loan

    def get_loan_by_id(self, loan_id: str) -> Optional[Loan]:
        return self.db.get(Loan, loan_id)

    def list_active_loans(self, household_id: str) -> List[Loan]:
        """Loans with a balance left, largest balance first"""
        return query_with_fallback(
            self.db,
            "loans",
            "ix_loans_household_remaining",
            lambda: self._query_active_loans(household_id),
            lambda: self._scan_active_loans(household_id),
        )

    def _query_active_loans(self, household_id: str) -> List[Loan]:
        return (
            self.db.query(Loan)
            .filter(Loan.household_id == household_id, Loan.remaining_cents > 0)
            .order_by(Loan.remaining_cents.desc(), Loan.created_at.asc(), Loan.id.asc())
            .all()
        )

    def _scan_active_loans(self, household_id: str) -> List[Loan]:
        loans = self.db.query(Loan).filter(Loan.household_id == household_id).all()
        return sorted((loan for loan in loans if loan.remaining_cents > 0), key=_loan_sort_key)

    def list_all_loans(self, household_id: str) -> List[Loan]:
        """Every loan including paid-off ones, newest first"""
        return (
            self.db.query(Loan)
            .filter(Loan.household_id == household_id)
            .order_by(Loan.created_at.desc(), Loan.id.asc())
            .all()
        )

    def apply_payment(self, loan: Loan, amount_cents: int) -> Loan:
        """
        Decrease the balance, floored at zero.

        The UPDATE is conditional on the version read with the loan; if another
        writer got there first, ConcurrentUpdateError is raised and the caller
        must roll back and re-read.
        """
        loan_id = loan.id
        loan.remaining_cents = max(0, loan.remaining_cents - amount_cents)
        # Bump the version even when the balance is already 0
        flag_modified(loan, "remaining_cents")
        try:
            self.db.flush()
        except StaleDataError as e:
            raise ConcurrentUpdateError("Loan", loan_id) from e
        return loan

    def delete_loan(self, loan: Loan) -> None:
        """Hard delete; the payment ledger is kept"""
        self.db.delete(loan)
        self.db.flush()


class LoanPaymentRepository:
    """Repository for the append-only loan payment ledger"""

    def __init__(self, db: Session):
        self.db = db

    def add_payment(
        self,
        loan_id: str,
        household_id: str,
        amount_cents: int,
        currency: str,
        note: str = "",
        month_year: Optional[str] = None,
    ) -> LoanPayment:
        """Stage a ledger entry; it is flushed with the balance update"""
        payment = LoanPayment(
            loan_id=loan_id,
            household_id=household_id,
            amount_cents=amount_cents,
            currency=currency,
            note=note,
            month_year=month_year,
        )
        self.db.add(payment)
        return payment

    def get_payments_for_loan(self, loan_id: str) -> List[LoanPayment]:
        """Payment history, newest first"""
        return (
            self.db.query(LoanPayment)
            .filter(LoanPayment.loan_id == loan_id)
            .order_by(LoanPayment.paid_at.desc(), LoanPayment.id.asc())
            .all()
        )

    def get_payments_for_month(self, household_id: str, month_year: str) -> List[LoanPayment]:
        """Installment payments tagged with the month, oldest first"""
        return (
            self.db.query(LoanPayment)
            .filter(LoanPayment.household_id == household_id, LoanPayment.month_year == month_year)
            .order_by(LoanPayment.paid_at.asc(), LoanPayment.id.asc())
            .all()
        )

    def get_installment_payment(self, loan_id: str, month_year: str) -> Optional[LoanPayment]:
        """Earliest payment tagged as the loan's installment for the month"""
        return (
            self.db.query(LoanPayment)
            .filter(LoanPayment.loan_id == loan_id, LoanPayment.month_year == month_year)
            .order_by(LoanPayment.paid_at.asc(), LoanPayment.id.asc())
            .first()
        )


class SavingsRepository:
    """Repository for savings withdrawals and their paybacks"""

    def __init__(self, db: Session):
        self.db = db

    def create_withdrawal(
        self,
        household_id: str,
        owner_id: str,
        description: str,
        withdrawn_cents: int,
        currency: str,
    ) -> SavingsWithdrawal:
        withdrawal = SavingsWithdrawal(
            household_id=household_id,
            owner_id=owner_id,
            description=description,
            withdrawn_cents=withdrawn_cents,
            paid_back_cents=0,
            currency=currency,
            is_fully_paid_back=False,
        )
        self.db.add(withdrawal)
        self.db.flush()
        return withdrawal

    def get_withdrawal_by_id(self, withdrawal_id: str) -> Optional[SavingsWithdrawal]:
        return self.db.get(SavingsWithdrawal, withdrawal_id)

    def list_outstanding_withdrawals(self, household_id: str) -> List[SavingsWithdrawal]:
        """Withdrawals not yet fully paid back, most recent first"""
        return query_with_fallback(
            self.db,
            "savings_withdrawals",
            "ix_savings_withdrawals_household_open",
            lambda: self._query_outstanding(household_id),
            lambda: self._scan_outstanding(household_id),
        )

    def _query_outstanding(self, household_id: str) -> List[SavingsWithdrawal]:
        return (
            self.db.query(SavingsWithdrawal)
            .filter(
                SavingsWithdrawal.household_id == household_id,
                SavingsWithdrawal.is_fully_paid_back.is_(False),
            )
            .order_by(SavingsWithdrawal.withdrawn_at.desc(), SavingsWithdrawal.id.asc())
            .all()
        )

    def _scan_outstanding(self, household_id: str) -> List[SavingsWithdrawal]:
        withdrawals = self.db.query(SavingsWithdrawal).filter(SavingsWithdrawal.household_id == household_id).all()
        outstanding = sorted((w for w in withdrawals if not w.is_fully_paid_back), key=lambda w: w.id)
        return sorted(outstanding, key=lambda w: w.withdrawn_at, reverse=True)

    def list_all_withdrawals(self, household_id: str) -> List[SavingsWithdrawal]:
        return (
            self.db.query(SavingsWithdrawal)
            .filter(SavingsWithdrawal.household_id == household_id)
            .order_by(SavingsWithdrawal.withdrawn_at.desc(), SavingsWithdrawal.id.asc())
            .all()
        )

    def apply_payback(self, withdrawal: SavingsWithdrawal, amount_cents: int) -> SavingsWithdrawal:
        """Increase the paid-back amount under the same version check as loans"""
        withdrawal_id = withdrawal.id
        withdrawal.paid_back_cents = withdrawal.paid_back_cents + amount_cents
        withdrawal.is_fully_paid_back = withdrawal.paid_back_cents >= withdrawal.withdrawn_cents
        try:
            self.db.flush()
        except StaleDataError as e:
            raise ConcurrentUpdateError("SavingsWithdrawal", withdrawal_id) from e
        return withdrawal

    def delete_withdrawal(self, withdrawal: SavingsWithdrawal) -> None:
        self.db.delete(withdrawal)
        self.db.flush()

    def add_payback(self, withdrawal_id: str, household_id: str, amount_cents: int, currency: str) -> SavingsPayback:
        payback = SavingsPayback(
            withdrawal_id=withdrawal_id,
            household_id=household_id,
            amount_cents=amount_cents,
            currency=currency,
        )
        self.db.add(payback)
        return payback

    def get_paybacks(self, withdrawal_id: str) -> List[SavingsPayback]:
        """Payback history, newest first"""
        return (
            self.db.query(SavingsPayback)
            .filter(SavingsPayback.withdrawal_id == withdrawal_id)
            .order_by(SavingsPayback.paid_at.desc(), SavingsPayback.id.asc())
            .all()
        )
