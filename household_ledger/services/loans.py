"""Loans and the payment ledger that pays them down"""

import logging
from typing import List, Optional
from sqlalchemy.orm import Session
from household_ledger.config import settings
from household_ledger.domain.exceptions import ConcurrentUpdateError, InstallmentAlreadyPaidError, NotFoundError
from household_ledger.infrastructure.database.models import Loan, LoanPayment
from household_ledger.infrastructure.database.repositories import LoanPaymentRepository, LoanRepository
from household_ledger.infrastructure.observability.metrics import (
    concurrent_update_retry_counter,
    ledger_payment_counter,
)
from household_ledger.utils.date_utils import parse_month_year


class LoanService:
    """Loan registry and payment ledger"""

    def __init__(self, db: Session, max_retries: Optional[int] = None):
        self.db = db
        self.loans = LoanRepository(db)
        self.payments = LoanPaymentRepository(db)
        self.max_retries = settings.balance_update_max_retries if max_retries is None else max_retries

    def create_loan(
        self,
        household_id: str,
        owner_id: str,
        name: str,
        lender: str,
        original_cents: int,
        currency: str,
        interest_rate: float = 0.0,
        monthly_installment_cents: Optional[int] = None,
        payment_day: Optional[int] = None,
    ) -> Loan:
        loan = self.loans.create_loan(
            household_id=household_id,
            owner_id=owner_id,
            name=name,
            lender=lender,
            original_cents=original_cents,
            currency=currency,
            interest_rate=interest_rate,
            monthly_installment_cents=monthly_installment_cents,
            payment_day=payment_day,
        )
        self.db.commit()

        logging.info("Loan created", extra={"household_id": household_id, "loan_id": loan.id})
        return loan

    def get_loan(self, loan_id: str) -> Loan:
        loan = self.loans.get_loan_by_id(loan_id)
        if loan is None:
            raise NotFoundError("Loan", loan_id)
        return loan

    def list_active_loans(self, household_id: str) -> List[Loan]:
        return self.loans.list_active_loans(household_id)

    def list_all_loans(self, household_id: str) -> List[Loan]:
        return self.loans.list_all_loans(household_id)

    def delete_loan(self, loan_id: str) -> None:
        """Hard delete; recorded payments stay in the ledger"""
        loan = self.get_loan(loan_id)
        household_id = loan.household_id
        self.loans.delete_loan(loan)
        self.db.commit()

        logging.info("Loan deleted", extra={"household_id": household_id, "loan_id": loan_id})

    def record_loan_payment(
        self,
        loan_id: str,
        household_id: str,
        amount_cents: int,
        currency: str,
        note: str = "",
        month_year: Optional[str] = None,
        once_per_month: bool = False,
    ) -> LoanPayment:
        """
        Append a ledger entry and pay the loan balance down by the same amount.

        Flow:
        1. Read the loan (with its version)
        2. Stage the ledger entry
        3. Write max(0, remaining - amount) conditional on the version read
        4. Commit entry and balance together

        A version conflict rolls both back and restarts from step 1, at most
        max_retries times; after that ConcurrentUpdateError propagates.

        Passing month_year marks the payment as that month's installment.
        Without it the payment only reduces the balance. With once_per_month,
        every attempt first checks that no installment is recorded for the
        month yet and raises InstallmentAlreadyPaidError otherwise.
        """
        if month_year is not None:
            parse_month_year(month_year)
        elif once_per_month:
            raise ValueError("once_per_month requires month_year")

        attempts = self.max_retries + 1
        for attempt in range(1, attempts + 1):
            loan = self.get_loan(loan_id)
            if once_per_month and self.payments.get_installment_payment(loan_id, month_year) is not None:
                raise InstallmentAlreadyPaidError(f"Installment for {month_year} is already paid")
            payment = self.payments.add_payment(
                loan_id=loan_id,
                household_id=household_id,
                amount_cents=amount_cents,
                currency=currency,
                note=note,
                month_year=month_year,
            )
            try:
                self.loans.apply_payment(loan, amount_cents)
                self.db.commit()
            except ConcurrentUpdateError:
                self.db.rollback()
                concurrent_update_retry_counter.labels(entity="loan").inc()
                logging.warning(
                    "Loan balance changed concurrently, retrying payment",
                    extra={"loan_id": loan_id, "attempt": attempt, "step": "loan_payment_retry"},
                )
                if attempt == attempts:
                    raise
                continue

            ledger_payment_counter.labels(ledger="loan").inc()
            logging.info(
                "Loan payment recorded",
                extra={
                    "household_id": household_id,
                    "loan_id": loan_id,
                    "amount_cents": amount_cents,
                    "month_year": month_year,
                    "remaining_cents": loan.remaining_cents,
                },
            )
            return payment

    def list_loan_payments(self, loan_id: str) -> List[LoanPayment]:
        return self.payments.get_payments_for_loan(loan_id)
