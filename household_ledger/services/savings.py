"""Savings withdrawals that are paid back to oneself"""

import logging
from typing import List, Optional
from sqlalchemy.orm import Session
from household_ledger.config import settings
from household_ledger.domain.exceptions import ConcurrentUpdateError, NotFoundError
from household_ledger.infrastructure.database.models import SavingsPayback, SavingsWithdrawal
from household_ledger.infrastructure.database.repositories import SavingsRepository
from household_ledger.infrastructure.observability.metrics import (
    concurrent_update_retry_counter,
    ledger_payment_counter,
)


class SavingsService:
    def __init__(self, db: Session, max_retries: Optional[int] = None):
        self.db = db
        self.savings = SavingsRepository(db)
        self.max_retries = settings.balance_update_max_retries if max_retries is None else max_retries

    def create_withdrawal(
        self,
        household_id: str,
        owner_id: str,
        description: str,
        withdrawn_cents: int,
        currency: str,
    ) -> SavingsWithdrawal:
        withdrawal = self.savings.create_withdrawal(
            household_id=household_id,
            owner_id=owner_id,
            description=description,
            withdrawn_cents=withdrawn_cents,
            currency=currency,
        )
        self.db.commit()
        return withdrawal

    def get_withdrawal(self, withdrawal_id: str) -> SavingsWithdrawal:
        withdrawal = self.savings.get_withdrawal_by_id(withdrawal_id)
        if withdrawal is None:
            raise NotFoundError("SavingsWithdrawal", withdrawal_id)
        return withdrawal

    def list_outstanding_withdrawals(self, household_id: str) -> List[SavingsWithdrawal]:
        return self.savings.list_outstanding_withdrawals(household_id)

    def list_all_withdrawals(self, household_id: str) -> List[SavingsWithdrawal]:
        return self.savings.list_all_withdrawals(household_id)

    def delete_withdrawal(self, withdrawal_id: str) -> None:
        withdrawal = self.get_withdrawal(withdrawal_id)
        self.savings.delete_withdrawal(withdrawal)
        self.db.commit()

    def record_payback(
        self,
        withdrawal_id: str,
        household_id: str,
        amount_cents: int,
        currency: str,
    ) -> SavingsPayback:
        """Same read-stage-write-commit cycle as loan payments, retried on version conflicts"""
        attempts = self.max_retries + 1
        for attempt in range(1, attempts + 1):
            withdrawal = self.get_withdrawal(withdrawal_id)
            payback = self.savings.add_payback(withdrawal_id, household_id, amount_cents, currency)
            try:
                self.savings.apply_payback(withdrawal, amount_cents)
                self.db.commit()
            except ConcurrentUpdateError:
                self.db.rollback()
                concurrent_update_retry_counter.labels(entity="savings_withdrawal").inc()
                logging.warning(
                    "Withdrawal changed concurrently, retrying payback",
                    extra={"withdrawal_id": withdrawal_id, "attempt": attempt, "step": "payback_retry"},
                )
                if attempt == attempts:
                    raise
                continue

            ledger_payment_counter.labels(ledger="savings").inc()
            return payback

    def list_paybacks(self, withdrawal_id: str) -> List[SavingsPayback]:
        return self.savings.get_paybacks(withdrawal_id)
