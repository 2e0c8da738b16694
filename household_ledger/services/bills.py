"""Recurring bills and their monthly payment records"""

import logging
from typing import List, Optional
from sqlalchemy.orm import Session
from household_ledger.domain.exceptions import NotFoundError
from household_ledger.infrastructure.database.models import BillPayment, RecurringBill
from household_ledger.infrastructure.database.repositories import BillPaymentRepository, BillRepository
from household_ledger.utils.date_utils import current_month_year, parse_month_year

UPDATABLE_BILL_FIELDS = ("name", "amount_cents", "currency", "category", "day_of_month", "owner_id")


class BillService:
    """Create, list, edit and retire recurring bills"""

    def __init__(self, db: Session):
        self.db = db
        self.bills = BillRepository(db)
        self.payments = BillPaymentRepository(db)

    def create_bill(
        self,
        household_id: str,
        owner_id: str,
        name: str,
        amount_cents: int,
        currency: str,
        category: str,
        day_of_month: int,
        month_year: Optional[str] = None,
    ) -> RecurringBill:
        """
        Persist a new active bill and its payment record for the current month,
        so the bill shows up as due straight away.

        Inputs are validated at the API boundary.
        """
        month_year = month_year or current_month_year()
        parse_month_year(month_year)

        bill = self.bills.create_bill(
            household_id=household_id,
            owner_id=owner_id,
            name=name,
            amount_cents=amount_cents,
            currency=currency,
            category=category,
            day_of_month=day_of_month,
        )
        self.payments.create_payment_if_absent(bill, month_year)
        self.db.commit()

        logging.info(
            "Bill created",
            extra={"household_id": household_id, "bill_id": bill.id, "month_year": month_year},
        )
        return bill

    def get_bill(self, bill_id: str) -> RecurringBill:
        bill = self.bills.get_bill_by_id(bill_id)
        if bill is None:
            raise NotFoundError("Bill", bill_id)
        return bill

    def list_active_bills(self, household_id: str) -> List[RecurringBill]:
        return self.bills.list_active_bills(household_id)

    def update_bill(self, bill_id: str, **changes) -> RecurringBill:
        """Edit bill fields; existing payment records keep their snapshot"""
        bill = self.get_bill(bill_id)
        for field_name, value in changes.items():
            if field_name not in UPDATABLE_BILL_FIELDS:
                raise ValueError(f"Bill field {field_name!r} cannot be updated")
            setattr(bill, field_name, value)
        self.db.commit()
        return bill

    def deactivate_bill(self, bill_id: str) -> RecurringBill:
        """Soft delete"""
        bill = self.get_bill(bill_id)
        self.bills.deactivate_bill(bill)
        self.db.commit()

        logging.info("Bill deactivated", extra={"household_id": bill.household_id, "bill_id": bill.id})
        return bill


class PaymentTrackerService:
    """Per-month paid/unpaid records for recurring bills"""

    def __init__(self, db: Session):
        self.db = db
        self.bills = BillRepository(db)
        self.payments = BillPaymentRepository(db)

    def ensure_monthly_records(self, household_id: str, month_year: str) -> int:
        """
        Create the month's payment record for every active bill that lacks one.

        Idempotent and safe to run concurrently: records are keyed by
        bill and month and inserted with ON CONFLICT DO NOTHING.

        Returns:
            Number of bills a record was provisioned for
        """
        parse_month_year(month_year)

        bills = self.bills.list_active_bills(household_id)
        existing_bill_ids = {p.bill_id for p in self.payments.get_payments_for_month(household_id, month_year)}
        missing = [bill for bill in bills if bill.id not in existing_bill_ids]

        for bill in missing:
            self.payments.create_payment_if_absent(bill, month_year)
        self.db.commit()

        if missing:
            logging.info(
                "Monthly bill records provisioned",
                extra={"household_id": household_id, "month_year": month_year, "records_created": len(missing)},
            )
        return len(missing)

    def set_paid_status(self, payment_id: str, is_paid: bool) -> BillPayment:
        """Mark a record paid (stamping paid_at) or unpaid (clearing it)"""
        payment = self.payments.get_payment_by_id(payment_id)
        if payment is None:
            raise NotFoundError("BillPayment", payment_id)
        self.payments.set_paid_status(payment, is_paid)
        self.db.commit()
        return payment
