"""SQLAlchemy ORM models for household finance records"""

import uuid
from datetime import datetime, timezone
from sqlalchemy import Column, String, BigInteger, Boolean, Float, DateTime, Integer, Text, Index
from sqlalchemy.orm import declarative_base
from sqlalchemy.sql import func

Base = declarative_base()


def generate_id() -> str:
    return str(uuid.uuid4())


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class RecurringBill(Base):
    """Standing monthly obligation, soft-deleted via is_active"""

    __tablename__ = "recurring_bills"
    __table_args__ = (
        Index("ix_recurring_bills_household_active_day", "household_id", "is_active", "day_of_month"),
    )

    id = Column(Text, primary_key=True, default=generate_id)
    household_id = Column(Text, nullable=False, index=True)
    owner_id = Column(Text, nullable=False)
    name = Column(Text, nullable=False)
    amount_cents = Column(BigInteger, nullable=False)
    currency = Column(String(3), nullable=False)
    category = Column(Text, nullable=False, default="Other")
    day_of_month = Column(Integer, nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())


class BillPayment(Base):
    """Paid/unpaid tracking record, keyed by "{bill_id}_{month_year}" """

    __tablename__ = "bill_payments"
    __table_args__ = (
        Index("ix_bill_payments_household_month", "household_id", "month_year"),
    )

    id = Column(Text, primary_key=True)
    bill_id = Column(Text, nullable=False, index=True)
    household_id = Column(Text, nullable=False)
    amount_cents = Column(BigInteger, nullable=False)  # Snapshot at creation
    currency = Column(String(3), nullable=False)
    month_year = Column(String(7), nullable=False)
    is_paid = Column(Boolean, nullable=False, default=False)
    paid_at = Column(DateTime(timezone=True), nullable=True)


class Loan(Base):
    """Debt with a shrinking balance; version guards concurrent balance writes"""

    __tablename__ = "loans"
    __table_args__ = (
        Index("ix_loans_household_remaining", "household_id", "remaining_cents"),
    )

    id = Column(Text, primary_key=True, default=generate_id)
    household_id = Column(Text, nullable=False, index=True)
    owner_id = Column(Text, nullable=False)
    name = Column(Text, nullable=False)
    lender = Column(Text, nullable=False, default="")
    original_cents = Column(BigInteger, nullable=False)
    remaining_cents = Column(BigInteger, nullable=False)
    currency = Column(String(3), nullable=False)
    interest_rate = Column(Float, nullable=False, default=0.0)
    monthly_installment_cents = Column(BigInteger, nullable=True)
    payment_day = Column(Integer, nullable=True)
    version = Column(Integer, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    __mapper_args__ = {"version_id_col": version}


class LoanPayment(Base):
    """Append-only ledger entry; month_year set only for installment payments"""

    __tablename__ = "loan_payments"
    __table_args__ = (
        Index("ix_loan_payments_household_month", "household_id", "month_year"),
    )

    id = Column(Text, primary_key=True, default=generate_id)
    loan_id = Column(Text, nullable=False, index=True)  # No FK: loans are hard-deleted
    household_id = Column(Text, nullable=False)
    amount_cents = Column(BigInteger, nullable=False)
    currency = Column(String(3), nullable=False)
    note = Column(Text, nullable=False, default="")
    month_year = Column(String(7), nullable=True)
    paid_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)


class SavingsWithdrawal(Base):
    """Money taken out of savings that is owed back"""

    __tablename__ = "savings_withdrawals"
    __table_args__ = (
        Index("ix_savings_withdrawals_household_open", "household_id", "is_fully_paid_back", "withdrawn_at"),
    )

    id = Column(Text, primary_key=True, default=generate_id)
    household_id = Column(Text, nullable=False, index=True)
    owner_id = Column(Text, nullable=False)
    description = Column(Text, nullable=False)
    withdrawn_cents = Column(BigInteger, nullable=False)
    paid_back_cents = Column(BigInteger, nullable=False, default=0)
    currency = Column(String(3), nullable=False)
    is_fully_paid_back = Column(Boolean, nullable=False, default=False)
    version = Column(Integer, nullable=False)
    withdrawn_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    __mapper_args__ = {"version_id_col": version}


class SavingsPayback(Base):
    """Append-only repayment towards a savings withdrawal"""

    __tablename__ = "savings_paybacks"

    id = Column(Text, primary_key=True, default=generate_id)
    withdrawal_id = Column(Text, nullable=False, index=True)
    household_id = Column(Text, nullable=False)
    amount_cents = Column(BigInteger, nullable=False)
    currency = Column(String(3), nullable=False)
    paid_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
