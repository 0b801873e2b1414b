from __future__ import annotations
from datetime import datetime, UTC
from typing import Optional
from uuid import UUID, uuid4
from sqlalchemy import CheckConstraint
from sqlmodel import Field, SQLModel

class Account(SQLModel, table=True):
    __table_args__ = (CheckConstraint("balance >= 0", name="ck_account_balance_non_negative"),)

    id: UUID = Field(default_factory=uuid4, primary_key=True, index=True)
    first_name: str
    last_name: str
    email: str = Field(unique=True, index=True)
    phone: str = Field(unique=True, index=True)
    bvn: str = Field(unique=True, index=True)
    password_hash: str
    pin_hash: str
    balance: int = Field(default=0, ge=0)
    last_activity: Optional[datetime] = None
    otp_hash: Optional[str] = None
    otp_expires_at: Optional[datetime] = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

class LinkedAccount(SQLModel, table=True):
    id: UUID = Field(default_factory=uuid4, primary_key=True)
    account_id: UUID = Field(foreign_key="account.id", index=True)
    position: int = 0
    account_number: str = Field(unique=True, index=True)
    account_name: str
    bank_name: str
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

class Transaction(SQLModel, table=True):
    __table_args__ = (
        CheckConstraint("amount > 0", name="ck_transaction_amount_positive"),
        CheckConstraint("fee >= 0", name="ck_transaction_fee_non_negative"),
    )

    id: UUID = Field(default_factory=uuid4, primary_key=True, index=True)
    account_id: UUID = Field(foreign_key="account.id", index=True)
    kind: str
    amount: int
    fee: int = 0
    reference: str = Field(unique=True, index=True)
    status: str = "completed"
    description: Optional[str] = None
    recipient_account_number: Optional[str] = None
    recipient_account_name: Optional[str] = None
    recipient_bank_name: Optional[str] = None
    bill_kind: Optional[str] = None
    bill_provider: Optional[str] = None
    bill_phone: Optional[str] = None
    bill_meter_number: Optional[str] = None
    bill_smartcard_number: Optional[str] = None
    bill_plan: Optional[str] = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC), index=True)
