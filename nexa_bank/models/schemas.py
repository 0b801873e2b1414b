from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Annotated, Literal, Optional, Union
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field, PlainSerializer

from ..core.money import to_major
from .db import Account, LinkedAccount, Transaction

MajorAmount = Annotated[
    Decimal,
    PlainSerializer(float, return_type=float, when_used="json"),
]

PIN_PATTERN = r"^[0-9]{4}$"
ELEVEN_DIGITS = r"^[0-9]{11}$"


# Requests --------------------------------------------------------------
class RegisterRequest(BaseModel):
    first_name: str = Field(..., min_length=1, max_length=50)
    last_name: str = Field(..., min_length=1, max_length=50)
    email: EmailStr
    phone: str = Field(..., pattern=ELEVEN_DIGITS, description="11-digit phone number")
    bvn: str = Field(..., pattern=ELEVEN_DIGITS, description="11-digit BVN")
    password: str = Field(..., min_length=6)
    pin: str = Field(..., pattern=PIN_PATTERN)

class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)

class ForgotPasswordRequest(BaseModel):
    email: EmailStr

class ResetPasswordRequest(BaseModel):
    email: EmailStr
    otp: str = Field(..., min_length=6, max_length=6)
    new_password: str = Field(..., min_length=6)

class ResetPinRequest(BaseModel):
    current_pin: str = Field(..., pattern=PIN_PATTERN)
    new_pin: str = Field(..., pattern=PIN_PATTERN)

class ProfileUpdate(BaseModel):
    first_name: Optional[str] = Field(default=None, min_length=1, max_length=50)
    last_name: Optional[str] = Field(default=None, min_length=1, max_length=50)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(default=None, pattern=ELEVEN_DIGITS)

class TransferRequest(BaseModel):
    amount: Decimal = Field(..., gt=0, description="Amount in major units (e.g. naira)")
    recipient_account: str = Field(..., min_length=1)
    recipient_bank: str = Field(..., min_length=1, description="Bank code")
    pin: str = Field(..., pattern=PIN_PATTERN)
    description: Optional[str] = None

class AirtimeRequest(BaseModel):
    network: str = Field(..., min_length=1)
    phone: str
    amount: Decimal = Field(..., gt=0)
    pin: str = Field(..., pattern=PIN_PATTERN)

class _BillPaymentBase(BaseModel):
    provider: str = Field(..., min_length=1)
    account_number: str = Field(..., min_length=1, description="Meter, smartcard or phone number")
    pin: str = Field(..., pattern=PIN_PATTERN)

class AirtimeBillPayment(_BillPaymentBase):
    bill_type: Literal["airtime"]
    amount: Decimal = Field(..., gt=0)

class DataBillPayment(_BillPaymentBase):
    bill_type: Literal["data"]
    plan: str = Field(..., min_length=1)
    amount: Optional[Decimal] = Field(default=None, description="Ignored; the plan sets the price")

class ElectricityBillPayment(_BillPaymentBase):
    bill_type: Literal["electricity"]
    amount: Decimal = Field(..., gt=0)

class CableBillPayment(_BillPaymentBase):
    bill_type: Literal["cable"]
    amount: Decimal = Field(..., gt=0)

BillPayment = Union[AirtimeBillPayment, DataBillPayment, ElectricityBillPayment, CableBillPayment]

BillPaymentRequest = Annotated[BillPayment, Field(discriminator="bill_type")]


# Responses -------------------------------------------------------------
class LinkedAccountResponse(BaseModel):
    account_number: str
    account_name: str
    bank_name: str

    @classmethod
    def from_model(cls, linked: LinkedAccount) -> "LinkedAccountResponse":
        return cls(
            account_number=linked.account_number,
            account_name=linked.account_name,
            bank_name=linked.bank_name,
        )

class UserResponse(BaseModel):
    id: UUID
    first_name: str
    last_name: str
    email: str
    phone: str
    accounts: list[LinkedAccountResponse]
    created_at: datetime

    @classmethod
    def from_model(cls, account: Account, linked: list[LinkedAccount]) -> "UserResponse":
        return cls(
            id=account.id,
            first_name=account.first_name,
            last_name=account.last_name,
            email=account.email,
            phone=account.phone,
            accounts=[LinkedAccountResponse.from_model(item) for item in linked],
            created_at=account.created_at,
        )

class AuthResponse(BaseModel):
    token: str
    user: UserResponse

class TokenResponse(BaseModel):
    token: str
    message: str

class MessageResponse(BaseModel):
    message: str

class BalanceResponse(BaseModel):
    balance: MajorAmount = Field(..., description="Balance in major units")
    accounts: list[LinkedAccountResponse]

class RecipientResponse(BaseModel):
    account_number: str
    account_name: str
    bank_name: str

class BillDetailsResponse(BaseModel):
    kind: str
    provider: str
    phone: Optional[str] = None
    meter_number: Optional[str] = None
    smartcard_number: Optional[str] = None
    plan: Optional[str] = None

class TransactionResponse(BaseModel):
    id: UUID
    kind: Literal["transfer", "deposit", "withdrawal", "airtime", "bill"]
    amount: MajorAmount
    fee: MajorAmount
    reference: str
    status: Literal["pending", "completed", "failed"]
    description: Optional[str] = None
    recipient: Optional[RecipientResponse] = None
    bill_details: Optional[BillDetailsResponse] = None
    created_at: datetime

    @classmethod
    def from_model(cls, tx: Transaction, minor_per_major: int = 100) -> "TransactionResponse":
        recipient = None
        if tx.recipient_account_number is not None:
            recipient = RecipientResponse(
                account_number=tx.recipient_account_number,
                account_name=tx.recipient_account_name or "",
                bank_name=tx.recipient_bank_name or "",
            )
        bill_details = None
        if tx.bill_kind is not None:
            bill_details = BillDetailsResponse(
                kind=tx.bill_kind,
                provider=tx.bill_provider or "",
                phone=tx.bill_phone,
                meter_number=tx.bill_meter_number,
                smartcard_number=tx.bill_smartcard_number,
                plan=tx.bill_plan,
            )
        return cls(
            id=tx.id,
            kind=tx.kind,
            amount=to_major(tx.amount, minor_per_major),
            fee=to_major(tx.fee, minor_per_major),
            reference=tx.reference,
            status=tx.status,
            description=tx.description,
            recipient=recipient,
            bill_details=bill_details,
            created_at=tx.created_at,
        )

class TransactionListResponse(BaseModel):
    count: int
    data: list[TransactionResponse]

class TransferResponse(BaseModel):
    transaction: TransactionResponse
    receipt: str = Field(..., description="Base64-encoded receipt document")

class ReceiptResponse(BaseModel):
    data: str
