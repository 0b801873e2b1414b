from .db import Account as AccountModel
from .db import LinkedAccount as LinkedAccountModel
from .db import Transaction as TransactionModel
from .schemas import (
    AirtimeBillPayment,
    AirtimeRequest,
    AuthResponse,
    BalanceResponse,
    BillDetailsResponse,
    BillPayment,
    BillPaymentRequest,
    CableBillPayment,
    DataBillPayment,
    ElectricityBillPayment,
    ForgotPasswordRequest,
    LinkedAccountResponse,
    LoginRequest,
    MessageResponse,
    ProfileUpdate,
    ReceiptResponse,
    RecipientResponse,
    RegisterRequest,
    ResetPasswordRequest,
    ResetPinRequest,
    TokenResponse,
    TransactionListResponse,
    TransactionResponse,
    TransferRequest,
    TransferResponse,
    UserResponse,
)

__all__ = [
    "AirtimeBillPayment",
    "AirtimeRequest",
    "AuthResponse",
    "BalanceResponse",
    "BillDetailsResponse",
    "BillPayment",
    "BillPaymentRequest",
    "CableBillPayment",
    "DataBillPayment",
    "ElectricityBillPayment",
    "ForgotPasswordRequest",
    "LinkedAccountResponse",
    "LoginRequest",
    "MessageResponse",
    "ProfileUpdate",
    "ReceiptResponse",
    "RecipientResponse",
    "RegisterRequest",
    "ResetPasswordRequest",
    "ResetPinRequest",
    "TokenResponse",
    "TransactionListResponse",
    "TransactionResponse",
    "TransferRequest",
    "TransferResponse",
    "UserResponse",
    "AccountModel",
    "LinkedAccountModel",
    "TransactionModel",
]
