from typing import Annotated, Any
from uuid import UUID

from fastapi import APIRouter, Body, Depends, Query, status

from ..core.dependencies import (
    get_account_service,
    get_catalog,
    get_current_account,
    get_ledger_service,
)
from ..models import (
    AccountModel,
    AirtimeRequest,
    AuthResponse,
    BalanceResponse,
    BillPayment,
    ForgotPasswordRequest,
    LoginRequest,
    MessageResponse,
    ProfileUpdate,
    ReceiptResponse,
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
from ..services import AccountService, CatalogProvider, LedgerService


auth_router = APIRouter(prefix="/api/auth", tags=["auth"])

@auth_router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
def register(
    payload: RegisterRequest,
    service: AccountService = Depends(get_account_service),
) -> AuthResponse:
    return service.register(payload)

@auth_router.post("/login", response_model=AuthResponse)
def login(
    payload: LoginRequest,
    service: AccountService = Depends(get_account_service),
) -> AuthResponse:
    return service.authenticate(payload)

@auth_router.get("/me", response_model=UserResponse)
def read_me(
    account: AccountModel = Depends(get_current_account),
    service: AccountService = Depends(get_account_service),
) -> UserResponse:
    profile = service.get_profile(account.id)
    service.touch_session(account.id)
    return profile

@auth_router.post("/forgotpassword", response_model=MessageResponse)
def forgot_password(
    payload: ForgotPasswordRequest,
    service: AccountService = Depends(get_account_service),
) -> MessageResponse:
    service.request_password_reset(payload)
    return MessageResponse(message="OTP sent to email")

@auth_router.put("/resetpassword", response_model=TokenResponse)
def reset_password(
    payload: ResetPasswordRequest,
    service: AccountService = Depends(get_account_service),
) -> TokenResponse:
    return service.reset_password(payload)

@auth_router.put("/resetpin", response_model=MessageResponse)
def reset_pin(
    payload: ResetPinRequest,
    account: AccountModel = Depends(get_current_account),
    service: AccountService = Depends(get_account_service),
) -> MessageResponse:
    service.reset_pin(account.id, payload)
    service.touch_session(account.id)
    return MessageResponse(message="PIN reset successful")


accounts_router = APIRouter(prefix="/api/accounts", tags=["accounts"])

@accounts_router.get("/balance", response_model=BalanceResponse)
def get_balance(
    account: AccountModel = Depends(get_current_account),
    service: AccountService = Depends(get_account_service),
) -> BalanceResponse:
    balance = service.get_balance(account.id)
    service.touch_session(account.id)
    return balance

@accounts_router.get("/transactions", response_model=TransactionListResponse)
def list_transactions(
    limit: int = Query(default=50, ge=1, le=200),
    account: AccountModel = Depends(get_current_account),
    service: AccountService = Depends(get_account_service),
) -> TransactionListResponse:
    history = service.list_transactions(account.id, limit=limit)
    service.touch_session(account.id)
    return history

@accounts_router.put("/profile", response_model=UserResponse)
def update_profile(
    payload: ProfileUpdate,
    account: AccountModel = Depends(get_current_account),
    service: AccountService = Depends(get_account_service),
) -> UserResponse:
    profile = service.update_profile(account.id, payload)
    service.touch_session(account.id)
    return profile


transactions_router = APIRouter(prefix="/api/transactions", tags=["transactions"])

@transactions_router.post("/transfer", response_model=TransferResponse)
def transfer(
    payload: TransferRequest,
    account: AccountModel = Depends(get_current_account),
    ledger: LedgerService = Depends(get_ledger_service),
    service: AccountService = Depends(get_account_service),
) -> TransferResponse:
    result = ledger.transfer(account.id, payload)
    service.touch_session(account.id)
    return result

@transactions_router.get("/banks", response_model=list[dict[str, Any]])
def list_banks(
    account: AccountModel = Depends(get_current_account),
    catalog: CatalogProvider = Depends(get_catalog),
) -> list[dict[str, Any]]:
    return [{"code": bank.id, "name": bank.name} for bank in catalog.entries("banks")]

@transactions_router.get("/{transaction_id}/receipt", response_model=ReceiptResponse)
def get_receipt(
    transaction_id: UUID,
    account: AccountModel = Depends(get_current_account),
    ledger: LedgerService = Depends(get_ledger_service),
    service: AccountService = Depends(get_account_service),
) -> ReceiptResponse:
    receipt = ledger.get_receipt(account.id, transaction_id)
    service.touch_session(account.id)
    return ReceiptResponse(data=receipt)


bills_router = APIRouter(prefix="/api/bills", tags=["bills"])

@bills_router.get("/options", response_model=dict[str, list[dict[str, Any]]])
def get_bill_options(
    account: AccountModel = Depends(get_current_account),
    catalog: CatalogProvider = Depends(get_catalog),
) -> dict[str, list[dict[str, Any]]]:
    return catalog.options()

@bills_router.post("/airtime", response_model=TransactionResponse)
def buy_airtime(
    payload: AirtimeRequest,
    account: AccountModel = Depends(get_current_account),
    ledger: LedgerService = Depends(get_ledger_service),
    service: AccountService = Depends(get_account_service),
) -> TransactionResponse:
    transaction = ledger.buy_airtime(account.id, payload)
    service.touch_session(account.id)
    return transaction

@bills_router.post("/pay", response_model=TransactionResponse)
def pay_bill(
    payload: Annotated[BillPayment, Body(discriminator="bill_type")],
    account: AccountModel = Depends(get_current_account),
    ledger: LedgerService = Depends(get_ledger_service),
    service: AccountService = Depends(get_account_service),
) -> TransactionResponse:
    transaction = ledger.pay_bill(account.id, payload)
    service.touch_session(account.id)
    return transaction

__all__ = ["auth_router", "accounts_router", "transactions_router", "bills_router"]
