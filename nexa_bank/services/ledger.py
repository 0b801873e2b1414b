from __future__ import annotations

import logging
import random
import re
import time
from typing import Any, Optional
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session

from ..core.config import LedgerPolicy
from ..core.errors import (
    AccountNotFoundError,
    BelowMinimumError,
    CatalogEntryNotFoundError,
    InsufficientFundsError,
    InvalidCredentialError,
    InvalidPhoneNumberError,
    InvalidPlanError,
    InvalidProviderError,
    InvalidRecipientError,
    ReferenceUnavailableError,
    TransactionNotFoundError,
)
from ..core.money import to_minor
from ..core.security import CredentialVerifier
from ..models import (
    AccountModel,
    AirtimeRequest,
    BillPayment,
    CableBillPayment,
    DataBillPayment,
    ElectricityBillPayment,
    TransactionModel,
    TransactionResponse,
    TransferRequest,
    TransferResponse,
    UserResponse,
)
from .catalog import CatalogEntry, CatalogProvider
from .receipts import ReceiptRenderer
from .repository import AccountRepository


logger = logging.getLogger(__name__)

PHONE_NUMBER = re.compile(r"[0-9]{11}")


def generate_reference(prefix: str) -> str:
    """Build ``<PREFIX>-<unix millis>-<4-digit random>``."""
    timestamp = int(time.time() * 1000)
    return f"{prefix}-{timestamp}-{random.randint(0, 9999):04d}"


class RecipientDirectory:
    """Supplies a display name for a transfer recipient.

    Only the bank code is validated; account ownership is not checked with the
    receiving bank, so the name is synthesized.
    """

    def resolve(self, bank: CatalogEntry, account_number: str) -> str:
        return f"Recipient {random.randint(0, 999)}"


class LedgerService:
    """Moves money out of a single account.

    Every operation runs the same steps: verify the PIN, validate the request
    against the catalog and the current balance, then debit the account and
    append the transaction record in one database transaction. Nothing is
    written when a check fails.
    """

    def __init__(
        self,
        session: Session,
        verifier: CredentialVerifier,
        catalog: CatalogProvider,
        policy: LedgerPolicy,
        renderer: Optional[ReceiptRenderer] = None,
        directory: Optional[RecipientDirectory] = None,
        repository: Optional[AccountRepository] = None,
    ) -> None:
        self.session = session
        self.verifier = verifier
        self.catalog = catalog
        self.policy = policy
        self.renderer = renderer or ReceiptRenderer()
        self.directory = directory or RecipientDirectory()
        self.repository = repository or AccountRepository(session)

    # ------------------------------------------------------------------
    # Helper utilities
    # ------------------------------------------------------------------
    def _get_account(self, account_id: UUID) -> AccountModel:
        account = self.repository.get_account(account_id)
        if account is None:
            raise AccountNotFoundError(f"Account {account_id} not found")
        return account

    def _authorize(self, account_id: UUID, pin: str) -> AccountModel:
        account = self._get_account(account_id)
        if not self.verifier.verify(pin, account.pin_hash):
            logger.info("ledger.pin.rejected", extra={"account_id": str(account_id)})
            raise InvalidCredentialError("Invalid PIN")
        return account

    def _minor(self, amount) -> int:
        value = to_minor(amount, self.policy.minor_per_major)
        if value <= 0:
            raise BelowMinimumError("Amount is smaller than the currency's smallest unit")
        return value

    def _check_phone(self, phone: str) -> None:
        if not phone or not PHONE_NUMBER.fullmatch(phone):
            raise InvalidPhoneNumberError("Invalid phone number")

    def _ensure_affordable(self, account: AccountModel, total: int) -> None:
        if account.balance < total:
            raise InsufficientFundsError("Insufficient balance")

    def _debit_and_record(self, account_id: UUID, total_debit: int, **fields: Any) -> TransactionModel:
        """Debit ``total_debit`` and insert the transaction in one commit.

        The balance check is repeated inside the UPDATE itself, so a request
        racing on the same account cannot overdraw it. A clash on the unique
        reference rolls the whole unit back and retries with a new one.
        """
        for attempt in range(1, self.policy.reference_attempts + 1):
            reference = generate_reference(self.policy.reference_prefix)
            try:
                self.repository.update_balance(account_id, -total_debit)
                transaction = self.repository.add_transaction(
                    account_id=account_id,
                    reference=reference,
                    status="completed",
                    **fields,
                )
                self.session.commit()
            except IntegrityError:
                self.session.rollback()
                if not self.repository.reference_exists(reference):
                    raise
                logger.warning(
                    "ledger.reference.collision",
                    extra={"reference": reference, "attempt": attempt},
                )
                continue
            except Exception:
                self.session.rollback()
                raise

            self.session.refresh(transaction)
            return transaction

        raise ReferenceUnavailableError("Could not allocate a unique transaction reference")

    def _to_response(self, transaction: TransactionModel) -> TransactionResponse:
        return TransactionResponse.from_model(transaction, self.policy.minor_per_major)

    def _render(self, account_id: UUID, transaction: TransactionModel) -> str:
        account = self._get_account(account_id)
        profile = UserResponse.from_model(account, self.repository.list_linked_accounts(account_id))
        return self.renderer.render_base64(self._to_response(transaction), profile)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def transfer(self, account_id: UUID, payload: TransferRequest) -> TransferResponse:
        account = self._authorize(account_id, payload.pin)

        try:
            bank = self.catalog.lookup("banks", payload.recipient_bank)
        except CatalogEntryNotFoundError as exc:
            raise InvalidRecipientError("Invalid recipient bank") from exc

        amount = self._minor(payload.amount)
        fee = self.policy.transfer_fee
        total_debit = amount + fee
        self._ensure_affordable(account, total_debit)

        recipient_name = self.directory.resolve(bank, payload.recipient_account)
        transaction = self._debit_and_record(
            account_id,
            total_debit,
            kind="transfer",
            amount=amount,
            fee=fee,
            description=payload.description or f"Transfer to {recipient_name}",
            recipient_account_number=payload.recipient_account,
            recipient_account_name=recipient_name,
            recipient_bank_name=bank.name,
        )
        logger.info(
            "ledger.transfer",
            extra={
                "account_id": str(account_id),
                "reference": transaction.reference,
                "amount": amount,
                "fee": fee,
                "bank_code": bank.id,
            },
        )
        return TransferResponse(
            transaction=self._to_response(transaction),
            receipt=self._render(account_id, transaction),
        )

    def buy_airtime(self, account_id: UUID, payload: AirtimeRequest) -> TransactionResponse:
        account = self._authorize(account_id, payload.pin)

        try:
            telco = self.catalog.lookup("telcos", payload.network)
        except CatalogEntryNotFoundError as exc:
            raise InvalidProviderError("Invalid network provider") from exc
        self._check_phone(payload.phone)

        amount = self._minor(payload.amount)
        if amount < to_minor(self.policy.airtime_minimum, self.policy.minor_per_major):
            raise BelowMinimumError(
                f"Minimum airtime purchase is ₦{self.policy.airtime_minimum}"
            )
        self._ensure_affordable(account, amount)

        transaction = self._debit_and_record(
            account_id,
            amount,
            kind="airtime",
            amount=amount,
            fee=0,
            description=f"Airtime purchase for {payload.phone} ({telco.name})",
            bill_kind="airtime",
            bill_provider=telco.name,
            bill_phone=payload.phone,
        )
        logger.info(
            "ledger.airtime",
            extra={
                "account_id": str(account_id),
                "reference": transaction.reference,
                "amount": amount,
                "provider": telco.id,
            },
        )
        return self._to_response(transaction)

    def pay_bill(self, account_id: UUID, payload: BillPayment) -> TransactionResponse:
        account = self._authorize(account_id, payload.pin)

        try:
            bill_type = self.catalog.lookup("bill_types", payload.bill_type)
        except CatalogEntryNotFoundError as exc:
            raise InvalidProviderError("Invalid bill type") from exc
        try:
            provider = self.catalog.provider_for_bill(payload.bill_type, payload.provider)
        except CatalogEntryNotFoundError as exc:
            raise InvalidProviderError("Invalid provider for selected bill type") from exc

        details: dict[str, Any] = {"bill_kind": bill_type.id, "bill_provider": provider.name}
        if isinstance(payload, DataBillPayment):
            try:
                plan = self.catalog.lookup("data_plans", payload.plan)
            except CatalogEntryNotFoundError as exc:
                raise InvalidPlanError("Invalid data plan") from exc
            if plan.provider != provider.id:
                raise InvalidPlanError("Invalid data plan")
            self._check_phone(payload.account_number)

            # The plan price wins over whatever amount the caller sent.
            amount = plan.price
            description = f"Data purchase: {plan.name}"
            details.update(bill_plan=plan.name, bill_phone=payload.account_number)
        else:
            amount = self._minor(payload.amount)
            if amount < to_minor(self.policy.bill_minimum, self.policy.minor_per_major):
                raise BelowMinimumError(f"Minimum payment is ₦{self.policy.bill_minimum}")
            description = f"{bill_type.name} payment to {provider.name}"
            if isinstance(payload, ElectricityBillPayment):
                details["bill_meter_number"] = payload.account_number
            elif isinstance(payload, CableBillPayment):
                details["bill_smartcard_number"] = payload.account_number
            else:
                self._check_phone(payload.account_number)
                details["bill_phone"] = payload.account_number

        self._ensure_affordable(account, amount)
        transaction = self._debit_and_record(
            account_id,
            amount,
            kind="bill",
            amount=amount,
            fee=0,
            description=description,
            **details,
        )
        logger.info(
            "ledger.bill",
            extra={
                "account_id": str(account_id),
                "reference": transaction.reference,
                "amount": amount,
                "bill_type": bill_type.id,
                "provider": provider.id,
            },
        )
        return self._to_response(transaction)

    def get_receipt(self, account_id: UUID, transaction_id: UUID) -> str:
        transaction = self.repository.get_transaction(account_id, transaction_id)
        if transaction is None:
            raise TransactionNotFoundError("Transaction not found")
        return self._render(account_id, transaction)
