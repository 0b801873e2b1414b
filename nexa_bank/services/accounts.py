from __future__ import annotations

import logging
import random
import secrets
from datetime import UTC, datetime, timedelta
from typing import Optional
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session

from ..core.config import Settings
from ..core.errors import (
    AccountNotFoundError,
    DuplicateIdentityError,
    InvalidCredentialError,
    ReferenceUnavailableError,
    SessionExpiredError,
)
from ..core.money import to_major, to_minor
from ..core.security import CredentialVerifier, SessionIssuer
from ..models import (
    AccountModel,
    AuthResponse,
    BalanceResponse,
    ForgotPasswordRequest,
    LinkedAccountResponse,
    LoginRequest,
    ProfileUpdate,
    RegisterRequest,
    ResetPasswordRequest,
    ResetPinRequest,
    TokenResponse,
    TransactionListResponse,
    TransactionResponse,
    UserResponse,
)
from .ledger import generate_reference
from .notifications import LoggingNotifier
from .repository import AccountRepository


logger = logging.getLogger(__name__)

ACCOUNT_NUMBER_ATTEMPTS = 10


def utcnow() -> datetime:
    return datetime.now(UTC)


def as_utc(value: datetime) -> datetime:
    # SQLite hands timestamps back without tzinfo.
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


class AccountService:
    """Registration, authentication and read access to account records."""

    def __init__(
        self,
        session: Session,
        verifier: CredentialVerifier,
        issuer: SessionIssuer,
        settings: Settings,
        notifier: Optional[LoggingNotifier] = None,
        repository: Optional[AccountRepository] = None,
    ) -> None:
        self.session = session
        self.verifier = verifier
        self.issuer = issuer
        self.settings = settings
        self.policy = settings.ledger_policy()
        self.notifier = notifier or LoggingNotifier()
        self.repository = repository or AccountRepository(session)

    # ------------------------------------------------------------------
    # Helper utilities
    # ------------------------------------------------------------------
    def _generate_account_number(self) -> str:
        for _ in range(ACCOUNT_NUMBER_ATTEMPTS):
            candidate = str(random.randint(1_000_000_000, 9_999_999_999))
            if not self.repository.account_number_exists(candidate):
                return candidate
        raise ReferenceUnavailableError("Could not allocate a unique account number")

    def _profile(self, account: AccountModel) -> UserResponse:
        linked = self.repository.list_linked_accounts(account.id)
        return UserResponse.from_model(account, linked)

    def _raise_on_identity_conflicts(self, payload: RegisterRequest) -> None:
        conflicts = self.repository.find_identity_conflicts(
            email=payload.email, phone=payload.phone, bvn=payload.bvn
        )
        if conflicts:
            raise DuplicateIdentityError(
                f"Duplicate field value entered: {', '.join(conflicts)}"
            )

    def _commit_identity_change(self) -> None:
        try:
            self.session.commit()
        except IntegrityError as exc:
            self.session.rollback()
            raise DuplicateIdentityError("Duplicate field value entered") from exc

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def register(self, payload: RegisterRequest) -> AuthResponse:
        self._raise_on_identity_conflicts(payload)

        opening_balance = to_minor(self.policy.opening_balance, self.policy.minor_per_major)
        password_hash = self.verifier.hash(payload.password)
        pin_hash = self.verifier.hash(payload.pin)

        for attempt in range(1, self.policy.reference_attempts + 1):
            reference = generate_reference(self.policy.welcome_prefix)
            try:
                account = self.repository.add_account(
                    first_name=payload.first_name.strip(),
                    last_name=payload.last_name.strip(),
                    email=payload.email,
                    phone=payload.phone,
                    bvn=payload.bvn,
                    password_hash=password_hash,
                    pin_hash=pin_hash,
                    last_activity=utcnow(),
                )
                self.repository.add_linked_account(
                    account_id=account.id,
                    account_number=self._generate_account_number(),
                    account_name=f"{account.first_name} {account.last_name}",
                    bank_name=self.settings.bank_name,
                )
                if opening_balance > 0:
                    self.repository.update_balance(account.id, opening_balance)
                    self.repository.add_transaction(
                        account_id=account.id,
                        kind="deposit",
                        amount=opening_balance,
                        fee=0,
                        reference=reference,
                        status="completed",
                        description="Account opening bonus",
                    )
                self.session.commit()
            except IntegrityError:
                self.session.rollback()
                # Another request may have claimed the identity since the first check.
                self._raise_on_identity_conflicts(payload)
                logger.warning(
                    "account.create.collision",
                    extra={"reference": reference, "attempt": attempt},
                )
                continue
            except Exception:
                self.session.rollback()
                raise

            self.session.refresh(account)
            logger.info(
                "account.created",
                extra={"account_id": str(account.id), "opening_balance": opening_balance},
            )
            return AuthResponse(token=self.issuer.issue(account.id), user=self._profile(account))

        raise ReferenceUnavailableError("Could not allocate a unique account reference")

    def authenticate(self, payload: LoginRequest) -> AuthResponse:
        account = self.repository.get_account_by_email(payload.email)
        if account is None or not self.verifier.verify(payload.password, account.password_hash):
            logger.info("auth.login.rejected", extra={"email": payload.email})
            raise InvalidCredentialError("Invalid credentials")

        account.last_activity = utcnow()
        self.session.commit()
        self.session.refresh(account)
        logger.info("auth.login", extra={"account_id": str(account.id)})
        return AuthResponse(token=self.issuer.issue(account.id), user=self._profile(account))

    def get_account(self, account_id: UUID) -> AccountModel:
        account = self.repository.get_account(account_id)
        if account is None:
            raise AccountNotFoundError(f"Account {account_id} not found")
        return account

    def get_profile(self, account_id: UUID) -> UserResponse:
        return self._profile(self.get_account(account_id))

    def check_session(self, account: AccountModel, now: Optional[datetime] = None) -> None:
        """Reject accounts idle for longer than the inactivity window."""
        if account.last_activity is None:
            return
        now = now or utcnow()
        idle = now - as_utc(account.last_activity)
        if idle > timedelta(minutes=self.settings.inactivity_timeout_minutes):
            raise SessionExpiredError("Session expired due to inactivity")

    def touch_session(self, account_id: UUID) -> None:
        account = self.get_account(account_id)
        account.last_activity = utcnow()
        self.session.add(account)
        self.session.commit()

    def get_balance(self, account_id: UUID) -> BalanceResponse:
        account = self.get_account(account_id)
        linked = self.repository.list_linked_accounts(account_id)
        return BalanceResponse(
            balance=to_major(account.balance, self.policy.minor_per_major),
            accounts=[LinkedAccountResponse.from_model(item) for item in linked],
        )

    def list_transactions(self, account_id: UUID, limit: int = 50) -> TransactionListResponse:
        self.get_account(account_id)
        items = [
            TransactionResponse.from_model(tx, self.policy.minor_per_major)
            for tx in self.repository.list_transactions(account_id, limit=limit)
        ]
        return TransactionListResponse(count=len(items), data=items)

    def update_profile(self, account_id: UUID, payload: ProfileUpdate) -> UserResponse:
        account = self.get_account(account_id)
        changes = payload.model_dump(exclude_unset=True, exclude_none=True)
        conflicts = self.repository.find_identity_conflicts(
            email=changes.get("email"),
            phone=changes.get("phone"),
            exclude_id=account_id,
        )
        if conflicts:
            raise DuplicateIdentityError(
                f"Duplicate field value entered: {', '.join(conflicts)}"
            )

        for field, value in changes.items():
            setattr(account, field, value.strip() if isinstance(value, str) else value)
        self.session.add(account)
        self._commit_identity_change()
        self.session.refresh(account)
        logger.info(
            "account.profile.updated",
            extra={"account_id": str(account_id), "fields": sorted(changes)},
        )
        return self._profile(account)

    def reset_pin(self, account_id: UUID, payload: ResetPinRequest) -> None:
        account = self.get_account(account_id)
        if not self.verifier.verify(payload.current_pin, account.pin_hash):
            raise InvalidCredentialError("Current PIN is incorrect")

        account.pin_hash = self.verifier.hash(payload.new_pin)
        self.session.add(account)
        self.session.commit()
        logger.info("account.pin.reset", extra={"account_id": str(account_id)})

    def request_password_reset(self, payload: ForgotPasswordRequest) -> None:
        account = self.repository.get_account_by_email(payload.email)
        if account is None:
            raise AccountNotFoundError("No user found with that email")

        otp = str(secrets.randbelow(900_000) + 100_000)
        minutes = self.settings.otp_expire_minutes
        account.otp_hash = self.verifier.hash(otp)
        account.otp_expires_at = utcnow() + timedelta(minutes=minutes)
        self.session.add(account)
        self.session.commit()

        self.notifier.send(
            account.email,
            "Password Reset OTP",
            f"Your OTP is {otp}. It expires in {minutes} minutes.",
        )
        logger.info("account.password.otp_issued", extra={"account_id": str(account.id)})

    def reset_password(self, payload: ResetPasswordRequest) -> TokenResponse:
        account = self.repository.get_account_by_email(payload.email)
        if (
            account is None
            or account.otp_expires_at is None
            or as_utc(account.otp_expires_at) <= utcnow()
            or not self.verifier.verify(payload.otp, account.otp_hash)
        ):
            raise InvalidCredentialError("Invalid OTP or OTP has expired")

        account.password_hash = self.verifier.hash(payload.new_password)
        account.otp_hash = None
        account.otp_expires_at = None
        account.last_activity = utcnow()
        self.session.add(account)
        self.session.commit()
        logger.info("account.password.reset", extra={"account_id": str(account.id)})
        return TokenResponse(
            token=self.issuer.issue(account.id),
            message="Password reset successful",
        )
