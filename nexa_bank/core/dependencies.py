from functools import lru_cache

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlmodel import Session

from ..models import AccountModel
from ..services import (
    AccountService,
    CatalogProvider,
    LedgerService,
    LoggingNotifier,
    ReceiptRenderer,
    RecipientDirectory,
)
from .config import Settings, get_settings
from .db import get_session
from .errors import AccountNotFoundError, UnauthorizedError
from .security import CredentialVerifier, SessionIssuer

bearer_scheme = HTTPBearer(auto_error=False)

@lru_cache()
def get_credential_verifier() -> CredentialVerifier:
    return CredentialVerifier(rounds=get_settings().hash_rounds)

@lru_cache()
def get_session_issuer() -> SessionIssuer:
    settings = get_settings()
    return SessionIssuer(
        settings.jwt_secret,
        algorithm=settings.jwt_algorithm,
        expire_minutes=settings.token_expire_minutes,
    )

@lru_cache()
def get_catalog() -> CatalogProvider:
    return CatalogProvider()

@lru_cache()
def get_receipt_renderer() -> ReceiptRenderer:
    return ReceiptRenderer(bank_name=get_settings().bank_name)

def get_recipient_directory() -> RecipientDirectory:
    return RecipientDirectory()

def get_notifier() -> LoggingNotifier:
    return LoggingNotifier()

def get_account_service(
    session: Session = Depends(get_session),
    verifier: CredentialVerifier = Depends(get_credential_verifier),
    issuer: SessionIssuer = Depends(get_session_issuer),
    notifier: LoggingNotifier = Depends(get_notifier),
    settings: Settings = Depends(get_settings),
) -> AccountService:
    return AccountService(session, verifier, issuer, settings, notifier=notifier)

def get_ledger_service(
    session: Session = Depends(get_session),
    verifier: CredentialVerifier = Depends(get_credential_verifier),
    catalog: CatalogProvider = Depends(get_catalog),
    renderer: ReceiptRenderer = Depends(get_receipt_renderer),
    directory: RecipientDirectory = Depends(get_recipient_directory),
    settings: Settings = Depends(get_settings),
) -> LedgerService:
    return LedgerService(
        session,
        verifier,
        catalog,
        settings.ledger_policy(),
        renderer=renderer,
        directory=directory,
    )

def get_current_account(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    issuer: SessionIssuer = Depends(get_session_issuer),
    service: AccountService = Depends(get_account_service),
) -> AccountModel:
    """Resolve the bearer token to an account and enforce the idle window.

    Session activity is not refreshed here; routes call ``touch_session``
    once the request has succeeded.
    """
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise UnauthorizedError("Not authorized to access this route")

    account_id = issuer.verify(credentials.credentials)
    try:
        account = service.get_account(account_id)
    except AccountNotFoundError as exc:
        raise UnauthorizedError("User not found") from exc
    service.check_session(account)
    return account
