import itertools
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session, SQLModel

from ..core import db as core_db
from ..core.config import Settings, get_settings
from ..core.db import create_engine_for_url, set_engine
from ..core.dependencies import get_credential_verifier, get_notifier, get_session_issuer
from ..core.security import CredentialVerifier, SessionIssuer
from ..main import app
from ..models import RegisterRequest
from ..services import AccountService, CatalogProvider, LedgerService


class CapturingNotifier:
    def __init__(self) -> None:
        self.sent: list[tuple[str, str, str]] = []

    def send(self, recipient: str, subject: str, body: str) -> None:
        self.sent.append((recipient, subject, body))


@pytest.fixture
def settings(tmp_path) -> Settings:
    # 10,000 major units opens every account with 1,000,000 minor units.
    return Settings(
        _env_file=None,
        database_url=f"sqlite:///{tmp_path / 'test.db'}",
        jwt_secret="test-secret",
        hash_rounds=4,
        opening_balance=Decimal("10000"),
    )


@pytest.fixture
def engine(settings):
    engine = create_engine_for_url(settings.database_url, settings.database_busy_timeout)
    SQLModel.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture
def verifier() -> CredentialVerifier:
    return CredentialVerifier(rounds=4)


@pytest.fixture
def issuer(settings) -> SessionIssuer:
    return SessionIssuer(settings.jwt_secret, expire_minutes=settings.token_expire_minutes)


@pytest.fixture
def notifier() -> CapturingNotifier:
    return CapturingNotifier()


@pytest.fixture
def account_service(session, verifier, issuer, settings, notifier) -> AccountService:
    return AccountService(session, verifier, issuer, settings, notifier=notifier)


@pytest.fixture
def ledger(session, verifier, settings) -> LedgerService:
    return LedgerService(session, verifier, CatalogProvider(), settings.ledger_policy())


@pytest.fixture
def registration():
    counter = itertools.count(1)

    def _registration(**overrides) -> dict:
        n = next(counter)
        payload = {
            "first_name": "Ada",
            "last_name": "Obi",
            "email": f"user{n}@nexabank.ng",
            "phone": f"080{n:08d}",
            "bvn": f"221{n:08d}",
            "password": "secret123",
            "pin": "1234",
        }
        payload.update(overrides)
        return payload

    return _registration


@pytest.fixture
def open_account(account_service, registration):
    def _open(**overrides):
        return account_service.register(RegisterRequest(**registration(**overrides))).user

    return _open


@pytest.fixture
def client(engine, settings, verifier, issuer, notifier):
    original_engine = core_db.engine
    set_engine(engine)
    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_credential_verifier] = lambda: verifier
    app.dependency_overrides[get_session_issuer] = lambda: issuer
    app.dependency_overrides[get_notifier] = lambda: notifier

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()
    set_engine(original_engine)


@pytest.fixture
def register_user(client, registration):
    def _register(**overrides) -> tuple[dict, dict]:
        response = client.post("/api/auth/register", json=registration(**overrides))
        assert response.status_code == 201, response.text
        body = response.json()
        return {"Authorization": f"Bearer {body['token']}"}, body["user"]

    return _register
