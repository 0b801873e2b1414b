import base64
import re
import uuid
from datetime import UTC, datetime, timedelta

from fastapi.testclient import TestClient
from sqlmodel import Session

from ..main import app
from ..models import AccountModel
from ..services import ledger as ledger_module


def test_health(client: TestClient) -> None:
    assert client.get("/health").json() == {"status": "ok"}


def test_register_returns_token_and_linked_account(client: TestClient, registration) -> None:
    response = client.post("/api/auth/register", json=registration(first_name="Chidi"))
    assert response.status_code == 201
    body = response.json()
    assert body["token"]

    user = body["user"]
    assert user["first_name"] == "Chidi"
    assert "password_hash" not in user and "pin_hash" not in user
    [linked] = user["accounts"]
    assert re.fullmatch(r"[0-9]{10}", linked["account_number"])
    assert linked["account_name"] == "Chidi Obi"
    assert linked["bank_name"] == "NexaBank"


def test_register_rejects_duplicate_identity(client: TestClient, registration) -> None:
    first = registration()
    assert client.post("/api/auth/register", json=first).status_code == 201

    duplicate = registration(phone=first["phone"])
    response = client.post("/api/auth/register", json=duplicate)

    assert response.status_code == 409
    assert response.json()["error"] == "DuplicateIdentity"
    assert "phone" in response.json()["detail"]


def test_register_validates_shape(client: TestClient, registration) -> None:
    response = client.post("/api/auth/register", json=registration(pin="12"))
    assert response.status_code == 422


def test_login(client: TestClient, registration) -> None:
    payload = registration()
    client.post("/api/auth/register", json=payload)

    ok = client.post(
        "/api/auth/login",
        json={"email": payload["email"], "password": payload["password"]},
    )
    assert ok.status_code == 200
    assert ok.json()["user"]["email"] == payload["email"]

    bad = client.post("/api/auth/login", json={"email": payload["email"], "password": "nope!!"})
    assert bad.status_code == 401
    assert bad.json() == {"error": "InvalidCredential", "detail": "Invalid credentials"}


def test_protected_routes_require_token(client: TestClient) -> None:
    missing = client.get("/api/accounts/balance")
    assert missing.status_code == 401
    assert missing.json()["error"] == "Unauthorized"

    garbage = client.get(
        "/api/accounts/balance", headers={"Authorization": "Bearer not-a-token"}
    )
    assert garbage.status_code == 401


def test_balance_is_reported_in_major_units(client: TestClient, register_user) -> None:
    headers, user = register_user()

    response = client.get("/api/accounts/balance", headers=headers)

    assert response.status_code == 200
    assert response.json()["balance"] == 10000.0
    assert response.json()["accounts"] == user["accounts"]


def test_transfer(client: TestClient, register_user) -> None:
    headers, user = register_user()

    response = client.post(
        "/api/transactions/transfer",
        json={
            "amount": 500,
            "recipient_account": "0123456789",
            "recipient_bank": "058",
            "pin": "1234",
        },
        headers=headers,
    )

    assert response.status_code == 200, response.text
    transaction = response.json()["transaction"]
    assert transaction["kind"] == "transfer"
    assert transaction["amount"] == 500.0
    assert transaction["fee"] == 0.5
    assert transaction["status"] == "completed"
    assert transaction["recipient"]["bank_name"] == "Guaranty Trust Bank"

    receipt = base64.b64decode(response.json()["receipt"]).decode("utf-8")
    assert transaction["reference"] in receipt

    balance = client.get("/api/accounts/balance", headers=headers).json()["balance"]
    assert balance == 9499.5


def test_transfer_errors(client: TestClient, register_user) -> None:
    headers, _ = register_user()
    body = {"amount": 500, "recipient_account": "0123456789", "recipient_bank": "058", "pin": "1234"}

    wrong_pin = client.post("/api/transactions/transfer", json={**body, "pin": "4321"}, headers=headers)
    assert wrong_pin.status_code == 401
    assert wrong_pin.json() == {"error": "InvalidCredential", "detail": "Invalid PIN"}

    bad_bank = client.post(
        "/api/transactions/transfer", json={**body, "recipient_bank": "999"}, headers=headers
    )
    assert bad_bank.status_code == 400
    assert bad_bank.json()["error"] == "InvalidRecipient"

    too_much = client.post(
        "/api/transactions/transfer", json={**body, "amount": 20000}, headers=headers
    )
    assert too_much.status_code == 400
    assert too_much.json()["error"] == "InsufficientFunds"

    assert client.get("/api/accounts/balance", headers=headers).json()["balance"] == 10000.0


def test_airtime_below_minimum(client: TestClient, register_user) -> None:
    headers, _ = register_user()

    response = client.post(
        "/api/bills/airtime",
        json={"network": "mtn", "phone": "08012345678", "amount": 40, "pin": "1234"},
        headers=headers,
    )

    assert response.status_code == 400
    assert response.json()["error"] == "BelowMinimum"
    assert client.get("/api/accounts/balance", headers=headers).json()["balance"] == 10000.0


def test_buy_airtime(client: TestClient, register_user) -> None:
    headers, _ = register_user()

    response = client.post(
        "/api/bills/airtime",
        json={"network": "9mobile", "phone": "08012345678", "amount": 150, "pin": "1234"},
        headers=headers,
    )

    assert response.status_code == 200
    assert response.json()["kind"] == "airtime"
    assert response.json()["bill_details"]["provider"] == "9mobile"
    assert client.get("/api/accounts/balance", headers=headers).json()["balance"] == 9850.0


def test_pay_data_bill_ignores_amount(client: TestClient, register_user) -> None:
    headers, _ = register_user()

    response = client.post(
        "/api/bills/pay",
        json={
            "bill_type": "data",
            "provider": "mtn",
            "plan": "mtn-1gb",
            "account_number": "08012345678",
            "amount": 5,
            "pin": "1234",
        },
        headers=headers,
    )

    assert response.status_code == 200, response.text
    assert response.json()["amount"] == 500.0
    assert response.json()["bill_details"]["plan"] == "MTN 1GB"
    assert client.get("/api/accounts/balance", headers=headers).json()["balance"] == 9500.0


def test_pay_bill_rejects_unknown_type_and_plan(client: TestClient, register_user) -> None:
    headers, _ = register_user()

    unknown_type = client.post(
        "/api/bills/pay",
        json={"bill_type": "water", "provider": "x", "account_number": "1", "amount": 100, "pin": "1234"},
        headers=headers,
    )
    assert unknown_type.status_code == 422

    bad_plan = client.post(
        "/api/bills/pay",
        json={
            "bill_type": "data",
            "provider": "mtn",
            "plan": "mtn-100gb",
            "account_number": "08012345678",
            "pin": "1234",
        },
        headers=headers,
    )
    assert bad_plan.status_code == 400
    assert bad_plan.json()["error"] == "InvalidPlan"


def test_transaction_history_newest_first(client: TestClient, register_user) -> None:
    headers, _ = register_user()
    for amount in (100, 200):
        client.post(
            "/api/bills/airtime",
            json={"network": "mtn", "phone": "08012345678", "amount": amount, "pin": "1234"},
            headers=headers,
        )

    history = client.get("/api/accounts/transactions", headers=headers).json()

    assert history["count"] == 3
    assert [item["amount"] for item in history["data"]] == [200.0, 100.0, 10000.0]
    assert history["data"][-1]["kind"] == "deposit"
    assert history["data"][-1]["description"] == "Account opening bonus"

    limited = client.get("/api/accounts/transactions", params={"limit": 1}, headers=headers)
    assert limited.json()["count"] == 1


def test_receipt_is_scoped_to_owner(client: TestClient, register_user) -> None:
    alice_headers, _ = register_user()
    bob_headers, _ = register_user()
    transfer = client.post(
        "/api/transactions/transfer",
        json={"amount": 100, "recipient_account": "0123456789", "recipient_bank": "044", "pin": "1234"},
        headers=alice_headers,
    ).json()["transaction"]

    own = client.get(f"/api/transactions/{transfer['id']}/receipt", headers=alice_headers)
    assert own.status_code == 200
    assert transfer["reference"] in base64.b64decode(own.json()["data"]).decode("utf-8")

    other = client.get(f"/api/transactions/{transfer['id']}/receipt", headers=bob_headers)
    assert other.status_code == 404

    missing = client.get(f"/api/transactions/{uuid.uuid4()}/receipt", headers=alice_headers)
    assert missing.status_code == 404


def test_idle_session_expires(client: TestClient, engine, register_user) -> None:
    headers, user = register_user()

    with Session(engine) as session:
        account = session.get(AccountModel, uuid.UUID(user["id"]))
        account.last_activity = datetime.now(UTC) - timedelta(minutes=31)
        session.add(account)
        session.commit()

    response = client.get("/api/accounts/balance", headers=headers)

    assert response.status_code == 401
    assert response.json()["error"] == "SessionExpired"


def test_successful_request_refreshes_activity(client: TestClient, engine, register_user) -> None:
    headers, user = register_user()
    stale = datetime.now(UTC) - timedelta(minutes=20)
    with Session(engine) as session:
        account = session.get(AccountModel, uuid.UUID(user["id"]))
        account.last_activity = stale
        session.add(account)
        session.commit()

    assert client.get("/api/auth/me", headers=headers).status_code == 200

    with Session(engine) as session:
        refreshed = session.get(AccountModel, uuid.UUID(user["id"])).last_activity
    assert refreshed.replace(tzinfo=UTC) > stale


def test_reset_pin(client: TestClient, register_user) -> None:
    headers, _ = register_user()

    wrong = client.put(
        "/api/auth/resetpin", json={"current_pin": "0000", "new_pin": "5678"}, headers=headers
    )
    assert wrong.status_code == 401

    ok = client.put(
        "/api/auth/resetpin", json={"current_pin": "1234", "new_pin": "5678"}, headers=headers
    )
    assert ok.status_code == 200

    response = client.post(
        "/api/bills/airtime",
        json={"network": "mtn", "phone": "08012345678", "amount": 100, "pin": "5678"},
        headers=headers,
    )
    assert response.status_code == 200


def test_password_reset_with_otp(client: TestClient, notifier, registration) -> None:
    payload = registration()
    client.post("/api/auth/register", json=payload)

    unknown = client.post("/api/auth/forgotpassword", json={"email": "ghost@nexabank.ng"})
    assert unknown.status_code == 404

    assert client.post("/api/auth/forgotpassword", json={"email": payload["email"]}).status_code == 200
    recipient, _, body = notifier.sent[-1]
    assert recipient == payload["email"]
    otp = re.search(r"[0-9]{6}", body).group(0)

    bad = client.put(
        "/api/auth/resetpassword",
        json={"email": payload["email"], "otp": "000000", "new_password": "fresh-pass"},
    )
    assert bad.status_code == 401

    reset = client.put(
        "/api/auth/resetpassword",
        json={"email": payload["email"], "otp": otp, "new_password": "fresh-pass"},
    )
    assert reset.status_code == 200
    assert reset.json()["token"]

    reused = client.put(
        "/api/auth/resetpassword",
        json={"email": payload["email"], "otp": otp, "new_password": "other-pass"},
    )
    assert reused.status_code == 401

    login = client.post(
        "/api/auth/login", json={"email": payload["email"], "password": "fresh-pass"}
    )
    assert login.status_code == 200


def test_update_profile(client: TestClient, register_user) -> None:
    headers, _ = register_user()
    _, other = register_user()

    updated = client.put("/api/accounts/profile", json={"first_name": "Ngozi"}, headers=headers)
    assert updated.status_code == 200
    assert updated.json()["first_name"] == "Ngozi"
    assert client.get("/api/auth/me", headers=headers).json()["first_name"] == "Ngozi"

    clash = client.put("/api/accounts/profile", json={"email": other["email"]}, headers=headers)
    assert clash.status_code == 409


def test_catalog_endpoints(client: TestClient, register_user) -> None:
    headers, _ = register_user()

    options = client.get("/api/bills/options", headers=headers).json()
    assert {entry["id"] for entry in options["bill_types"]} == {"airtime", "data", "electricity", "cable"}
    assert any(plan["id"] == "glo-1gb" and plan["price"] == 45000 for plan in options["data_plans"])

    banks = client.get("/api/transactions/banks", headers=headers).json()
    assert {"code": "044", "name": "Access Bank"} in banks


def test_exhausted_references_render_as_error_body(
    client: TestClient, register_user, monkeypatch
) -> None:
    headers, _ = register_user()
    monkeypatch.setattr(ledger_module, "generate_reference", lambda prefix: "NEXA-1-0001")
    body = {"network": "mtn", "phone": "08012345678", "amount": 100, "pin": "1234"}

    assert client.post("/api/bills/airtime", json=body, headers=headers).status_code == 200
    response = client.post("/api/bills/airtime", json=body, headers=headers)

    assert response.status_code == 503
    assert response.json()["error"] == "ReferenceUnavailable"
    assert client.get("/api/accounts/balance", headers=headers).json()["balance"] == 9900.0


def test_only_domain_errors_have_handlers() -> None:
    assert ValueError not in app.exception_handlers
