from datetime import date
from decimal import Decimal

from conftest import admin_headers, signup_payload


def _signup(client, username="janedoe1", **overrides):
    response = client.post("/api/auth/signup", json=signup_payload(username, **overrides))
    assert response.status_code == 201, response.text
    data = response.json()
    return data, {"Authorization": f"Bearer {data['access_token']}"}


def _transfer_payload(amount="100.00", **overrides):
    payload = {
        "recipient_name": "John Smith",
        "email": "john@example.com",
        "bank_name": "First Bank",
        "account_type": "checking",
        "account_number": "123456789012",
        "routing_number": "021000021",
        "transfer_amount": amount,
        "transfer_purpose": "Rent",
    }
    payload.update(overrides)
    return payload


def _balance(client, headers) -> Decimal:
    response = client.get("/api/users/balance", headers=headers)
    assert response.status_code == 200
    return Decimal(response.json()["balance"])


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_signup_opens_three_accounts(client):
    data, headers = _signup(client)

    assert data["user"]["username"] == "janedoe1"
    assert data["user"]["full_name"] == "Jane Doe"
    assert [a["type"] for a in data["accounts"]] == ["checking", "savings", "credit_card"]
    assert sum(a["is_primary"] for a in data["accounts"]) == 1
    assert "ssn" not in data["user"]
    assert "password_hash" not in data["user"]

    accounts = client.get("/api/accounts", headers=headers).json()
    assert accounts[0]["type"] == "checking"
    assert accounts[0]["is_primary"]


def test_signup_rejects_underage_applicant(client):
    today = date.today()
    underage = date(today.year - 17, 1, 1).isoformat()

    response = client.post("/api/auth/signup", json=signup_payload(date_of_birth=underage))

    assert response.status_code == 422


def test_signup_rejects_weak_or_mismatched_password(client):
    weak = client.post(
        "/api/auth/signup",
        json=signup_payload(password="alllowercase1", confirm_password="alllowercase1"),
    )
    mismatch = client.post("/api/auth/signup", json=signup_payload(confirm_password="TestPass124"))

    assert weak.status_code == 422
    assert mismatch.status_code == 422


def test_signup_requires_employer_when_employed(client):
    response = client.post("/api/auth/signup", json=signup_payload(employer=None))
    assert response.status_code == 422

    retired = signup_payload("retired01", employment_status="retired", employer=None, occupation=None)
    assert client.post("/api/auth/signup", json=retired).status_code == 201


def test_signup_rejects_duplicates(client):
    _signup(client)

    same_username = client.post(
        "/api/auth/signup",
        json=signup_payload("janedoe1", email="other@example.com", ssn="111-22-3333"),
    )
    same_email = client.post(
        "/api/auth/signup",
        json=signup_payload("janedoe2", email="JANEDOE1@example.com", ssn="111-22-3333"),
    )
    same_ssn = client.post("/api/auth/signup", json=signup_payload("janedoe3"))

    assert same_username.status_code == 409
    assert same_username.json()["detail"] == "Username already taken"
    assert same_email.status_code == 409
    assert same_ssn.status_code == 409


def test_transfer_lifecycle_through_admin_review(client, session_factory):
    data, headers = _signup(client)
    user_id = data["user"]["id"]
    admin = admin_headers(client, session_factory)

    deposit = client.post(f"/api/admin/users/{user_id}/deposits", json={"amount": "1000.00"}, headers=admin)
    assert deposit.status_code == 201
    assert deposit.json()["status"] == "pending"
    assert _balance(client, headers) == Decimal("0.00")

    approved = client.put(f"/api/admin/transactions/{deposit.json()['id']}/approve", headers=admin)
    assert approved.status_code == 200
    assert _balance(client, headers) == Decimal("1000.00")

    transfer = client.post("/api/transactions/transfer", json=_transfer_payload(), headers=headers)
    assert transfer.status_code == 201
    txn = transfer.json()
    assert txn["status"] == "pending"
    assert txn["type"] == "debit"
    assert Decimal(txn["amount"]) == Decimal("100.60")
    assert _balance(client, headers) == Decimal("1000.00")

    detail = client.get(f"/api/transactions/{txn['id']}", headers=headers).json()
    assert detail["metadata"]["kind"] == "transfer"
    assert detail["metadata"]["account_last4"] == "9012"
    assert Decimal(detail["metadata"]["transfer_fee"]) == Decimal("0.60")

    completed = client.put(f"/api/admin/transactions/{txn['id']}/approve", headers=admin)
    assert completed.json()["status"] == "completed"
    assert _balance(client, headers) == Decimal("899.40")

    again = client.put(f"/api/admin/transactions/{txn['id']}/approve", headers=admin)
    assert again.status_code == 409
    assert _balance(client, headers) == Decimal("899.40")

    failed = client.put(f"/api/admin/transactions/{txn['id']}/reject", headers=admin)
    assert failed.json()["status"] == "failed"
    assert _balance(client, headers) == Decimal("1000.00")

    revived = client.put(f"/api/admin/transactions/{txn['id']}/approve", headers=admin)
    assert revived.status_code == 409

    stats = client.get("/api/admin/stats", headers=admin).json()
    assert stats["total_users"] == 1
    assert stats["total_transactions"] == 2
    assert stats["pending_reviews"] == 0
    assert Decimal(stats["total_volume"]) == Decimal("1000.00")


def test_transfer_with_insufficient_funds(client):
    _, headers = _signup(client)

    response = client.post("/api/transactions/transfer", json=_transfer_payload("10.00"), headers=headers)

    assert response.status_code == 400
    assert response.json()["detail"] == "Insufficient balance for this transfer"
    assert client.get("/api/transactions", headers=headers).json()["total"] == 0


def test_transfer_payload_validation(client):
    _, headers = _signup(client)

    bad_amount = client.post("/api/transactions/transfer", json=_transfer_payload("-5"), headers=headers)
    bad_routing = client.post(
        "/api/transactions/transfer",
        json=_transfer_payload(routing_number="12345"),
        headers=headers,
    )

    assert bad_amount.status_code == 422
    assert bad_routing.status_code == 422


def test_owner_status_update_and_listing(client, session_factory):
    data, headers = _signup(client)
    admin = admin_headers(client, session_factory)
    deposit = client.post(
        f"/api/admin/users/{data['user']['id']}/deposits",
        json={"amount": "50.00", "description": "Opening deposit"},
        headers=admin,
    ).json()

    response = client.patch(
        f"/api/transactions/{deposit['id']}/status",
        json={"status": "completed"},
        headers=headers,
    )
    assert response.status_code == 200
    assert _balance(client, headers) == Decimal("50.00")

    listing = client.get("/api/transactions", params={"status": "completed"}, headers=headers).json()
    assert listing["total"] == 1
    assert listing["transactions"][0]["description"] == "Opening deposit"

    invalid = client.patch(
        f"/api/transactions/{deposit['id']}/status",
        json={"status": "pending"},
        headers=headers,
    )
    assert invalid.status_code == 409


def test_transactions_are_private_to_their_owner(client, session_factory):
    owner, _ = _signup(client)
    _, stranger = _signup(client, "intruder1", ssn="222-33-4444")
    admin = admin_headers(client, session_factory)
    deposit = client.post(
        f"/api/admin/users/{owner['user']['id']}/deposits",
        json={"amount": "50.00"},
        headers=admin,
    ).json()

    assert client.get(f"/api/transactions/{deposit['id']}", headers=stranger).status_code == 404
    patch = client.patch(
        f"/api/transactions/{deposit['id']}/status",
        json={"status": "completed"},
        headers=stranger,
    )
    assert patch.status_code == 404


def test_accounts_primary_and_deactivate(client):
    data, headers = _signup(client)
    checking, savings, credit = data["accounts"]

    response = client.post(f"/api/accounts/{savings['id']}/primary", headers=headers)
    assert response.status_code == 200
    assert response.json()["is_primary"]

    accounts = client.get("/api/accounts", headers=headers).json()
    assert [a["id"] for a in accounts if a["is_primary"]] == [savings["id"]]

    assert client.post(f"/api/accounts/{savings['id']}/deactivate", headers=headers).status_code == 400
    deactivated = client.post(f"/api/accounts/{credit['id']}/deactivate", headers=headers)
    assert deactivated.status_code == 200
    assert not deactivated.json()["is_active"]

    summary = client.get("/api/accounts/summary", headers=headers).json()
    assert summary["total_accounts"] == 2
    assert client.get("/api/accounts/does-not-exist", headers=headers).status_code == 404


def test_profile_update_and_overview(client):
    _, headers = _signup(client)

    updated = client.put(
        "/api/users/profile",
        json={"first_name": "Janet", "email": "janet@example.com"},
        headers=headers,
    )
    assert updated.status_code == 200
    assert updated.json()["first_name"] == "Janet"
    assert updated.json()["email"] == "janet@example.com"
    assert not updated.json()["is_email_verified"]

    profile = client.get("/api/users/profile", headers=headers).json()
    assert profile["user"]["full_name"] == "Janet Doe"
    assert len(profile["accounts"]) == 3
    assert Decimal(profile["checking_balance"]) == Decimal("0.00")
    assert profile["recent_transactions"] == []


def test_endpoints_require_authentication(client):
    assert client.get("/api/accounts").status_code == 401
    assert client.post("/api/transactions/transfer", json=_transfer_payload()).status_code == 401
    assert client.get("/api/admin/stats").status_code == 401


def test_admin_routes_reject_customer_tokens(client, session_factory):
    _, headers = _signup(client)
    admin = admin_headers(client, session_factory)

    assert client.get("/api/admin/stats", headers=headers).status_code == 403
    assert client.get("/api/accounts", headers=admin).status_code == 401


def test_admin_suspend_blocks_customer(client, session_factory):
    data, headers = _signup(client)
    admin = admin_headers(client, session_factory)

    suspended = client.put(f"/api/admin/users/{data['user']['id']}/suspend", headers=admin)
    assert suspended.status_code == 200
    assert not suspended.json()["is_active"]
    assert client.get("/api/accounts", headers=headers).status_code == 401

    client.put(f"/api/admin/users/{data['user']['id']}/activate", headers=admin)
    assert client.get("/api/accounts", headers=headers).status_code == 200

    users = client.get("/api/admin/users", params={"search": "janedoe"}, headers=admin).json()
    assert users["total"] == 1
