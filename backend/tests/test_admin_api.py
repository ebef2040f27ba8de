"""
Admin user, team, payment method, wallet and system endpoint tests
"""

from decimal import Decimal

from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from app.core.compliance.models import AuditLog
from app.core.transactions.models import TransactionType
from app.core.users.models import User
from app.core.wallets.models import Wallet
from app.services import transaction_processor, user_service


# ---- Users ----

def test_store_user_creates_wallet(client: TestClient, admin_headers: dict):
    response = client.post(
        "/admin/users/store",
        json={"name": "Vikram Nair", "email": "vikram@example.com", "password": "initial-pass", "kyc_verified": True},
        headers=admin_headers,
    )
    assert response.status_code == 201, response.json()
    data = response.json()
    assert data["role"] == "USER"
    assert data["status"] == "active"
    assert data["kyc_verified"] is True
    assert data["wallet_id"] is not None
    assert data["wallet_balance"] == "0.00"


def test_store_user_duplicate_email(client: TestClient, admin_headers: dict, test_user: User):
    response = client.post(
        "/admin/users/store",
        json={"name": "Someone Else", "email": test_user.email},
        headers=admin_headers,
    )
    assert response.status_code == 422
    assert "email" in response.json()["error"]["fields"]


def test_list_and_search_users(client: TestClient, admin_headers: dict, test_user: User):
    response = client.get("/admin/users", params={"search": "asha"}, headers=admin_headers)
    assert response.status_code == 200
    data = response.json()
    assert data["total"] == 1
    assert data["items"][0]["email"] == "asha@example.com"

    response = client.get("/admin/users", params={"role": "ADMIN"}, headers=admin_headers)
    assert [u["email"] for u in response.json()["items"]] == ["admin@example.com"]


def test_update_user(client: TestClient, db_session: Session, admin_headers: dict, test_user: User):
    response = client.put(
        f"/admin/users/{test_user.id}/update",
        json={"phone": "+91 91234 56789", "status": "suspended"},
        headers=admin_headers,
    )
    assert response.status_code == 200, response.json()
    assert response.json()["phone"] == "+91 91234 56789"
    assert response.json()["status"] == "suspended"

    audit = db_session.query(AuditLog).filter(AuditLog.action == "USER_UPDATED").one()
    assert audit.entity_id == test_user.id


def test_delete_user_without_history(client: TestClient, db_session: Session, admin_headers: dict):
    created = client.post(
        "/admin/users/store",
        json={"name": "Temp Account", "email": "temp@example.com"},
        headers=admin_headers,
    ).json()

    response = client.delete(f"/admin/users/{created['id']}", headers=admin_headers)
    assert response.status_code == 200
    assert client.get(f"/admin/users/{created['id']}", headers=admin_headers).status_code == 404
    assert db_session.get(Wallet, created["wallet_id"]) is None


def test_delete_user_with_history_refused(client: TestClient, admin_headers: dict, test_user: User, funded_wallet: Wallet):
    response = client.delete(f"/admin/users/{test_user.id}", headers=admin_headers)
    assert response.status_code == 409
    assert response.json()["error"]["details"]["transactions"] == 1


def test_admin_cannot_delete_self(client: TestClient, admin_headers: dict, admin_user: User):
    response = client.delete(f"/admin/users/{admin_user.id}", headers=admin_headers)
    assert response.status_code == 409


# ---- Teams ----

def test_team_lifecycle(client: TestClient, db_session: Session, admin_headers: dict, admin_user: User, test_user: User):
    third = user_service.create_user(db_session, name="Pooja Desai", email="pooja@example.com")

    response = client.post(
        "/admin/teams/store",
        json={"name": "West Zone Sales", "leader_id": admin_user.id, "member_ids": [test_user.id]},
        headers=admin_headers,
    )
    assert response.status_code == 201, response.json()
    team = response.json()
    assert team["leader_id"] == admin_user.id
    roles = {m["user_id"]: m["role"] for m in team["members"]}
    assert roles == {admin_user.id: "leader", test_user.id: "member"}

    response = client.post(f"/admin/teams/{team['id']}/members", json={"user_id": third.id}, headers=admin_headers)
    assert response.status_code == 201
    assert len(response.json()["members"]) == 3

    response = client.post(f"/admin/teams/{team['id']}/members", json={"user_id": third.id}, headers=admin_headers)
    assert response.status_code == 422

    response = client.delete(f"/admin/teams/{team['id']}/members/{admin_user.id}", headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["leader_id"] is None
    assert admin_user.id not in {m["user_id"] for m in response.json()["members"]}

    response = client.put(f"/admin/teams/{team['id']}/update", json={"description": "Pune and Nashik"}, headers=admin_headers)
    assert response.json()["description"] == "Pune and Nashik"

    assert client.delete(f"/admin/teams/{team['id']}", headers=admin_headers).status_code == 200
    assert client.get(f"/admin/teams/{team['id']}", headers=admin_headers).status_code == 404


def test_team_name_unique(client: TestClient, admin_headers: dict):
    client.post("/admin/teams/store", json={"name": "Support"}, headers=admin_headers)
    response = client.post("/admin/teams/store", json={"name": "Support"}, headers=admin_headers)
    assert response.status_code == 422
    assert "name" in response.json()["error"]["fields"]


def test_team_unknown_member(client: TestClient, admin_headers: dict):
    response = client.post("/admin/teams/store", json={"name": "Ghosts", "member_ids": [424242]}, headers=admin_headers)
    assert response.status_code == 422
    assert "member_ids" in response.json()["error"]["fields"]


# ---- Payment methods ----

def test_store_and_update_payment_method(client: TestClient, admin_headers: dict):
    response = client.post(
        "/admin/payment-methods/store",
        json={
            "name": "Debit Card",
            "code": "debit_card",
            "type": "deposit",
            "min_amount": "500",
            "max_amount": "200000",
            "processing_fee": "1.5",
            "processing_fee_type": "percentage",
        },
        headers=admin_headers,
    )
    assert response.status_code == 201, response.json()
    method = response.json()
    assert method["processing_fee"] == "1.50"
    assert method["max_amount"] == "200000.00"

    response = client.put(
        f"/admin/payment-methods/{method['id']}/update",
        json={"is_active": False},
        headers=admin_headers,
    )
    assert response.status_code == 200
    assert response.json()["is_active"] is False

    listed = client.get("/admin/payment-methods", params={"active_only": True}, headers=admin_headers).json()
    assert method["id"] not in {m["id"] for m in listed["items"]}


def test_payment_method_code_rules(client: TestClient, admin_headers: dict, payment_method):
    response = client.post("/admin/payment-methods/store", json={"name": "UPI 2", "code": "upi"}, headers=admin_headers)
    assert response.status_code == 422
    assert "code" in response.json()["error"]["fields"]

    response = client.post("/admin/payment-methods/store", json={"name": "Bad", "code": "Has Spaces"}, headers=admin_headers)
    assert response.status_code == 422


def test_payment_method_limits_must_be_ordered(client: TestClient, admin_headers: dict):
    response = client.post(
        "/admin/payment-methods/store",
        json={"name": "Cheque", "code": "cheque", "min_amount": "5000", "max_amount": "1000"},
        headers=admin_headers,
    )
    assert response.status_code == 422
    assert "max_amount" in response.json()["error"]["fields"]


# ---- Wallets ----

def test_store_wallet_duplicate_refused(client: TestClient, admin_headers: dict, test_user: User, wallet: Wallet):
    response = client.post("/admin/wallets/store", json={"user_id": test_user.id}, headers=admin_headers)
    assert response.status_code == 422
    assert "user_id" in response.json()["error"]["fields"]


def test_delete_empty_wallet_then_reopen(client: TestClient, admin_headers: dict, test_user: User, wallet: Wallet):
    response = client.delete(f"/admin/wallets/{wallet.id}", headers=admin_headers)
    assert response.status_code == 200

    response = client.post(
        "/admin/wallets/store",
        json={"user_id": test_user.id, "status": "frozen", "notes": "Reopened pending KYC"},
        headers=admin_headers,
    )
    assert response.status_code == 201, response.json()
    data = response.json()
    assert data["status"] == "frozen"
    assert data["balance"] == "0.00"
    assert data["currency"] == "INR"


def test_update_wallet_status_is_audited(client: TestClient, db_session: Session, admin_headers: dict, wallet: Wallet):
    response = client.put(
        f"/admin/wallets/{wallet.id}/update",
        json={"status": "suspended", "reason": "Chargeback investigation"},
        headers=admin_headers,
    )
    assert response.status_code == 200
    assert response.json()["status"] == "suspended"

    response = client.get(
        "/admin/security/audit-logs",
        params={"action": "WALLET_UPDATED", "entity_id": wallet.id},
        headers=admin_headers,
    )
    assert response.status_code == 200
    items = response.json()["items"]
    assert len(items) == 1
    assert items[0]["entity_type"] == "Wallet"
    assert items[0]["reason"] == "Chargeback investigation"
    assert items[0]["actor_role"] == "ADMIN"


def test_wallet_detail_and_list(client: TestClient, admin_headers: dict, funded_wallet: Wallet):
    response = client.get(f"/admin/wallets/{funded_wallet.id}", headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["balance"] == "20000.00"
    assert response.json()["available_balance"] == "20000.00"

    response = client.get("/admin/wallets", params={"status": "active"}, headers=admin_headers)
    assert response.json()["total"] == 2


def test_reconcile_endpoint(client: TestClient, admin_headers: dict, funded_wallet: Wallet):
    response = client.get(f"/admin/wallets/{funded_wallet.id}/reconcile", headers=admin_headers)
    assert response.status_code == 200
    data = response.json()
    assert data["wallet_id"] == funded_wallet.id
    assert data["consistent"] is True
    assert {f["field"] for f in data["fields"]} >= {"balance", "frozen_amount", "pending_amount", "total_deposits"}


# ---- Dashboard, settings ----

def test_dashboard_counters(client: TestClient, db_session: Session, admin_headers: dict, funded_wallet: Wallet):
    transaction_processor.create_manual(
        db_session,
        wallet_id=funded_wallet.id,
        transaction_type=TransactionType.WITHDRAWAL,
        amount=Decimal("3000"),
    )

    response = client.get("/admin/dashboard", headers=admin_headers)
    assert response.status_code == 200, response.json()
    data = response.json()
    assert data["users"]["total"] == 2
    assert data["wallets"]["total_balance"] == "20000.00"
    assert data["wallets"]["total_frozen"] == "3000.00"
    assert data["transactions"]["pending_count"] == 1
    assert data["transactions"]["pending_withdrawals"] == "3000.00"
    assert data["transactions"]["completed_deposits"] == "20000.00"
    assert len(data["recent_transactions"]) == 2


def test_settings_reflect_policy(client: TestClient, admin_headers: dict):
    response = client.get("/admin/settings", headers=admin_headers)
    assert response.status_code == 200
    data = response.json()
    assert data["currency"] == "INR"
    assert data["min_deposit_amount"] == "500.00"
    assert data["min_withdrawal_amount"] == "1000.00"
    assert data["auto_approve_ceiling"] == "10000.00"
    assert data["auto_approve_enabled"] is True
    assert data["rate_limit_enabled"] is False
