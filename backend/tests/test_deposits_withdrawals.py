"""
Customer wallet flows: deposits, withdrawals and their admin review
"""

from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from app.core.compliance.models import AuditLog
from app.core.payments.models import FeeType, PaymentMethod, PaymentMethodType
from app.core.security.models import Role
from app.core.transactions.models import PaymentMode, Transaction, TransactionType, TransactionStatus
from app.core.wallets.models import Wallet, WalletStatus
from app.infrastructure.settings import get_settings
from app.services import transaction_processor, wallet_ledger
from app.services.payment_helpers import create_payment_method
from app.services.transaction_processor import should_auto_approve


def _deposit(client: TestClient, headers: dict, payment_method: PaymentMethod, amount: str, auto_approve: bool = True):
    return client.post(
        "/api/wallet/deposit",
        json={
            "amount": amount,
            "payment_method_id": payment_method.id,
            "payment_mode": "upi",
            "payment_reference": "UPI-88231",
            "auto_approve": auto_approve,
        },
        headers=headers,
    )


def _withdraw(client: TestClient, headers: dict, payment_method: PaymentMethod, amount: str, **extra):
    payload = {
        "amount": amount,
        "payment_method_id": payment_method.id,
        "payment_mode": "upi",
        "upi_id": "asha@okbank",
    }
    payload.update(extra)
    return client.post("/api/wallet/withdraw", json=payload, headers=headers)


# ---- Deposits ----

def test_deposit_below_minimum_rejected(client: TestClient, user_headers: dict, payment_method: PaymentMethod):
    response = _deposit(client, user_headers, payment_method, "499.99")
    assert response.status_code == 422
    error = response.json()["error"]
    assert error["code"] == "VALIDATION_ERROR"
    assert "amount" in error["fields"]


def test_small_deposit_auto_approved(
    client: TestClient, db_session: Session, user_headers: dict, wallet: Wallet, payment_method: PaymentMethod
):
    """
    Deposit of ₹5,000 with auto_approve requested:
    completed immediately and credited to the balance.
    """
    response = _deposit(client, user_headers, payment_method, "5000")
    assert response.status_code == 201, response.json()
    data = response.json()
    assert data["status"] == "completed"
    assert data["reference"].startswith("DEP_")
    assert data["amount"] == "5000.00"
    assert data["net_amount"] == "5000.00"
    assert data["balance_before"] == "0.00"
    assert data["balance_after"] == "5000.00"

    db_session.refresh(wallet)
    assert wallet.balance == Decimal("5000.00")
    assert wallet.total_deposits == Decimal("5000.00")


def test_deposit_at_ceiling_waits_for_review(
    client: TestClient, db_session: Session, user_headers: dict, wallet: Wallet, payment_method: PaymentMethod
):
    response = _deposit(client, user_headers, payment_method, "10000")
    assert response.status_code == 201
    assert response.json()["status"] == "pending"

    db_session.refresh(wallet)
    assert wallet.balance == Decimal("0.00")

    summary = client.get("/api/wallet/summary", headers=user_headers).json()
    assert summary["wallet"]["balance"] == "0.00"
    assert summary["summary"]["pending_deposits"] == "10000.00"
    assert summary["summary"]["pending_transactions"] == 1


def test_deposit_without_auto_approve_request_is_pending(
    client: TestClient, user_headers: dict, wallet: Wallet, payment_method: PaymentMethod
):
    response = _deposit(client, user_headers, payment_method, "800", auto_approve=False)
    assert response.status_code == 201
    assert response.json()["status"] == "pending"


def test_auto_approve_kill_switch(monkeypatch, client: TestClient, user_headers: dict, wallet: Wallet, payment_method: PaymentMethod):
    monkeypatch.setattr(get_settings(), "AUTO_APPROVE_ENABLED", False)

    response = _deposit(client, user_headers, payment_method, "1000")
    assert response.status_code == 201
    assert response.json()["status"] == "pending"


@pytest.mark.parametrize(
    "amount,requested,expected",
    [
        ("9999.99", True, True),
        ("10000", True, False),
        ("500", False, False),
    ],
)
def test_should_auto_approve_policy(amount, requested, expected):
    assert should_auto_approve(Decimal(amount), requested) is expected


def test_deposit_fee_from_payment_method(
    client: TestClient, db_session: Session, user_headers: dict, wallet: Wallet
):
    card = create_payment_method(
        db_session,
        name="Debit card",
        code="card",
        type=PaymentMethodType.DEPOSIT,
        processing_fee=Decimal("2"),
        processing_fee_type=FeeType.PERCENTAGE,
    )
    response = _deposit(client, user_headers, card, "5000")
    assert response.status_code == 201
    data = response.json()
    assert data["processing_fee"] == "100.00"
    assert data["net_amount"] == "4900.00"

    db_session.refresh(wallet)
    assert wallet.balance == Decimal("4900.00")


def test_deposit_outside_payment_method_limits(client: TestClient, db_session: Session, user_headers: dict, wallet: Wallet):
    cash = create_payment_method(
        db_session, name="Cash", code="cash", min_amount=Decimal("500"), max_amount=Decimal("1000")
    )
    response = _deposit(client, user_headers, cash, "2000")
    assert response.status_code == 422
    assert "amount" in response.json()["error"]["fields"]


def test_deposit_with_withdrawal_only_method(client: TestClient, db_session: Session, user_headers: dict, wallet: Wallet):
    neft = create_payment_method(db_session, name="NEFT payout", code="neft", type=PaymentMethodType.WITHDRAWAL)
    response = _deposit(client, user_headers, neft, "1000")
    assert response.status_code == 422
    assert "payment_method_id" in response.json()["error"]["fields"]


def test_deposit_into_frozen_wallet(
    client: TestClient, db_session: Session, user_headers: dict, wallet: Wallet, payment_method: PaymentMethod
):
    wallet_ledger.update_wallet(db_session, wallet.id, status=WalletStatus.FROZEN)

    response = _deposit(client, user_headers, payment_method, "1000")
    assert response.status_code == 409
    assert response.json()["error"]["code"] == "WALLET_NOT_ACTIVE"

    rejected = db_session.query(Transaction).one()
    assert rejected.type == TransactionType.DEPOSIT
    assert rejected.status == TransactionStatus.REJECTED
    assert "frozen" in rejected.rejection_reason
    db_session.refresh(wallet)
    assert wallet.balance == Decimal("0.00")

    audit = db_session.query(AuditLog).filter(AuditLog.action == "DEPOSIT_REJECTED").one()
    assert audit.entity_id == rejected.id
    assert audit.actor_role == Role.USER


# ---- Withdrawals ----

def test_withdrawal_below_minimum_rejected(
    client: TestClient, user_headers: dict, funded_wallet: Wallet, payment_method: PaymentMethod
):
    response = _withdraw(client, user_headers, payment_method, "999")
    assert response.status_code == 422
    assert "amount" in response.json()["error"]["fields"]


def test_bank_transfer_withdrawal_requires_account(
    client: TestClient, user_headers: dict, funded_wallet: Wallet, payment_method: PaymentMethod
):
    response = _withdraw(client, user_headers, payment_method, "2000", payment_mode="bank_transfer")
    assert response.status_code == 422
    assert "bank_account" in response.json()["error"]["fields"]


def test_withdrawal_request_freezes_amount(
    client: TestClient, db_session: Session, user_headers: dict, funded_wallet: Wallet, payment_method: PaymentMethod
):
    response = _withdraw(client, user_headers, payment_method, "3000")
    assert response.status_code == 201, response.json()
    data = response.json()
    assert data["status"] == "pending"
    assert data["reference"].startswith("WTH_")
    assert data["upi_id"] == "asha@okbank"

    db_session.refresh(funded_wallet)
    assert funded_wallet.balance == Decimal("20000.00")
    assert funded_wallet.frozen_amount == Decimal("3000.00")
    assert funded_wallet.available_balance == Decimal("17000.00")

    audit = db_session.query(AuditLog).filter(AuditLog.action == "WITHDRAWAL_REQUESTED").one()
    assert audit.entity_id == data["id"]
    assert audit.actor_role == Role.USER


def test_withdrawal_audit_role_is_explicit(db_session: Session, funded_wallet: Wallet, payment_method: PaymentMethod):
    transaction = transaction_processor.create_withdrawal(
        db_session,
        wallet_id=funded_wallet.id,
        amount=Decimal("2000"),
        payment_method_id=payment_method.id,
        payment_mode=PaymentMode.UPI,
        upi_id="asha@okbank",
        actor_role=Role.ADMIN,
    )

    audit = db_session.query(AuditLog).filter(
        AuditLog.entity_type == "Transaction", AuditLog.entity_id == transaction.id
    ).one()
    assert audit.action == "WITHDRAWAL_REQUESTED"
    assert audit.actor_user_id is None
    assert audit.actor_role == Role.ADMIN


def test_withdrawal_above_available_is_recorded_rejected(
    client: TestClient, db_session: Session, user_headers: dict, funded_wallet: Wallet, payment_method: PaymentMethod
):
    response = _withdraw(client, user_headers, payment_method, "25000")
    assert response.status_code == 422
    assert response.json()["error"]["code"] == "INSUFFICIENT_FUNDS"

    refused = db_session.query(Transaction).filter(Transaction.type == TransactionType.WITHDRAWAL).one()
    assert refused.status == TransactionStatus.REJECTED
    assert refused.rejection_reason

    db_session.refresh(funded_wallet)
    assert funded_wallet.balance == Decimal("20000.00")
    assert funded_wallet.frozen_amount == Decimal("0.00")


def test_admin_approves_withdrawal(
    client: TestClient,
    db_session: Session,
    user_headers: dict,
    admin_headers: dict,
    admin_user,
    funded_wallet: Wallet,
    payment_method: PaymentMethod,
):
    transaction_id = _withdraw(client, user_headers, payment_method, "3000").json()["id"]

    response = client.post(f"/admin/transactions/{transaction_id}/approve", headers=admin_headers)
    assert response.status_code == 200, response.json()
    data = response.json()
    assert data["status"] == "completed"
    assert data["approved_by"] == admin_user.id
    assert data["balance_before"] == "20000.00"
    assert data["balance_after"] == "17000.00"

    db_session.refresh(funded_wallet)
    assert funded_wallet.balance == Decimal("17000.00")
    assert funded_wallet.frozen_amount == Decimal("0.00")
    assert funded_wallet.total_withdrawals == Decimal("3000.00")

    audit = db_session.query(AuditLog).filter(AuditLog.action == "TRANSACTION_APPROVED").one()
    assert audit.entity_id == transaction_id
    assert audit.actor_user_id == admin_user.id


def test_admin_rejects_withdrawal_and_releases_hold(
    client: TestClient,
    db_session: Session,
    user_headers: dict,
    admin_headers: dict,
    funded_wallet: Wallet,
    payment_method: PaymentMethod,
):
    transaction_id = _withdraw(client, user_headers, payment_method, "3000").json()["id"]

    response = client.post(
        f"/admin/transactions/{transaction_id}/reject",
        json={"reason": "Bank account name mismatch"},
        headers=admin_headers,
    )
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "rejected"
    assert data["rejection_reason"] == "Bank account name mismatch"

    db_session.refresh(funded_wallet)
    assert funded_wallet.balance == Decimal("20000.00")
    assert funded_wallet.frozen_amount == Decimal("0.00")


def test_reject_requires_reason(
    client: TestClient, user_headers: dict, admin_headers: dict, funded_wallet: Wallet, payment_method: PaymentMethod
):
    transaction_id = _withdraw(client, user_headers, payment_method, "3000").json()["id"]

    response = client.post(f"/admin/transactions/{transaction_id}/reject", json={"reason": ""}, headers=admin_headers)
    assert response.status_code == 422


def test_approve_twice_is_invalid_transition(
    client: TestClient, user_headers: dict, admin_headers: dict, funded_wallet: Wallet, payment_method: PaymentMethod
):
    transaction_id = _withdraw(client, user_headers, payment_method, "3000").json()["id"]
    assert client.post(f"/admin/transactions/{transaction_id}/approve", headers=admin_headers).status_code == 200

    response = client.post(f"/admin/transactions/{transaction_id}/approve", headers=admin_headers)
    assert response.status_code == 409
    assert response.json()["error"]["code"] == "INVALID_STATE_TRANSITION"


def test_withdrawal_fee_debits_net_amount(
    client: TestClient, db_session: Session, user_headers: dict, admin_headers: dict, funded_wallet: Wallet
):
    payout = create_payment_method(
        db_session,
        name="IMPS payout",
        code="imps",
        type=PaymentMethodType.WITHDRAWAL,
        processing_fee=Decimal("40"),
        processing_fee_type=FeeType.FIXED,
    )
    created = _withdraw(client, user_headers, payout, "2000").json()
    assert created["processing_fee"] == "40.00"
    assert created["net_amount"] == "1960.00"

    client.post(f"/admin/transactions/{created['id']}/approve", headers=admin_headers)

    db_session.refresh(funded_wallet)
    assert funded_wallet.balance == Decimal("18040.00")
    assert funded_wallet.frozen_amount == Decimal("0.00")


def test_approval_refused_by_frozen_wallet_leaves_rejected(
    client: TestClient,
    db_session: Session,
    user_headers: dict,
    admin_headers: dict,
    funded_wallet: Wallet,
    payment_method: PaymentMethod,
):
    transaction_id = _withdraw(client, user_headers, payment_method, "3000").json()["id"]
    wallet_ledger.update_wallet(db_session, funded_wallet.id, status=WalletStatus.SUSPENDED)

    response = client.post(f"/admin/transactions/{transaction_id}/approve", headers=admin_headers)
    assert response.status_code == 409
    assert response.json()["error"]["code"] == "WALLET_NOT_ACTIVE"

    transaction = db_session.get(Transaction, transaction_id)
    db_session.refresh(transaction)
    assert transaction.status == TransactionStatus.REJECTED
    db_session.refresh(funded_wallet)
    assert funded_wallet.balance == Decimal("20000.00")
    assert funded_wallet.frozen_amount == Decimal("0.00")


# ---- History ----

def test_transaction_history_filters(
    client: TestClient, user_headers: dict, funded_wallet: Wallet, payment_method: PaymentMethod
):
    _deposit(client, user_headers, payment_method, "1000")
    _withdraw(client, user_headers, payment_method, "1500")

    response = client.get("/api/wallet/transactions", params={"type": "withdrawal"}, headers=user_headers)
    assert response.status_code == 200
    data = response.json()
    assert data["total"] == 1
    assert data["items"][0]["type"] == "withdrawal"

    all_items = client.get("/api/wallet/transactions", headers=user_headers).json()
    assert all_items["total"] == 3  # opening balance, deposit, withdrawal
    assert all_items["page"] == 1


def test_other_users_transaction_not_visible(
    client: TestClient, db_session: Session, admin_headers: dict, user_headers: dict, funded_wallet: Wallet
):
    other_tx = db_session.query(Transaction).first()
    assert client.get(f"/api/wallet/transactions/{other_tx.id}", headers=user_headers).status_code == 200

    # Customer endpoints only expose the caller's own history
    response = client.get(f"/api/wallet/transactions/{other_tx.id}", headers=admin_headers)
    assert response.status_code == 404
    assert response.json()["error"]["code"] == "NOT_FOUND"


def test_wallet_summary_shape(client: TestClient, user_headers: dict, funded_wallet: Wallet, payment_method: PaymentMethod):
    response = client.get("/api/wallet/summary", headers=user_headers)
    assert response.status_code == 200
    data = response.json()
    assert data["wallet"]["currency"] == "INR"
    assert data["wallet"]["balance"] == "20000.00"
    assert data["wallet"]["available_balance"] == "20000.00"
    assert len(data["recent_transactions"]) == 1
    assert [pm["code"] for pm in data["payment_methods"]] == ["upi"]
