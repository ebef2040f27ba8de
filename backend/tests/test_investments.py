"""
Investment lifecycle: reservation, approval, rejection, cancellation and refunds
"""

from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from app.core.investments.models import Investment, InvestmentStatus
from app.core.properties.models import PlotStatus, Property
from app.core.transactions.models import Transaction, TransactionStatus, TransactionType
from app.core.wallets.models import Wallet
from app.services import investment_service, profit_distributor, property_service
from app.services.exceptions import InvalidStateTransition, ValidationError


def _invest(client: TestClient, headers: dict, prop: Property, amount: str = "5000", plot_index: int = 0):
    return client.post(
        "/api/investments",
        json={"amount": amount, "plot_id": prop.plots[plot_index].id},
        headers=headers,
    )


def test_create_investment_reserves_funds_and_holds_plot(
    client: TestClient, db_session: Session, user_headers: dict, funded_wallet: Wallet, property_with_plots: Property
):
    response = _invest(client, user_headers, property_with_plots)
    assert response.status_code == 201, response.json()
    data = response.json()
    assert data["status"] == "pending"
    assert data["amount"] == "5000.00"
    assert data["property_id"] == property_with_plots.id
    assert data["plot_number"] == "A-1"

    db_session.refresh(funded_wallet)
    assert funded_wallet.balance == Decimal("20000.00")
    assert funded_wallet.pending_amount == Decimal("5000.00")
    assert funded_wallet.available_balance == Decimal("15000.00")

    plot = property_service.get_plot(db_session, data["plot_id"])
    db_session.refresh(plot)
    assert plot.status == PlotStatus.HELD

    transaction = db_session.query(Transaction).filter(Transaction.type == TransactionType.INVESTMENT).one()
    assert transaction.status == TransactionStatus.PENDING
    assert transaction.investment_id == data["id"]
    assert transaction.reference.startswith("INV_")


def test_create_investment_below_minimum(
    client: TestClient, user_headers: dict, funded_wallet: Wallet, property_with_plots: Property
):
    response = _invest(client, user_headers, property_with_plots, amount="499")
    assert response.status_code == 422
    assert "amount" in response.json()["error"]["fields"]


def test_create_investment_requires_target(client: TestClient, user_headers: dict, funded_wallet: Wallet):
    response = client.post("/api/investments", json={"amount": "1000"}, headers=user_headers)
    assert response.status_code == 422
    assert "property_id" in response.json()["error"]["fields"]


def test_create_investment_insufficient_funds_records_rejection(
    client: TestClient, db_session: Session, user_headers: dict, wallet: Wallet, property_with_plots: Property
):
    response = _invest(client, user_headers, property_with_plots)
    assert response.status_code == 422
    assert response.json()["error"]["code"] == "INSUFFICIENT_FUNDS"

    investment = db_session.query(Investment).one()
    assert investment.status == InvestmentStatus.CANCELLED
    transaction = db_session.query(Transaction).one()
    assert transaction.type == TransactionType.INVESTMENT
    assert transaction.status == TransactionStatus.REJECTED
    assert transaction.investment_id == investment.id
    assert transaction.rejection_reason.startswith("Insufficient available balance")
    db_session.refresh(wallet)
    assert wallet.pending_amount == Decimal("0.00")
    plot = property_with_plots.plots[0]
    db_session.refresh(plot)
    assert plot.status == PlotStatus.AVAILABLE


def test_held_plot_cannot_be_invested_twice(
    client: TestClient, user_headers: dict, funded_wallet: Wallet, property_with_plots: Property
):
    assert _invest(client, user_headers, property_with_plots).status_code == 201

    response = _invest(client, user_headers, property_with_plots)
    assert response.status_code == 422
    assert "plot_id" in response.json()["error"]["fields"]


def test_admin_approve_debits_wallet(
    client: TestClient, db_session: Session, user_headers: dict, admin_headers: dict,
    funded_wallet: Wallet, property_with_plots: Property,
):
    created = _invest(client, user_headers, property_with_plots).json()

    response = client.post(f"/admin/investments/{created['id']}/approve", headers=admin_headers)
    assert response.status_code == 200, response.json()
    assert response.json()["status"] == "active"
    assert response.json()["investment_date"] is not None

    db_session.refresh(funded_wallet)
    assert funded_wallet.balance == Decimal("15000.00")
    assert funded_wallet.pending_amount == Decimal("0.00")
    assert funded_wallet.total_investments == Decimal("5000.00")

    # Second approval is a state error
    response = client.post(f"/admin/investments/{created['id']}/approve", headers=admin_headers)
    assert response.status_code == 409


def test_admin_reject_releases_reservation(
    client: TestClient, db_session: Session, user_headers: dict, admin_headers: dict,
    funded_wallet: Wallet, property_with_plots: Property,
):
    created = _invest(client, user_headers, property_with_plots).json()

    response = client.post(
        f"/admin/investments/{created['id']}/reject",
        json={"reason": "Plot under legal review"},
        headers=admin_headers,
    )
    assert response.status_code == 200
    assert response.json()["status"] == "cancelled"

    db_session.refresh(funded_wallet)
    assert funded_wallet.balance == Decimal("20000.00")
    assert funded_wallet.pending_amount == Decimal("0.00")

    transaction = db_session.query(Transaction).filter(Transaction.type == TransactionType.INVESTMENT).one()
    assert transaction.status == TransactionStatus.REJECTED
    assert transaction.rejection_reason == "Plot under legal review"

    plot = property_with_plots.plots[0]
    db_session.refresh(plot)
    assert plot.status == PlotStatus.AVAILABLE


def test_cancel_pending_investment(
    db_session: Session, test_user, funded_wallet: Wallet, property_with_plots: Property
):
    investment = investment_service.create_investment(
        db_session, user_id=test_user.id, amount=Decimal("2500"), property_id=property_with_plots.id
    )
    assert investment.plot_id is None

    cancelled = investment_service.cancel_investment(db_session, investment.id, actor_user_id=test_user.id)
    assert cancelled.status == InvestmentStatus.CANCELLED

    db_session.refresh(funded_wallet)
    assert funded_wallet.pending_amount == Decimal("0.00")
    transaction = db_session.query(Transaction).filter(Transaction.investment_id == investment.id).one()
    assert transaction.status == TransactionStatus.CANCELLED


def test_cancel_active_investment_refunds(
    client: TestClient, db_session: Session, test_user, admin_user, admin_headers: dict,
    funded_wallet: Wallet, property_with_plots: Property,
):
    investment = investment_service.create_investment(
        db_session, user_id=test_user.id, amount=Decimal("5000"), plot_id=property_with_plots.plots[0].id
    )
    investment_service.approve_investment(db_session, investment.id, approver_id=admin_user.id)

    response = client.post(
        f"/admin/investments/{investment.id}/cancel",
        json={"reason": "Investor exit"},
        headers=admin_headers,
    )
    assert response.status_code == 200, response.json()
    assert response.json()["status"] == "cancelled"

    db_session.refresh(funded_wallet)
    assert funded_wallet.balance == Decimal("20000.00")
    assert funded_wallet.total_investments == Decimal("0.00")

    refund = db_session.query(Transaction).filter(Transaction.type == TransactionType.REFUND).one()
    assert refund.status == TransactionStatus.COMPLETED
    assert refund.amount == Decimal("5000.00")
    assert refund.reference.startswith("REF_")


def test_cancel_refused_after_plot_sold(
    db_session: Session, test_user, admin_user, funded_wallet: Wallet, property_with_plots: Property
):
    plot = property_with_plots.plots[0]
    investment = investment_service.create_investment(
        db_session, user_id=test_user.id, amount=Decimal("5000"), plot_id=plot.id
    )
    investment_service.approve_investment(db_session, investment.id, approver_id=admin_user.id)
    property_service.record_sale(db_session, plot_id=plot.id, sale_price=Decimal("7000"), buyer_name="K. Joshi")

    with pytest.raises(InvalidStateTransition):
        investment_service.cancel_investment(db_session, investment.id)


def test_cancel_refused_when_sale_references_property_investment(
    db_session: Session, test_user, admin_user, funded_wallet: Wallet, property_with_plots: Property
):
    investment = investment_service.create_investment(
        db_session, user_id=test_user.id, amount=Decimal("5000"), property_id=property_with_plots.id
    )
    investment_service.approve_investment(db_session, investment.id, approver_id=admin_user.id)
    sale = property_service.record_sale(
        db_session,
        plot_id=property_with_plots.plots[1].id,
        sale_price=Decimal("9000"),
        buyer_name="K. Joshi",
        investment_id=investment.id,
    )
    profit_distributor.calculate(db_session, sale_id=sale.id, profit_percentage=Decimal("60"))

    with pytest.raises(InvalidStateTransition) as exc_info:
        investment_service.cancel_investment(db_session, investment.id, reason="Investor exit")
    assert exc_info.value.details["sale_id"] == sale.id

    db_session.refresh(investment)
    assert investment.status == InvestmentStatus.ACTIVE
    assert db_session.query(Transaction).filter(Transaction.type == TransactionType.REFUND).count() == 0
    db_session.refresh(funded_wallet)
    assert funded_wallet.balance == Decimal("15000.00")


def test_sale_cannot_link_investment_in_another_property(
    db_session: Session, test_user, admin_user, funded_wallet: Wallet, property_with_plots: Property
):
    other = property_service.create_property(db_session, name="Riverside Meadows", location="Pune")
    other_plot = property_service.add_plot(db_session, other.id, plot_number="R-1", price=Decimal("5000"))
    investment = investment_service.create_investment(
        db_session, user_id=test_user.id, amount=Decimal("5000"), property_id=property_with_plots.id
    )
    investment_service.approve_investment(db_session, investment.id, approver_id=admin_user.id)

    with pytest.raises(ValidationError) as exc_info:
        property_service.record_sale(
            db_session,
            plot_id=other_plot.id,
            sale_price=Decimal("9000"),
            buyer_name="K. Joshi",
            investment_id=investment.id,
        )
    assert exc_info.value.field == "investment_id"

    db_session.refresh(other_plot)
    assert other_plot.status == PlotStatus.AVAILABLE


def _investment_with_distributed_profit(db: Session, user, admin, prop: Property) -> Investment:
    """Active ₹5,000 plot investment that has received a ₹6,000 profit"""
    investment = investment_service.create_investment(
        db, user_id=user.id, amount=Decimal("5000"), plot_id=prop.plots[0].id
    )
    investment_service.approve_investment(db, investment.id, approver_id=admin.id)
    sale = property_service.record_sale(
        db, plot_id=prop.plots[0].id, sale_price=Decimal("15000"), buyer_name="Meera Iyer"
    )
    profit = profit_distributor.calculate(db, sale_id=sale.id, profit_percentage=Decimal("60"))
    profit_distributor.distribute(db, profit.id, actor_user_id=admin.id)
    db.refresh(investment)
    return investment


def test_reinvest_distributed_profit_into_new_plot(
    client: TestClient, db_session: Session, test_user, admin_user, admin_headers: dict,
    funded_wallet: Wallet, property_with_plots: Property,
):
    source = _investment_with_distributed_profit(db_session, test_user, admin_user, property_with_plots)
    assert source.profit_distributed == Decimal("6000.00")
    db_session.refresh(funded_wallet)
    assert funded_wallet.balance == Decimal("21000.00")

    response = client.post(
        f"/admin/investments/{source.id}/reinvest",
        json={"amount": "4000", "plot_id": property_with_plots.plots[1].id},
        headers=admin_headers,
    )
    assert response.status_code == 201, response.json()
    data = response.json()
    assert data["status"] == "pending"
    assert data["amount"] == "4000.00"
    assert data["plot_number"] == "A-2"
    assert data["source_investment_id"] == source.id
    assert data["user_id"] == test_user.id

    db_session.refresh(source)
    assert source.reinvestment_count == 1
    db_session.refresh(funded_wallet)
    assert funded_wallet.pending_amount == Decimal("4000.00")
    assert funded_wallet.available_balance == Decimal("17000.00")

    reservation = db_session.query(Transaction).filter(Transaction.investment_id == data["id"]).one()
    assert reservation.type == TransactionType.INVESTMENT
    assert reservation.status == TransactionStatus.PENDING

    # Only ₹2,000 of the profit is left to reinvest
    assert investment_service.reinvestable_amount(db_session, source) == Decimal("2000.00")
    response = client.post(
        f"/admin/investments/{source.id}/reinvest",
        json={"amount": "3000", "property_id": property_with_plots.id},
        headers=admin_headers,
    )
    assert response.status_code == 422
    assert "amount" in response.json()["error"]["fields"]
    db_session.refresh(source)
    assert source.reinvestment_count == 1


def test_reinvest_defaults_to_remaining_return_of_completed_investment(
    db_session: Session, test_user, admin_user, funded_wallet: Wallet, property_with_plots: Property
):
    source = investment_service.create_investment(
        db_session, user_id=test_user.id, amount=Decimal("5000"), plot_id=property_with_plots.plots[0].id
    )
    investment_service.approve_investment(db_session, source.id, approver_id=admin_user.id)
    investment_service.complete_investment(db_session, source.id, actual_return=Decimal("1800"))

    reinvestment = investment_service.reinvest(
        db_session, source.id, property_id=property_with_plots.id, actor_user_id=admin_user.id
    )
    assert reinvestment.amount == Decimal("1800.00")
    assert reinvestment.source_investment_id == source.id
    assert reinvestment.status == InvestmentStatus.PENDING

    db_session.refresh(source)
    assert source.reinvestment_count == 1
    assert investment_service.reinvestable_amount(db_session, source) == Decimal("0.00")


def test_reinvest_requires_earnings(
    db_session: Session, test_user, admin_user, funded_wallet: Wallet, property_with_plots: Property
):
    pending = investment_service.create_investment(
        db_session, user_id=test_user.id, amount=Decimal("5000"), plot_id=property_with_plots.plots[0].id
    )
    with pytest.raises(InvalidStateTransition):
        investment_service.reinvest(db_session, pending.id, property_id=property_with_plots.id)

    investment_service.approve_investment(db_session, pending.id, approver_id=admin_user.id)
    with pytest.raises(ValidationError):
        investment_service.reinvest(db_session, pending.id, property_id=property_with_plots.id)


def test_complete_investment(
    client: TestClient, db_session: Session, test_user, admin_user, admin_headers: dict,
    funded_wallet: Wallet, property_with_plots: Property,
):
    investment = investment_service.create_investment(
        db_session, user_id=test_user.id, amount=Decimal("5000"), plot_id=property_with_plots.plots[0].id
    )
    investment_service.approve_investment(db_session, investment.id, approver_id=admin_user.id)

    response = client.post(
        f"/admin/investments/{investment.id}/complete",
        json={"actual_return": "1800"},
        headers=admin_headers,
    )
    assert response.status_code == 200, response.json()
    assert response.json()["status"] == "completed"
    assert response.json()["actual_return"] == "1800.00"


def test_transaction_approve_route_delegates_to_investment(
    client: TestClient, db_session: Session, user_headers: dict, admin_headers: dict,
    funded_wallet: Wallet, property_with_plots: Property,
):
    created = _invest(client, user_headers, property_with_plots).json()
    transaction = db_session.query(Transaction).filter(Transaction.investment_id == created["id"]).one()

    response = client.post(f"/admin/transactions/{transaction.id}/approve", headers=admin_headers)
    assert response.status_code == 200, response.json()
    assert response.json()["status"] == "completed"

    investment = db_session.get(Investment, created["id"])
    db_session.refresh(investment)
    assert investment.status == InvestmentStatus.ACTIVE


def test_bulk_review_skips_investment_holds(
    client: TestClient, db_session: Session, user_headers: dict, admin_headers: dict,
    funded_wallet: Wallet, property_with_plots: Property,
):
    created = _invest(client, user_headers, property_with_plots).json()
    transaction = db_session.query(Transaction).filter(Transaction.investment_id == created["id"]).one()

    response = client.post(
        "/admin/transactions/bulk-review",
        json={"transaction_ids": [transaction.id], "action": "approve"},
        headers=admin_headers,
    )
    assert response.status_code == 200
    result = response.json()["results"][0]
    assert result["success"] is False
    assert result["error_code"] == "VALIDATION_ERROR"


def test_customer_lists_own_investments(
    client: TestClient, user_headers: dict, funded_wallet: Wallet, property_with_plots: Property
):
    _invest(client, user_headers, property_with_plots)
    _invest(client, user_headers, property_with_plots, amount="2000", plot_index=1)

    response = client.get("/api/investments", headers=user_headers)
    assert response.status_code == 200
    data = response.json()
    assert data["total"] == 2
    assert {item["plot_number"] for item in data["items"]} == {"A-1", "A-2"}
