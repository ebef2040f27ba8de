"""
Profit calculation and distribution tests
"""

from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from app.core.investments.models import Investment
from app.core.payments.models import PaymentMethod
from app.core.profits.models import Profit, ProfitStatus
from app.core.properties.models import Property, Sale
from app.core.transactions.models import Transaction, TransactionStatus, TransactionType
from app.core.wallets.models import Wallet, WalletStatus
from app.services import investment_service, profit_distributor, property_service, wallet_ledger
from app.services.exceptions import ValidationError
from tests.auth_utils import fund_wallet


def _sold_investment(db: Session, user, admin, prop: Property, plot_index: int = 0, sale_price: str = "15000") -> Sale:
    """Approved ₹5,000 investment on a plot that is then sold"""
    plot = prop.plots[plot_index]
    investment = investment_service.create_investment(
        db, user_id=user.id, amount=Decimal("5000"), plot_id=plot.id
    )
    investment_service.approve_investment(db, investment.id, approver_id=admin.id)
    return property_service.record_sale(
        db, plot_id=plot.id, sale_price=Decimal(sale_price), buyer_name="Meera Iyer", actor_user_id=admin.id
    )


@pytest.fixture
def sale(db_session: Session, test_user, admin_user, funded_wallet: Wallet, property_with_plots: Property) -> Sale:
    return _sold_investment(db_session, test_user, admin_user, property_with_plots)


@pytest.mark.parametrize(
    "total, percentage, investor, company",
    [
        ("10000", "60", "6000.00", "4000.00"),
        ("1000.01", "33.33", "333.30", "666.71"),
        ("0.05", "50", "0.03", "0.02"),
        ("2500", "0", "0.00", "2500.00"),
        ("2500", "100", "2500.00", "0.00"),
    ],
)
def test_split_profit(total, percentage, investor, company):
    investor_share, company_share = profit_distributor.split_profit(Decimal(total), Decimal(percentage))
    assert investor_share == Decimal(investor)
    assert company_share == Decimal(company)
    assert investor_share + company_share == Decimal(total).quantize(Decimal("0.01"))


def test_sale_profit_amount(sale: Sale):
    assert sale.original_price == Decimal("5000.00")
    assert sale.profit_amount == Decimal("10000.00")
    assert sale.investment_id is not None


def test_store_profit_splits_sale_profit(client: TestClient, admin_headers: dict, sale: Sale, test_user):
    response = client.post(
        "/admin/profits/store",
        json={"sale_id": sale.id, "profit_percentage": "60"},
        headers=admin_headers,
    )
    assert response.status_code == 201, response.json()
    data = response.json()
    assert data["status"] == "pending"
    assert data["user_id"] == test_user.id
    assert data["total_profit"] == "10000.00"
    assert data["investor_share"] == "6000.00"
    assert data["company_share"] == "4000.00"
    assert data["company_percentage"] == "40.00"


def test_store_profit_percentage_out_of_range(client: TestClient, admin_headers: dict, sale: Sale):
    response = client.post(
        "/admin/profits/store",
        json={"sale_id": sale.id, "profit_percentage": "100.5"},
        headers=admin_headers,
    )
    assert response.status_code == 422
    assert "profit_percentage" in response.json()["error"]["fields"]


def test_calculate_rejects_percentage_out_of_range(db_session: Session, sale: Sale):
    with pytest.raises(ValidationError):
        profit_distributor.calculate(db_session, sale_id=sale.id, profit_percentage=Decimal("-1"))


def test_one_open_profit_per_sale(db_session: Session, sale: Sale):
    first = profit_distributor.calculate(db_session, sale_id=sale.id, profit_percentage=Decimal("60"))

    with pytest.raises(ValidationError) as exc_info:
        profit_distributor.calculate(db_session, sale_id=sale.id, profit_percentage=Decimal("70"))
    assert exc_info.value.field == "sale_id"

    # A cancelled profit frees the sale for a new calculation
    profit_distributor.cancel(db_session, first.id, reason="Wrong percentage")
    second = profit_distributor.calculate(db_session, sale_id=sale.id, profit_percentage=Decimal("70"))
    assert second.investor_share == Decimal("7000.00")


def test_sale_without_investment_cannot_be_split(
    db_session: Session, funded_wallet: Wallet, property_with_plots: Property
):
    unlinked = property_service.record_sale(
        db_session, plot_id=property_with_plots.plots[1].id, sale_price=Decimal("6000"), buyer_name="Walk-in buyer"
    )
    assert unlinked.investment_id is None

    with pytest.raises(ValidationError):
        profit_distributor.calculate(db_session, sale_id=unlinked.id, profit_percentage=Decimal("50"))


def test_distribute_credits_investor_once(
    client: TestClient, db_session: Session, admin_headers: dict, sale: Sale, funded_wallet: Wallet
):
    profit = profit_distributor.calculate(db_session, sale_id=sale.id, profit_percentage=Decimal("60"))

    response = client.post(f"/admin/profits/{profit.id}/distribute", headers=admin_headers)
    assert response.status_code == 200, response.json()
    data = response.json()
    assert data["status"] == "distributed"
    assert data["distribution_date"] is not None
    assert data["distributed_by"] is not None

    db_session.refresh(funded_wallet)
    assert funded_wallet.balance == Decimal("21000.00")
    assert funded_wallet.total_profits == Decimal("6000.00")

    credit = db_session.query(Transaction).filter(Transaction.type == TransactionType.PROFIT).one()
    assert credit.status == TransactionStatus.COMPLETED
    assert credit.amount == Decimal("6000.00")
    assert credit.profit_id == profit.id
    assert credit.reference.startswith("PRF_")

    investment = db_session.get(Investment, sale.investment_id)
    db_session.refresh(investment)
    assert investment.profit_distributed == Decimal("6000.00")

    # Second distribution never credits again
    response = client.post(f"/admin/profits/{profit.id}/distribute", headers=admin_headers)
    assert response.status_code == 409
    assert response.json()["error"]["code"] == "ALREADY_DISTRIBUTED"

    db_session.refresh(funded_wallet)
    assert funded_wallet.balance == Decimal("21000.00")
    assert db_session.query(Transaction).filter(Transaction.type == TransactionType.PROFIT).count() == 1


def test_zero_share_is_marked_distributed_without_credit(db_session: Session, sale: Sale, funded_wallet: Wallet):
    profit = profit_distributor.calculate(db_session, sale_id=sale.id, profit_percentage=Decimal("0"))

    distributed = profit_distributor.distribute(db_session, profit.id)
    assert distributed.status == ProfitStatus.DISTRIBUTED
    assert db_session.query(Transaction).filter(Transaction.type == TransactionType.PROFIT).count() == 0

    db_session.refresh(funded_wallet)
    assert funded_wallet.balance == Decimal("15000.00")


def test_distribute_to_inactive_wallet_keeps_profit_pending(
    client: TestClient, db_session: Session, admin_headers: dict, sale: Sale, funded_wallet: Wallet
):
    profit = profit_distributor.calculate(db_session, sale_id=sale.id, profit_percentage=Decimal("60"))
    wallet_ledger.update_wallet(db_session, funded_wallet.id, status=WalletStatus.FROZEN, reason="KYC review")

    response = client.post(f"/admin/profits/{profit.id}/distribute", headers=admin_headers)
    assert response.status_code == 409
    assert response.json()["error"]["code"] == "WALLET_NOT_ACTIVE"

    db_session.refresh(profit)
    assert profit.status == ProfitStatus.PENDING

    rejected = db_session.query(Transaction).filter(Transaction.type == TransactionType.PROFIT).one()
    assert rejected.status == TransactionStatus.REJECTED
    assert rejected.profit_id == profit.id
    db_session.refresh(funded_wallet)
    assert funded_wallet.balance == Decimal("15000.00")
    assert funded_wallet.total_profits == Decimal("0.00")


def test_distribute_bulk_reports_each_id(
    client: TestClient, db_session: Session, test_user, admin_user, admin_headers: dict,
    funded_wallet: Wallet, property_with_plots: Property,
):
    first_sale = _sold_investment(db_session, test_user, admin_user, property_with_plots, plot_index=0)
    second_sale = _sold_investment(db_session, test_user, admin_user, property_with_plots, plot_index=1, sale_price="8000")
    first = profit_distributor.calculate(db_session, sale_id=first_sale.id, profit_percentage=Decimal("60"))
    second = profit_distributor.calculate(db_session, sale_id=second_sale.id, profit_percentage=Decimal("50"))
    profit_distributor.distribute(db_session, second.id)

    response = client.post(
        "/admin/profits/distribute-bulk",
        json={"profit_ids": [first.id, second.id, 999999]},
        headers=admin_headers,
    )
    assert response.status_code == 200, response.json()
    data = response.json()
    assert data["distributed_count"] == 1
    assert data["failed_count"] == 2

    results = {r["profit_id"]: r for r in data["results"]}
    assert results[first.id]["success"] is True
    assert results[first.id]["investor_share"] == "6000.00"
    assert results[second.id]["error_code"] == "ALREADY_DISTRIBUTED"
    assert results[999999]["error_code"] == "NOT_FOUND"

    # 20000 - 2 x 5000 invested + 1500 + 6000 distributed
    db_session.refresh(funded_wallet)
    assert funded_wallet.balance == Decimal("17500.00")


def test_update_pending_profit_recomputes_split(client: TestClient, db_session: Session, admin_headers: dict, sale: Sale):
    profit = profit_distributor.calculate(db_session, sale_id=sale.id, profit_percentage=Decimal("60"))

    response = client.put(
        f"/admin/profits/{profit.id}/update",
        json={"profit_percentage": "75", "notes": "Revised agreement"},
        headers=admin_headers,
    )
    assert response.status_code == 200, response.json()
    data = response.json()
    assert data["investor_share"] == "7500.00"
    assert data["company_share"] == "2500.00"
    assert data["notes"] == "Revised agreement"


def test_distributed_profit_is_immutable(client: TestClient, db_session: Session, admin_headers: dict, sale: Sale):
    profit = profit_distributor.calculate(db_session, sale_id=sale.id, profit_percentage=Decimal("60"))
    profit_distributor.distribute(db_session, profit.id)

    response = client.put(f"/admin/profits/{profit.id}/update", json={"profit_percentage": "10"}, headers=admin_headers)
    assert response.status_code == 409

    response = client.post(f"/admin/profits/{profit.id}/cancel", json={}, headers=admin_headers)
    assert response.status_code == 409

    response = client.delete(f"/admin/profits/{profit.id}", headers=admin_headers)
    assert response.status_code == 409
    assert response.json()["error"]["code"] == "INVALID_STATE_TRANSITION"


def test_delete_pending_profit(client: TestClient, db_session: Session, admin_headers: dict, sale: Sale):
    profit = profit_distributor.calculate(db_session, sale_id=sale.id, profit_percentage=Decimal("60"))

    response = client.delete(f"/admin/profits/{profit.id}", headers=admin_headers)
    assert response.status_code == 200
    assert db_session.query(Profit).count() == 0


def test_profit_report(
    client: TestClient, db_session: Session, test_user, admin_user, admin_headers: dict,
    funded_wallet: Wallet, property_with_plots: Property,
):
    first_sale = _sold_investment(db_session, test_user, admin_user, property_with_plots, plot_index=0)
    second_sale = _sold_investment(db_session, test_user, admin_user, property_with_plots, plot_index=1, sale_price="8000")
    first = profit_distributor.calculate(db_session, sale_id=first_sale.id, profit_percentage=Decimal("60"))
    profit_distributor.calculate(db_session, sale_id=second_sale.id, profit_percentage=Decimal("50"))
    profit_distributor.distribute(db_session, first.id)

    response = client.get("/admin/profits/report", headers=admin_headers)
    assert response.status_code == 200
    data = response.json()
    assert data["total_count"] == 2
    assert data["total_profit"] == "13000.00"
    assert data["total_investor_share"] == "7500.00"
    assert data["total_company_share"] == "5500.00"
    assert data["by_status"]["distributed"]["count"] == 1
    assert data["by_status"]["distributed"]["investor_share"] == "6000.00"
    assert data["by_status"]["pending"]["count"] == 1
    assert data["by_status"]["cancelled"]["count"] == 0

    response = client.get("/admin/profits", params={"status": "pending"}, headers=admin_headers)
    assert response.json()["total"] == 1


def test_wallet_walkthrough_withdrawal_refusal_deposit_and_profit(
    client: TestClient, db_session: Session, test_user, admin_user, user_headers: dict, admin_headers: dict,
    wallet: Wallet, payment_method: PaymentMethod, property_with_plots: Property,
):
    # ₹15,000 opening balance, ₹5,000 of it invested in plot A-1
    fund_wallet(db_session, wallet, "15000")
    plot = property_with_plots.plots[0]
    investment = investment_service.create_investment(
        db_session, user_id=test_user.id, amount=Decimal("5000"), plot_id=plot.id
    )
    investment_service.approve_investment(db_session, investment.id, approver_id=admin_user.id)
    db_session.refresh(wallet)
    assert wallet.balance == Decimal("10000.00")

    response = client.post(
        "/api/wallet/withdraw",
        json={"amount": "12000", "payment_method_id": payment_method.id, "payment_mode": "upi", "upi_id": "asha@okbank"},
        headers=user_headers,
    )
    assert response.status_code == 422
    assert response.json()["error"]["code"] == "INSUFFICIENT_FUNDS"
    db_session.refresh(wallet)
    assert wallet.balance == Decimal("10000.00")
    assert wallet.frozen_amount == Decimal("0.00")
    withdrawal = db_session.query(Transaction).filter(Transaction.type == TransactionType.WITHDRAWAL).one()
    assert withdrawal.status == TransactionStatus.REJECTED

    response = client.post(
        "/api/wallet/deposit",
        json={"amount": "5000", "payment_method_id": payment_method.id, "payment_mode": "upi", "auto_approve": True},
        headers=user_headers,
    )
    assert response.status_code == 201, response.json()
    assert response.json()["status"] == "completed"
    db_session.refresh(wallet)
    assert wallet.balance == Decimal("15000.00")

    sale = property_service.record_sale(
        db_session, plot_id=plot.id, sale_price=Decimal("7000"), buyer_name="Meera Iyer", actor_user_id=admin_user.id
    )
    assert sale.profit_amount == Decimal("2000.00")
    profit = profit_distributor.calculate(db_session, sale_id=sale.id, profit_percentage=Decimal("80"))
    assert profit.investor_share == Decimal("1600.00")
    assert profit.company_share == Decimal("400.00")

    response = client.post(f"/admin/profits/{profit.id}/distribute", headers=admin_headers)
    assert response.status_code == 200, response.json()
    db_session.refresh(wallet)
    assert wallet.balance == Decimal("16600.00")
    assert wallet.total_profits == Decimal("1600.00")
