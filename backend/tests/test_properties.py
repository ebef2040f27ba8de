"""
Property, plot and sale administration tests
"""

from decimal import Decimal

from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from app.core.properties.models import PlotStatus, Property, PropertyStatus
from app.services import investment_service, property_service


def test_store_property_starts_with_empty_counters(client: TestClient, admin_headers: dict):
    response = client.post(
        "/admin/properties/store",
        json={"name": "Riverside Meadows", "location": "Pune", "total_area": "12000", "purchase_cost": "2500000"},
        headers=admin_headers,
    )
    assert response.status_code == 201, response.json()
    data = response.json()
    assert data["status"] == "active"
    assert data["type"] == "residential"
    assert data["total_plots"] == 0
    assert data["available_plots"] == 0
    assert data["sold_plots"] == 0
    assert data["purchase_cost"] == "2500000.00"
    assert data["plots"] == []


def test_store_property_requires_name(client: TestClient, admin_headers: dict):
    response = client.post("/admin/properties/store", json={"name": ""}, headers=admin_headers)
    assert response.status_code == 422


def test_add_plot_updates_counters(client: TestClient, admin_headers: dict, property_with_plots: Property):
    response = client.post(
        f"/admin/properties/{property_with_plots.id}/plots",
        json={"plot_number": "B-7", "price": "7500", "area": "1200"},
        headers=admin_headers,
    )
    assert response.status_code == 201, response.json()
    assert response.json()["status"] == "available"

    detail = client.get(f"/admin/properties/{property_with_plots.id}", headers=admin_headers).json()
    assert detail["total_plots"] == 3
    assert detail["available_plots"] == 3
    assert [p["plot_number"] for p in detail["plots"]] == ["A-1", "A-2", "B-7"]


def test_duplicate_plot_number_refused(client: TestClient, admin_headers: dict, property_with_plots: Property):
    response = client.post(
        f"/admin/properties/{property_with_plots.id}/plots",
        json={"plot_number": "A-1", "price": "5000"},
        headers=admin_headers,
    )
    assert response.status_code == 422
    assert "plot_number" in response.json()["error"]["fields"]


def test_sale_moves_counters_and_sells_out(client: TestClient, db_session: Session, admin_headers: dict, property_with_plots: Property):
    plot_ids = [p.id for p in property_with_plots.plots]

    response = client.post(
        "/admin/sales/store",
        json={"plot_id": plot_ids[0], "sale_price": "6500", "buyer_name": "Kiran Shah"},
        headers=admin_headers,
    )
    assert response.status_code == 201, response.json()
    sale = response.json()
    assert sale["original_price"] == "5000.00"
    assert sale["profit_amount"] == "1500.00"
    assert sale["status"] == "completed"
    assert sale["plot_number"] == "A-1"

    db_session.refresh(property_with_plots)
    assert property_with_plots.available_plots == 1
    assert property_with_plots.sold_plots == 1
    assert property_with_plots.status == PropertyStatus.ACTIVE

    client.post(
        "/admin/sales/store",
        json={"plot_id": plot_ids[1], "sale_price": "5200", "buyer_name": "Kiran Shah", "original_price": "4800"},
        headers=admin_headers,
    )
    db_session.refresh(property_with_plots)
    assert property_with_plots.available_plots == 0
    assert property_with_plots.sold_plots == 2
    assert property_with_plots.status == PropertyStatus.SOLD_OUT

    sales = client.get("/admin/sales", params={"property_id": property_with_plots.id}, headers=admin_headers).json()
    assert sales["total"] == 2
    assert {s["profit_amount"] for s in sales["items"]} == {"1500.00", "400.00"}


def test_selling_a_plot_twice_is_refused(client: TestClient, admin_headers: dict, property_with_plots: Property):
    plot_id = property_with_plots.plots[0].id
    payload = {"plot_id": plot_id, "sale_price": "6500", "buyer_name": "Kiran Shah"}

    assert client.post("/admin/sales/store", json=payload, headers=admin_headers).status_code == 201
    response = client.post("/admin/sales/store", json=payload, headers=admin_headers)
    assert response.status_code == 409
    assert response.json()["error"]["code"] == "INVALID_STATE_TRANSITION"


def test_sale_links_active_investment(
    db_session: Session, test_user, admin_user, funded_wallet, property_with_plots: Property
):
    plot = property_with_plots.plots[0]
    investment = investment_service.create_investment(
        db_session, user_id=test_user.id, amount=Decimal("5000"), plot_id=plot.id
    )
    investment_service.approve_investment(db_session, investment.id, approver_id=admin_user.id)

    sale = property_service.record_sale(db_session, plot_id=plot.id, sale_price=Decimal("9000"), buyer_name="Nisha Rao")
    assert sale.investment_id == investment.id
    db_session.refresh(plot)
    assert plot.status == PlotStatus.SOLD


def test_sold_plot_cannot_be_edited(client: TestClient, admin_headers: dict, property_with_plots: Property):
    plot_id = property_with_plots.plots[0].id
    client.post(
        "/admin/sales/store",
        json={"plot_id": plot_id, "sale_price": "6500", "buyer_name": "Kiran Shah"},
        headers=admin_headers,
    )

    response = client.put(f"/admin/plots/{plot_id}/update", json={"price": "9999"}, headers=admin_headers)
    assert response.status_code == 409


def test_update_plot(client: TestClient, admin_headers: dict, property_with_plots: Property):
    plot_id = property_with_plots.plots[1].id

    response = client.put(
        f"/admin/plots/{plot_id}/update",
        json={"price": "5400", "description": "Corner plot"},
        headers=admin_headers,
    )
    assert response.status_code == 200
    assert response.json()["price"] == "5400.00"
    assert response.json()["description"] == "Corner plot"


def test_property_cannot_sell_out_with_available_plots(client: TestClient, admin_headers: dict, property_with_plots: Property):
    response = client.put(
        f"/admin/properties/{property_with_plots.id}/update",
        json={"status": "sold_out"},
        headers=admin_headers,
    )
    assert response.status_code == 422
    assert "status" in response.json()["error"]["fields"]


def test_delete_available_plot(client: TestClient, db_session: Session, admin_headers: dict, property_with_plots: Property):
    response = client.delete(f"/admin/plots/{property_with_plots.plots[1].id}", headers=admin_headers)
    assert response.status_code == 200

    db_session.refresh(property_with_plots)
    assert property_with_plots.total_plots == 1
    assert property_with_plots.available_plots == 1


def test_delete_held_plot_refused(
    client: TestClient, db_session: Session, admin_headers: dict, test_user, funded_wallet, property_with_plots: Property
):
    plot = property_with_plots.plots[0]
    investment_service.create_investment(db_session, user_id=test_user.id, amount=Decimal("5000"), plot_id=plot.id)

    response = client.delete(f"/admin/plots/{plot.id}", headers=admin_headers)
    assert response.status_code == 409


def test_delete_property_guards(
    client: TestClient, db_session: Session, admin_headers: dict, test_user, funded_wallet, property_with_plots: Property
):
    investment_service.create_investment(
        db_session, user_id=test_user.id, amount=Decimal("1000"), property_id=property_with_plots.id
    )
    response = client.delete(f"/admin/properties/{property_with_plots.id}", headers=admin_headers)
    assert response.status_code == 409

    empty = property_service.create_property(db_session, name="Hillside Plots", status=PropertyStatus.PLANNING)
    response = client.delete(f"/admin/properties/{empty.id}", headers=admin_headers)
    assert response.status_code == 200
    assert client.get(f"/admin/properties/{empty.id}", headers=admin_headers).status_code == 404


def test_list_properties_filters(client: TestClient, db_session: Session, admin_headers: dict, property_with_plots: Property):
    property_service.create_property(db_session, name="Hillside Plots", status=PropertyStatus.PLANNING)

    response = client.get("/admin/properties", params={"status": "planning"}, headers=admin_headers)
    assert response.status_code == 200
    assert [p["name"] for p in response.json()["items"]] == ["Hillside Plots"]

    response = client.get("/admin/properties", params={"search": "green"}, headers=admin_headers)
    assert response.json()["total"] == 1

    response = client.get("/admin/plots", params={"property_id": property_with_plots.id}, headers=admin_headers)
    assert response.json()["total"] == 2
