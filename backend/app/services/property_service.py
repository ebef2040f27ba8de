"""
Property service - properties, plots and plot sales

Plot counters on a property are maintained here only:
total_plots = available_plots + sold_plots (held plots are still available).
"""

import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, List, Optional, Tuple
from sqlalchemy import select, func
from sqlalchemy.orm import Session

from app.core.common.money import to_money, ZERO
from app.core.investments.models import Investment, InvestmentStatus
from app.core.properties.models import (
    Property,
    PropertyStatus,
    Plot,
    PlotStatus,
    Sale,
    SaleStatus,
)
from app.services.audit import record_audit, snapshot
from app.services.exceptions import InvalidStateTransition, NotFoundError, ValidationError

logger = logging.getLogger(__name__)

PROPERTY_AUDIT_FIELDS = ("name", "type", "location", "status", "purchase_cost", "total_plots", "available_plots", "sold_plots")
PLOT_AUDIT_FIELDS = ("property_id", "plot_number", "area", "price", "status")
SALE_AUDIT_FIELDS = ("plot_id", "property_id", "investment_id", "buyer_name", "sale_price", "original_price", "profit_amount", "status")

_PROPERTY_EDITABLE = ("name", "type", "location", "description", "total_area", "purchase_cost", "status")
_PLOT_EDITABLE = ("plot_number", "area", "price", "description")


# ---- Properties ----

def get_property(db: Session, property_id: int) -> Property:
    prop = db.get(Property, property_id)
    if not prop:
        raise NotFoundError("Property", property_id)
    return prop


def list_properties(
    db: Session,
    *,
    status: Optional[PropertyStatus] = None,
    search: Optional[str] = None,
    limit: int = 50,
    offset: int = 0,
) -> Tuple[List[Property], int]:
    conditions = []
    if status is not None:
        conditions.append(Property.status == status)
    if search:
        conditions.append(Property.name.ilike(f"%{search}%"))
    items = db.execute(
        select(Property).where(*conditions).order_by(Property.id.desc()).limit(limit).offset(offset)
    ).scalars().all()
    total = db.execute(select(func.count(Property.id)).where(*conditions)).scalar_one()
    return list(items), total


def create_property(db: Session, *, actor_user_id: Optional[int] = None, **fields: Any) -> Property:
    name = (fields.get("name") or "").strip()
    if not name:
        raise ValidationError("Property name is required", field="name")
    for money_field in ("total_area", "purchase_cost"):
        if fields.get(money_field) is not None:
            fields[money_field] = to_money(fields[money_field])

    prop = Property(
        total_plots=0,
        available_plots=0,
        sold_plots=0,
        **{key: value for key, value in fields.items() if key in _PROPERTY_EDITABLE and value is not None},
    )
    prop.name = name
    db.add(prop)
    db.flush()
    record_audit(
        db,
        action="PROPERTY_CREATED",
        entity_type="Property",
        entity_id=prop.id,
        actor_user_id=actor_user_id,
        after=snapshot(prop, PROPERTY_AUDIT_FIELDS),
    )
    db.commit()
    db.refresh(prop)
    logger.info("Property created", extra={"property_id": prop.id, "property_name": prop.name})
    return prop


def update_property(db: Session, property_id: int, *, actor_user_id: Optional[int] = None, **changes: Any) -> Property:
    """Update descriptive fields; plot counters are never set directly"""
    prop = get_property(db, property_id)
    before = snapshot(prop, PROPERTY_AUDIT_FIELDS)

    for key, value in changes.items():
        if key not in _PROPERTY_EDITABLE or value is None:
            continue
        if key in ("total_area", "purchase_cost"):
            value = to_money(value)
        setattr(prop, key, value)

    if prop.status == PropertyStatus.SOLD_OUT and prop.available_plots > 0:
        raise ValidationError("Property still has available plots", field="status")

    record_audit(
        db,
        action="PROPERTY_UPDATED",
        entity_type="Property",
        entity_id=prop.id,
        actor_user_id=actor_user_id,
        before=before,
        after=snapshot(prop, PROPERTY_AUDIT_FIELDS),
    )
    db.commit()
    db.refresh(prop)
    return prop


def delete_property(db: Session, property_id: int, *, actor_user_id: Optional[int] = None) -> None:
    """Delete a property and its plots; refused once it has sales or investments"""
    prop = get_property(db, property_id)
    sales = db.execute(select(func.count(Sale.id)).where(Sale.property_id == prop.id)).scalar_one()
    investments = db.execute(
        select(func.count(Investment.id)).where(Investment.property_id == prop.id)
    ).scalar_one()
    if sales or investments:
        raise InvalidStateTransition(
            "Property has sales or investments and cannot be deleted",
            details={"property_id": prop.id, "sales": sales, "investments": investments},
        )

    record_audit(
        db,
        action="PROPERTY_DELETED",
        entity_type="Property",
        entity_id=prop.id,
        actor_user_id=actor_user_id,
        before=snapshot(prop, PROPERTY_AUDIT_FIELDS),
    )
    for plot in list(prop.plots):
        db.delete(plot)
    db.delete(prop)
    db.commit()
    logger.info("Property deleted", extra={"property_id": property_id})


# ---- Plots ----

def get_plot(db: Session, plot_id: int) -> Plot:
    plot = db.get(Plot, plot_id)
    if not plot:
        raise NotFoundError("Plot", plot_id)
    return plot


def list_plots(
    db: Session,
    *,
    property_id: Optional[int] = None,
    status: Optional[PlotStatus] = None,
    limit: int = 100,
    offset: int = 0,
) -> Tuple[List[Plot], int]:
    conditions = []
    if property_id is not None:
        conditions.append(Plot.property_id == property_id)
    if status is not None:
        conditions.append(Plot.status == status)
    items = db.execute(
        select(Plot).where(*conditions).order_by(Plot.property_id, Plot.id).limit(limit).offset(offset)
    ).scalars().all()
    total = db.execute(select(func.count(Plot.id)).where(*conditions)).scalar_one()
    return list(items), total


def _ensure_unique_plot_number(db: Session, property_id: int, plot_number: str, exclude_id: Optional[int] = None) -> None:
    conditions = [Plot.property_id == property_id, Plot.plot_number == plot_number]
    if exclude_id is not None:
        conditions.append(Plot.id != exclude_id)
    if db.execute(select(Plot.id).where(*conditions)).first():
        raise ValidationError(f"Plot number {plot_number} already exists for this property", field="plot_number")


def add_plot(
    db: Session,
    property_id: int,
    *,
    plot_number: str,
    price: Decimal,
    area: Optional[Decimal] = None,
    description: Optional[str] = None,
    actor_user_id: Optional[int] = None,
) -> Plot:
    prop = get_property(db, property_id)
    plot_number = (plot_number or "").strip()
    if not plot_number:
        raise ValidationError("Plot number is required", field="plot_number")
    price = to_money(price)
    if price <= ZERO:
        raise ValidationError("Plot price must be greater than 0", field="price")
    _ensure_unique_plot_number(db, prop.id, plot_number)

    plot = Plot(
        property_id=prop.id,
        plot_number=plot_number,
        price=price,
        area=to_money(area) if area is not None else None,
        description=description,
        status=PlotStatus.AVAILABLE,
    )
    db.add(plot)
    prop.total_plots += 1
    prop.available_plots += 1
    if prop.status == PropertyStatus.SOLD_OUT:
        prop.status = PropertyStatus.ACTIVE
    db.flush()

    record_audit(
        db,
        action="PLOT_CREATED",
        entity_type="Plot",
        entity_id=plot.id,
        actor_user_id=actor_user_id,
        after=snapshot(plot, PLOT_AUDIT_FIELDS),
    )
    db.commit()
    db.refresh(plot)
    return plot


def update_plot(db: Session, plot_id: int, *, actor_user_id: Optional[int] = None, **changes: Any) -> Plot:
    """Sold plots are immutable; status only moves through investments and sales"""
    plot = get_plot(db, plot_id)
    if plot.status == PlotStatus.SOLD:
        raise InvalidStateTransition("Sold plots cannot be edited", details={"plot_id": plot.id})
    before = snapshot(plot, PLOT_AUDIT_FIELDS)

    for key, value in changes.items():
        if key not in _PLOT_EDITABLE or value is None:
            continue
        if key == "plot_number":
            value = value.strip()
            _ensure_unique_plot_number(db, plot.property_id, value, exclude_id=plot.id)
        elif key == "price":
            value = to_money(value)
            if value <= ZERO:
                raise ValidationError("Plot price must be greater than 0", field="price")
        elif key == "area":
            value = to_money(value)
        setattr(plot, key, value)

    record_audit(
        db,
        action="PLOT_UPDATED",
        entity_type="Plot",
        entity_id=plot.id,
        actor_user_id=actor_user_id,
        before=before,
        after=snapshot(plot, PLOT_AUDIT_FIELDS),
    )
    db.commit()
    db.refresh(plot)
    return plot


def delete_plot(db: Session, plot_id: int, *, actor_user_id: Optional[int] = None) -> None:
    plot = get_plot(db, plot_id)
    if plot.status != PlotStatus.AVAILABLE:
        raise InvalidStateTransition(
            f"Only available plots can be deleted (current status: {plot.status.value})",
            details={"plot_id": plot.id, "status": plot.status.value},
        )
    linked = db.execute(select(func.count(Investment.id)).where(Investment.plot_id == plot.id)).scalar_one()
    if linked:
        raise InvalidStateTransition("Plot has investment history and cannot be deleted", details={"plot_id": plot.id})

    prop = plot.property
    record_audit(
        db,
        action="PLOT_DELETED",
        entity_type="Plot",
        entity_id=plot.id,
        actor_user_id=actor_user_id,
        before=snapshot(plot, PLOT_AUDIT_FIELDS),
    )
    prop.total_plots -= 1
    prop.available_plots -= 1
    db.delete(plot)
    db.commit()


# ---- Sales ----

def list_sales(
    db: Session,
    *,
    property_id: Optional[int] = None,
    status: Optional[SaleStatus] = None,
    limit: int = 50,
    offset: int = 0,
) -> Tuple[List[Sale], int]:
    conditions = []
    if property_id is not None:
        conditions.append(Sale.property_id == property_id)
    if status is not None:
        conditions.append(Sale.status == status)
    items = db.execute(
        select(Sale).where(*conditions).order_by(Sale.sale_date.desc(), Sale.id.desc()).limit(limit).offset(offset)
    ).scalars().all()
    total = db.execute(select(func.count(Sale.id)).where(*conditions)).scalar_one()
    return list(items), total


def get_sale(db: Session, sale_id: int) -> Sale:
    sale = db.get(Sale, sale_id)
    if not sale:
        raise NotFoundError("Sale", sale_id)
    return sale


def record_sale(
    db: Session,
    *,
    plot_id: int,
    sale_price: Decimal,
    buyer_name: str,
    buyer_phone: Optional[str] = None,
    buyer_email: Optional[str] = None,
    investment_id: Optional[int] = None,
    original_price: Optional[Decimal] = None,
    sale_date: Optional[datetime] = None,
    notes: Optional[str] = None,
    actor_user_id: Optional[int] = None,
) -> Sale:
    """
    Record the sale of a plot.

    The plot becomes SOLD and the property counters move from available to
    sold; the property is SOLD_OUT once no plot is available. When no
    investment is given, the active investment holding the plot is linked.
    profit_amount = sale_price - original_price (original defaults to the
    plot price).
    """
    db.flush()
    plot = db.execute(
        select(Plot).where(Plot.id == plot_id).with_for_update().execution_options(populate_existing=True)
    ).scalar_one_or_none()
    if not plot:
        raise NotFoundError("Plot", plot_id)
    if plot.status == PlotStatus.SOLD:
        raise InvalidStateTransition("Plot is already sold", details={"plot_id": plot.id})
    if not (buyer_name or "").strip():
        raise ValidationError("Buyer name is required", field="buyer_name")
    sale_price = to_money(sale_price)
    if sale_price <= ZERO:
        raise ValidationError("Sale price must be greater than 0", field="sale_price")

    if investment_id is not None:
        investment = db.get(Investment, investment_id)
        if not investment:
            raise NotFoundError("Investment", investment_id)
        if investment.property_id != plot.property_id:
            raise ValidationError("Investment is for a different property", field="investment_id")
        if investment.plot_id not in (None, plot.id):
            raise ValidationError("Investment is for a different plot", field="investment_id")
        if investment.status not in (InvestmentStatus.ACTIVE, InvestmentStatus.COMPLETED):
            raise ValidationError("Only active investments can be linked to a sale", field="investment_id")
    else:
        investment = db.execute(
            select(Investment).where(
                Investment.plot_id == plot.id,
                Investment.status == InvestmentStatus.ACTIVE,
            ).order_by(Investment.id.desc())
        ).scalars().first()

    original = to_money(original_price if original_price is not None else plot.price)
    sale = Sale(
        plot_id=plot.id,
        property_id=plot.property_id,
        investment_id=investment.id if investment else None,
        buyer_name=buyer_name.strip(),
        buyer_phone=buyer_phone,
        buyer_email=buyer_email,
        sale_price=sale_price,
        original_price=original,
        profit_amount=sale_price - original,
        status=SaleStatus.COMPLETED,
        sale_date=sale_date or datetime.now(timezone.utc),
        notes=notes,
    )
    db.add(sale)

    prop = plot.property
    plot.status = PlotStatus.SOLD
    prop.available_plots -= 1
    prop.sold_plots += 1
    if prop.available_plots <= 0:
        prop.status = PropertyStatus.SOLD_OUT
    db.flush()

    record_audit(
        db,
        action="SALE_RECORDED",
        entity_type="Sale",
        entity_id=sale.id,
        actor_user_id=actor_user_id,
        after=snapshot(sale, SALE_AUDIT_FIELDS),
    )
    db.commit()
    db.refresh(sale)
    logger.info(
        "Plot sale recorded",
        extra={
            "sale_id": sale.id,
            "plot_id": plot.id,
            "property_id": prop.id,
            "sale_price": str(sale_price),
            "profit_amount": str(sale.profit_amount),
            "investment_id": sale.investment_id,
        },
    )
    return sale
