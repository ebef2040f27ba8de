"""
Property, plot and sale schemas
"""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from pydantic import BaseModel, EmailStr, Field

from app.core.properties.models import Property, PropertyStatus, Plot, Sale
from app.schemas.common import iso, money


class PlotResponse(BaseModel):
    id: int
    property_id: int
    plot_number: str
    area: Optional[str] = None
    price: str
    status: str = Field(..., description="available, held, sold")
    description: Optional[str] = None

    @classmethod
    def from_model(cls, plot: Plot) -> "PlotResponse":
        return cls(
            id=plot.id,
            property_id=plot.property_id,
            plot_number=plot.plot_number,
            area=money(plot.area),
            price=money(plot.price),
            status=plot.status.value,
            description=plot.description,
        )


class PropertyResponse(BaseModel):
    id: int
    name: str
    type: str
    location: Optional[str] = None
    description: Optional[str] = None
    total_area: Optional[str] = None
    purchase_cost: Optional[str] = None
    status: str = Field(..., description="planning, active, sold_out, inactive")
    total_plots: int
    available_plots: int
    sold_plots: int
    created_at: Optional[str] = None
    plots: Optional[List[PlotResponse]] = Field(None, description="Included on the detail view")

    @classmethod
    def from_model(cls, prop: Property, include_plots: bool = False) -> "PropertyResponse":
        return cls(
            id=prop.id,
            name=prop.name,
            type=prop.type,
            location=prop.location,
            description=prop.description,
            total_area=money(prop.total_area),
            purchase_cost=money(prop.purchase_cost),
            status=prop.status.value,
            total_plots=prop.total_plots,
            available_plots=prop.available_plots,
            sold_plots=prop.sold_plots,
            created_at=iso(prop.created_at),
            plots=[PlotResponse.from_model(p) for p in prop.plots] if include_plots else None,
        )

    class Config:
        json_schema_extra = {
            "example": {
                "id": 2,
                "name": "Green Valley Phase 1",
                "type": "residential",
                "location": "Nashik, Maharashtra",
                "status": "active",
                "total_plots": 40,
                "available_plots": 31,
                "sold_plots": 9,
            }
        }


class PropertyListResponse(BaseModel):
    items: List[PropertyResponse]
    total: int
    page: int
    per_page: int


class PropertyCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    type: str = Field("residential", max_length=50)
    location: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = None
    total_area: Optional[Decimal] = Field(None, gt=0)
    purchase_cost: Optional[Decimal] = Field(None, ge=0)
    status: PropertyStatus = PropertyStatus.ACTIVE


class PropertyUpdateRequest(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    type: Optional[str] = Field(None, max_length=50)
    location: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = None
    total_area: Optional[Decimal] = Field(None, gt=0)
    purchase_cost: Optional[Decimal] = Field(None, ge=0)
    status: Optional[PropertyStatus] = None


class PlotCreateRequest(BaseModel):
    plot_number: str = Field(..., min_length=1, max_length=50)
    price: Decimal = Field(..., gt=0)
    area: Optional[Decimal] = Field(None, gt=0)
    description: Optional[str] = None

    class Config:
        json_schema_extra = {"example": {"plot_number": "A-12", "price": "450000.00", "area": "1200"}}


class PlotUpdateRequest(BaseModel):
    plot_number: Optional[str] = Field(None, min_length=1, max_length=50)
    price: Optional[Decimal] = Field(None, gt=0)
    area: Optional[Decimal] = Field(None, gt=0)
    description: Optional[str] = None


class PlotListResponse(BaseModel):
    items: List[PlotResponse]
    total: int
    page: int
    per_page: int


class SaleResponse(BaseModel):
    id: int
    plot_id: int
    plot_number: Optional[str] = None
    property_id: int
    investment_id: Optional[int] = None
    buyer_name: str
    buyer_phone: Optional[str] = None
    buyer_email: Optional[str] = None
    sale_price: str
    original_price: str
    profit_amount: str
    status: str
    sale_date: str
    notes: Optional[str] = None

    @classmethod
    def from_model(cls, sale: Sale) -> "SaleResponse":
        return cls(
            id=sale.id,
            plot_id=sale.plot_id,
            plot_number=sale.plot.plot_number if sale.plot else None,
            property_id=sale.property_id,
            investment_id=sale.investment_id,
            buyer_name=sale.buyer_name,
            buyer_phone=sale.buyer_phone,
            buyer_email=sale.buyer_email,
            sale_price=money(sale.sale_price),
            original_price=money(sale.original_price),
            profit_amount=money(sale.profit_amount),
            status=sale.status.value,
            sale_date=iso(sale.sale_date),
            notes=sale.notes,
        )


class SaleListResponse(BaseModel):
    items: List[SaleResponse]
    total: int
    page: int
    per_page: int


class SaleCreateRequest(BaseModel):
    """Record the sale of a plot"""
    plot_id: int
    sale_price: Decimal = Field(..., gt=0)
    buyer_name: str = Field(..., min_length=1, max_length=255)
    buyer_phone: Optional[str] = Field(None, max_length=50)
    buyer_email: Optional[EmailStr] = None
    investment_id: Optional[int] = Field(None, description="Defaults to the active investment holding the plot")
    original_price: Optional[Decimal] = Field(None, gt=0, description="Defaults to the plot price")
    sale_date: Optional[datetime] = None
    notes: Optional[str] = None

    class Config:
        json_schema_extra = {
            "example": {
                "plot_id": 14,
                "sale_price": "452000.00",
                "buyer_name": "R. Kulkarni",
                "buyer_phone": "+91 90000 11111",
            }
        }
