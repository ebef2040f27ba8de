"""
Properties admin endpoints - properties, plots and sales
"""

from typing import Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.api.params import Pagination
from app.auth.dependencies import require_admin_role, get_user_id_from_principal
from app.auth.principal import Principal
from app.core.properties.models import PropertyStatus, PlotStatus, SaleStatus
from app.infrastructure.database import get_db
from app.schemas.common import MessageResponse
from app.schemas.properties import (
    PropertyResponse,
    PropertyListResponse,
    PropertyCreateRequest,
    PropertyUpdateRequest,
    PlotResponse,
    PlotListResponse,
    PlotCreateRequest,
    PlotUpdateRequest,
    SaleResponse,
    SaleListResponse,
    SaleCreateRequest,
)
from app.services import property_service

router = APIRouter()


# ---- Properties ----

@router.get(
    "/properties",
    response_model=PropertyListResponse,
    summary="List properties",
    description="List properties with plot counters. Requires ADMIN role.",
)
async def list_properties(
    status_filter: Optional[PropertyStatus] = Query(default=None, alias="status"),
    search: Optional[str] = Query(default=None, description="Name contains"),
    pagination: Pagination = Depends(),
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_admin_role()),
) -> PropertyListResponse:
    items, total = property_service.list_properties(
        db, status=status_filter, search=search, limit=pagination.limit, offset=pagination.offset
    )
    return PropertyListResponse(
        items=[PropertyResponse.from_model(p) for p in items],
        total=total,
        page=pagination.page,
        per_page=pagination.per_page,
    )


@router.get(
    "/properties/{property_id}",
    response_model=PropertyResponse,
    summary="Get property",
    description="Property detail including its plots. Requires ADMIN role.",
)
async def get_property(
    property_id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_admin_role()),
) -> PropertyResponse:
    return PropertyResponse.from_model(property_service.get_property(db, property_id), include_plots=True)


@router.post(
    "/properties/store",
    response_model=PropertyResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create property",
    description="Create a property. Plots are added separately. Requires ADMIN role.",
)
async def store_property(
    request: PropertyCreateRequest,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_admin_role()),
) -> PropertyResponse:
    prop = property_service.create_property(
        db, actor_user_id=get_user_id_from_principal(principal), **request.model_dump()
    )
    return PropertyResponse.from_model(prop, include_plots=True)


@router.put(
    "/properties/{property_id}/update",
    response_model=PropertyResponse,
    summary="Update property",
    description="Update property details or status. Plot counters are maintained by the server. Requires ADMIN role.",
)
async def update_property(
    property_id: int,
    request: PropertyUpdateRequest,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_admin_role()),
) -> PropertyResponse:
    prop = property_service.update_property(
        db,
        property_id,
        actor_user_id=get_user_id_from_principal(principal),
        **request.model_dump(exclude_unset=True),
    )
    return PropertyResponse.from_model(prop, include_plots=True)


@router.delete(
    "/properties/{property_id}",
    response_model=MessageResponse,
    summary="Delete property",
    description="Delete a property and its plots. Refused once it has sales or investments. Requires ADMIN role.",
)
async def delete_property(
    property_id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_admin_role()),
) -> MessageResponse:
    property_service.delete_property(db, property_id, actor_user_id=get_user_id_from_principal(principal))
    return MessageResponse(message=f"Property {property_id} deleted")


# ---- Plots ----

@router.post(
    "/properties/{property_id}/plots",
    response_model=PlotResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add plot",
    description="Add an available plot to a property. Requires ADMIN role.",
)
async def add_plot(
    property_id: int,
    request: PlotCreateRequest,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_admin_role()),
) -> PlotResponse:
    plot = property_service.add_plot(
        db,
        property_id,
        plot_number=request.plot_number,
        price=request.price,
        area=request.area,
        description=request.description,
        actor_user_id=get_user_id_from_principal(principal),
    )
    return PlotResponse.from_model(plot)


@router.get(
    "/plots",
    response_model=PlotListResponse,
    summary="List plots",
    description="List plots, optionally for one property or status. Requires ADMIN role.",
)
async def list_plots(
    property_id: Optional[int] = Query(default=None),
    status_filter: Optional[PlotStatus] = Query(default=None, alias="status"),
    pagination: Pagination = Depends(),
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_admin_role()),
) -> PlotListResponse:
    items, total = property_service.list_plots(
        db, property_id=property_id, status=status_filter, limit=pagination.limit, offset=pagination.offset
    )
    return PlotListResponse(
        items=[PlotResponse.from_model(p) for p in items],
        total=total,
        page=pagination.page,
        per_page=pagination.per_page,
    )


@router.put(
    "/plots/{plot_id}/update",
    response_model=PlotResponse,
    summary="Update plot",
    description="Update plot number, price, area or description. Sold plots cannot be changed. Requires ADMIN role.",
)
async def update_plot(
    plot_id: int,
    request: PlotUpdateRequest,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_admin_role()),
) -> PlotResponse:
    plot = property_service.update_plot(
        db,
        plot_id,
        actor_user_id=get_user_id_from_principal(principal),
        **request.model_dump(exclude_unset=True),
    )
    return PlotResponse.from_model(plot)


@router.delete(
    "/plots/{plot_id}",
    response_model=MessageResponse,
    summary="Delete plot",
    description="Delete an available plot without investments. Requires ADMIN role.",
)
async def delete_plot(
    plot_id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_admin_role()),
) -> MessageResponse:
    property_service.delete_plot(db, plot_id, actor_user_id=get_user_id_from_principal(principal))
    return MessageResponse(message=f"Plot {plot_id} deleted")


# ---- Sales ----

@router.get(
    "/sales",
    response_model=SaleListResponse,
    summary="List sales",
    description="List plot sales, newest first. Requires ADMIN role.",
)
async def list_sales(
    property_id: Optional[int] = Query(default=None),
    status_filter: Optional[SaleStatus] = Query(default=None, alias="status"),
    pagination: Pagination = Depends(),
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_admin_role()),
) -> SaleListResponse:
    items, total = property_service.list_sales(
        db, property_id=property_id, status=status_filter, limit=pagination.limit, offset=pagination.offset
    )
    return SaleListResponse(
        items=[SaleResponse.from_model(s) for s in items],
        total=total,
        page=pagination.page,
        per_page=pagination.per_page,
    )


@router.post(
    "/sales/store",
    response_model=SaleResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Record sale",
    description=(
        "Record the sale of a plot. The plot becomes sold and the profit amount "
        "(sale price minus original price) is available for distribution. Requires ADMIN role."
    ),
)
async def store_sale(
    request: SaleCreateRequest,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_admin_role()),
) -> SaleResponse:
    sale = property_service.record_sale(
        db,
        actor_user_id=get_user_id_from_principal(principal),
        **request.model_dump(),
    )
    return SaleResponse.from_model(sale)
