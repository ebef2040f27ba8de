"""
Back-office routes, mounted under ADMIN_PREFIX (/admin). Every route
requires the ADMIN role.
"""

from fastapi import APIRouter

from app.api.admin import (
    investments,
    payment_methods,
    profits,
    properties,
    system,
    teams,
    transactions,
    users,
    wallets,
)
from app.infrastructure.settings import get_settings

router = APIRouter(prefix=get_settings().ADMIN_PREFIX)

for module, tag in (
    (system, "admin-system"),
    (users, "admin-users"),
    (wallets, "admin-wallets"),
    (transactions, "admin-transactions"),
    (properties, "admin-properties"),
    (investments, "admin-investments"),
    (profits, "admin-profits"),
    (teams, "admin-teams"),
    (payment_methods, "admin-payment-methods"),
):
    router.include_router(module.router, tags=[tag])
