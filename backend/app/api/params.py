"""
Shared request parameters for list endpoints
"""

from typing import Optional
from fastapi import Query, Request


class Pagination:
    """page/per_page query parameters (1-based pages)"""

    def __init__(
        self,
        page: int = Query(default=1, ge=1, description="Page number (1-based)"),
        per_page: int = Query(default=20, ge=1, le=100, description="Items per page"),
    ):
        self.page = page
        self.per_page = per_page

    @property
    def limit(self) -> int:
        return self.per_page

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.per_page


def client_ip(request: Request) -> Optional[str]:
    """Client IP (X-Forwarded-For first hop when behind a proxy)"""
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else None
