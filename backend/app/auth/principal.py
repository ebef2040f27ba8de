"""
Authenticated principal extracted from an access token
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass
class Principal:
    """Authenticated user principal"""
    subject: str  # JWT 'sub' claim (user id)
    email: Optional[str] = None
    roles: List[str] = field(default_factory=list)
    raw_claims: Dict[str, Any] = field(default_factory=dict)

    def has_role(self, role: str) -> bool:
        return role in self.roles
