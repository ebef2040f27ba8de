"""
Registration and login payloads
"""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field


class RegisterRequest(BaseModel):
    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "name": "Asha Verma",
                "email": "asha@example.com",
                "password": "s3cure-pass",
                "phone": "+91 98765 43210",
            }
        }
    )

    name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    password: str = Field(..., min_length=8, description="At least 8 characters")
    phone: Optional[str] = Field(None, max_length=50)


class RegisterResponse(BaseModel):
    """The new account and the wallet opened with it"""
    user_id: int
    wallet_id: int
    email: str
    message: str = "Account created"


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class LoginResponse(BaseModel):
    access_token: str = Field(..., description="HS256 JWT, send as 'Authorization: Bearer <token>'")
    token_type: str = "bearer"
    user_id: int
    email: str
    roles: List[str]
