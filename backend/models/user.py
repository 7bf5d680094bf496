from datetime import datetime
from typing import Optional
from pydantic import Field
from models.common import CamelModel, Email, UserRole


class User(CamelModel):
    user_id:        str
    email:          str
    first_name:     str
    last_name:      str
    phone:          Optional[str] = None
    role:           UserRole = UserRole.CUSTOMER
    is_active:      bool     = True
    # Chauffeurs
    driver_status:  Optional[str] = None   # "available" | "offline" | "on_ride"
    license_number: Optional[str] = None
    # Timestamps
    created_at:     datetime
    updated_at:     datetime


class UserRegister(CamelModel):
    email:      Email
    password:   str = Field(min_length=8)
    first_name: str = Field(min_length=1)
    last_name:  str = Field(min_length=1)
    phone:      Optional[str] = None


class DriverCreate(UserRegister):
    """Compte chauffeur créé depuis le back-office."""
    phone:          str = Field(min_length=7)
    license_number: Optional[str] = None


class LoginRequest(CamelModel):
    email:    Email
    password: str


class TokenResponse(CamelModel):
    access_token: str
    token_type:   str = "bearer"
    user:         User


class DriverUpdate(CamelModel):
    phone:          Optional[str]  = Field(None, min_length=7)
    license_number: Optional[str]  = None
    driver_status:  Optional[str]  = None
    is_active:      Optional[bool] = None
