# orderdesk/schemas/tenant.py
from pydantic import BaseModel, ConfigDict, EmailStr, Field
from typing import Optional
from datetime import datetime
from uuid import UUID

from orderdesk.core.constants import PlanCode


class TenantCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    code: str = Field(min_length=2, max_length=64, pattern=r"^[A-Za-z0-9_-]+$")
    admin_email: Optional[EmailStr] = None
    admin_phone: Optional[str] = Field(default=None, max_length=32)
    country_code: str = Field(default="MY", min_length=2, max_length=2)
    default_currency: str = Field(default="MYR", min_length=3, max_length=3)
    plan_code: Optional[PlanCode] = None


class TenantOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    code: str
    country_code: str
    default_currency: str
    admin_email: Optional[str] = None
    admin_phone: Optional[str] = None
    is_active: bool
    created_at: datetime
