# orderdesk/schemas/user.py
from pydantic import BaseModel, ConfigDict, EmailStr
from typing import Optional
from datetime import datetime
from uuid import UUID

from orderdesk.core.constants import UserRole


class UserCreate(BaseModel):
    email: EmailStr
    display_name: Optional[str] = None
    role: UserRole = UserRole.WAITER
    branch_id: Optional[UUID] = None


class UserOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    tenant_id: UUID
    email: str
    display_name: Optional[str] = None
    role: UserRole
    branch_id: Optional[UUID] = None
    is_active: bool
    created_at: datetime
