# orderdesk/schemas/usage.py
from pydantic import BaseModel, ConfigDict
from datetime import datetime
from uuid import UUID


class UsageSnapshotOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    tenant_id: UUID
    sequence: int
    active_branches: int
    active_users: int
    orders_current_month: int
    captured_at: datetime


class UsageStatus(BaseModel):
    snapshot: UsageSnapshotOut
    nearing_limit: bool
