# orderdesk/api/v1/usage.py
from datetime import datetime
from fastapi import APIRouter, Depends, Query
from typing import List, Optional

from orderdesk.api.dependencies import get_usage_tracker, resolve_tenant_context
from orderdesk.core.tenant import TenantContext
from orderdesk.schemas.usage import UsageSnapshotOut, UsageStatus
from orderdesk.services.usage_tracker import UsageTracker

router = APIRouter()


@router.get("", response_model=Optional[UsageSnapshotOut])
async def get_latest_usage(
    context: TenantContext = Depends(resolve_tenant_context),
    tracker: UsageTracker = Depends(get_usage_tracker),
):
    """Most recent usage snapshot"""
    return await tracker.latest(context.tenant_id)


@router.post("/capture", response_model=UsageStatus)
async def capture_usage(
    context: TenantContext = Depends(resolve_tenant_context),
    tracker: UsageTracker = Depends(get_usage_tracker),
):
    """Take a fresh snapshot and evaluate it against the plan"""
    snapshot = await tracker.capture(context.tenant_id)
    near = await tracker.near_limits(context.tenant_id, snapshot)
    return UsageStatus(
        snapshot=UsageSnapshotOut.model_validate(snapshot),
        nearing_limit=bool(near),
    )


@router.get("/history", response_model=List[UsageSnapshotOut])
async def usage_history(
    since: Optional[datetime] = None,
    limit: int = Query(100, ge=1, le=1000),
    context: TenantContext = Depends(resolve_tenant_context),
    tracker: UsageTracker = Depends(get_usage_tracker),
):
    return await tracker.history(context.tenant_id, since=since, limit=limit)
