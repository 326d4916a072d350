# orderdesk/api/v1/branches.py
from fastapi import APIRouter, Depends, status
from typing import List
from uuid import UUID

from orderdesk.api.dependencies import get_branch_service
from orderdesk.schemas.branch import BranchCreate, BranchOut
from orderdesk.services.branch_service import BranchService

router = APIRouter()


@router.get("", response_model=List[BranchOut])
async def list_branches(service: BranchService = Depends(get_branch_service)):
    return await service.list_active()


@router.post("", response_model=BranchOut, status_code=status.HTTP_201_CREATED)
async def create_branch(
    data: BranchCreate,
    service: BranchService = Depends(get_branch_service),
):
    """Create a branch, subject to the plan's branch limit"""
    return await service.create(data)


@router.delete("/{branch_id}", response_model=BranchOut)
async def deactivate_branch(
    branch_id: UUID,
    service: BranchService = Depends(get_branch_service),
):
    return await service.deactivate(branch_id)
