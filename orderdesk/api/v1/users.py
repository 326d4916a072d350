# orderdesk/api/v1/users.py
from fastapi import APIRouter, Depends, status
from typing import List
from uuid import UUID

from orderdesk.api.dependencies import get_user_service
from orderdesk.schemas.user import UserCreate, UserOut
from orderdesk.services.user_service import UserService

router = APIRouter()


@router.get("", response_model=List[UserOut])
async def list_users(service: UserService = Depends(get_user_service)):
    return await service.list_active()


@router.post("", response_model=UserOut, status_code=status.HTTP_201_CREATED)
async def create_user(
    data: UserCreate,
    service: UserService = Depends(get_user_service),
):
    """Create a user, subject to the plan's user limit"""
    return await service.create(data)


@router.delete("/{user_id}", response_model=UserOut)
async def deactivate_user(
    user_id: UUID,
    service: UserService = Depends(get_user_service),
):
    return await service.deactivate(user_id)
