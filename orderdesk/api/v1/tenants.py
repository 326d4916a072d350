# orderdesk/api/v1/tenants.py
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from orderdesk.db.database import get_db
from orderdesk.schemas.tenant import TenantCreate, TenantOut
from orderdesk.services.plan_catalog import PlanCatalog, get_plan_catalog
from orderdesk.services.tenant_service import TenantProvisioningService

router = APIRouter()


@router.post("", response_model=TenantOut, status_code=status.HTTP_201_CREATED)
async def provision_tenant(
    data: TenantCreate,
    db: AsyncSession = Depends(get_db),
    plan_catalog: PlanCatalog = Depends(get_plan_catalog),
):
    """Onboard a tenant with its main branch and admin user"""
    return await TenantProvisioningService(db, plan_catalog).create_tenant(
        name=data.name,
        code=data.code,
        admin_email=data.admin_email,
        admin_phone=data.admin_phone,
        country_code=data.country_code.upper(),
        default_currency=data.default_currency.upper(),
        plan_code=data.plan_code,
    )
