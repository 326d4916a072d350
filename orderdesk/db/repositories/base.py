# orderdesk/db/repositories/base.py
"""
Repository bases.

``BaseRepository`` is plain CRUD and refuses scoped models.
``TenantScopedRepository`` is the only way to read or write a model carrying
``HasTenantId``: every statement it issues goes through ``_scoped`` so
results always belong to the context tenant (and branch, for branch-scoped
models when the context names a branch).
"""
from typing import Any, Dict, Generic, List, Optional, Type, TypeVar
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update, delete, func

from orderdesk.core.exceptions import BranchNotFoundError, ScopeViolationError, TenantContextMissingError
from orderdesk.core.tenant import TenantContext
from orderdesk.db.base import is_branch_scoped, is_tenant_scoped
from orderdesk.db.models.branch import Branch

ModelType = TypeVar("ModelType")

SCOPE_FIELDS = ("tenant_id", "branch_id")


class BaseRepository(Generic[ModelType]):
    """Base repository with common CRUD operations for unscoped models"""

    def __init__(self, model: Type[ModelType], session: AsyncSession):
        if is_tenant_scoped(model):
            raise TypeError(
                f"{model.__name__} is tenant-scoped; use TenantScopedRepository"
            )
        self.model = model
        self.session = session

    async def get(self, id: Any) -> Optional[ModelType]:
        """Get by ID"""
        result = await self.session.execute(
            select(self.model).where(self.model.id == id)
        )
        return result.scalar_one_or_none()

    async def create(self, obj_in: dict) -> ModelType:
        """Create new record"""
        db_obj = self.model(**obj_in)
        self.session.add(db_obj)
        await self.session.commit()
        await self.session.refresh(db_obj)
        return db_obj

    async def update(self, id: Any, obj_in: dict) -> Optional[ModelType]:
        """Update record"""
        await self.session.execute(
            update(self.model).where(self.model.id == id).values(**obj_in)
        )
        await self.session.commit()
        return await self.get(id)


class TenantScopedRepository(Generic[ModelType]):
    """CRUD restricted to the tenant (and branch) of a TenantContext"""

    def __init__(self, model: Type[ModelType], session: AsyncSession, context: TenantContext):
        if not is_tenant_scoped(model):
            raise TypeError(f"{model.__name__} is not tenant-scoped")
        if context is None or context.tenant_id is None:
            raise TenantContextMissingError()
        self.model = model
        self.session = session
        self.context = context
        self.branch_scoped = is_branch_scoped(model)

    def _scoped(self, query):
        """Constrain a statement to the active context"""
        query = query.where(self.model.tenant_id == self.context.tenant_id)
        if self.branch_scoped and self.context.branch_id is not None:
            query = query.where(self.model.branch_id == self.context.branch_id)
        return query

    def _filtered(self, query, filters: Optional[dict], criteria: tuple):
        if filters:
            for key, value in filters.items():
                query = query.where(getattr(self.model, key) == value)
        for criterion in criteria:
            query = query.where(criterion)
        return self._scoped(query)

    async def get(self, id: Any) -> Optional[ModelType]:
        """Get by ID within the context"""
        result = await self.session.execute(
            self._scoped(select(self.model).where(self.model.id == id))
        )
        return result.scalar_one_or_none()

    async def get_multi(
        self,
        *criteria,
        skip: int = 0,
        limit: int = 100,
        filters: Optional[dict] = None,
        order_by=None,
    ) -> List[ModelType]:
        query = self._filtered(select(self.model), filters, criteria)
        if order_by is not None:
            query = query.order_by(order_by)
        query = query.offset(skip).limit(limit)
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def first(self, *criteria, filters: Optional[dict] = None, order_by=None) -> Optional[ModelType]:
        rows = await self.get_multi(*criteria, limit=1, filters=filters, order_by=order_by)
        return rows[0] if rows else None

    async def count(self, *criteria, filters: Optional[dict] = None) -> int:
        query = self._filtered(
            select(func.count()).select_from(self.model), filters, criteria
        )
        result = await self.session.execute(query)
        return result.scalar() or 0

    @property
    def has_home_branch(self) -> bool:
        """Tenant-wide model with an optional reference to one of the tenant's branches"""
        return not self.branch_scoped and hasattr(self.model, "branch_id")

    async def _check_home_branch(self, branch_id: Any) -> None:
        """A referenced branch must belong to the context tenant"""
        if branch_id is None:
            return
        result = await self.session.execute(
            select(Branch.id).where(Branch.id == branch_id, Branch.tenant_id == self.context.tenant_id)
        )
        if result.scalar_one_or_none() is None:
            raise BranchNotFoundError(branch_id)

    async def _stamp(self, obj_in: Dict[str, Any]) -> Dict[str, Any]:
        data = {k: v for k, v in obj_in.items() if k not in SCOPE_FIELDS}
        data["tenant_id"] = self.context.tenant_id
        if self.branch_scoped:
            if self.context.branch_id is None:
                raise TenantContextMissingError(
                    f"{self.model.__name__} records require a branch context"
                )
            data["branch_id"] = self.context.branch_id
        elif self.has_home_branch and "branch_id" in obj_in:
            await self._check_home_branch(obj_in["branch_id"])
            data["branch_id"] = obj_in["branch_id"]
        if self.context.user_id is not None:
            data.setdefault("created_by", self.context.user_id)
        return data

    async def create(self, obj_in: dict) -> ModelType:
        """Create a record owned by the context tenant (and branch)"""
        db_obj = self.model(**await self._stamp(obj_in))
        self.session.add(db_obj)
        await self.session.commit()
        await self.session.refresh(db_obj)
        return db_obj

    async def update(self, id: Any, obj_in: dict) -> Optional[ModelType]:
        """Update a record in the context; ownership fields are immutable"""
        if "tenant_id" in obj_in:
            raise ScopeViolationError("tenant_id")
        if self.branch_scoped and "branch_id" in obj_in:
            raise ScopeViolationError("branch_id")
        if self.has_home_branch and "branch_id" in obj_in:
            await self._check_home_branch(obj_in["branch_id"])
        values = dict(obj_in)
        if self.context.user_id is not None:
            values.setdefault("updated_by", self.context.user_id)
        await self.session.execute(
            self._scoped(update(self.model).where(self.model.id == id)).values(**values)
        )
        await self.session.commit()
        return await self.get(id)

    async def delete(self, id: Any) -> bool:
        result = await self.session.execute(
            self._scoped(delete(self.model).where(self.model.id == id))
        )
        await self.session.commit()
        return result.rowcount > 0
