# orderdesk/services/plan_catalog.py
from functools import lru_cache
from typing import Dict, List, Sequence, Union

from orderdesk.core.config import PlanOption, settings
from orderdesk.core.constants import PlanCode
from orderdesk.core.exceptions import UnknownPlanError
from orderdesk.schemas.subscription import SubscriptionPlan


class PlanCatalog:
    """
    Read-only registry of subscription plans.

    Built once from configuration at startup; safe for concurrent reads
    because nothing mutates it afterwards.
    """

    def __init__(self, options: Sequence[PlanOption]):
        plans: Dict[PlanCode, SubscriptionPlan] = {}
        for option in options:
            try:
                code = PlanCode(option.code.lower())
            except ValueError:
                raise ValueError(f"Unknown plan code {option.code} in configuration")
            if code in plans:
                raise ValueError(f"Plan {code.value} is configured more than once")
            plans[code] = SubscriptionPlan(**{**option.model_dump(), "code": code})
        self._plans = plans
        self._ordered = tuple(plans.values())

    def get_plans(self) -> List[SubscriptionPlan]:
        """All plans in configuration order"""
        return list(self._ordered)

    def get_plan(self, code: Union[PlanCode, str]) -> SubscriptionPlan:
        try:
            key = code if isinstance(code, PlanCode) else PlanCode(str(code).lower())
        except ValueError:
            raise UnknownPlanError(str(code))
        plan = self._plans.get(key)
        if plan is None:
            raise UnknownPlanError(key.value)
        return plan


@lru_cache
def get_plan_catalog() -> PlanCatalog:
    """Process-wide catalog loaded from settings"""
    return PlanCatalog(settings.SUBSCRIPTION_PLANS)
