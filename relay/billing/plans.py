"""Plan codes, subscription statuses and the PayPal plan-id catalog."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Mapping, Optional


class PlanCode(str, Enum):
    """Internal subscription tiers, highest first."""

    PRO = "PRO"
    PLUS = "PLUS"


class SubscriptionStatus(str, Enum):
    """Normalized status stored on the user record."""

    ACTIVE = "ACTIVE"
    SUSPENDED = "SUSPENDED"


DEFAULT_PLAN = PlanCode.PRO


def parse_plan_code(value: object) -> Optional[PlanCode]:
    """Return the matching plan code, or None for anything unrecognised."""

    if not isinstance(value, str) or not value:
        return None
    try:
        return PlanCode(value)
    except ValueError:
        return None


@dataclass(frozen=True)
class PlanCatalog:
    """Two-way mapping between plan codes and PayPal plan ids."""

    plan_ids: Mapping[PlanCode, str] = field(default_factory=dict)

    @classmethod
    def from_config(cls, raw: Mapping[str, Optional[str]]) -> "PlanCatalog":
        plan_ids: Dict[PlanCode, str] = {}
        for key, plan_id in (raw or {}).items():
            code = parse_plan_code(key)
            if code is not None and plan_id:
                plan_ids[code] = plan_id
        return cls(plan_ids=plan_ids)

    def plan_id_for(self, plan_code: Optional[PlanCode]) -> Optional[str]:
        if plan_code is None:
            return None
        return self.plan_ids.get(plan_code)

    def plan_code_for(self, plan_id: Optional[str]) -> Optional[PlanCode]:
        if not plan_id:
            return None
        for code, candidate in self.plan_ids.items():
            if candidate == plan_id:
                return code
        return None
