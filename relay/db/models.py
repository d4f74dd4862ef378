"""
Record and update types for the user subscription document.

Field writes are expressed as explicit instructions so the store accessor
never has to guess whether ``None`` means "write null" or "remove".
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, Tuple, Union


@dataclass(frozen=True)
class Set:
    """Overwrite the field with ``value`` (``None`` writes a literal null)."""

    value: Any


@dataclass(frozen=True)
class _DeleteField:
    def __repr__(self) -> str:
        return "Delete"


@dataclass(frozen=True)
class _UnchangedField:
    def __repr__(self) -> str:
        return "Unchanged"


Delete = _DeleteField()
Unchanged = _UnchangedField()

FieldUpdate = Union[Set, _DeleteField, _UnchangedField]


# Firestore field names on users/{uid}
PAYPAL_SUBSCRIPTION_ID = "paypalSubscriptionId"
PAYPAL_PLAN_ID = "paypalPlanId"
PLAN = "plan"
PENDING_PLAN = "pendingPlan"
STATUS = "status"
UPDATED_AT = "updatedAt"


@dataclass
class UpdateSet:
    """Ordered collection of field instructions applied in one merge write."""

    fields: Dict[str, FieldUpdate] = field(default_factory=dict)

    def set(self, name: str, value: Any) -> "UpdateSet":
        self.fields[name] = Set(value)
        return self

    def delete(self, name: str) -> "UpdateSet":
        self.fields[name] = Delete
        return self

    def get(self, name: str) -> FieldUpdate:
        return self.fields.get(name, Unchanged)

    def items(self) -> Iterator[Tuple[str, FieldUpdate]]:
        """Yield only the instructions that change the document."""

        for name, update in self.fields.items():
            if update is Unchanged:
                continue
            yield name, update

    def __bool__(self) -> bool:
        return any(True for _ in self.items())


@dataclass
class UserRecord:
    """Snapshot of ``users/{uid}`` as read from the store."""

    uid: str
    data: Dict[str, Any] = field(default_factory=dict)


def apply_updates(data: Dict[str, Any], updates: UpdateSet) -> Dict[str, Any]:
    """Return a copy of ``data`` with merge semantics applied.

    Used for in-memory stores; ``updatedAt`` is left to the caller.
    """

    merged = dict(data)
    for name, update in updates.items():
        if update is Delete:
            merged.pop(name, None)
        else:
            merged[name] = update.value
    return merged


__all__ = [
    "Delete",
    "FieldUpdate",
    "PAYPAL_PLAN_ID",
    "PAYPAL_SUBSCRIPTION_ID",
    "PENDING_PLAN",
    "PLAN",
    "STATUS",
    "Set",
    "UPDATED_AT",
    "Unchanged",
    "UpdateSet",
    "UserRecord",
    "apply_updates",
]
