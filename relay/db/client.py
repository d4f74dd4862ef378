"""
Firestore accessor for per-user subscription records.
Handles primary-key reads, lookup by PayPal subscription id, and merge writes.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from google.cloud import firestore
from google.cloud.firestore_v1.base_query import FieldFilter

from .models import PAYPAL_SUBSCRIPTION_ID, UPDATED_AT, Delete, UpdateSet, UserRecord

logger = logging.getLogger(__name__)

USERS_COLLECTION = "users"


class FirestoreUserStore:
    """Reads and merge-writes ``users/{uid}`` documents."""

    def __init__(self, client: firestore.Client, *, collection: str = USERS_COLLECTION):
        self.client = client
        self.collection = collection

    def _users(self):
        return self.client.collection(self.collection)

    def get_user(self, uid: str) -> Optional[UserRecord]:
        """Return the record stored under ``uid`` or None."""

        snapshot = self._users().document(uid).get()
        if not snapshot.exists:
            return None
        return UserRecord(uid=snapshot.id, data=snapshot.to_dict() or {})

    def find_user_by_subscription_id(self, subscription_id: str) -> Optional[UserRecord]:
        """Return the first user whose ``paypalSubscriptionId`` matches.

        Subscription ids are not unique-constrained; when several documents
        share one, whichever the query yields first wins.
        """

        if not subscription_id:
            return None
        query = (
            self._users()
            .where(filter=FieldFilter(PAYPAL_SUBSCRIPTION_ID, "==", subscription_id))
            .limit(1)
        )
        for snapshot in query.stream():
            return UserRecord(uid=snapshot.id, data=snapshot.to_dict() or {})
        return None

    def upsert_user(self, uid: str, updates: UpdateSet) -> Dict[str, Any]:
        """Merge ``updates`` into ``users/{uid}``, creating it when absent.

        Fields not named in ``updates`` are left untouched. ``updatedAt`` is
        always stamped with the server time.
        """

        payload = to_firestore_payload(updates)
        self._users().document(uid).set(payload, merge=True)
        logger.debug("Merged %s into %s/%s", sorted(payload), self.collection, uid)
        return payload


def to_firestore_payload(updates: UpdateSet) -> Dict[str, Any]:
    payload: Dict[str, Any] = {}
    for name, update in updates.items():
        payload[name] = firestore.DELETE_FIELD if update is Delete else update.value
    payload[UPDATED_AT] = firestore.SERVER_TIMESTAMP
    return payload


# Simple alias for readability
UserStore = FirestoreUserStore


__all__ = ["FirestoreUserStore", "USERS_COLLECTION", "UserStore", "to_firestore_payload"]
