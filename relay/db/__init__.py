"""
Database module for user subscription records.

This module provides:
- Firestore accessor for ``users/{uid}`` documents
- Explicit field update instructions (Set / Delete / Unchanged)
"""

from .client import FirestoreUserStore, UserStore, to_firestore_payload
from .models import Delete, Set, Unchanged, UpdateSet, UserRecord

__all__ = [
    "FirestoreUserStore",
    "UserStore",
    "to_firestore_payload",
    "Delete",
    "Set",
    "Unchanged",
    "UpdateSet",
    "UserRecord",
]
