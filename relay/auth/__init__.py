"""
Authentication

This module provides:
- Firebase Admin initialisation
- Firebase ID token validation
- Bearer header parsing for the API layer
"""

from .manager import AuthManager, FirebaseAuthManager, bearer_token, initialize_firebase, require_auth

__all__ = [
    'AuthManager',
    'FirebaseAuthManager',
    'bearer_token',
    'initialize_firebase',
    'require_auth',
]
