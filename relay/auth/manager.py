"""
Authentication module for Firebase integration.

This module provides:
- Firebase Admin app initialisation from a service-account payload
- ID token verification
- The ``require_auth`` helper used by the API dependencies
"""

import logging
from typing import Any, Dict, Optional

import firebase_admin
from fastapi import HTTPException, status
from firebase_admin import auth as firebase_auth
from firebase_admin import credentials
from firebase_admin import exceptions as firebase_exceptions

logger = logging.getLogger(__name__)


def initialize_firebase(service_account: Dict[str, Any], *, name: str = "relay") -> firebase_admin.App:
    """Create (or reuse) the named Firebase Admin app for this process."""

    try:
        return firebase_admin.get_app(name)
    except ValueError:
        pass
    credential = credentials.Certificate(service_account)
    return firebase_admin.initialize_app(credential, name=name)


class FirebaseAuthManager:
    """Verifies Firebase ID tokens against the injected Admin app."""

    def __init__(self, app: Optional[firebase_admin.App] = None):
        self.app = app

    def verify_id_token(self, token: str) -> Optional[Dict[str, Any]]:
        """
        Verify and decode a Firebase ID token.

        Args:
            token: The ID token sent by the client

        Returns:
            Decoded token claims if valid, None if invalid
        """
        if not token:
            logger.debug("verify_id_token received empty token")
            return None
        try:
            return firebase_auth.verify_id_token(token, app=self.app)
        except (ValueError, firebase_exceptions.FirebaseError) as exc:
            logger.warning("Firebase rejected ID token: %s", exc)
            return None

    def get_user_from_token(self, token: str) -> Optional[Dict[str, Any]]:
        """
        Extract user information from a valid ID token.

        Args:
            token: The ID token

        Returns:
            User information dict or None if invalid
        """
        claims = self.verify_id_token(token)
        if not claims:
            return None
        uid = claims.get("uid") or claims.get("sub")
        if not uid:
            return None
        return {
            "uid": uid,
            "email": claims.get("email"),
            "claims": claims,
        }


AuthManager = FirebaseAuthManager


def bearer_token(authorization: Optional[str]) -> Optional[str]:
    """Return the token from a ``Bearer <token>`` header value."""

    if not authorization or not authorization.startswith("Bearer "):
        return None
    token = authorization[7:].strip()
    return token or None


def require_auth(auth_manager: AuthManager, authorization: Optional[str] = None) -> Dict[str, Any]:
    """
    Authenticate a request from its Authorization header.

    Returns:
        The authenticated user info

    Raises:
        HTTPException: 401 with a generic message if authentication fails
    """
    token = bearer_token(authorization)
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing auth token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user_info = auth_manager.get_user_from_token(token)
    if not user_info:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return user_info
