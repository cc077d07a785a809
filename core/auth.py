"""
Centralized Authentication Module

Resolves the calling user from a Supabase JWT for the translation routes.
"""

# Standard library
import logging
import os

# Third-party
from fastapi import Header, HTTPException
from fastapi.concurrency import run_in_threadpool

# Local application
from supabase_client import get_supabase

# Configure logging
logger = logging.getLogger(__name__)

DEV_USER_ID = "test-user-id-001"


def _dev_mode_enabled() -> bool:
    """DEV_MODE=true bypasses token validation (local testing only)."""
    return os.getenv("DEV_MODE", "false").lower() == "true"


def _extract_bearer_token(authorization: str | None) -> str:
    if not authorization:
        raise HTTPException(status_code=401, detail="Missing Authorization Header")

    parts = authorization.split(" ")
    if len(parts) != 2 or parts[0].lower() != "bearer":
        raise HTTPException(status_code=401, detail="Invalid Authorization Header format")
    return parts[1]


async def get_current_user_id(authorization: str = Header(None)) -> str:
    """
    Validates the bearer token and returns the user's ID.

    Args:
        authorization: Bearer token from Authorization header.

    Returns:
        The authenticated user's ID.

    Raises:
        HTTPException: 401 if token is missing/invalid, 500 if Supabase unavailable.
    """
    if _dev_mode_enabled():
        logger.warning("DEV_MODE enabled - using test user ID")
        return DEV_USER_ID

    token = _extract_bearer_token(authorization)

    client = get_supabase()
    if not client:
        logger.error("Supabase client not initialized")
        raise HTTPException(status_code=500, detail="Authentication service unavailable")

    try:
        user_response = await run_in_threadpool(lambda: client.auth.get_user(token))
    except Exception as e:  # noqa: BLE001
        logger.error(f"Authentication failed: {e}", exc_info=True)
        raise HTTPException(status_code=401, detail="Authentication Failed") from e

    if not user_response or not user_response.user:
        raise HTTPException(status_code=401, detail="Invalid Token")
    return user_response.user.id
