# app/api/dependencies/internal_auth.py
import logging
import secrets
from typing import Optional

from fastapi import Header, HTTPException, status

from app.core.config import get_settings

logger = logging.getLogger(__name__)

OPEN_ENVIRONMENTS = ("local", "test")


def _reject(reason: str) -> HTTPException:
    logger.warning(f"[InternalAuth] Rejected internal call: {reason}")
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Invalid or missing internal API key.",
    )


async def verify_internal_api_key(
    internal_api_key: Optional[str] = Header(
        default=None,
        alias="X-Internal-Api-Key",
        description="Key guarding the materialization trigger and scheduler status.",
    ),
) -> None:
    """
    Dependency protecting the /internal materialization endpoints.

    Rules
    -----
    - APP_ENV in OPEN_ENVIRONMENTS (local, test):
        - no INTERNAL_API_KEY -> open, so cycles can be triggered by hand.
        - INTERNAL_API_KEY set -> header must match.
    - Any other APP_ENV:
        - INTERNAL_API_KEY unset -> 500, the deployment is misconfigured.
        - header missing or wrong -> 401.
    """
    settings = get_settings()
    env = (settings.APP_ENV or "local").lower()
    expected = getattr(settings, "INTERNAL_API_KEY", None)

    if not expected:
        if env in OPEN_ENVIRONMENTS:
            return
        logger.error(f"[InternalAuth] INTERNAL_API_KEY missing for APP_ENV={env}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="INTERNAL_API_KEY not configured for this environment.",
        )

    if not internal_api_key:
        raise _reject("header missing")
    if not secrets.compare_digest(internal_api_key, expected):
        raise _reject("key mismatch")
