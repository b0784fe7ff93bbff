"""
Authentication Module

Verifies the shared secret sent in the X-Render-Secret header.
Fails closed: with no RENDER_SECRET configured every request is rejected.
"""

import hmac
import logging
from typing import Optional

from fastapi import Security
from fastapi.security import APIKeyHeader

from .config import settings
from .errors import Unauthorized


logger = logging.getLogger(__name__)

SECRET_HEADER = "X-Render-Secret"
secret_header = APIKeyHeader(name=SECRET_HEADER, auto_error=False)


def get_render_secret() -> Optional[str]:
    """Get the configured shared secret, or None if unset."""
    return settings.render_secret


async def verify_render_secret(
    provided: Optional[str] = Security(secret_header),
) -> None:
    """
    Verify the shared secret header.

    Raises:
        Unauthorized: header missing, wrong, or no secret configured
    """
    check_render_secret(provided)


def check_render_secret(provided: Optional[str]) -> None:
    """
    Compare a header value against the configured secret.

    Also used by the request validation handler, which FastAPI can reach
    before the route's dependencies have run.

    Raises:
        Unauthorized: header missing, wrong, or no secret configured
    """
    expected = get_render_secret()
    if not expected:
        logger.warning("Rejecting render request: RENDER_SECRET is not configured")
        raise Unauthorized()

    if not provided or not hmac.compare_digest(provided.encode(), expected.encode()):
        raise Unauthorized()
