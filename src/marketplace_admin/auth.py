"""Admin authentication and rate limiting for the API."""

import os
import secrets
import logging

from fastapi import HTTPException, Security
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from slowapi import Limiter
from slowapi.util import get_remote_address

logger = logging.getLogger(__name__)

security = HTTPBearer()

# Shared by every router; attached to app.state by create_app()
limiter = Limiter(key_func=get_remote_address)


async def verify_admin_token(credentials: HTTPAuthorizationCredentials = Security(security)) -> str:
    """Check the bearer token against the API_KEY configured for admin access.

    Raises:
        HTTPException: 500 if no key is configured, 401 if the token is wrong.
    """
    token = credentials.credentials
    expected = os.getenv("API_KEY")
    if not expected:
        logger.error("API_KEY environment variable is not configured")
        raise HTTPException(status_code=500, detail="Server configuration error")
    if not secrets.compare_digest(token, expected):
        logger.warning("Rejected admin request with an invalid token")
        raise HTTPException(status_code=401, detail="Invalid API key")
    return token
