"""Optional shared-secret check guarding the /engine routes.

The host that owns the user's data calls the engine with LIFETRACK_API_KEY,
either as an X-API-Key header or as a bearer token.
"""

import logging
import secrets

from fastapi import Depends, HTTPException, status
from fastapi.security import APIKeyHeader, HTTPAuthorizationCredentials, HTTPBearer

from lifetrack.config import settings

logger = logging.getLogger(__name__)

api_key_header = APIKeyHeader(name="X-API-Key", auto_error=False)
bearer_scheme = HTTPBearer(auto_error=False)


def _presented_key(
    header_key: str | None,
    bearer: HTTPAuthorizationCredentials | None,
) -> str | None:
    if header_key:
        return header_key
    if bearer is not None and bearer.credentials:
        return bearer.credentials.strip()
    return None


async def verify_api_key(
    header_key: str | None = Depends(api_key_header),
    bearer: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> str:
    """Return the accepted key, or "" when the engine runs without one."""
    expected = settings.lifetrack_api_key
    if expected is None:
        return ""

    presented = _presented_key(header_key, bearer)
    if presented is None or not secrets.compare_digest(presented.encode(), expected.encode()):
        logger.warning("Rejected engine request: %s API key", "missing" if presented is None else "wrong")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Engine API key required",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return presented
