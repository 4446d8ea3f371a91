import logging
import secrets
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from app.api.deps import get_app_settings
from app.core.config import Settings

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


async def operator_guard(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    settings: Settings = Depends(get_app_settings),
) -> None:
    """Restrict an endpoint to operators holding the debug token.

    Without a configured DEBUG_TOKEN the guarded endpoint does not exist.
    """
    if not settings.DEBUG_TOKEN:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not Found")

    if credentials is None or not secrets.compare_digest(
        credentials.credentials.encode(), settings.DEBUG_TOKEN.encode()
    ):
        logger.warning("Rejected debug endpoint access with missing or invalid token")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
            headers={"WWW-Authenticate": "Bearer"},
        )
