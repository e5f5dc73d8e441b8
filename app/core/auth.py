from typing import Optional
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
import logging
from app.api.deps import get_settings
from app.core.config import Settings
from app.core.errors import AuthenticationError
from app.core.security import decode_access_token
from app.schemas.user import CurrentUser
from app.services.accounts import AccountService
from app.store import Store, get_store

logger = logging.getLogger(__name__)
security = HTTPBearer(auto_error=False)

async def get_current_user(
    creds: Optional[HTTPAuthorizationCredentials] = Depends(security),
    store: Store = Depends(get_store),
    settings: Settings = Depends(get_settings),
) -> CurrentUser:
    """
    Decode the bearer token and load the caller.

    Rejects before any business logic runs when the header is missing, the
    token is invalid or expired, or the account is no longer active.
    """
    if creds is None or not creds.credentials:
        raise AuthenticationError("Authentication token required")
    payload = decode_access_token(creds.credentials, settings)
    try:
        return await AccountService(store, settings).resolve_caller(payload)
    except AuthenticationError as e:
        logger.warning(f"Token for {payload.get('sub')} refused: {e.message}")
        raise
