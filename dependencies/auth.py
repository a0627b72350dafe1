from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from core.errors import NotFound
from core.identity import load_principal
from core.logging_config import logger
from core.store import DataStore
from core.supabase_client import get_supabase_client
from dependencies.store import get_data_store
from models.principal import Principal


bearer_scheme = HTTPBearer()


# ============================================================
# AUTH DECODING (Supabase: validates JWT → Principal)
# ============================================================
def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme),
    store: DataStore = Depends(get_data_store),
) -> Principal:
    """
    Validates the bearer token with Supabase Auth, then assembles the
    Principal (role + owned/managed properties + tenancies) from the store.
    """
    token = credentials.credentials

    unauthorized = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Invalid or expired authentication token",
        headers={"WWW-Authenticate": "Bearer"},
    )

    client = get_supabase_client()
    if not client:
        raise HTTPException(500, "Supabase client not configured")

    # ---------------------------------------------------------
    # Validate JWT via Supabase GoTrue
    # ---------------------------------------------------------
    try:
        auth_resp = client.auth.get_user(token)
    except Exception as e:
        logger.debug(f"Token validation failed: {e}")
        raise unauthorized

    if not auth_resp or not auth_resp.user:
        raise unauthorized

    # ---------------------------------------------------------
    # Identity → Principal (no profile row means no access)
    # ---------------------------------------------------------
    try:
        return load_principal(store, auth_resp.user.id)
    except NotFound:
        raise unauthorized

