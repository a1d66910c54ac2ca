"""FastAPI dependencies."""

from typing import Optional

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from aitasky.core.config import FallbackKeySet, get_fallback_keys
from aitasky.core.exceptions import ConfigurationError
from aitasky.core.security.encryption import CredentialVault, get_credential_vault
from aitasky.core.security.resolver import ProviderResolver
from aitasky.core.storage.credential_store import CredentialStore, SQLCredentialStore
from aitasky.core.storage.database import get_db


async def get_current_user_id(x_user_id: Optional[str] = Header(None)) -> str:
    """
    Identify the caller.

    The session layer in front of this service authenticates the user and forwards
    their id in the X-User-Id header.
    """
    if not x_user_id:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")
    return x_user_id


def get_vault() -> CredentialVault:
    """Get the process-wide credential vault."""
    try:
        return get_credential_vault()
    except ConfigurationError as e:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="API key storage is not configured",
        ) from e


def get_credential_store(db: AsyncSession = Depends(get_db)) -> CredentialStore:
    return SQLCredentialStore(db)


def get_provider_resolver(
    store: CredentialStore = Depends(get_credential_store),
    vault: CredentialVault = Depends(get_vault),
    fallback_keys: FallbackKeySet = Depends(get_fallback_keys),
) -> ProviderResolver:
    """Build a resolver over the request's store and the process-wide vault and fallback keys."""
    return ProviderResolver(store=store, vault=vault, fallback_keys=fallback_keys)
