"""Decide which API key serves a user's request to a provider."""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from aitasky.core.config import FallbackKeySet
from aitasky.core.exceptions import IntegrityError, MissingCredentialError
from aitasky.core.security.encryption import CredentialVault
from aitasky.core.storage.credential_store import CredentialStore

logger = logging.getLogger(__name__)


class KeySource(str, Enum):
    """Where a resolved key came from."""

    USER = "user"
    ENVIRONMENT = "environment"


@dataclass(frozen=True)
class ResolvedApiKey:
    """Result of a resolution. `key` is None when no key is available."""

    provider: str
    key: Optional[str] = field(default=None, repr=False)
    source: Optional[KeySource] = None

    @property
    def found(self) -> bool:
        return self.key is not None


class ProviderResolver:
    """
    Resolve API keys with the policy: the user's own key, else the house key, else none.

    The resolver holds no state of its own; each call performs one store lookup.
    """

    def __init__(
        self,
        store: CredentialStore,
        vault: CredentialVault,
        fallback_keys: FallbackKeySet,
    ):
        self.store = store
        self.vault = vault
        self.fallback_keys = fallback_keys

    async def resolve_api_key(self, user_id: Optional[str], provider: str) -> ResolvedApiKey:
        """
        Resolve the API key to use for a provider.

        Args:
            user_id: Authenticated user, or None for anonymous callers
            provider: Provider name (e.g. 'openai')

        Returns:
            ResolvedApiKey; `key` is None when neither a personal nor a house key exists

        Raises:
            IntegrityError: If the user's stored key fails authenticated decryption
        """
        provider = str(getattr(provider, "value", provider)).lower()

        if user_id:
            credential = await self.store.get(user_id, provider)
            if credential is not None:
                try:
                    key = self.vault.decrypt(credential.ciphertext, credential.iv, credential.auth_tag)
                except IntegrityError as e:
                    logger.warning(
                        "Stored API key failed integrity validation (user=%s, provider=%s)",
                        user_id,
                        provider,
                    )
                    raise IntegrityError(
                        f"Stored API key for provider {provider} failed integrity validation",
                        provider=provider,
                        user_id=user_id,
                    ) from e

                logger.debug("Using personal API key (user=%s, provider=%s)", user_id, provider)
                return ResolvedApiKey(provider=provider, key=key, source=KeySource.USER)

        fallback = self.fallback_keys.get(provider)
        if fallback:
            logger.debug("Using fallback API key (user=%s, provider=%s)", user_id, provider)
            return ResolvedApiKey(provider=provider, key=fallback, source=KeySource.ENVIRONMENT)

        logger.info("No API key available (user=%s, provider=%s)", user_id, provider)
        return ResolvedApiKey(provider=provider)

    async def require_api_key(self, user_id: Optional[str], provider: str) -> str:
        """
        Resolve an API key for a caller that cannot proceed without one.

        Raises:
            MissingCredentialError: If no key is available
            IntegrityError: If the user's stored key fails authenticated decryption
        """
        resolved = await self.resolve_api_key(user_id, provider)
        if not resolved.found:
            raise MissingCredentialError(resolved.provider, user_id=user_id)
        return resolved.key
