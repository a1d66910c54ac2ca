"""Persistence of encrypted API keys per (user, provider)."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from aitasky.core.security.encryption import EncryptedSecret
from aitasky.models.database import UserApiKey


@dataclass(frozen=True)
class StoredCredential:
    """One encrypted API key for one (user, provider) pair."""

    user_id: str
    provider: str
    ciphertext: str = field(repr=False)
    iv: str = field(repr=False)
    auth_tag: str = field(repr=False)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_secret(cls, user_id: str, provider: str, secret: EncryptedSecret) -> "StoredCredential":
        return cls(
            user_id=user_id,
            provider=provider,
            ciphertext=secret.ciphertext,
            iv=secret.iv,
            auth_tag=secret.auth_tag,
        )

    @property
    def secret(self) -> EncryptedSecret:
        return EncryptedSecret(ciphertext=self.ciphertext, iv=self.iv, auth_tag=self.auth_tag)


class CredentialStore(ABC):
    """Keyed store for StoredCredential. A missing record is `None`, not an error."""

    @abstractmethod
    async def get(self, user_id: str, provider: str) -> Optional[StoredCredential]:
        ...

    @abstractmethod
    async def upsert(self, credential: StoredCredential) -> StoredCredential:
        """Create the record or replace ciphertext, IV and tag together."""

    @abstractmethod
    async def delete(self, user_id: str, provider: str) -> bool:
        """Delete the record. Returns False when nothing was stored."""

    @abstractmethod
    async def list_for_user(self, user_id: str) -> list[StoredCredential]:
        ...


def _to_credential(row: UserApiKey) -> StoredCredential:
    return StoredCredential(
        user_id=row.user_id,
        provider=row.provider,
        ciphertext=row.key_encrypted,
        iv=row.iv,
        auth_tag=row.auth_tag,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


class SQLCredentialStore(CredentialStore):
    """CredentialStore backed by the `user_api_keys` table."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _get_row(self, user_id: str, provider: str) -> Optional[UserApiKey]:
        query = select(UserApiKey).where(
            UserApiKey.user_id == user_id, UserApiKey.provider == provider
        )
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def get(self, user_id: str, provider: str) -> Optional[StoredCredential]:
        row = await self._get_row(user_id, provider)
        return _to_credential(row) if row else None

    async def upsert(self, credential: StoredCredential) -> StoredCredential:
        row = await self._get_row(credential.user_id, credential.provider)

        if row:
            row.key_encrypted = credential.ciphertext
            row.iv = credential.iv
            row.auth_tag = credential.auth_tag
            row.updated_at = datetime.utcnow()
        else:
            row = UserApiKey(
                user_id=credential.user_id,
                provider=credential.provider,
                key_encrypted=credential.ciphertext,
                iv=credential.iv,
                auth_tag=credential.auth_tag,
            )
            self.db.add(row)

        await self.db.commit()
        await self.db.refresh(row)
        return _to_credential(row)

    async def delete(self, user_id: str, provider: str) -> bool:
        stmt = delete(UserApiKey).where(
            UserApiKey.user_id == user_id, UserApiKey.provider == provider
        )
        result = await self.db.execute(stmt)
        await self.db.commit()
        return result.rowcount > 0

    async def list_for_user(self, user_id: str) -> list[StoredCredential]:
        query = (
            select(UserApiKey).where(UserApiKey.user_id == user_id).order_by(UserApiKey.provider)
        )
        result = await self.db.execute(query)
        return [_to_credential(row) for row in result.scalars().all()]
