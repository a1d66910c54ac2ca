"""Security module."""

from aitasky.core.security.encryption import (
    CredentialVault,
    EncryptedSecret,
    get_credential_vault,
)

__all__ = ["CredentialVault", "EncryptedSecret", "get_credential_vault"]
