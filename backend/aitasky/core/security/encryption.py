"""API key encryption service using AES-256-GCM."""

import logging
import os
from dataclasses import dataclass, field
from typing import Optional

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from aitasky.core.config import get_settings
from aitasky.core.exceptions import ConfigurationError, IntegrityError

logger = logging.getLogger(__name__)

KEY_BYTES = 32
IV_BYTES = 12
TAG_BYTES = 16


@dataclass(frozen=True)
class EncryptedSecret:
    """Hex-encoded output of one encryption. The three fields belong together."""

    ciphertext: str = field(repr=False)
    iv: str = field(repr=False)
    auth_tag: str = field(repr=False)


class CredentialVault:
    """Service for encrypting and decrypting API keys."""

    def __init__(self, master_key: Optional[str] = None):
        """
        Initialize the vault with the process-wide master key.

        Args:
            master_key: 64 hex characters (256 bits). If not provided, read from settings.

        Raises:
            ConfigurationError: If the key is missing or malformed
        """
        if master_key is None:
            secret = get_settings().ai_encryption_key
            master_key = secret.get_secret_value() if secret is not None else None

        if not master_key:
            raise ConfigurationError(
                "AI_ENCRYPTION_KEY environment variable not set.\n"
                "Generate a key with: python -c 'from aitasky.core.security import "
                "CredentialVault; print(CredentialVault.generate_master_key())'",
                setting="AI_ENCRYPTION_KEY",
            )

        try:
            key = bytes.fromhex(master_key)
        except ValueError as e:
            raise ConfigurationError(
                "Invalid AI_ENCRYPTION_KEY: expected hex characters", setting="AI_ENCRYPTION_KEY"
            ) from e

        if len(key) != KEY_BYTES:
            raise ConfigurationError(
                f"Invalid AI_ENCRYPTION_KEY: expected {KEY_BYTES * 2} hex characters",
                setting="AI_ENCRYPTION_KEY",
            )

        self._cipher = AESGCM(key)

    def encrypt(self, plaintext: str) -> EncryptedSecret:
        """
        Encrypt a plaintext API key under a fresh random IV.

        Args:
            plaintext: The API key to encrypt

        Returns:
            EncryptedSecret with hex ciphertext, IV and authentication tag
        """
        if not isinstance(plaintext, str):
            raise TypeError("plaintext must be a string")

        iv = os.urandom(IV_BYTES)
        sealed = self._cipher.encrypt(iv, plaintext.encode("utf-8"), None)
        ciphertext, tag = sealed[:-TAG_BYTES], sealed[-TAG_BYTES:]

        return EncryptedSecret(ciphertext=ciphertext.hex(), iv=iv.hex(), auth_tag=tag.hex())

    def decrypt(self, ciphertext: str, iv: str, auth_tag: str) -> str:
        """
        Decrypt and authenticate an encrypted API key.

        Args:
            ciphertext: Hex ciphertext from `encrypt`
            iv: Hex IV from the same `encrypt` call
            auth_tag: Hex authentication tag from the same `encrypt` call

        Returns:
            The original plaintext

        Raises:
            IntegrityError: If the inputs are malformed or fail authentication
        """
        try:
            ciphertext_bytes = bytes.fromhex(ciphertext)
            iv_bytes = bytes.fromhex(iv)
            tag_bytes = bytes.fromhex(auth_tag)
        except (TypeError, ValueError) as e:
            raise IntegrityError("Encrypted secret is malformed") from e

        if len(iv_bytes) != IV_BYTES or len(tag_bytes) != TAG_BYTES:
            raise IntegrityError("Encrypted secret is malformed")

        try:
            plaintext = self._cipher.decrypt(iv_bytes, ciphertext_bytes + tag_bytes, None)
        except InvalidTag as e:
            raise IntegrityError() from e

        return plaintext.decode("utf-8")

    def decrypt_secret(self, secret: EncryptedSecret) -> str:
        return self.decrypt(secret.ciphertext, secret.iv, secret.auth_tag)

    @staticmethod
    def generate_master_key() -> str:
        """
        Generate a new master encryption key.

        Returns:
            64 hex characters suitable for AI_ENCRYPTION_KEY
        """
        return AESGCM.generate_key(bit_length=256).hex()


# Global vault instance
_credential_vault: Optional[CredentialVault] = None


def get_credential_vault() -> CredentialVault:
    """
    Get or create the global credential vault.

    Returns:
        CredentialVault instance
    """
    global _credential_vault
    if _credential_vault is None:
        _credential_vault = CredentialVault()
        logger.info("Credential vault initialized")
    return _credential_vault
