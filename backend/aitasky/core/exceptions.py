"""Application exceptions.

Every error carries an HTTP status code and a context dict so route handlers can
translate it without inspecting the message. Context values must never contain
key material, ciphertext or IVs.
"""

from typing import Any, Dict, Optional


class AITaskyError(Exception):
    """Base class for all application errors."""

    status_code: int = 500

    def __init__(self, message: str, status_code: Optional[int] = None, **context: Any):
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        self.context = context
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a dict suitable for API responses."""
        return {
            "error": {
                "type": type(self).__name__,
                "message": self.message,
                "context": dict(self.context),
            }
        }


class ConfigurationError(AITaskyError):
    """Process configuration is missing or invalid. Fatal at startup."""

    status_code = 500


class IntegrityError(AITaskyError):
    """Authenticated decryption failed: the stored secret was altered or mismatched."""

    status_code = 401

    def __init__(self, message: str = "Stored secret failed integrity validation", **context: Any):
        super().__init__(message, **context)


class MissingCredentialError(AITaskyError):
    """No usable API key exists for a provider that requires one."""

    status_code = 400

    def __init__(self, provider: str, user_id: Optional[str] = None, **context: Any):
        self.provider = provider
        self.user_id = user_id
        super().__init__(
            f"No API key configured for provider: {provider}",
            provider=provider,
            user_id=user_id,
            **context,
        )


class UnsupportedProviderError(AITaskyError):
    """The provider cannot serve the requested operation."""

    status_code = 400

    def __init__(self, provider: str, operation: str = "chat"):
        self.provider = provider
        super().__init__(
            f"Provider {provider} does not support {operation}",
            provider=provider,
            operation=operation,
        )


class ExternalServiceError(AITaskyError):
    """An upstream AI or search service call failed."""

    status_code = 502

    def __init__(self, message: str, service_name: str, **context: Any):
        self.service_name = service_name
        super().__init__(message, service_name=service_name, **context)
