"""Application configuration loaded once from the environment."""

from functools import lru_cache
from types import MappingProxyType
from typing import Iterator, Mapping, Optional

from pydantic import SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

from aitasky.core.exceptions import ConfigurationError


# Settings attribute holding the house key for each provider, in lookup order.
FALLBACK_KEY_SETTINGS: dict[str, tuple[str, ...]] = {
    "openai": ("openai_api_key",),
    "google": ("google_api_key",),
    "anthropic": ("anthropic_api_key",),
    "openrouter": ("openrouter_api_key", "gpt_oss_key"),
    "kilo": ("kilo_api_key",),
    "tavily": ("tavily_api_key",),
}


class Settings(BaseSettings):
    """Process-wide settings. Values come from environment variables or `.env`."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    app_name: str = "AI Tasky Backend"
    debug: bool = False
    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = 8000
    cors_origins: str = "http://localhost:3000"

    database_url: str = "sqlite+aiosqlite:///./aitasky.db"

    # 64 hex characters (256-bit AES key)
    ai_encryption_key: Optional[SecretStr] = None

    openai_api_key: Optional[SecretStr] = None
    google_api_key: Optional[SecretStr] = None
    anthropic_api_key: Optional[SecretStr] = None
    openrouter_api_key: Optional[SecretStr] = None
    gpt_oss_key: Optional[SecretStr] = None
    kilo_api_key: Optional[SecretStr] = None
    tavily_api_key: Optional[SecretStr] = None

    kilo_base_url: str = "https://api.kilo.ai/v1"
    openrouter_base_url: str = "https://openrouter.ai/api/v1"

    # Comma-separated providers whose house key must be present at startup
    required_fallback_providers: str = ""

    default_provider: str = "google"
    default_model: str = "gemini-2.5-flash"
    default_temperature: float = 0.8
    default_max_tokens: int = 1024
    default_system_prompt: str = "You are a helpful AI assistant."

    @property
    def cors_origins_list(self) -> list[str]:
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    @property
    def required_fallback_providers_list(self) -> list[str]:
        return [
            p.strip().lower() for p in self.required_fallback_providers.split(",") if p.strip()
        ]

    def validate_startup(self) -> None:
        """
        Check configuration that must be present before serving requests.

        Raises:
            ConfigurationError: If the encryption key or a required fallback key is missing
        """
        if self.ai_encryption_key is None or not self.ai_encryption_key.get_secret_value():
            raise ConfigurationError(
                "AI_ENCRYPTION_KEY environment variable not set",
                setting="AI_ENCRYPTION_KEY",
            )

        fallback_keys = FallbackKeySet.from_settings(self)
        missing = [p for p in self.required_fallback_providers_list if p not in fallback_keys]
        if missing:
            raise ConfigurationError(
                f"Missing required fallback API keys for: {', '.join(missing)}",
                providers=missing,
            )


class FallbackKeySet(Mapping[str, str]):
    """
    Read-only provider -> house API key mapping.

    Built once at startup. Providers with an empty value are treated as absent.
    """

    def __init__(self, keys: Optional[Mapping[str, Optional[str]]] = None):
        cleaned = {
            provider.lower(): value for provider, value in (keys or {}).items() if value
        }
        self._keys = MappingProxyType(cleaned)

    @classmethod
    def from_settings(cls, settings: Settings) -> "FallbackKeySet":
        keys: dict[str, Optional[str]] = {}
        for provider, attributes in FALLBACK_KEY_SETTINGS.items():
            for attribute in attributes:
                secret = getattr(settings, attribute)
                if secret is not None and secret.get_secret_value():
                    keys[provider] = secret.get_secret_value()
                    break
        return cls(keys)

    def __getitem__(self, provider: str) -> str:
        return self._keys[provider.lower()]

    def __contains__(self, provider: object) -> bool:
        return isinstance(provider, str) and provider.lower() in self._keys

    def __iter__(self) -> Iterator[str]:
        return iter(self._keys)

    def __len__(self) -> int:
        return len(self._keys)

    def __repr__(self) -> str:
        return f"FallbackKeySet(providers={sorted(self._keys)})"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get the cached settings instance."""
    return Settings()


@lru_cache(maxsize=1)
def get_fallback_keys() -> FallbackKeySet:
    """Get the fallback key set built from settings."""
    return FallbackKeySet.from_settings(get_settings())


settings = get_settings()
