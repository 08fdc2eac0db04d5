"""HTTP client management for modelbridge.

Builds the pooled ``httpx.AsyncClient`` used by the HTTP chat transport and
resolves the API key it authenticates with.
"""

from typing import Any

import httpx
from cryptography.fernet import Fernet, InvalidToken

from .config import Settings, get_settings_instance
from .exceptions import LLMConfigurationError
from .logging import get_logger

logger = get_logger(__name__)


def decrypt_api_key(encrypted_key: str, encryption_key: str) -> str:
    """Decrypt a stored API key."""
    try:
        fernet = Fernet(encryption_key.encode())
        return fernet.decrypt(encrypted_key.encode()).decode()
    except (InvalidToken, ValueError) as e:
        logger.error(f"Failed to decrypt API key: {e}")
        raise LLMConfigurationError(f"Failed to decrypt API key: {e}") from e


def resolve_api_key(settings: Settings) -> str | None:
    """Return the plain API key, decrypting the stored one when needed."""
    if settings.openai_api_key:
        return settings.openai_api_key
    if settings.openai_api_key_encrypted:
        if not settings.llm_encryption_key:
            raise LLMConfigurationError("An encrypted API key is configured but no encryption key is set")
        return decrypt_api_key(settings.openai_api_key_encrypted, settings.llm_encryption_key)
    return None


class HTTPClientManager:
    """Manages the pooled HTTP client for one backend base URL."""

    def __init__(
        self,
        base_url: str,
        headers: dict[str, str] | None = None,
        settings: Settings | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._settings = settings or get_settings_instance()
        self._base_url = base_url.rstrip("/")
        self._headers = dict(headers or {})
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    def get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client with connection pooling."""
        if self._client is None:
            logger.debug("Creating new HTTP client for %s", self._base_url)
            kwargs: dict[str, Any] = {}
            if self._transport is not None:
                kwargs["transport"] = self._transport
            self._client = httpx.AsyncClient(
                base_url=self._base_url,
                limits=httpx.Limits(max_keepalive_connections=5, max_connections=10, keepalive_expiry=30.0),
                timeout=httpx.Timeout(
                    connect=self._settings.llm_global_timeout,
                    read=self._settings.llm_streaming_read_timeout,
                    write=self._settings.llm_global_timeout,
                    pool=self._settings.llm_global_timeout,
                ),
                headers={
                    "User-Agent": f"{self._settings.app_name}/{self._settings.version}",
                    "Content-Type": "application/json",
                    **self._headers,
                },
                **kwargs,
            )
        return self._client

    async def close(self) -> None:
        """Close HTTP client."""
        if self._client:
            logger.debug("Closing HTTP client for %s", self._base_url)
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> httpx.AsyncClient:
        return self.get_client()

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()
