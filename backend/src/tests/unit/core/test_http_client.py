"""Unit tests for API key resolution and the pooled HTTP client."""

import httpx
import pytest
from cryptography.fernet import Fernet

from modelbridge.core.config import Settings
from modelbridge.core.exceptions import LLMConfigurationError
from modelbridge.core.http_client import HTTPClientManager, decrypt_api_key, resolve_api_key


@pytest.fixture
def encryption_key():
    return Fernet.generate_key().decode()


def _settings(**values):
    values.setdefault("MODELBRIDGE_OPENAI_API_KEY", "")
    return Settings(_env_file=None, **values)


def test_decrypt_api_key(encryption_key):
    token = Fernet(encryption_key.encode()).encrypt(b"sk-secret").decode()
    assert decrypt_api_key(token, encryption_key) == "sk-secret"


def test_decrypt_with_wrong_key(encryption_key):
    token = Fernet(Fernet.generate_key()).encrypt(b"sk-secret").decode()

    with pytest.raises(LLMConfigurationError, match="Failed to decrypt API key"):
        decrypt_api_key(token, encryption_key)


def test_resolve_plain_key_wins(encryption_key):
    settings = _settings(
        MODELBRIDGE_OPENAI_API_KEY="sk-plain",
        MODELBRIDGE_OPENAI_API_KEY_ENCRYPTED="ignored",
        MODELBRIDGE_LLM_ENCRYPTION_KEY=encryption_key,
    )
    assert resolve_api_key(settings) == "sk-plain"


def test_resolve_encrypted_key(encryption_key):
    token = Fernet(encryption_key.encode()).encrypt(b"sk-stored").decode()
    settings = _settings(MODELBRIDGE_OPENAI_API_KEY_ENCRYPTED=token, MODELBRIDGE_LLM_ENCRYPTION_KEY=encryption_key)

    assert resolve_api_key(settings) == "sk-stored"


def test_resolve_encrypted_key_without_encryption_key():
    settings = _settings(MODELBRIDGE_OPENAI_API_KEY_ENCRYPTED="gAAAA")

    with pytest.raises(LLMConfigurationError, match="no encryption key"):
        resolve_api_key(settings)


def test_resolve_no_key():
    assert resolve_api_key(_settings()) is None


@pytest.mark.asyncio
async def test_client_is_pooled_and_closed(test_settings):
    manager = HTTPClientManager("https://llm.test/v1/", headers={"X-Team": "core"}, settings=test_settings)

    client = manager.get_client()

    assert manager.get_client() is client
    assert client.headers["x-team"] == "core"
    assert client.headers["user-agent"] == "modelbridge/0.1.0"
    assert client.timeout.read == test_settings.llm_streaming_read_timeout

    await manager.close()
    assert client.is_closed
    assert manager.get_client() is not client
    await manager.close()


@pytest.mark.asyncio
async def test_context_manager_uses_transport(test_settings):
    transport = httpx.MockTransport(lambda request: httpx.Response(200, json={"path": request.url.path}))

    async with HTTPClientManager("https://llm.test/v1", settings=test_settings, transport=transport) as client:
        response = await client.get("/models")

    assert response.json() == {"path": "/v1/models"}
