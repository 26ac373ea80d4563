"""
Global test configuration with support for different test types.
"""

from collections.abc import Callable, Generator
import logging
import os

import httpx
import pytest

from gemini_app import GeminiClient
from gemini_app.client.configuration import ClientConfiguration
from gemini_app.client.file_upload_manager import FileUploadManager
from gemini_app.client.transport import RetryTransport
from gemini_app.config import GeminiSettings
from tests.helpers import FakeGeminiService, SleepRecorder


# --- Environment Isolation (Autouse) ---
@pytest.fixture(autouse=True)
def isolate_gemini_env(request, monkeypatch):
    """Ensure a clean GEMINI_* environment for each test.

    Escape hatches:
      - @pytest.mark.allow_env_pollution: keep current env unchanged
      - tests marked with @pytest.mark.api bypass isolation so the real
        environment can be used when explicitly running API tests.
    """
    if request.node.get_closest_marker("allow_env_pollution") or (
        "api" in request.node.keywords
    ):
        return

    for key in list(os.environ.keys()):
        if key.startswith("GEMINI_"):
            monkeypatch.delenv(key, raising=False)
    # Avoid DEBUG toggles switching telemetry on
    monkeypatch.delenv("DEBUG", raising=False)


# --- Logging Fixtures ---
@pytest.fixture(scope="session", autouse=True)
def quiet_noisy_libraries():
    """Sets the log level for noisy external libraries to WARNING."""
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


# --- Test Environment Markers ---
def pytest_configure(config):
    """Configure custom markers for test organization."""
    markers = [
        "unit: Fast, isolated unit tests",
        "integration: Component integration tests with mocked APIs",
        "api: Real API integration tests (requires API key)",
        "allow_env_pollution: Keep the caller's GEMINI_* environment",
    ]
    for marker in markers:
        config.addinivalue_line("markers", marker)


def pytest_collection_modifyitems(config, items):  # noqa: ARG001
    """Automatically skip API tests when API key is unavailable."""
    if not (os.getenv("GEMINI_API_KEY") and os.getenv("ENABLE_API_TESTS")):
        skip_api = pytest.mark.skip(
            reason="API tests require GEMINI_API_KEY and ENABLE_API_TESTS=1",
        )
        for item in items:
            if "api" in item.keywords:
                item.add_marker(skip_api)


# --- Core Fixtures ---


@pytest.fixture
def mock_api_key():
    """Provide a consistent, fake API key for tests."""
    return "test_api_key_12345_67890_abcdef_ghijkl"


@pytest.fixture
def mock_env(mock_api_key, monkeypatch):
    """Mocks essential environment variables for client construction."""
    monkeypatch.setenv("GEMINI_API_KEY", mock_api_key)
    monkeypatch.setenv("GEMINI_MODEL", "gemini-2.0-flash")


@pytest.fixture
def sleeper():
    """Records backoff and polling delays instead of sleeping."""
    return SleepRecorder()


@pytest.fixture
def service():
    """Fake Gemini service backing an httpx.MockTransport."""
    return FakeGeminiService()


@pytest.fixture
def http_client(service) -> Generator[httpx.Client]:
    with httpx.Client(transport=service.transport()) as client:
        yield client


@pytest.fixture
def client_config(mock_api_key):
    return ClientConfiguration.from_settings(GeminiSettings(api_key=mock_api_key))


@pytest.fixture
def transport(http_client, sleeper):
    return RetryTransport(http_client=http_client, sleep=sleeper)


@pytest.fixture
def upload_manager(transport, client_config, sleeper):
    return FileUploadManager(transport, client_config, sleep=sleeper)


@pytest.fixture
def make_client(mock_api_key, http_client, sleeper) -> Callable[..., GeminiClient]:
    """Factory for a GeminiClient wired to the fake service."""

    def _make(**overrides) -> GeminiClient:
        overrides.setdefault("api_key", mock_api_key)
        return GeminiClient(http_client=http_client, sleep=sleeper, **overrides)

    return _make
