"""
Shared fixtures: isolated environment, settings and mock downstream services.
"""
import httpx
import pytest

from wakecron.config import Settings, get_settings


ENV_KEYS = (
    "SECRET_TOKEN",
    "COIN_SIFTER_URL",
    "KLINE_PROVIDER_URL",
    "WAKEUP_URL",
    "SCHEDULER_ENABLED",
    "PORT",
    "HOST",
)

TOKEN = "s3cret-token"


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch, tmp_path):
    """No real env vars and no stray .env file leak into tests."""
    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(tmp_path)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def settings():
    """Settings with every downstream service configured."""
    return Settings(
        _env_file=None,
        SECRET_TOKEN=TOKEN,
        COIN_SIFTER_URL="http://coin-sifter.test",
        KLINE_PROVIDER_URL="http://kline.test/",
        WAKEUP_URL="http://wakeup.test",
    )


class Downstream:
    """Records every request and answers with a fixed status."""

    def __init__(self, status_code: int = 200, text: str = "ok", error: Exception = None):
        self.status_code = status_code
        self.text = text
        self.error = error
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        return httpx.Response(self.status_code, text=self.text)

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self))


@pytest.fixture
def downstream():
    return Downstream()
