"""Shared test fixtures and fakes."""

from typing import Any, Dict, List, Optional

import pytest

from dingtalk_sdk.auth import StaticCredentials
from dingtalk_sdk.core.transport import RawResponse, normalize_verb
from dingtalk_sdk.utils.config import AppConfig


NOW = 1_700_000_000.0


class FakeClock:
    """Deterministic clock; advance() moves time forward."""

    def __init__(self, now: float = NOW, nonce: str = "nonce123"):
        self._now = now
        self._nonce = nonce

    def now(self) -> float:
        return self._now

    def nonce(self) -> str:
        return self._nonce

    def advance(self, seconds: float) -> None:
        self._now += seconds


class FakeTransport:
    """Records every request and replays queued responses (or raises queued exceptions)."""

    def __init__(self, responses: Optional[List[Any]] = None):
        self.calls: List[Dict[str, Any]] = []
        self.responses: List[Any] = list(responses or [])

    def queue(self, payload: Optional[Dict[str, Any]] = None, status_code: int = 200,
              headers: Optional[Dict[str, str]] = None) -> "FakeTransport":
        self.responses.append(RawResponse(status_code, payload or {}, headers or {}))
        return self

    def fail(self, exc: BaseException) -> "FakeTransport":
        self.responses.append(exc)
        return self

    def send(self, verb, url, params, headers, timeout=None) -> RawResponse:
        self.calls.append({
            "verb": normalize_verb(verb),
            "url": url,
            "params": dict(params),
            "headers": dict(headers),
            "timeout": timeout,
        })
        if not self.responses:
            return RawResponse(200, {})
        response = self.responses.pop(0)
        if isinstance(response, BaseException):
            raise response
        return response

    @property
    def last(self) -> Dict[str, Any]:
        return self.calls[-1]


@pytest.fixture(autouse=True)
def isolated_env(tmp_path, monkeypatch):
    """Keep tests away from the real ~/.dingtalk-sdk and DINGTALK_* variables."""
    for name in ("DINGTALK_APP_KEY", "DINGTALK_APP_SECRET", "DINGTALK_API_VERSION"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("DINGTALK_SDK_HOME", str(tmp_path / "home"))
    return tmp_path


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def credentials() -> StaticCredentials:
    return StaticCredentials(access_token="tok-abc", app_key="ding-key", app_secret="ding-secret")


def make_config(version: str = "auto", **settings: Any) -> AppConfig:
    """In-memory AppConfig; the api section is merged, other sections replace defaults."""
    api: Dict[str, Any] = {"version": version}
    api.update(settings.pop("api", {}))
    data: Dict[str, Any] = {"api": api}
    data.update(settings)
    return AppConfig.from_dict(data)


@pytest.fixture
def legacy_config() -> AppConfig:
    return make_config("v1")
