"""Tests for DingTalkClient: resolution, routing, request options and introspection."""

import httpx
import pytest

from dingtalk_sdk import DingTalkClient
from dingtalk_sdk.auth import AppCredentials, StaticCredentials
from dingtalk_sdk.core.generation import ApiGeneration, Direction
from dingtalk_sdk.core.transport import HttpxTransport
from dingtalk_sdk.exceptions import UnsupportedTranslationError
from tests.conftest import make_config


def _client(transport, credentials, clock, version="v1", **settings):
    return DingTalkClient(make_config(version, **settings), transport=transport,
                          credentials=credentials, clock=clock)


class TestCall:
    def test_user_get_against_legacy(self, transport, credentials, clock):
        transport.queue({"errcode": 0, "errmsg": "ok", "userid": "u1", "name": "Zhang"})
        client = _client(transport, credentials, clock)

        result = client.call("user.get", {"userId": "u1"}, "GET", {})

        params = transport.last["params"]
        assert params["userid"] == "u1"
        assert params["lang"] == "zh_CN"
        assert result["userId"] == "u1"
        assert transport.last["url"].startswith("https://oapi.dingtalk.com/")

    def test_pinned_generation_in_options(self, transport, credentials, clock):
        client = _client(transport, credentials, clock)
        client.call("user.get", {"userId": "u1"}, "GET", {"generation": "current"})
        assert transport.last["url"] == "https://api.dingtalk.com/v1.0/contact/users/u1"

    def test_request_options_are_forwarded(self, transport, credentials, clock):
        client = _client(transport, credentials, clock)
        client.call("user.get", {"userId": "u1"}, "GET", {"timeout": 3, "headers": {"X-Req": "1"}})
        assert transport.last["timeout"] == 3
        assert transport.last["headers"]["X-Req"] == "1"

    def test_feature_requirement_routes_to_current(self, transport, credentials, clock):
        client = _client(transport, credentials, clock, version="auto")
        client.call("approval.create", {"processCode": "P1"}, "POST",
                    {"strategies": ["feature"], "required_features": ["approval"]})
        assert transport.last["url"] == "https://api.dingtalk.com/v1.0/workflow/processInstances"

    def test_message_recall_on_legacy(self, transport, credentials, clock):
        client = _client(transport, credentials, clock)
        with pytest.raises(UnsupportedTranslationError):
            client.call("message.recall", {"taskId": 1})
        assert transport.calls == []

    def test_custom_adapter_via_client(self, transport, credentials, clock):
        client = _client(transport, credentials, clock)

        def to_legacy(data, source, target, method, direction):
            assert direction is Direction.REQUEST
            return {"userid": data["userId"].upper()}

        client.register_custom_adapter("user.get", "v2", "v1", to_legacy, name="upper")
        client.call("user.get", {"userId": "u1"}, "GET")
        assert transport.last["params"]["userid"] == "U1"
        assert "lang" not in transport.last["params"]


class TestCredentials:
    def test_per_generation_credentials(self, transport, clock):
        creds = {
            "v1": StaticCredentials(access_token="legacy-token"),
            ApiGeneration.CURRENT: StaticCredentials(access_token="current-token"),
        }
        client = DingTalkClient(make_config("v1"), transport=transport, credentials=creds, clock=clock)

        client.call("user.get", {"userId": "u1"}, "GET")
        assert transport.last["params"]["access_token"] == "legacy-token"

        client.call("user.get", {"userId": "u1"}, "GET", {"generation": "v2"})
        assert transport.last["headers"]["x-acs-dingtalk-access-token"] == "current-token"

    def test_app_credentials_from_config(self, transport, clock):
        config = make_config("v1")
        config.app_key = "key"
        config.app_secret = "secret"
        client = DingTalkClient(config, transport=transport, clock=clock)

        legacy = client.adapters[ApiGeneration.LEGACY].credentials
        current = client.adapters[ApiGeneration.CURRENT].credentials
        assert isinstance(legacy, AppCredentials)
        assert legacy.generation is ApiGeneration.LEGACY
        assert current.generation is ApiGeneration.CURRENT
        assert legacy.cache is current.cache is client.token_cache


class TestIntrospection:
    def test_resolve_generation(self, transport, credentials, clock):
        client = _client(transport, credentials, clock, version="v2")
        assert client.resolve_generation() is ApiGeneration.CURRENT
        assert client.resolve_generation({"generation": "legacy"}) is ApiGeneration.LEGACY

    def test_supported_features_superset(self, transport, credentials, clock):
        client = _client(transport, credentials, clock)
        assert client.supported_generations() == [ApiGeneration.LEGACY, ApiGeneration.CURRENT]
        assert set(client.supported_features("v2")) >= set(client.supported_features("v1"))

    def test_compatibility_report(self, transport, credentials, clock):
        client = _client(transport, credentials, clock)
        report = client.compatibility_report("v1", ["calendar"])
        assert not report.compatible

    def test_stats_and_clear_cache(self, transport, credentials, clock):
        client = _client(transport, credentials, clock, version="auto")
        client.call("user.get", {"userId": "u1"}, "GET", {"strategies": ["feature"], "required_features": ["robot"]})
        client.call("user.get", {"userId": "u1"}, "GET", {"strategies": ["feature"], "required_features": ["robot"]})

        stats = client.stats()
        assert stats["detection"]["cache_hits"] == 1
        assert stats["adaptation"]["total"] == 4
        assert stats["requests"]["v1"]["successful"] == 2
        assert stats["requests"]["v2"]["total"] == 0

        client.clear_cache()
        assert client.stats()["detection"]["cache_size"] == 0


class TestLifecycle:
    def test_close_releases_owned_resources(self, clock):
        config = make_config("v1")
        config.app_key = "key"
        config.app_secret = "secret"

        with DingTalkClient(config, clock=clock) as client:
            assert isinstance(client.transport, HttpxTransport)
            legacy = client.adapters[ApiGeneration.LEGACY].credentials

        assert client.transport._client.is_closed
        assert legacy._client.is_closed

    def test_close_leaves_injected_resources_open(self, transport, clock):
        http = httpx.Client()
        credentials = AppCredentials("key", "secret", client=http, clock=clock)
        client = DingTalkClient(make_config("v1"), transport=transport, credentials=credentials, clock=clock)

        client.close()
        client.close()

        assert not http.is_closed
        http.close()
