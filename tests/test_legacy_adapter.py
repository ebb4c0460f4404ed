"""Tests for LegacyCallAdapter: paths, translation, auth categories and error mapping."""

import base64
import hashlib
import hmac

import httpx
import pytest

from dingtalk_sdk.auth import StaticCredentials
from dingtalk_sdk.core.adapters import LegacyCallAdapter, sign
from dingtalk_sdk.core.schema import SchemaAdapter
from dingtalk_sdk.core.transport import HttpxTransport
from dingtalk_sdk.exceptions import (
    ApiFailure,
    AuthFailure,
    InvalidArgument,
    RateLimitFailure,
    TransportFailure,
    UnsupportedTranslationError,
)
from tests.conftest import NOW, FakeTransport, make_config


@pytest.fixture
def adapter(transport, credentials, clock):
    return LegacyCallAdapter(SchemaAdapter(), transport, credentials, config=make_config("v1"), clock=clock)


class TestExecute:
    def test_user_get_end_to_end(self, adapter, transport):
        transport.queue({"errcode": 0, "errmsg": "ok", "userid": "u1", "name": "Zhang San"})

        result = adapter.execute("user.get", {"userId": "u1"}, "GET", {})

        call = transport.last
        assert call["verb"] == "GET"
        assert call["url"] == "https://oapi.dingtalk.com/user/get"
        assert call["params"]["userid"] == "u1"
        assert call["params"]["lang"] == "zh_CN"
        assert "userId" not in call["params"]
        assert call["params"]["access_token"] == "tok-abc"
        assert result["userId"] == "u1"
        assert "userid" not in result
        assert result["name"] == "Zhang San"

    @pytest.mark.parametrize("method", ["user.delete", "user.update", "user.get"])
    def test_user_id_keeps_leading_zero(self, adapter, transport, method):
        adapter.execute(method, {"userId": "0123"}, "GET")
        assert transport.last["params"]["userid"] == "0123"

    def test_user_id_in_response_stays_string(self, adapter, transport):
        transport.queue({"errcode": 0, "userid": "0456", "jobnumber": "0012", "mobile": "0755123"})
        result = adapter.execute("user.get", {"userId": "0456"}, "GET")
        assert result["userId"] == "0456"
        assert result["jobNumber"] == "0012"
        assert result["mobile"] == "0755123"

    def test_timestamp_and_nonce_stamped(self, adapter, transport):
        adapter.execute("user.get", {"userId": "u1"}, "GET")
        params = transport.last["params"]
        assert params["timestamp"] == int(NOW)
        assert params["nonce"] == "nonce123"

    def test_existing_timestamp_is_kept(self, adapter, transport):
        adapter.execute("department.list", {"deptId": 1, "timestamp": 111, "nonce": "abc"}, "GET")
        params = transport.last["params"]
        assert params["timestamp"] == 111
        assert params["nonce"] == "abc"

    def test_base_url_and_timeout_from_config(self, transport, credentials, clock):
        config = make_config("v1", api={"v1": {"base_url": "https://oapi.example.test/", "timeout": 12}})
        adapter = LegacyCallAdapter(SchemaAdapter(), transport, credentials, config=config, clock=clock)
        adapter.execute("user.get", {"userId": "u1"}, "GET")
        assert transport.last["url"] == "https://oapi.example.test/user/get"
        assert transport.last["timeout"] == 12

    def test_request_options(self, adapter, transport):
        adapter.execute("user.get", {"userId": "u1"}, "GET", {"timeout": 2, "headers": {"X-Trace": "t1"}})
        assert transport.last["timeout"] == 2
        assert transport.last["headers"]["X-Trace"] == "t1"
        assert transport.last["headers"]["User-Agent"].startswith("DingTalk-SDK-Python-V1/")

    def test_unmapped_method_path(self, adapter, transport):
        adapter.execute("chat.group.create", {"name": "team"})
        assert transport.last["url"] == "https://oapi.dingtalk.com/chat/group/create"

    def test_invalid_verb(self, adapter, transport):
        with pytest.raises(InvalidArgument):
            adapter.execute("user.get", {"userId": "u1"}, "TRACE")
        assert transport.calls == []
        assert adapter.stats().failed == 1

    def test_message_recall_never_reaches_transport(self, adapter, transport):
        with pytest.raises(UnsupportedTranslationError):
            adapter.execute("message.recall", {"taskId": 1})
        assert transport.calls == []


class TestSignedMethods:
    def test_sign_matches_hmac_sha256(self):
        expected = base64.b64encode(
            hmac.new(b"secret", b"1700000000000\nnonce123", hashlib.sha256).digest()
        ).decode()
        assert sign("secret", 1700000000000, "nonce123") == expected

    def test_message_send_is_signed(self, adapter, transport):
        transport.queue({"errcode": 0, "task_id": "256"})

        result = adapter.execute("message.send", {"agentId": 1, "userIdList": ["u1", "u2"], "msgType": "text"})

        params = transport.last["params"]
        assert params["touser"] == "u1,u2"
        assert params["app_key"] == "ding-key"
        assert params["signature"] == sign("ding-secret", params["timestamp"], params["nonce"])
        assert "access_token" not in params
        assert result["taskId"] == 256

    def test_signature_uses_supplied_timestamp(self, adapter, transport):
        adapter.execute("media.upload", {"type": "image", "timestamp": 42, "nonce": "n"})
        assert transport.last["params"]["signature"] == sign("ding-secret", 42, "n")

    def test_signed_method_without_secret(self, transport, clock):
        adapter = LegacyCallAdapter(SchemaAdapter(), transport, StaticCredentials(access_token="t"),
                                    config=make_config("v1"), clock=clock)
        with pytest.raises(AuthFailure):
            adapter.execute("message.send", {"userIdList": ["u1"]})
        assert transport.calls == []
        assert adapter.stats().auth_failed == 1


class TestAuth:
    def test_missing_token(self, transport, clock):
        adapter = LegacyCallAdapter(SchemaAdapter(), transport, StaticCredentials(),
                                    config=make_config("v1"), clock=clock)
        with pytest.raises(AuthFailure):
            adapter.execute("user.get", {"userId": "u1"}, "GET")
        assert transport.calls == []

    def test_credential_error_is_auth_failure(self, transport, clock):
        class Broken(StaticCredentials):
            def get_access_token(self, force_refresh=False):
                raise OSError("keychain locked")

        adapter = LegacyCallAdapter(SchemaAdapter(), transport, Broken(), config=make_config("v1"), clock=clock)
        with pytest.raises(AuthFailure) as exc_info:
            adapter.execute("user.get", {"userId": "u1"}, "GET")
        assert isinstance(exc_info.value.__cause__, OSError)


class TestErrors:
    def test_auth_error_code(self, adapter, transport):
        transport.queue({"errcode": 40001, "errmsg": "invalid token"})
        with pytest.raises(AuthFailure) as exc_info:
            adapter.execute("user.get", {"userId": "u1"}, "GET")
        assert exc_info.value.vendor_code == 40001
        assert exc_info.value.vendor_message == "invalid token"
        assert "Invalid access token" in exc_info.value.message

        stats = adapter.stats()
        assert (stats.total, stats.successful, stats.failed, stats.auth_failed) == (1, 0, 1, 1)

    def test_rate_limit_hint_from_payload(self, adapter, transport):
        transport.queue({"errcode": 90018, "errmsg": "too fast", "retry_after": "3"})
        with pytest.raises(RateLimitFailure) as exc_info:
            adapter.execute("user.get", {"userId": "u1"}, "GET")
        assert exc_info.value.retry_after == 3.0
        assert adapter.stats().rate_limited == 1

    def test_rate_limit_hint_from_header(self, adapter, transport):
        transport.queue({"errcode": 43001, "errmsg": "busy"}, headers={"Retry-After": "9"})
        with pytest.raises(RateLimitFailure) as exc_info:
            adapter.execute("user.get", {"userId": "u1"}, "GET")
        assert exc_info.value.retry_after == 9.0

    def test_rate_limit_hint_default(self, adapter, transport):
        transport.queue({"errcode": 43002})
        with pytest.raises(RateLimitFailure) as exc_info:
            adapter.execute("user.get", {"userId": "u1"}, "GET")
        assert exc_info.value.retry_after == 5.0

    @pytest.mark.parametrize("code", [50001, 99999, 60011])
    def test_generic_failure(self, adapter, transport, code):
        transport.queue({"errcode": code, "errmsg": "something"})
        with pytest.raises(ApiFailure) as exc_info:
            adapter.execute("department.get", {"deptId": 1}, "GET")
        assert type(exc_info.value) is ApiFailure
        assert exc_info.value.method == "department.get"

    def test_transport_error_is_wrapped(self, adapter, transport):
        transport.fail(httpx.ConnectError("connection refused"))
        with pytest.raises(TransportFailure) as exc_info:
            adapter.execute("user.get", {"userId": "u1"}, "GET")
        assert isinstance(exc_info.value.cause, httpx.ConnectError)
        assert exc_info.value.context["url"] == "https://oapi.dingtalk.com/user/get"

    @pytest.mark.parametrize("status, failure", [(502, ApiFailure), (401, AuthFailure), (429, RateLimitFailure)])
    def test_http_error_without_errcode(self, adapter, transport, status, failure):
        transport.queue({}, status_code=status)
        with pytest.raises(failure) as exc_info:
            adapter.execute("user.get", {"userId": "u1"}, "GET")
        assert exc_info.value.vendor_code == status
        assert f"HTTP {status}" in exc_info.value.message
        assert adapter.stats().successful == 0

    def test_html_error_page_is_transport_failure(self, transport, credentials, clock, httpx_mock):
        httpx_mock.add_response(status_code=502, text="<html>Bad Gateway</html>")
        adapter = LegacyCallAdapter(SchemaAdapter(), HttpxTransport(), credentials, clock=clock)

        with pytest.raises(TransportFailure) as exc_info:
            adapter.execute("user.get", {"userId": "u1"}, "GET")

        assert exc_info.value.context["status_code"] == 502
        assert adapter.stats().to_dict() == {
            "total": 1, "successful": 0, "failed": 1, "rate_limited": 0, "auth_failed": 0,
        }

    def test_stats_accumulate_and_clear(self, adapter, transport):
        transport.queue({"errcode": 0}).queue({"errcode": 50001})
        adapter.execute("user.get", {"userId": "u1"}, "GET")
        with pytest.raises(ApiFailure):
            adapter.execute("user.get", {"userId": "u1"}, "GET")
        assert adapter.stats().to_dict() == {
            "total": 2, "successful": 1, "failed": 1, "rate_limited": 0, "auth_failed": 0,
        }
        adapter.clear_stats()
        assert adapter.stats().total == 0


def test_fake_transport_default_response():
    assert FakeTransport().send("GET", "http://x", {}, {}).payload == {}
