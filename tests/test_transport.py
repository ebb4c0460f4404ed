"""Tests for HttpxTransport (httpx mocked with pytest-httpx)."""

import json
import re

import httpx
import pytest

from dingtalk_sdk.core.transport import HttpxTransport, RawResponse
from dingtalk_sdk.exceptions import InvalidArgument, TransportFailure

API = "https://oapi.example.test/user/get"


class TestHttpxTransport:
    def test_get_sends_query_string(self, httpx_mock):
        httpx_mock.add_response(method="GET", url=re.compile(re.escape(API) + r"\?.*"), json={"errcode": 0})
        transport = HttpxTransport()

        response = transport.send("get", API, {"userid": "u1", "flag": True, "ids": [1, 2], "skip": None},
                                  {"X-Trace": "t1"}, timeout=3)

        request = httpx_mock.get_request()
        assert request.method == "GET"
        assert request.url.params["userid"] == "u1"
        assert request.url.params["flag"] == "true"
        assert request.url.params["ids"] == "[1, 2]"
        assert "skip" not in request.url.params
        assert request.headers["X-Trace"] == "t1"
        assert response.status_code == 200
        assert response.payload == {"errcode": 0}

    def test_post_sends_json_body(self, httpx_mock):
        httpx_mock.add_response(method="POST", url=API, json={"ok": True}, headers={"Retry-After": "2"})
        transport = HttpxTransport(user_agent="dingtalk-sdk/test")

        response = transport.send("POST", API, {"userIdList": ["u1"]}, {})

        request = httpx_mock.get_request()
        assert json.loads(request.content) == {"userIdList": ["u1"]}
        assert request.headers["User-Agent"] == "dingtalk-sdk/test"
        assert response.header("retry-after") == "2"

    def test_non_json_payload_raises(self, httpx_mock):
        httpx_mock.add_response(method="PUT", url=API, status_code=502, text="<html>bad gateway</html>")
        with pytest.raises(TransportFailure) as exc_info:
            HttpxTransport().send("PUT", API, {}, {})
        assert exc_info.value.context["status_code"] == 502
        assert "bad gateway" in exc_info.value.context["body"]
        assert isinstance(exc_info.value.cause, ValueError)

    def test_empty_body_is_empty_payload(self, httpx_mock):
        httpx_mock.add_response(method="DELETE", url=API, status_code=204)
        response = HttpxTransport().send("DELETE", API, {}, {})
        assert response.status_code == 204
        assert response.payload == {}

    def test_close_leaves_injected_client_open(self):
        client = httpx.Client()
        HttpxTransport(client=client).close()
        assert not client.is_closed

        transport = HttpxTransport()
        transport.close()
        assert transport._client.is_closed

    def test_non_dict_json_is_wrapped(self, httpx_mock):
        httpx_mock.add_response(method="PATCH", url=API, json=[1, 2])
        assert HttpxTransport().send("PATCH", API, {}, {}).payload == {"data": [1, 2]}

    def test_network_error_propagates(self, httpx_mock):
        httpx_mock.add_exception(httpx.ReadTimeout("slow"), url=API)
        with pytest.raises(httpx.ReadTimeout):
            HttpxTransport().send("POST", API, {}, {})

    def test_unsupported_verb(self):
        with pytest.raises(InvalidArgument):
            HttpxTransport().send("TRACE", API, {}, {})


def test_raw_response_header_lookup_is_case_insensitive():
    response = RawResponse(200, {}, {"Retry-After": "4"})
    assert response.header("RETRY-AFTER") == "4"
    assert response.header("missing") is None
