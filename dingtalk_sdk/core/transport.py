# !/usr/bin/env python
# -*- coding: utf-8 -*-
# =====================================================
# @File   ：transport.py
# @Date   ：2026/10/12 15:00
# @Author ：leemysw
# 2026/10/12 15:00   Create
# 2026/10/19 10:00   Unparsable body raises TransportFailure
# =====================================================
"""
[INPUT]: 依赖 httpx
[OUTPUT]: 对外提供 Transport 协议, RawResponse, HttpxTransport, HTTP_VERBS
[POS]: 传输层，只负责一次 HTTP 往返，不做重试
[PROTOCOL]: 变更时更新此头部，然后检查 README.md
"""

import json
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Protocol

import httpx

from dingtalk_sdk.exceptions import InvalidArgument, TransportFailure

HTTP_VERBS = ("GET", "POST", "PUT", "DELETE", "PATCH")

# 这些方法的参数放在 query string，其余放在 JSON body
QUERY_VERBS = ("GET", "DELETE")


def normalize_verb(verb: str) -> str:
    upper = (verb or "").upper()
    if upper not in HTTP_VERBS:
        raise InvalidArgument(f"不支持的 HTTP 方法: {verb}", context={"verb": verb})
    return upper


@dataclass
class RawResponse:
    """一次 HTTP 往返的原始结果"""
    status_code: int
    payload: Dict[str, Any] = field(default_factory=dict)
    headers: Dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.status_code < 400

    def header(self, name: str) -> Optional[str]:
        lowered = name.lower()
        for key, value in self.headers.items():
            if key.lower() == lowered:
                return value
        return None


class Transport(Protocol):
    """传输层协议：网络层失败时直接抛出异常"""

    def send(
            self,
            verb: str,
            url: str,
            params: Mapping[str, Any],
            headers: Mapping[str, str],
            timeout: Optional[float] = None,
    ) -> RawResponse:
        ...


class HttpxTransport:
    """
    基于 httpx 的传输实现

    - GET / DELETE：参数编码为 query string
    - POST / PUT / PATCH：参数作为 JSON body
    - 响应体为空时 payload 为空字典，非 JSON 时抛出 TransportFailure
    """

    def __init__(self, client: Optional[httpx.Client] = None, timeout: float = 30, user_agent: str = ""):
        self._owns_client = client is None
        self._client = client or httpx.Client(timeout=timeout)
        self._user_agent = user_agent

    def send(
            self,
            verb: str,
            url: str,
            params: Mapping[str, Any],
            headers: Mapping[str, str],
            timeout: Optional[float] = None,
    ) -> RawResponse:
        verb = normalize_verb(verb)
        request_headers = {"Content-Type": "application/json; charset=utf-8"}
        if self._user_agent:
            request_headers["User-Agent"] = self._user_agent
        request_headers.update(headers or {})

        kwargs: Dict[str, Any] = {"headers": request_headers}
        if timeout is not None:
            kwargs["timeout"] = timeout
        if verb in QUERY_VERBS:
            kwargs["params"] = _to_query(params)
        else:
            kwargs["json"] = dict(params)

        response = self._client.request(verb, url, **kwargs)

        return RawResponse(
            status_code=response.status_code,
            payload=_parse_payload(response),
            headers=dict(response.headers),
        )

    def close(self) -> None:
        if self._owns_client:
            self._client.close()


def _to_query(params: Mapping[str, Any]) -> Dict[str, Any]:
    """query string 只能承载标量，布尔值按接口习惯写成 true/false，列表/字典序列化为 JSON"""
    query: Dict[str, Any] = {}
    for key, value in params.items():
        if value is None:
            continue
        if isinstance(value, bool):
            query[key] = "true" if value else "false"
        elif isinstance(value, (list, dict)):
            query[key] = json.dumps(value, ensure_ascii=False)
        else:
            query[key] = value
    return query


def _parse_payload(response: httpx.Response) -> Dict[str, Any]:
    if not response.content:
        return {}
    try:
        data = response.json()
    except ValueError as e:
        raise TransportFailure(
            f"响应无法解析为 JSON (HTTP {response.status_code})",
            cause=e,
            context={
                "status_code": response.status_code,
                "url": str(response.request.url),
                "body": response.text[:200],
            },
        ) from e
    if isinstance(data, dict):
        return data
    return {"data": data}
