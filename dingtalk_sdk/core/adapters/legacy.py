# !/usr/bin/env python
# -*- coding: utf-8 -*-
# =====================================================
# @File   ：legacy.py
# @Date   ：2026/10/14 15:20
# @Author ：leemysw
# 2026/10/14 15:20   Create
# 2026/10/16 11:30   Signed methods use HMAC-SHA256
# 2026/10/19 11:40   Timestamp in seconds
# =====================================================
"""
[INPUT]: 依赖 base.py, auth.token
[OUTPUT]: 对外提供 LegacyCallAdapter, sign
[POS]: 旧版 (oapi.dingtalk.com) 调用适配器
[PROTOCOL]: 变更时更新此头部，然后检查 README.md

认证方式：
- 普通方法：查询参数 access_token
- 签名方法：app_key + timestamp + nonce + signature
"""

import base64
import hashlib
import hmac
from typing import Any, Dict, FrozenSet, Optional, Tuple

from dingtalk_sdk.core.adapters.base import CallAdapter
from dingtalk_sdk.core.errors import LEGACY_ERROR_MESSAGES
from dingtalk_sdk.core.generation import ApiGeneration
from dingtalk_sdk.exceptions import AuthFailure, DingTalkError

# 需要签名认证的方法
SIGNED_METHODS: FrozenSet[str] = frozenset({
    "message.send",
    "message.send_to_conversation",
    "media.upload",
})


def sign(secret: str, timestamp: Any, nonce: str) -> str:
    """
    旧版签名

    base64( HMAC-SHA256( secret, "{timestamp}\\n{nonce}" ) )
    """
    string_to_sign = f"{timestamp}\n{nonce}"
    digest = hmac.new(secret.encode("utf-8"), string_to_sign.encode("utf-8"), hashlib.sha256).digest()
    return base64.b64encode(digest).decode("utf-8")


class LegacyCallAdapter(CallAdapter):
    """
    旧版 API 调用适配器

    逻辑参数（新版结构）先转换为旧版字段，响应再转换回新版结构。

    使用示例：
        adapter = LegacyCallAdapter(schema, transport, credentials)
        adapter.execute("user.get", {"userId": "u1"}, http_verb="GET")
    """

    DEFAULT_BASE_URL = "https://oapi.dingtalk.com"
    ERROR_CODE_FIELD = "errcode"
    ERROR_MESSAGE_FIELD = "errmsg"
    ERROR_MESSAGES = LEGACY_ERROR_MESSAGES

    PATHS: Dict[str, str] = {
        "user.get": "user/get",
        "user.list": "user/list",
        "user.create": "user/create",
        "user.update": "user/update",
        "user.delete": "user/delete",
        "department.list": "department/list",
        "department.get": "department/get",
        "department.create": "department/create",
        "department.update": "department/update",
        "department.delete": "department/delete",
        "message.send": "message/send",
        "message.send_to_conversation": "message/send_to_conversation",
        "media.upload": "media/upload",
        "attendance.list": "attendance/list",
    }

    def __init__(self, *args: Any, generation: ApiGeneration = ApiGeneration.LEGACY, **kwargs: Any):
        super().__init__(*args, **kwargs)
        self.generation = ApiGeneration.parse_concrete(generation)

    def authenticate(self, method: str, params: Dict[str, Any]) -> Tuple[Dict[str, Any], Dict[str, str]]:
        params = dict(params)
        timestamp = params.get("timestamp")
        if timestamp is None:
            timestamp = int(self.clock.now())
            params["timestamp"] = timestamp
        nonce = params.get("nonce")
        if not nonce:
            nonce = self.clock.nonce()
            params["nonce"] = nonce

        if method in SIGNED_METHODS:
            app_key = self._credential(lambda: self.credentials.app_key())
            secret = self._credential(lambda: self.credentials.signing_secret())
            if not app_key or not secret:
                raise AuthFailure(
                    f"{self.generation} 签名方法 {method} 缺少 app_key 或 app_secret",
                    method=method,
                    generation=self.generation,
                )
            params["app_key"] = app_key
            params["signature"] = sign(secret, timestamp, str(nonce))
        else:
            token = self._credential(lambda: self.credentials.get_access_token())
            if not token:
                raise AuthFailure(
                    f"{self.generation} 调用 {method} 缺少 access_token",
                    method=method,
                    generation=self.generation,
                )
            params["access_token"] = token

        return params, {}

    def _credential(self, getter) -> Optional[str]:
        """读取凭证，非 SDK 异常统一包装为认证失败"""
        try:
            return getter()
        except DingTalkError:
            raise
        except Exception as e:
            raise AuthFailure(f"读取凭证失败: {e}", generation=self.generation) from e
