# !/usr/bin/env python
# -*- coding: utf-8 -*-
# =====================================================
# @File   ：current.py
# @Date   ：2026/10/14 16:40
# @Author ：leemysw
# 2026/10/14 16:40   Create
# =====================================================
"""
[INPUT]: 依赖 base.py
[OUTPUT]: 对外提供 CurrentCallAdapter
[POS]: 新版 (api.dingtalk.com/v1.0) 调用适配器
[PROTOCOL]: 变更时更新此头部，然后检查 README.md
"""

import re
from typing import Any, Dict, Mapping, Tuple

from dingtalk_sdk.core.adapters.base import CallAdapter
from dingtalk_sdk.core.errors import FailureKind, classify_status, is_error_code
from dingtalk_sdk.core.generation import ApiGeneration
from dingtalk_sdk.core.transport import RawResponse
from dingtalk_sdk.exceptions import AuthFailure, DingTalkError, InvalidArgument

_PLACEHOLDER_RE = re.compile(r"\{(\w+)\}")

class CurrentCallAdapter(CallAdapter):
    """
    新版 API 调用适配器

    - 路径模板中的 {userId} 等占位符从参数中取值
    - access_token 放在请求头 x-acs-dingtalk-access-token
    - 错误字段为 code / message；没有 code 时按 HTTP 状态码分类
    """

    generation = ApiGeneration.CURRENT
    DEFAULT_BASE_URL = "https://api.dingtalk.com"
    ERROR_CODE_FIELD = "code"
    ERROR_MESSAGE_FIELD = "message"
    ERROR_MESSAGES: Dict[int, str] = {}
    TOKEN_HEADER = "x-acs-dingtalk-access-token"

    PATHS: Dict[str, str] = {
        "user.get": "v1.0/contact/users/{userId}",
        "user.list": "v1.0/contact/users/list",
        "user.create": "v1.0/contact/users",
        "user.update": "v1.0/contact/users/{userId}",
        "user.delete": "v1.0/contact/users/{userId}",
        "department.list": "v1.0/contact/departments/list",
        "department.get": "v1.0/contact/departments/{deptId}",
        "department.create": "v1.0/contact/departments",
        "department.update": "v1.0/contact/departments/{deptId}",
        "department.delete": "v1.0/contact/departments/{deptId}",
        "message.send": "v1.0/robot/oToMessages/batchSend",
        "message.recall": "v1.0/robot/otoMessages/batchRecall",
        "media.upload": "v1.0/media/upload",
        "attendance.list": "v1.0/attendance/records/list",
        "approval.create": "v1.0/workflow/processInstances",
        "calendar.event.create": "v1.0/calendar/users/{userId}/calendars/primary/events",
    }

    def resolve_path(self, method: str) -> str:
        return self.PATHS.get(method) or "v1.0/" + method.replace(".", "/")

    def fill_path(self, template: str, params: Dict[str, Any]) -> Tuple[str, Dict[str, Any]]:
        remaining = dict(params)

        def _replace(match) -> str:
            name = match.group(1)
            value = remaining.pop(name, None)
            if value is None or value == "":
                raise InvalidArgument(f"路径参数缺失: {name}", context={"path": template})
            return str(value)

        return _PLACEHOLDER_RE.sub(_replace, template), remaining

    def authenticate(self, method: str, params: Dict[str, Any]) -> Tuple[Dict[str, Any], Dict[str, str]]:
        try:
            token = self.credentials.get_access_token()
        except DingTalkError:
            raise
        except Exception as e:
            raise AuthFailure(f"读取凭证失败: {e}", method=method, generation=self.generation) from e

        if not token:
            raise AuthFailure(
                f"{self.generation} 调用 {method} 缺少 access_token",
                method=method,
                generation=self.generation,
            )
        return params, {self.TOKEN_HEADER: token}

    def check_error(self, method: str, payload: Mapping[str, Any], raw: RawResponse) -> None:
        code = payload.get(self.ERROR_CODE_FIELD)
        vendor_message = str(payload.get(self.ERROR_MESSAGE_FIELD) or "")

        if is_error_code(code):
            kind = self.classification.classify(code)
            # 字符串错误码未收录时，参考 HTTP 状态码
            if kind is FailureKind.GENERIC:
                kind = classify_status(raw.status_code)
            self.raise_failure(method, kind, code, vendor_message, payload, raw)

        super().check_error(method, payload, raw)
