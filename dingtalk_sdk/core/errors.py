# !/usr/bin/env python
# -*- coding: utf-8 -*-
# =====================================================
# @File   ：errors.py
# @Date   ：2026/10/13 09:30
# @Author ：leemysw
# 2026/10/13 09:30   Create
# 2026/10/19 10:20   HTTP status classification
# =====================================================
"""
[INPUT]: 依赖 exceptions
[OUTPUT]: 对外提供 FailureKind, ErrorClassification, LEGACY_ERROR_MESSAGES, build_failure, classify_status
[POS]: 厂商错误码分类：按数值区间映射到 Auth / RateLimit / Generic
[PROTOCOL]: 变更时更新此头部，然后检查 README.md
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Tuple

from dingtalk_sdk.exceptions import ApiFailure, AuthFailure, InvalidArgument, RateLimitFailure


class FailureKind(str, Enum):
    AUTH = "auth"
    RATE_LIMIT = "rate_limit"
    GENERIC = "generic"


@dataclass(frozen=True)
class CodeRange:
    start: int
    end: int
    kind: FailureKind

    def __contains__(self, code: int) -> bool:
        return self.start <= code <= self.end


# 区间互不重叠，区间外的错误码一律为 GENERIC
DEFAULT_RANGES: Tuple[CodeRange, ...] = (
    CodeRange(40001, 42002, FailureKind.AUTH),
    CodeRange(43001, 43002, FailureKind.RATE_LIMIT),
    CodeRange(90018, 90019, FailureKind.RATE_LIMIT),
)

# 旧版 API 错误码说明
LEGACY_ERROR_MESSAGES: Dict[int, str] = {
    40001: "Invalid access token",
    40002: "Invalid app key",
    40003: "Invalid app secret",
    40004: "Invalid timestamp",
    40005: "Invalid signature",
    40006: "Invalid nonce",
    40007: "Invalid request format",
    40008: "Invalid parameter",
    40009: "Missing required parameter",
    40010: "Parameter value out of range",
    40013: "Invalid corp id",
    40014: "Invalid access token",
    42001: "Access token expired",
    42002: "Refresh token expired",
    43001: "Request too frequent",
    43002: "API quota exceeded",
    50001: "Internal server error",
    50002: "Service unavailable",
    50003: "Database error",
    60001: "Permission denied",
    60002: "Insufficient privileges",
    60003: "Resource not found",
    60004: "Operation not allowed",
    60011: "Department not exist",
    71006: "User not exist",
    90018: "Rate limit exceeded",
    90019: "Quota exceeded",
}

# 新版 API 使用字符串错误码
CURRENT_ERROR_KINDS: Dict[str, FailureKind] = {
    "InvalidAuthentication": FailureKind.AUTH,
    "Forbidden.AccessDenied.AccessTokenPermissionDenied": FailureKind.AUTH,
    "Forbidden.AccessDenied.IpNotInWhiteList": FailureKind.AUTH,
    "Throttling": FailureKind.RATE_LIMIT,
    "Throttling.Api": FailureKind.RATE_LIMIT,
    "Throttling.User": FailureKind.RATE_LIMIT,
}

# 响应中没有错误码时按 HTTP 状态码分类
STATUS_KINDS: Dict[int, FailureKind] = {
    401: FailureKind.AUTH,
    403: FailureKind.AUTH,
    429: FailureKind.RATE_LIMIT,
}


def classify_status(status_code: int) -> FailureKind:
    return STATUS_KINDS.get(status_code, FailureKind.GENERIC)


class ErrorClassification:
    """
    错误码区间表

    Usage:
        table = ErrorClassification()
        table.classify(40001)   # FailureKind.AUTH
        table.classify(99999)   # FailureKind.GENERIC
    """

    def __init__(
            self,
            ranges: Iterable[CodeRange] = DEFAULT_RANGES,
            named_codes: Optional[Dict[str, FailureKind]] = None,
    ):
        self._ranges: List[CodeRange] = sorted(ranges, key=lambda r: r.start)
        for previous, current in zip(self._ranges, self._ranges[1:]):
            if current.start <= previous.end:
                raise InvalidArgument(
                    f"错误码区间重叠: [{previous.start}, {previous.end}] 与 [{current.start}, {current.end}]"
                )
        self._named = dict(CURRENT_ERROR_KINDS if named_codes is None else named_codes)

    @property
    def ranges(self) -> List[CodeRange]:
        return list(self._ranges)

    def classify(self, code: Any) -> FailureKind:
        """数值码按区间分类；字符串码先尝试转数值，再查名称表；都不命中为 GENERIC"""
        numeric = _as_int(code)
        if numeric is None:
            return self._named.get(str(code), FailureKind.GENERIC)
        for code_range in self._ranges:
            if numeric in code_range:
                return code_range.kind
        return FailureKind.GENERIC


def _as_int(code: Any) -> Optional[int]:
    if isinstance(code, bool):
        return None
    if isinstance(code, int):
        return code
    if isinstance(code, float) and code.is_integer():
        return int(code)
    if isinstance(code, str):
        text = code.strip()
        if text.lstrip("-").isdigit():
            return int(text)
    return None


def is_error_code(code: Any) -> bool:
    """None / 0 / "0" / "" 视为成功"""
    if code is None or code == "":
        return False
    numeric = _as_int(code)
    if numeric is not None:
        return numeric != 0
    return True


def describe_code(code: Any, vendor_message: str = "", messages: Optional[Dict[int, str]] = None) -> str:
    """优先使用静态错误码说明，未收录时回退到厂商返回的文本"""
    table = LEGACY_ERROR_MESSAGES if messages is None else messages
    numeric = _as_int(code)
    if numeric is not None and numeric in table:
        return table[numeric]
    return vendor_message or "Unknown error"


_FAILURE_TYPES = {
    FailureKind.AUTH: AuthFailure,
    FailureKind.RATE_LIMIT: RateLimitFailure,
    FailureKind.GENERIC: ApiFailure,
}


def build_failure(
        kind: FailureKind,
        code: Any,
        message: str,
        vendor_message: str = "",
        method: str = "",
        generation: Any = None,
        retry_after: Optional[float] = None,
) -> ApiFailure:
    """按分类构造对应的异常对象"""
    kwargs: Dict[str, Any] = {
        "vendor_code": code,
        "vendor_message": vendor_message,
        "method": method,
        "generation": generation,
    }
    prefix = f"{generation} " if generation is not None else ""
    text = f"{prefix}API Error [{code}]: {message}"
    if kind is FailureKind.RATE_LIMIT:
        return RateLimitFailure(text, retry_after=retry_after, **kwargs)
    return _FAILURE_TYPES[kind](text, **kwargs)
