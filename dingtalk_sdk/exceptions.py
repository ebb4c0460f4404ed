# !/usr/bin/env python
# -*- coding: utf-8 -*-
# =====================================================
# @File   ：exceptions.py
# @Date   ：2026/10/12 11:00
# @Author ：leemysw
# 2026/10/12 11:00   Create
# =====================================================
"""
[INPUT]: 无
[OUTPUT]: 对外提供 SDK 全部异常类型
[POS]: 错误分类体系，版本选择 / 结构转换 / 接口调用共用
[PROTOCOL]: 变更时更新此头部，然后检查 README.md

分类：
- ConfigurationError: 无法确定 API 版本
- InvalidArgument: 未知版本 / 未知策略 / 不支持的 HTTP 方法
- UnsupportedTranslationError: 兼容性矩阵禁止该转换
- AdaptationError: 转换过程内部失败（总是包装根因）
- ApiFailure / AuthFailure / RateLimitFailure: 厂商错误码分类
- TransportFailure: 传输层错误
"""

from typing import Any, Dict, Optional


class DingTalkError(Exception):
    """SDK 异常基类"""

    default_code = "dingtalk_error"

    def __init__(
            self,
            message: str,
            code: Optional[str] = None,
            context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.code = code or self.default_code
        self.context = context or {}
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error": {
                "type": type(self).__name__,
                "code": self.code,
                "message": self.message,
                "context": self.context,
            }
        }


class ConfigurationError(DingTalkError):
    """所有检测策略都无法给出结果，且未配置兜底版本"""

    default_code = "configuration_error"


class InvalidArgument(DingTalkError, ValueError):
    """参数非法：未知的 API 版本、检测策略、HTTP 方法等"""

    default_code = "invalid_argument"


class UnsupportedTranslationError(DingTalkError):
    """兼容性矩阵禁止在该版本对之间转换此方法"""

    default_code = "unsupported_translation"

    def __init__(self, method: str, from_generation: Any, to_generation: Any):
        self.method = method
        self.from_generation = from_generation
        self.to_generation = to_generation
        super().__init__(
            f"方法 {method} 不支持从 {from_generation} 转换到 {to_generation}",
            context={
                "method": method,
                "from": str(from_generation),
                "to": str(to_generation),
            },
        )


class AdaptationError(DingTalkError):
    """字段映射 / 类型转换 / 自定义适配器失败"""

    default_code = "adaptation_error"

    def __init__(self, message: str, cause: BaseException, context: Optional[Dict[str, Any]] = None):
        self.cause = cause
        merged = dict(context or {})
        merged["original_error"] = f"{type(cause).__name__}: {cause}"
        super().__init__(message, context=merged)
        self.__cause__ = cause


# ==============================================================================
# 接口调用失败
# ==============================================================================
class ApiFailure(DingTalkError):
    """厂商返回了非零错误码"""

    default_code = "api_failure"

    def __init__(
            self,
            message: str,
            vendor_code: Any = None,
            vendor_message: str = "",
            method: str = "",
            generation: Any = None,
            context: Optional[Dict[str, Any]] = None,
    ):
        self.vendor_code = vendor_code
        self.vendor_message = vendor_message
        self.method = method
        self.generation = generation

        merged = {
            "vendor_code": vendor_code,
            "vendor_message": vendor_message,
            "method": method,
            "generation": str(generation) if generation is not None else None,
        }
        if context:
            merged.update(context)
        super().__init__(message, context=merged)


class AuthFailure(ApiFailure):
    """认证失败：凭证无效 / 过期 / 签名错误"""

    default_code = "auth_failure"


class RateLimitFailure(ApiFailure):
    """
    触发限流

    retry_after 只是建议的等待秒数，SDK 本身不会休眠或重试。
    """

    default_code = "rate_limit_failure"

    def __init__(self, message: str, retry_after: Optional[float] = None, **kwargs: Any):
        self.retry_after = retry_after
        context = dict(kwargs.pop("context", None) or {})
        if retry_after is not None:
            context["retry_after"] = retry_after
        super().__init__(message, context=context, **kwargs)


class TransportFailure(DingTalkError):
    """传输层错误（网络不可达、超时、响应无法解析等）"""

    default_code = "transport_failure"

    def __init__(self, message: str, cause: Optional[BaseException] = None, context: Optional[Dict[str, Any]] = None):
        self.cause = cause
        merged = dict(context or {})
        if cause is not None:
            merged["original_error"] = f"{type(cause).__name__}: {cause}"
        super().__init__(message, context=merged)
        if cause is not None:
            self.__cause__ = cause
