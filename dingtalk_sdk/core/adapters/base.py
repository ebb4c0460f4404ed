# !/usr/bin/env python
# -*- coding: utf-8 -*-
# =====================================================
# @File   ：base.py
# @Date   ：2026/10/14 14:00
# @Author ：leemysw
# 2026/10/14 14:00   Create - 调用适配器基础类
# 2026/10/19 10:20   HTTP 错误状态码不再视为成功
# =====================================================
"""
[INPUT]: 依赖 schema.py, transport.py, errors.py, auth.token
[OUTPUT]: 对外提供 CallAdapter, RequestStats
[POS]: 按代执行一次逻辑调用：路径 → 转换 → 认证 → 发送 → 反向转换 → 错误分类
[PROTOCOL]: 变更时更新此头部，然后检查 README.md
"""

import threading
from dataclasses import asdict, dataclass
from typing import Any, Dict, Mapping, Optional, Tuple

from dingtalk_sdk.auth.token import CredentialProvider
from dingtalk_sdk.core.clock import Clock, SystemClock
from dingtalk_sdk.core.errors import (
    ErrorClassification,
    FailureKind,
    build_failure,
    classify_status,
    describe_code,
    is_error_code,
)
from dingtalk_sdk.core.generation import ApiGeneration
from dingtalk_sdk.core.schema import SchemaAdapter
from dingtalk_sdk.core.transport import RawResponse, Transport, normalize_verb
from dingtalk_sdk.exceptions import (
    AuthFailure,
    DingTalkError,
    RateLimitFailure,
    TransportFailure,
)
from dingtalk_sdk.utils.config import AppConfig
from dingtalk_sdk.utils.console import get_logger, mask_secrets

logger = get_logger(__name__)


@dataclass
class RequestStats:
    total: int = 0
    successful: int = 0
    failed: int = 0
    rate_limited: int = 0
    auth_failed: int = 0

    def to_dict(self) -> Dict[str, int]:
        return asdict(self)


class CallAdapter:
    """
    调用适配器基类

    子类提供：
    - PATHS / DEFAULT_BASE_URL: 方法 → 路径
    - authenticate(): 注入认证信息
    - ERROR_CODE_FIELD / ERROR_MESSAGE_FIELD: 响应中的错误码字段

    逻辑调用的参数结构即新版结构，非新版的适配器负责双向转换。
    """

    generation: ApiGeneration = ApiGeneration.CURRENT
    DEFAULT_BASE_URL: str = ""
    PATHS: Dict[str, str] = {}
    ERROR_CODE_FIELD: str = "errcode"
    ERROR_MESSAGE_FIELD: str = "errmsg"
    ERROR_MESSAGES: Dict[int, str] = {}

    def __init__(
            self,
            schema: SchemaAdapter,
            transport: Transport,
            credentials: CredentialProvider,
            config: Optional[AppConfig] = None,
            clock: Optional[Clock] = None,
            classification: Optional[ErrorClassification] = None,
    ):
        self.schema = schema
        self.transport = transport
        self.credentials = credentials
        self.config = config or AppConfig()
        self.clock = clock or SystemClock()
        self.classification = classification or ErrorClassification()

        self._lock = threading.Lock()
        self._stats = RequestStats()

    # =========================================================================
    # 配置
    # =========================================================================

    @property
    def base_url(self) -> str:
        return self.config.get(f"api.{self.generation.value}.base_url", self.DEFAULT_BASE_URL)

    @property
    def default_timeout(self) -> float:
        return float(self.config.get(f"api.{self.generation.value}.timeout", 30))

    @property
    def default_retry_delay(self) -> float:
        return float(self.config.get(f"api.{self.generation.value}.retry_delay", 5))

    @property
    def user_agent(self) -> str:
        return f"DingTalk-SDK-Python-{self.generation.value.upper()}/{self.config.get('sdk_version', '')}"

    # =========================================================================
    # 执行
    # =========================================================================

    def execute(
            self,
            method: str,
            params: Optional[Mapping[str, Any]] = None,
            http_verb: str = "POST",
            options: Optional[Mapping[str, Any]] = None,
    ) -> Dict[str, Any]:
        """
        执行一次逻辑调用

        Args:
            method: 逻辑方法名，如 "user.get"
            params: 逻辑参数（新版结构）
            http_verb: GET / POST / PUT / DELETE / PATCH
            options: 请求选项，支持 timeout / headers

        Returns:
            逻辑结构的响应数据

        Raises:
            AuthFailure / RateLimitFailure / ApiFailure: 厂商错误码
            TransportFailure: 传输层错误
            UnsupportedTranslationError / AdaptationError: 结构转换失败
        """
        params = dict(params or {})
        options = dict(options or {})
        logical = ApiGeneration.CURRENT

        with self._lock:
            self._stats.total += 1

        try:
            verb = normalize_verb(http_verb)
            template = self.resolve_path(method)
            wire = self.schema.adapt_request(params, logical, self.generation, method)
            path, wire = self.fill_path(template, wire)
            wire, headers = self.authenticate(method, wire)
            raw = self._send(method, verb, path, wire, headers, options)
            result = self.schema.adapt_response(raw.payload, self.generation, logical, method)
            self.check_error(method, result, raw)
        except RateLimitFailure as e:
            self._count_failure(rate_limited=True)
            logger.warning(f"{self.generation} 接口限流: {method}，建议 {e.retry_after}s 后重试")
            raise
        except AuthFailure as e:
            self._count_failure(auth_failed=True)
            logger.warning(f"{self.generation} 认证失败: {method}: {e.message}")
            raise
        except DingTalkError as e:
            self._count_failure()
            logger.warning(f"{self.generation} 调用失败: {method}: {e.message}")
            raise
        except Exception:
            self._count_failure()
            raise

        with self._lock:
            self._stats.successful += 1
        logger.info(f"{self.generation} 调用成功: {verb} {path}")
        return result

    def resolve_path(self, method: str) -> str:
        """静态路径表，未收录的方法按点号转斜杠"""
        return self.PATHS.get(method) or method.replace(".", "/")

    def fill_path(self, template: str, params: Dict[str, Any]) -> Tuple[str, Dict[str, Any]]:
        """填充路径占位符，用到的参数从参数表中移除"""
        return template, params

    def build_url(self, path: str) -> str:
        return f"{self.base_url.rstrip('/')}/{path.lstrip('/')}"

    def authenticate(self, method: str, params: Dict[str, Any]) -> Tuple[Dict[str, Any], Dict[str, str]]:
        raise NotImplementedError

    def _send(
            self,
            method: str,
            verb: str,
            path: str,
            params: Dict[str, Any],
            headers: Dict[str, str],
            options: Dict[str, Any],
    ) -> RawResponse:
        url = self.build_url(path)
        request_headers = {"User-Agent": self.user_agent}
        request_headers.update(headers)
        request_headers.update(options.get("headers") or {})
        timeout = options.get("timeout")
        if timeout is None:
            timeout = self.default_timeout

        logger.debug(f"{verb} {url} params={mask_secrets(params)}")
        try:
            return self.transport.send(verb, url, params, request_headers, timeout=timeout)
        except DingTalkError:
            raise
        except Exception as e:
            raise TransportFailure(
                f"{self.generation} 网络请求失败 ({method}): {e}",
                cause=e,
                context={"method": method, "url": url, "verb": verb},
            ) from e

    # =========================================================================
    # 错误分类
    # =========================================================================

    def check_error(self, method: str, payload: Mapping[str, Any], raw: RawResponse) -> None:
        """非零错误码按错误码分类；没有错误码但 HTTP 状态码 >= 400 时按状态码分类"""
        code = payload.get(self.ERROR_CODE_FIELD)
        vendor_message = str(payload.get(self.ERROR_MESSAGE_FIELD) or "")
        if is_error_code(code):
            self.raise_failure(method, self.classification.classify(code), code, vendor_message, payload, raw)
        if raw.status_code >= 400:
            self.raise_failure(
                method,
                classify_status(raw.status_code),
                raw.status_code,
                vendor_message or f"HTTP {raw.status_code}",
                payload,
                raw,
            )

    def raise_failure(
            self,
            method: str,
            kind: FailureKind,
            code: Any,
            vendor_message: str,
            payload: Mapping[str, Any],
            raw: RawResponse,
    ) -> None:
        retry_after = None
        if kind is FailureKind.RATE_LIMIT:
            retry_after = self.retry_hint(payload, raw)
        raise build_failure(
            kind,
            code,
            describe_code(code, vendor_message, self.ERROR_MESSAGES),
            vendor_message=vendor_message,
            method=method,
            generation=self.generation,
            retry_after=retry_after,
        )

    def retry_hint(self, payload: Mapping[str, Any], raw: RawResponse) -> float:
        """厂商给出的 retry_after 优先，其次 Retry-After 头，最后使用配置的默认值"""
        for candidate in (payload.get("retry_after"), raw.header("Retry-After")):
            if candidate is None:
                continue
            try:
                return float(candidate)
            except (TypeError, ValueError):
                continue
        return self.default_retry_delay

    # =========================================================================
    # 统计
    # =========================================================================

    def _count_failure(self, rate_limited: bool = False, auth_failed: bool = False) -> None:
        with self._lock:
            self._stats.failed += 1
            if rate_limited:
                self._stats.rate_limited += 1
            if auth_failed:
                self._stats.auth_failed += 1

    def stats(self) -> RequestStats:
        with self._lock:
            return RequestStats(**self._stats.to_dict())

    def clear_stats(self) -> None:
        with self._lock:
            self._stats = RequestStats()
