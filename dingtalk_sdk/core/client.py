# !/usr/bin/env python
# -*- coding: utf-8 -*-
# =====================================================
# @File   ：client.py
# @Date   ：2026/10/15 10:00
# @Author ：leemysw
# 2026/10/15 10:00   Create
# 2026/10/17 09:40   Per-generation credentials
# 2026/10/19 12:00   close() / context manager
# =====================================================
"""
[INPUT]: 依赖 selector.py, schema.py, adapters, auth, transport.py
[OUTPUT]: 对外提供 DingTalkClient
[POS]: 对上层（服务门面 / 应用代码）暴露的统一入口
[PROTOCOL]: 变更时更新此头部，然后检查 README.md

调用流程：
    resolve_generation(options) → adapters[generation].execute(method, params, verb, options)

逻辑调用统一使用新版参数结构，旧版由 LegacyCallAdapter 负责双向转换。
"""

from typing import Any, Dict, List, Mapping, Optional, Union

from dingtalk_sdk.auth import AppCredentials, CredentialProvider, StaticCredentials, TokenCache
from dingtalk_sdk.core.adapters import CallAdapter, CurrentCallAdapter, LegacyCallAdapter
from dingtalk_sdk.core.clock import Clock, SystemClock
from dingtalk_sdk.core.generation import ApiGeneration, FeatureCatalog
from dingtalk_sdk.core.schema import AdapterFunc, SchemaAdapter
from dingtalk_sdk.core.selector import CompatibilityReport, ResolveOptions, VersionSelector
from dingtalk_sdk.core.transport import HttpxTransport, Transport
from dingtalk_sdk.utils.config import AppConfig
from dingtalk_sdk.utils.console import get_logger

logger = get_logger(__name__)

# 请求级选项，不参与版本检测
REQUEST_OPTION_KEYS = ("timeout", "headers")

CredentialsArg = Union[CredentialProvider, Mapping[Union[ApiGeneration, str], CredentialProvider], None]


class DingTalkClient:
    """
    钉钉 API 客户端

    组合版本选择器、结构转换器和每一代 API 的调用适配器。

    Usage:
        client = DingTalkClient(AppConfig.load())
        client.call("user.get", {"userId": "u1"}, "GET")
        client.call("message.send", {...}, options={"generation": "v2"})
    """

    def __init__(
            self,
            config: Optional[AppConfig] = None,
            transport: Optional[Transport] = None,
            credentials: CredentialsArg = None,
            clock: Optional[Clock] = None,
            catalog: Optional[FeatureCatalog] = None,
            schema: Optional[SchemaAdapter] = None,
            selector: Optional[VersionSelector] = None,
    ):
        """
        初始化客户端

        Args:
            config: 应用配置，不传则从配置文件和环境变量加载
            transport: 传输层，默认 HttpxTransport
            credentials: 单个凭证（所有版本共用）或 {版本: 凭证}；不传则按配置中的 app_key / app_secret 创建
            clock: 时钟
            catalog: 功能支持表
            schema: 结构转换器
            selector: 版本选择器
        """
        self.config = config or AppConfig.load()
        self.clock = clock or SystemClock()
        # 客户端自己创建的 HTTP 资源，close() 时释放
        self._owned: List[Any] = []
        if transport is None:
            transport = HttpxTransport(
                timeout=float(self.config.get("api.v2.timeout", 30)),
                user_agent=f"dingtalk-sdk/{self.config.get('sdk_version', '')}",
            )
            self._owned.append(transport)
        self.transport = transport
        self.schema = schema or SchemaAdapter()
        self.selector = selector or VersionSelector(
            self.config,
            transport=self.transport,
            catalog=catalog,
        )
        self.token_cache = TokenCache()

        providers = self._build_credentials(credentials)
        self.adapters: Dict[ApiGeneration, CallAdapter] = {
            ApiGeneration.LEGACY: LegacyCallAdapter(
                self.schema, self.transport, providers[ApiGeneration.LEGACY], config=self.config, clock=self.clock,
            ),
            ApiGeneration.CURRENT: CurrentCallAdapter(
                self.schema, self.transport, providers[ApiGeneration.CURRENT], config=self.config, clock=self.clock,
            ),
        }

    def _build_credentials(self, credentials: CredentialsArg) -> Dict[ApiGeneration, CredentialProvider]:
        generations = self.selector.list_supported_generations()
        if credentials is None:
            if self.config.has_credentials():
                providers = {
                    g: AppCredentials(
                        self.config.app_key,
                        self.config.app_secret,
                        generation=g,
                        cache=self.token_cache,
                        clock=self.clock,
                    )
                    for g in generations
                }
                self._owned.extend(providers.values())
                return providers
            logger.debug("未配置 app_key / app_secret，使用空凭证")
            return {g: StaticCredentials() for g in generations}

        if isinstance(credentials, Mapping):
            providers = {ApiGeneration.parse_concrete(g): p for g, p in credentials.items()}
            for g in generations:
                providers.setdefault(g, StaticCredentials())
            return providers

        return {g: credentials for g in generations}

    # =========================================================================
    # 版本检测
    # =========================================================================

    def resolve_generation(self, options: Optional[Mapping[str, Any]] = None) -> ApiGeneration:
        """
        解析 API 版本

        Args:
            options: generation / strategies / required_features / created_at / connectivity_timeout

        Raises:
            ConfigurationError: 无法确定版本且没有兜底版本
            InvalidArgument: 未知版本或策略
        """
        return self.selector.resolve(ResolveOptions.from_mapping(options))

    # =========================================================================
    # 调用
    # =========================================================================

    def call(
            self,
            method: str,
            params: Optional[Mapping[str, Any]] = None,
            verb: str = "POST",
            options: Optional[Mapping[str, Any]] = None,
    ) -> Dict[str, Any]:
        """
        执行逻辑调用

        Args:
            method: 逻辑方法名，如 "user.get"
            params: 新版结构的参数
            verb: HTTP 方法
            options: 版本检测选项 + 请求选项（timeout / headers）

        Returns:
            新版结构的响应数据
        """
        options = dict(options or {})
        generation = self.resolve_generation(options)
        request_options = {k: options[k] for k in REQUEST_OPTION_KEYS if k in options}
        logger.debug(f"{method} 使用 {generation} API")
        return self.adapters[generation].execute(method, params, verb, request_options)

    # =========================================================================
    # 扩展 & 查询
    # =========================================================================

    def register_custom_adapter(
            self,
            method: str,
            from_generation: Union[ApiGeneration, str],
            to_generation: Union[ApiGeneration, str],
            adapter: AdapterFunc,
            name: Optional[str] = None,
    ) -> None:
        self.schema.register_custom_adapter(method, from_generation, to_generation, adapter, name=name)

    def supported_generations(self) -> List[ApiGeneration]:
        return self.selector.list_supported_generations()

    def supported_features(self, generation: Union[ApiGeneration, str]) -> List[str]:
        return self.selector.list_supported_features(generation)

    def compatibility_report(
            self,
            generation: Union[ApiGeneration, str],
            required_features: Optional[List[str]] = None,
    ) -> CompatibilityReport:
        return self.selector.describe_compatibility(generation, required_features)

    def stats(self) -> Dict[str, Any]:
        """检测 / 转换 / 请求统计快照"""
        return {
            "detection": self.selector.stats().to_dict(),
            "adaptation": self.schema.stats().to_dict(),
            "requests": {str(g): adapter.stats().to_dict() for g, adapter in self.adapters.items()},
        }

    def clear_cache(self) -> None:
        """清除版本检测缓存和 token 缓存"""
        self.selector.clear_cache()
        self.token_cache.clear()

    # =========================================================================
    # 资源释放
    # =========================================================================

    def close(self) -> None:
        """关闭客户端自己创建的 HTTP 连接（外部传入的传输层和凭证由调用方负责）"""
        for resource in self._owned:
            resource.close()
        self._owned = []

    def __enter__(self) -> "DingTalkClient":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
