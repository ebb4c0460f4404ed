# !/usr/bin/env python
# -*- coding: utf-8 -*-
# =====================================================
# @File   ：selector.py
# @Date   ：2026/10/13 09:50
# @Author ：leemysw
# 2026/10/13 09:50   Create
# 2026/10/15 17:30   Instance-scoped cache and stats
# 2026/10/19 11:20   Millisecond timestamps
# =====================================================
"""
[INPUT]: 依赖 generation.py, transport.py, utils.config
[OUTPUT]: 对外提供 VersionSelector, ResolveOptions, CompatibilityReport, DetectionStats
[POS]: 决定每次逻辑调用使用哪一代 API
[PROTOCOL]: 变更时更新此头部，然后检查 README.md

检测顺序（先给出结果的策略获胜，不投票）：
    config → app_time → connectivity → feature → compatibility
"""

import hashlib
import importlib.util
import json
import sys
import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from dingtalk_sdk.core.generation import (
    CONCRETE_GENERATIONS,
    DEFAULT_STRATEGY_ORDER,
    ApiGeneration,
    DetectionStrategy,
    FeatureCatalog,
    normalize_feature,
)
from dingtalk_sdk.core.transport import Transport
from dingtalk_sdk.exceptions import ConfigurationError, InvalidArgument, TransportFailure
from dingtalk_sdk.utils.config import AppConfig
from dingtalk_sdk.utils.console import get_logger

logger = get_logger(__name__)

# 新版 API 发布时间 2023-01-01 00:00:00 UTC，此后创建的应用优先使用新版
CURRENT_RELEASE_TIMESTAMP = 1672531200

# 新版 API 对运行环境的要求
MIN_RUNTIME_FOR_CURRENT: Tuple[int, ...] = (3, 8)
REQUIRED_CAPABILITIES_FOR_CURRENT: Tuple[str, ...] = ("ssl", "hmac", "hashlib")

StrategyFunc = Callable[["ResolveOptions"], Optional[ApiGeneration]]


# ==============================================================================
# 数据模型
# ==============================================================================
@dataclass(frozen=True)
class ResolveOptions:
    """
    版本检测选项

    generation 为显式指定的版本，优先级最高，直接返回且不走缓存。
    其余字段参与缓存指纹计算。
    """
    generation: Optional[ApiGeneration] = None
    strategies: Optional[Tuple[DetectionStrategy, ...]] = None
    required_features: Tuple[str, ...] = ()
    created_at: Optional[float] = None
    connectivity_timeout: Optional[float] = None

    @classmethod
    def from_mapping(cls, options: Optional[Mapping[str, Any]]) -> "ResolveOptions":
        """从选项字典构建，不认识的键被忽略（可能是请求级选项）"""
        if options is None:
            return cls()
        if isinstance(options, ResolveOptions):
            return options

        generation = options.get("generation", options.get("version"))
        pinned = None
        if generation is not None:
            pinned = ApiGeneration.parse(generation)
            if not pinned.is_concrete:
                pinned = None

        strategies = options.get("strategies")
        if strategies is not None:
            if isinstance(strategies, (str, DetectionStrategy)):
                strategies = [strategies]
            strategies = tuple(DetectionStrategy.parse(s) for s in strategies)

        features = options.get("required_features", options.get("requiredFeatures")) or ()
        if isinstance(features, str):
            features = [features]

        timeout = options.get("connectivity_timeout")
        return cls(
            generation=pinned,
            strategies=strategies,
            required_features=tuple(sorted({normalize_feature(f) for f in features})),
            created_at=parse_timestamp(options.get("created_at", options.get("app_created_at"))),
            connectivity_timeout=float(timeout) if timeout is not None else None,
        )

    def fingerprint(self) -> str:
        """对规范化后的选项计算确定性指纹"""
        normalized = {
            "strategies": [s.value for s in self.strategies] if self.strategies is not None else None,
            "required_features": list(self.required_features),
            "created_at": self.created_at,
            "connectivity_timeout": self.connectivity_timeout,
        }
        raw = json.dumps(normalized, sort_keys=True, separators=(",", ":"))
        return hashlib.sha256(raw.encode("utf-8")).hexdigest()


@dataclass
class CompatibilityReport:
    generation: ApiGeneration
    compatible: bool = True
    issues: List[str] = field(default_factory=list)
    recommendations: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "generation": self.generation.value,
            "compatible": self.compatible,
            "issues": list(self.issues),
            "recommendations": list(self.recommendations),
        }


@dataclass
class DetectionStats:
    total: int = 0
    resolved: int = 0
    failed: int = 0
    pinned: int = 0
    cache_hits: int = 0
    fallback_used: int = 0
    per_strategy: Dict[str, int] = field(default_factory=dict)
    cache_size: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total": self.total,
            "resolved": self.resolved,
            "failed": self.failed,
            "pinned": self.pinned,
            "cache_hits": self.cache_hits,
            "fallback_used": self.fallback_used,
            "per_strategy": dict(self.per_strategy),
            "cache_size": self.cache_size,
        }


# 大于该值的数字按毫秒处理（秒级时间戳要到 5138 年才会超过）
MILLISECONDS_THRESHOLD = 1e11


def _epoch_seconds(value: float) -> float:
    return value / 1000 if abs(value) >= MILLISECONDS_THRESHOLD else value


def parse_timestamp(value: Any) -> Optional[float]:
    """接受 Unix 时间戳（秒或毫秒） / datetime / ISO 8601 字符串，无时区按 UTC 处理"""
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        raise InvalidArgument(f"无法解析的时间: {value!r}")
    if isinstance(value, (int, float)):
        return _epoch_seconds(float(value))
    if isinstance(value, datetime):
        moment = value
    elif isinstance(value, str):
        text = value.strip()
        try:
            return _epoch_seconds(float(text))
        except ValueError:
            pass
        try:
            moment = datetime.fromisoformat(text.replace("Z", "+00:00"))
        except ValueError:
            raise InvalidArgument(f"无法解析的时间: {value!r}")
    else:
        raise InvalidArgument(f"无法解析的时间: {value!r}")

    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.timestamp()


def _module_available(name: str) -> bool:
    return importlib.util.find_spec(name) is not None


# ==============================================================================
# VersionSelector
# ==============================================================================
class VersionSelector:
    """
    API 版本选择器

    Usage:
        selector = VersionSelector(config, transport=HttpxTransport())
        selector.resolve({"required_features": ["advanced_search"]})  # ApiGeneration.CURRENT
    """

    def __init__(
            self,
            config: Optional[AppConfig] = None,
            transport: Optional[Transport] = None,
            catalog: Optional[FeatureCatalog] = None,
            fallback: Union[ApiGeneration, str, None] = "config",
            creation_time_source: Optional[Callable[[], Any]] = None,
            min_runtime: Sequence[int] = MIN_RUNTIME_FOR_CURRENT,
            required_capabilities: Iterable[str] = REQUIRED_CAPABILITIES_FOR_CURRENT,
            runtime_version: Optional[Sequence[int]] = None,
            capability_checker: Callable[[str], bool] = _module_available,
    ):
        """
        Args:
            config: 配置，提供 api.version / api.fallback_version / api.v2.base_url
            transport: 连通性探测使用的传输层，不传则探测视为失败
            catalog: 功能支持表
            fallback: 兜底版本；"config" 表示读取 api.fallback_version，None 表示不兜底
            creation_time_source: 返回应用创建时间的回调（选项中未提供时使用）
            min_runtime: 新版 API 要求的最低 Python 版本
            required_capabilities: 新版 API 要求的可选模块
            runtime_version: 当前运行时版本，默认 sys.version_info
            capability_checker: 判断模块是否可用
        """
        self.config = config or AppConfig()
        self.transport = transport
        self.catalog = catalog or FeatureCatalog()
        self.creation_time_source = creation_time_source
        self.min_runtime = tuple(min_runtime)
        self.required_capabilities = tuple(required_capabilities)
        self.runtime_version = tuple(runtime_version or sys.version_info[:3])
        self.capability_checker = capability_checker

        if fallback == "config":
            fallback = self.config.get("api.fallback_version")
        self.fallback: Optional[ApiGeneration] = (
            ApiGeneration.parse_concrete(fallback) if fallback else None
        )

        self._strategies: Dict[DetectionStrategy, StrategyFunc] = {
            DetectionStrategy.EXPLICIT_CONFIG: self._detect_by_config,
            DetectionStrategy.CREATION_TIME: self._detect_by_creation_time,
            DetectionStrategy.CONNECTIVITY: self._detect_by_connectivity,
            DetectionStrategy.FEATURE_REQUIREMENT: self._detect_by_feature,
            DetectionStrategy.ENVIRONMENT: self._detect_by_environment,
        }

        self._lock = threading.Lock()
        self._cache: Dict[str, ApiGeneration] = {}
        self._stats = DetectionStats()

    # =========================================================================
    # 检测入口
    # =========================================================================

    def resolve(self, options: Union[ResolveOptions, Mapping[str, Any], None] = None) -> ApiGeneration:
        """
        解析本次调用使用的 API 版本

        Raises:
            ConfigurationError: 所有策略都无法决定且没有兜底版本
            InvalidArgument: 选项中的版本 / 策略 / 时间非法
        """
        opts = ResolveOptions.from_mapping(options)

        with self._lock:
            self._stats.total += 1
            if opts.generation is not None:
                self._stats.pinned += 1
                self._stats.resolved += 1
                return opts.generation

            key = opts.fingerprint()
            cached = self._cache.get(key)
            if cached is not None:
                self._stats.cache_hits += 1
                self._stats.resolved += 1
                logger.debug(f"使用缓存的版本检测结果: {cached} ({key[:12]})")
                return cached

        order = list(opts.strategies) if opts.strategies is not None else list(DEFAULT_STRATEGY_ORDER)
        logger.debug(f"开始 API 版本检测: {[s.value for s in order]}")

        for strategy in order:
            generation = self._run_strategy(strategy, opts)
            if generation is not None:
                self._remember(key, generation, strategy=strategy)
                logger.info(f"版本检测成功: {strategy.value} → {generation}")
                return generation

        if self.fallback is not None:
            self._remember(key, self.fallback, fallback=True)
            logger.warning(f"所有版本检测策略均未给出结果，使用兜底版本 {self.fallback}")
            return self.fallback

        with self._lock:
            self._stats.failed += 1
        raise ConfigurationError(
            "无法确定 API 版本：所有检测策略均未给出结果，且未配置兜底版本",
            context={"strategies": [s.value for s in order]},
        )

    def _run_strategy(self, strategy: DetectionStrategy, opts: ResolveOptions) -> Optional[ApiGeneration]:
        func = self._strategies[strategy]
        try:
            return func(opts)
        except InvalidArgument:
            raise
        except Exception as e:
            logger.warning(f"版本检测策略 {strategy.value} 执行失败，视为无法判断: {e}")
            return None

    def _remember(self, key: str, generation: ApiGeneration,
                  strategy: Optional[DetectionStrategy] = None, fallback: bool = False) -> None:
        with self._lock:
            self._cache[key] = generation
            self._stats.resolved += 1
            if fallback:
                self._stats.fallback_used += 1
            if strategy is not None:
                name = strategy.value
                self._stats.per_strategy[name] = self._stats.per_strategy.get(name, 0) + 1

    def register_strategy(self, strategy: Union[DetectionStrategy, str], func: StrategyFunc) -> None:
        """替换某个检测策略的实现（返回 None 表示无法判断）"""
        strategy = DetectionStrategy.parse(strategy)
        with self._lock:
            self._strategies[strategy] = func
            self._cache.clear()

    # =========================================================================
    # 检测策略
    # =========================================================================

    def _detect_by_config(self, opts: ResolveOptions) -> Optional[ApiGeneration]:
        """读取配置 api.version，auto 表示无法判断"""
        generation = ApiGeneration.parse(self.config.get("api.version", "auto"))
        if generation.is_concrete:
            logger.debug(f"使用全局配置的版本: {generation}")
            return generation
        return None

    def _detect_by_creation_time(self, opts: ResolveOptions) -> Optional[ApiGeneration]:
        """应用创建时间晚于新版发布时间 → 新版，否则旧版；拿不到创建时间则无法判断"""
        created_at = opts.created_at
        if created_at is None and self.creation_time_source is not None:
            created_at = parse_timestamp(self.creation_time_source())
        if created_at is None:
            created_at = parse_timestamp(self.config.get("app.created_at"))
        if created_at is None:
            return None

        if created_at >= CURRENT_RELEASE_TIMESTAMP:
            return ApiGeneration.CURRENT
        return ApiGeneration.LEGACY

    def _detect_by_connectivity(self, opts: ResolveOptions) -> Optional[ApiGeneration]:
        """探测新版 API 可达性；任何失败都降级为旧版，不会抛出异常也不会返回 None"""
        if self.transport is None:
            logger.debug("未配置传输层，连通性探测降级为旧版")
            return ApiGeneration.LEGACY

        timeout = opts.connectivity_timeout
        if timeout is None:
            timeout = float(self.config.get("detection.connectivity_timeout", 5))
        url = self.config.get("api.v2.base_url", "https://api.dingtalk.com").rstrip("/") + "/health"
        headers = {"User-Agent": f"DingTalk-SDK-Python/{self.config.get('sdk_version', '')} VersionSelector"}

        try:
            status_code = self.transport.send("GET", url, {}, headers, timeout=timeout).status_code
        except TransportFailure as e:
            # 响应体不是 JSON 也说明已连通，只看状态码
            status_code = e.context.get("status_code", 0)
        except Exception as e:
            logger.debug(f"新版 API 连通性探测失败，降级为旧版: {e}")
            return ApiGeneration.LEGACY

        if 0 < status_code < 400:
            return ApiGeneration.CURRENT
        logger.debug(f"新版 API 连通性探测返回 {status_code}，降级为旧版")
        return ApiGeneration.LEGACY

    def _detect_by_feature(self, opts: ResolveOptions) -> Optional[ApiGeneration]:
        """选择满足全部功能要求的最低版本；都不满足时选新版（功能超集）"""
        if not opts.required_features:
            return None
        for generation in sorted(CONCRETE_GENERATIONS, key=lambda g: g.rank):
            if self.catalog.supports_all(generation, opts.required_features):
                return generation
        return ApiGeneration.CURRENT

    def _detect_by_environment(self, opts: ResolveOptions) -> Optional[ApiGeneration]:
        """运行环境满足新版要求 → 新版，否则旧版"""
        if self._environment_issues():
            return ApiGeneration.LEGACY
        return ApiGeneration.CURRENT

    def _environment_issues(self) -> List[Tuple[str, str]]:
        """返回 (问题, 建议) 列表"""
        issues = []
        if self.runtime_version < self.min_runtime:
            required = ".".join(str(v) for v in self.min_runtime)
            actual = ".".join(str(v) for v in self.runtime_version)
            issues.append((
                f"新版 API 需要 Python {required} 或更高版本，当前版本: {actual}",
                "升级 Python 版本或使用旧版 API",
            ))
        for capability in self.required_capabilities:
            if not self.capability_checker(capability):
                issues.append((
                    f"缺少必需的模块: {capability}",
                    f"安装或启用 {capability} 模块",
                ))
        return issues

    # =========================================================================
    # 只读查询
    # =========================================================================

    def is_feature_supported(self, feature: str, generation: Union[ApiGeneration, str]) -> bool:
        return self.catalog.is_supported(feature, generation)

    def list_supported_features(self, generation: Union[ApiGeneration, str]) -> List[str]:
        return self.catalog.features_for(generation)

    @staticmethod
    def list_supported_generations() -> List[ApiGeneration]:
        return list(CONCRETE_GENERATIONS)

    def describe_compatibility(
            self,
            generation: Union[ApiGeneration, str],
            required_features: Optional[Iterable[str]] = None,
    ) -> CompatibilityReport:
        """
        兼容性报告

        - 新版：检查运行环境，不满足则不兼容
        - 任意版本：required_features 中不支持的功能视为不兼容
        - 该版本缺失的功能列入建议
        """
        generation = ApiGeneration.parse_concrete(generation)
        report = CompatibilityReport(generation=generation)

        if generation is ApiGeneration.CURRENT:
            for issue, recommendation in self._environment_issues():
                report.compatible = False
                report.issues.append(issue)
                report.recommendations.append(recommendation)

        if required_features:
            missing = self.catalog.missing(generation, required_features)
            if missing:
                report.compatible = False
                report.issues.append(f"{generation} 不支持所需功能: {', '.join(missing)}")

        gaps = self.catalog.gaps(generation)
        if gaps:
            others = [g for g in CONCRETE_GENERATIONS if g is not generation]
            report.recommendations.append(
                f"{generation} 不支持 {', '.join(gaps)}，如需这些功能请使用 {', '.join(str(g) for g in others)}"
            )
        return report

    def clear_cache(self) -> None:
        with self._lock:
            self._cache.clear()
        logger.debug("版本检测缓存已清除")

    def stats(self) -> DetectionStats:
        with self._lock:
            snapshot = DetectionStats(**self._stats.to_dict())
            snapshot.cache_size = len(self._cache)
            return snapshot
