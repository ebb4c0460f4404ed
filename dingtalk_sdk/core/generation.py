# !/usr/bin/env python
# -*- coding: utf-8 -*-
# =====================================================
# @File   ：generation.py
# @Date   ：2026/10/12 14:00
# @Author ：leemysw
# 2026/10/12 14:00   Create
# =====================================================
"""
[INPUT]: 依赖 exceptions
[OUTPUT]: 对外提供 ApiGeneration, DetectionStrategy, Direction, FeatureCatalog
[POS]: 版本兼容层的基础类型
[PROTOCOL]: 变更时更新此头部，然后检查 README.md
"""

import threading
from enum import Enum
from typing import Dict, FrozenSet, Iterable, List, Optional, Set, Union

from dingtalk_sdk.exceptions import InvalidArgument


class ApiGeneration(str, Enum):
    """
    API 版本

    - LEGACY: 旧版 API（oapi.dingtalk.com）
    - CURRENT: 新版 API（api.dingtalk.com/v1.0）
    - AUTO: 仅用于配置，转换前必须解析为具体版本
    """

    LEGACY = "v1"
    CURRENT = "v2"
    AUTO = "auto"

    def __str__(self) -> str:
        return self.value

    @property
    def is_concrete(self) -> bool:
        return self is not ApiGeneration.AUTO

    @property
    def rank(self) -> int:
        """版本序号，用于 "选择最低可用版本"""
        return CONCRETE_GENERATIONS.index(self)

    @classmethod
    def parse(cls, value: Union["ApiGeneration", str]) -> "ApiGeneration":
        """
        解析版本标识，接受 "v1"/"v2"/"auto" 以及 "legacy"/"current"

        Raises:
            InvalidArgument: 无法识别的版本标识
        """
        if isinstance(value, ApiGeneration):
            return value
        if isinstance(value, str):
            text = value.strip().lower()
            alias = _ALIASES.get(text)
            if alias is not None:
                return alias
        raise InvalidArgument(f"未知的 API 版本: {value!r}", context={"generation": repr(value)})

    @classmethod
    def parse_concrete(cls, value: Union["ApiGeneration", str]) -> "ApiGeneration":
        """解析并要求为具体版本（不能是 auto）"""
        generation = cls.parse(value)
        if not generation.is_concrete:
            raise InvalidArgument("auto 不是可用的目标版本，必须先解析为 v1 或 v2")
        return generation


_ALIASES: Dict[str, ApiGeneration] = {
    "v1": ApiGeneration.LEGACY,
    "legacy": ApiGeneration.LEGACY,
    "v2": ApiGeneration.CURRENT,
    "current": ApiGeneration.CURRENT,
    "auto": ApiGeneration.AUTO,
}

CONCRETE_GENERATIONS: List[ApiGeneration] = [ApiGeneration.LEGACY, ApiGeneration.CURRENT]


class DetectionStrategy(str, Enum):
    """版本检测策略（默认按定义顺序执行）"""

    EXPLICIT_CONFIG = "config"
    CREATION_TIME = "app_time"
    CONNECTIVITY = "connectivity"
    FEATURE_REQUIREMENT = "feature"
    ENVIRONMENT = "compatibility"

    def __str__(self) -> str:
        return self.value

    @classmethod
    def parse(cls, value: Union["DetectionStrategy", str]) -> "DetectionStrategy":
        if isinstance(value, DetectionStrategy):
            return value
        for strategy in cls:
            if strategy.value == value or strategy.name.lower() == str(value).lower():
                return strategy
        raise InvalidArgument(f"未知的版本检测策略: {value!r}", context={"strategy": repr(value)})


DEFAULT_STRATEGY_ORDER: List[DetectionStrategy] = list(DetectionStrategy)


class Direction(str, Enum):
    """转换方向"""

    REQUEST = "request"
    RESPONSE = "response"

    def __str__(self) -> str:
        return self.value


# ==============================================================================
# 功能支持表
# ==============================================================================
DEFAULT_FEATURES: Dict[str, FrozenSet[ApiGeneration]] = {
    "user_management": frozenset({ApiGeneration.LEGACY, ApiGeneration.CURRENT}),
    "department_management": frozenset({ApiGeneration.LEGACY, ApiGeneration.CURRENT}),
    "message_send": frozenset({ApiGeneration.LEGACY, ApiGeneration.CURRENT}),
    "attendance": frozenset({ApiGeneration.LEGACY, ApiGeneration.CURRENT}),
    "robot": frozenset({ApiGeneration.LEGACY, ApiGeneration.CURRENT}),
    "media_upload": frozenset({ApiGeneration.LEGACY, ApiGeneration.CURRENT}),
    "approval": frozenset({ApiGeneration.CURRENT}),
    "calendar": frozenset({ApiGeneration.CURRENT}),
    "message_recall": frozenset({ApiGeneration.CURRENT}),
    "advanced_search": frozenset({ApiGeneration.CURRENT}),
    "batch_operations": frozenset({ApiGeneration.CURRENT}),
}


def normalize_feature(name: str) -> str:
    """advancedSearch / advanced-search / advanced_search 统一为 advanced_search"""
    out = []
    for ch in name.strip():
        if ch.isupper():
            if out and out[-1] != "_":
                out.append("_")
            out.append(ch.lower())
        elif ch in "- ":
            out.append("_")
        else:
            out.append(ch)
    return "".join(out)


class FeatureCatalog:
    """
    功能名 → 支持该功能的版本集合

    不变式：新版支持的功能集合是旧版的超集，
    任何新增都必须保持这一点（只声明 v1 支持而 v2 不支持会被拒绝）。
    """

    def __init__(self, features: Optional[Dict[str, Iterable[ApiGeneration]]] = None):
        self._lock = threading.Lock()
        self._features: Dict[str, FrozenSet[ApiGeneration]] = {}
        for name, generations in (features if features is not None else DEFAULT_FEATURES).items():
            self.add(name, generations)

    def add(self, feature: str, generations: Iterable[Union[ApiGeneration, str]]) -> None:
        """
        新增或覆盖一个功能

        Raises:
            InvalidArgument: 版本非法，或破坏 current ⊇ legacy 不变式
        """
        resolved: Set[ApiGeneration] = {ApiGeneration.parse_concrete(g) for g in generations}
        if ApiGeneration.LEGACY in resolved and ApiGeneration.CURRENT not in resolved:
            raise InvalidArgument(
                f"功能 {feature} 仅声明旧版支持，新版功能集必须包含旧版功能集",
                context={"feature": feature},
            )
        with self._lock:
            self._features[normalize_feature(feature)] = frozenset(resolved)

    def is_supported(self, feature: str, generation: Union[ApiGeneration, str]) -> bool:
        generation = ApiGeneration.parse_concrete(generation)
        return generation in self._features.get(normalize_feature(feature), frozenset())

    def features_for(self, generation: Union[ApiGeneration, str]) -> List[str]:
        generation = ApiGeneration.parse_concrete(generation)
        return sorted(name for name, gens in self._features.items() if generation in gens)

    def supports_all(self, generation: ApiGeneration, features: Iterable[str]) -> bool:
        return all(self.is_supported(feature, generation) for feature in features)

    def missing(self, generation: ApiGeneration, features: Iterable[str]) -> List[str]:
        return sorted({normalize_feature(f) for f in features if not self.is_supported(f, generation)})

    def gaps(self, generation: ApiGeneration) -> List[str]:
        """其他版本支持、但该版本不支持的功能"""
        own = set(self.features_for(generation))
        return sorted(set(self._features) - own)

    def __contains__(self, feature: str) -> bool:
        return normalize_feature(feature) in self._features

    def __len__(self) -> int:
        return len(self._features)
