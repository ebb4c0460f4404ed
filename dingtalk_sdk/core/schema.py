# !/usr/bin/env python
# -*- coding: utf-8 -*-
# =====================================================
# @File   ：schema.py
# @Date   ：2026/10/13 14:10
# @Author ：leemysw
# 2026/10/13 14:10   Create
# 2026/10/16 10:45   Custom adapters as named strategies
# 2026/10/19 11:00   Same-generation passthrough, identifier fields keep strings
# =====================================================
"""
[INPUT]: 依赖 generation.py, exceptions, utils.console
[OUTPUT]: 对外提供 SchemaAdapter, CustomAdapter, AdaptationStats, convert_type, coerce_loose
[POS]: 请求参数 / 响应数据在两代 API 之间的结构转换
[PROTOCOL]: 变更时更新此头部，然后检查 README.md

转换流程（请求和响应相同，只有方向不同）：
1. 校验版本，检查兼容性矩阵
2. 命中自定义适配器则直接返回其结果，不走通用流程
3. 字段改名 → 类型转换 → 补默认值
"""

import re
import threading
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple, Union

from dingtalk_sdk.core.generation import CONCRETE_GENERATIONS, ApiGeneration, Direction
from dingtalk_sdk.exceptions import AdaptationError, InvalidArgument, UnsupportedTranslationError
from dingtalk_sdk.utils.console import get_logger, mask_secrets

logger = get_logger(__name__)

LEGACY = ApiGeneration.LEGACY
CURRENT = ApiGeneration.CURRENT
REQUEST = Direction.REQUEST
RESPONSE = Direction.RESPONSE

GenerationLike = Union[ApiGeneration, str]
MappingKey = Tuple[ApiGeneration, ApiGeneration, str, Direction]

# ==============================================================================
# 字段映射（两个方向都显式维护，避免同一字段在不同方法中映射到不同旧版名称时产生歧义）
# ==============================================================================
FIELD_MAPPINGS: Dict[MappingKey, Dict[str, str]] = {
    # ---------------- 旧版 → 新版 ----------------
    (LEGACY, CURRENT, "user.get", REQUEST): {
        "userid": "userId",
        "lang": "language",
    },
    (LEGACY, CURRENT, "user.get", RESPONSE): {
        "userid": "userId",
        "unionid": "unionId",
        "department": "deptIdList",
        "jobnumber": "jobNumber",
    },
    (LEGACY, CURRENT, "user.list", REQUEST): {
        "department_id": "deptId",
        "offset": "cursor",
    },
    (LEGACY, CURRENT, "user.list", RESPONSE): {
        "userlist": "list",
        "hasMore": "hasMore",
    },
    (LEGACY, CURRENT, "user.create", REQUEST): {
        "userid": "userId",
        "department": "deptIdList",
        "jobnumber": "jobNumber",
    },
    (LEGACY, CURRENT, "user.create", RESPONSE): {
        "userid": "userId",
    },
    (LEGACY, CURRENT, "user.update", REQUEST): {
        "userid": "userId",
        "department": "deptIdList",
        "jobnumber": "jobNumber",
    },
    (LEGACY, CURRENT, "user.delete", REQUEST): {
        "userid": "userId",
    },
    (LEGACY, CURRENT, "department.list", REQUEST): {
        "id": "deptId",
        "fetch_child": "fetchChild",
    },
    (LEGACY, CURRENT, "department.list", RESPONSE): {
        "department": "deptList",
    },
    (LEGACY, CURRENT, "department.get", REQUEST): {
        "id": "deptId",
    },
    (LEGACY, CURRENT, "department.get", RESPONSE): {
        "id": "deptId",
        "parentid": "parentId",
    },
    (LEGACY, CURRENT, "department.create", REQUEST): {
        "parentid": "parentId",
    },
    (LEGACY, CURRENT, "department.create", RESPONSE): {
        "id": "deptId",
    },
    (LEGACY, CURRENT, "department.update", REQUEST): {
        "id": "deptId",
        "parentid": "parentId",
    },
    (LEGACY, CURRENT, "message.send", REQUEST): {
        "touser": "userIdList",
        "toparty": "deptIdList",
        "msgtype": "msgType",
        "agent_id": "agentId",
    },
    (LEGACY, CURRENT, "message.send", RESPONSE): {
        "task_id": "taskId",
    },
    (LEGACY, CURRENT, "media.upload", RESPONSE): {
        "media_id": "mediaId",
        "created_at": "createdAt",
    },
    (LEGACY, CURRENT, "attendance.list", RESPONSE): {
        "recordresult": "recordResult",
    },

    # ---------------- 新版 → 旧版 ----------------
    (CURRENT, LEGACY, "user.get", REQUEST): {
        "userId": "userid",
        "language": "lang",
    },
    (CURRENT, LEGACY, "user.get", RESPONSE): {
        "userId": "userid",
        "unionId": "unionid",
        "deptIdList": "department",
        "jobNumber": "jobnumber",
    },
    (CURRENT, LEGACY, "user.list", REQUEST): {
        "deptId": "department_id",
        "cursor": "offset",
    },
    (CURRENT, LEGACY, "user.list", RESPONSE): {
        "list": "userlist",
        "hasMore": "hasMore",
    },
    (CURRENT, LEGACY, "user.create", REQUEST): {
        "userId": "userid",
        "deptIdList": "department",
        "jobNumber": "jobnumber",
    },
    (CURRENT, LEGACY, "user.create", RESPONSE): {
        "userId": "userid",
    },
    (CURRENT, LEGACY, "user.update", REQUEST): {
        "userId": "userid",
        "deptIdList": "department",
        "jobNumber": "jobnumber",
    },
    (CURRENT, LEGACY, "user.delete", REQUEST): {
        "userId": "userid",
    },
    (CURRENT, LEGACY, "department.list", REQUEST): {
        "deptId": "id",
        "fetchChild": "fetch_child",
    },
    (CURRENT, LEGACY, "department.list", RESPONSE): {
        "deptList": "department",
    },
    (CURRENT, LEGACY, "department.get", REQUEST): {
        "deptId": "id",
    },
    (CURRENT, LEGACY, "department.get", RESPONSE): {
        "deptId": "id",
        "parentId": "parentid",
    },
    (CURRENT, LEGACY, "department.create", REQUEST): {
        "parentId": "parentid",
    },
    (CURRENT, LEGACY, "department.create", RESPONSE): {
        "deptId": "id",
    },
    (CURRENT, LEGACY, "department.update", REQUEST): {
        "deptId": "id",
        "parentId": "parentid",
    },
    (CURRENT, LEGACY, "message.send", REQUEST): {
        "userIdList": "touser",
        "deptIdList": "toparty",
        "msgType": "msgtype",
        "agentId": "agent_id",
    },
    (CURRENT, LEGACY, "message.send", RESPONSE): {
        "taskId": "task_id",
    },
    (CURRENT, LEGACY, "media.upload", RESPONSE): {
        "mediaId": "media_id",
        "createdAt": "created_at",
    },
    (CURRENT, LEGACY, "attendance.list", RESPONSE): {
        "recordResult": "recordresult",
    },
}

# ==============================================================================
# 默认值：(目标版本, 方法, 方向) → {字段: 默认值}，仅在字段缺失或为 None 时补充
# ==============================================================================
DEFAULT_VALUES: Dict[Tuple[ApiGeneration, str, Direction], Dict[str, Any]] = {
    (LEGACY, "user.get", REQUEST): {"lang": "zh_CN"},
    (LEGACY, "message.send", REQUEST): {"safe": 0},
    (LEGACY, "user.list", REQUEST): {"offset": 0, "size": 100},
    (CURRENT, "user.get", REQUEST): {"language": "zh_CN"},
    (CURRENT, "message.send", REQUEST): {
        "enableDuplicateCheck": False,
        "duplicateCheckInterval": 1800,
    },
    (CURRENT, "user.list", REQUEST): {"cursor": 0, "size": 100},
}

# ==============================================================================
# 显式字段类型：(目标版本, 方法, 方向) → {字段: 类型}，未声明的字段按宽松规则推断
# ==============================================================================
FIELD_TYPES: Dict[Tuple[ApiGeneration, str, Direction], Dict[str, str]] = {
    (LEGACY, "message.send", REQUEST): {"touser": "str", "toparty": "str"},
    (LEGACY, "user.get", REQUEST): {"userid": "str"},
    (LEGACY, "user.create", REQUEST): {"userid": "str"},
    (LEGACY, "user.update", REQUEST): {"userid": "str"},
    (LEGACY, "user.delete", REQUEST): {"userid": "str"},
    (LEGACY, "user.get", RESPONSE): {"userid": "str", "unionid": "str", "jobnumber": "str"},
    (LEGACY, "user.create", RESPONSE): {"userid": "str"},
    (LEGACY, "department.list", REQUEST): {"id": "int", "fetch_child": "bool"},
    (LEGACY, "department.get", REQUEST): {"id": "int"},
    (LEGACY, "department.create", REQUEST): {"parentid": "int"},
    (LEGACY, "department.update", REQUEST): {"id": "int", "parentid": "int"},
    (CURRENT, "message.send", REQUEST): {"userIdList": "list", "deptIdList": "list"},
    (CURRENT, "user.get", REQUEST): {"userId": "str"},
    (CURRENT, "user.create", REQUEST): {"userId": "str"},
    (CURRENT, "user.update", REQUEST): {"userId": "str"},
    (CURRENT, "user.delete", REQUEST): {"userId": "str"},
    (CURRENT, "user.get", RESPONSE): {"userId": "str", "unionId": "str", "jobNumber": "str", "deptIdList": "list"},
    (CURRENT, "user.create", RESPONSE): {"userId": "str"},
    (CURRENT, "department.list", REQUEST): {"deptId": "int", "fetchChild": "bool"},
    (CURRENT, "department.get", REQUEST): {"deptId": "int"},
    (CURRENT, "department.create", REQUEST): {"parentId": "int"},
    (CURRENT, "department.update", REQUEST): {"deptId": "int", "parentId": "int"},
}

# ==============================================================================
# 兼容性矩阵：未声明的组合视为允许
# ==============================================================================
COMPATIBILITY_MATRIX: Dict[Tuple[ApiGeneration, ApiGeneration, str], bool] = {
    (LEGACY, CURRENT, "user.get"): True,
    (LEGACY, CURRENT, "user.create"): True,
    (LEGACY, CURRENT, "user.update"): True,
    (LEGACY, CURRENT, "user.delete"): True,
    (LEGACY, CURRENT, "department.list"): True,
    (LEGACY, CURRENT, "department.get"): True,
    (LEGACY, CURRENT, "department.create"): True,
    (LEGACY, CURRENT, "department.update"): True,
    (LEGACY, CURRENT, "message.send"): True,
    # 旧版不支持消息撤回
    (LEGACY, CURRENT, "message.recall"): False,
    (CURRENT, LEGACY, "user.get"): True,
    (CURRENT, LEGACY, "user.create"): True,
    (CURRENT, LEGACY, "user.update"): True,
    (CURRENT, LEGACY, "user.delete"): True,
    (CURRENT, LEGACY, "department.list"): True,
    (CURRENT, LEGACY, "department.get"): True,
    (CURRENT, LEGACY, "department.create"): True,
    (CURRENT, LEGACY, "department.update"): True,
    (CURRENT, LEGACY, "message.send"): True,
    (CURRENT, LEGACY, "message.recall"): False,
    (CURRENT, LEGACY, "approval.create"): False,
    (CURRENT, LEGACY, "calendar.event.create"): False,
}


# ==============================================================================
# 类型转换
# ==============================================================================
TYPE_DEFAULTS: Dict[str, Callable[[], Any]] = {
    "str": str,
    "int": int,
    "float": float,
    "bool": bool,
    "list": list,
}

_NUMERIC_RE = re.compile(r"^[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?$")
_TRUE_TEXT = ("true", "1", "yes", "on")
_FALSE_TEXT = ("false", "0", "no", "off", "")


def convert_type(value: Any, target: str) -> Any:
    """
    把值转换为目标类型（str / int / float / bool / list）

    None 转换为目标类型的零值："" / 0 / 0.0 / False / []

    Raises:
        InvalidArgument: 未知的目标类型
        ValueError / TypeError: 值无法转换
    """
    if target not in TYPE_DEFAULTS:
        raise InvalidArgument(f"未知的目标类型: {target}")
    if value is None:
        return TYPE_DEFAULTS[target]()

    if target == "str":
        if isinstance(value, bool):
            return "true" if value else "false"
        if isinstance(value, (list, tuple)):
            return ",".join(convert_type(item, "str") for item in value)
        return str(value)

    if target == "int":
        if isinstance(value, str):
            text = value.strip().lower()
            if text in ("true", "false"):
                return 1 if text == "true" else 0
            return int(float(text)) if "." in text or "e" in text else int(text)
        return int(value)

    if target == "float":
        if isinstance(value, str):
            text = value.strip().lower()
            if text in ("true", "false"):
                return 1.0 if text == "true" else 0.0
            return float(text)
        return float(value)

    if target == "bool":
        if isinstance(value, str):
            text = value.strip().lower()
            if text in _TRUE_TEXT:
                return True
            if text in _FALSE_TEXT:
                return False
            raise ValueError(f"无法转换为布尔值: {value!r}")
        return bool(value)

    # list
    if isinstance(value, (list, tuple, set)):
        return list(value)
    if isinstance(value, str):
        return [item.strip() for item in value.split(",") if item.strip()]
    return [value]


# 标识类字段保持原样：userid 等常为带前导零的数字串
IDENTIFIER_FIELDS = frozenset({
    "userid", "userId", "unionid", "unionId", "jobnumber", "jobNumber",
    "mobile", "openId", "staffId", "touser", "userIdList",
})


def coerce_loose(value: Any) -> Any:
    """
    宽松类型推断：数字字符串 → int/float，"true"/"false" → bool，递归处理 dict / list

    旧版接口的字段类型不稳定（数字常以字符串返回），这里统一成原生类型。
    dict 中 IDENTIFIER_FIELDS 内的字段不做推断。
    """
    if isinstance(value, dict):
        return {key: item if key in IDENTIFIER_FIELDS else coerce_loose(item) for key, item in value.items()}
    if isinstance(value, list):
        return [coerce_loose(item) for item in value]
    if isinstance(value, str):
        if _NUMERIC_RE.match(value):
            if "." in value or "e" in value.lower():
                return float(value)
            return int(value)
        lowered = value.lower()
        if lowered in ("true", "false"):
            return lowered == "true"
    return value


# ==============================================================================
# 自定义适配器
# ==============================================================================
AdapterFunc = Callable[[Dict[str, Any], ApiGeneration, ApiGeneration, str, Direction], Dict[str, Any]]


@dataclass(frozen=True)
class CustomAdapter:
    """
    命名的自定义适配策略

    func 签名固定为 (data, from_generation, to_generation, method, direction) -> dict，
    命中后完全替代通用的 改名 / 类型转换 / 默认值 流程。
    """
    name: str
    func: AdapterFunc

    def __call__(self, data: Dict[str, Any], from_gen: ApiGeneration, to_gen: ApiGeneration,
                 method: str, direction: Direction) -> Dict[str, Any]:
        return self.func(data, from_gen, to_gen, method, direction)


@dataclass
class AdaptationStats:
    total: int = 0
    succeeded: int = 0
    failed: int = 0
    per_method: Dict[str, Dict[str, int]] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total": self.total,
            "succeeded": self.succeeded,
            "failed": self.failed,
            "per_method": {method: dict(counts) for method, counts in self.per_method.items()},
        }


# ==============================================================================
# SchemaAdapter
# ==============================================================================
class SchemaAdapter:
    """
    两代 API 之间的参数 / 响应结构转换

    Usage:
        adapter = SchemaAdapter()
        wire = adapter.adapt_request({"userId": "u1"}, "v2", "v1", "user.get")
        # {"userid": "u1", "lang": "zh_CN"}
    """

    def __init__(
            self,
            field_mappings: Optional[Dict[MappingKey, Dict[str, str]]] = None,
            default_values: Optional[Dict[Tuple[ApiGeneration, str, Direction], Dict[str, Any]]] = None,
            field_types: Optional[Dict[Tuple[ApiGeneration, str, Direction], Dict[str, str]]] = None,
            compatibility: Optional[Dict[Tuple[ApiGeneration, ApiGeneration, str], bool]] = None,
    ):
        if field_mappings is None:
            field_mappings = FIELD_MAPPINGS
        if default_values is None:
            default_values = DEFAULT_VALUES
        if field_types is None:
            field_types = FIELD_TYPES

        self._field_mappings = {k: dict(v) for k, v in field_mappings.items()}
        self._default_values = {k: dict(v) for k, v in default_values.items()}
        self._field_types = {k: dict(v) for k, v in field_types.items()}
        self._compatibility = dict(COMPATIBILITY_MATRIX if compatibility is None else compatibility)
        self._custom: Dict[Tuple[str, ApiGeneration, ApiGeneration], CustomAdapter] = {}

        self._lock = threading.Lock()
        self._stats = AdaptationStats()

    # =========================================================================
    # 转换入口
    # =========================================================================

    def adapt_request(self, params: Mapping[str, Any], from_gen: GenerationLike,
                      to_gen: GenerationLike, method: str) -> Dict[str, Any]:
        """把请求参数从 from_gen 的结构转换为 to_gen 的结构"""
        return self._adapt(params, from_gen, to_gen, method, REQUEST)

    def adapt_response(self, payload: Mapping[str, Any], from_gen: GenerationLike,
                       to_gen: GenerationLike, method: str) -> Dict[str, Any]:
        """把响应数据从 from_gen 的结构转换为 to_gen 的结构"""
        return self._adapt(payload, from_gen, to_gen, method, RESPONSE)

    def _adapt(self, data: Mapping[str, Any], from_gen: GenerationLike, to_gen: GenerationLike,
               method: str, direction: Direction) -> Dict[str, Any]:
        source, target = self._validate(from_gen, to_gen)
        if not method:
            raise InvalidArgument("method 不能为空")
        if not isinstance(data, Mapping):
            raise InvalidArgument(f"{direction} 数据必须是 dict，实际为 {type(data).__name__}")

        self._count_attempt(method, direction)

        if not self.is_compatible(source, target, method):
            self._count_result(method, ok=False)
            logger.warning(f"方法 {method} 不支持 {source} → {target} 转换")
            raise UnsupportedTranslationError(method, source, target)

        try:
            custom = self._custom.get((method, source, target))
            if custom is not None:
                result = custom(dict(data), source, target, method, direction)
                if not isinstance(result, Mapping):
                    raise TypeError(f"自定义适配器 {custom.name} 返回了 {type(result).__name__}，需要 dict")
                result = dict(result)
            elif source is target:
                # 同一代之间不需要改名和类型推断，只补默认值
                result = self.apply_default_values(data, target, method, direction)
            else:
                mapped = self._apply_field_mapping(data, source, target, method, direction)
                converted = self._convert_types(mapped, target, method, direction)
                result = self.apply_default_values(converted, target, method, direction)
        except Exception as e:
            self._count_result(method, ok=False)
            logger.error(
                f"{direction} 转换失败: {method} {source} → {target}: {e} "
                f"data={mask_secrets(data)}"
            )
            raise AdaptationError(
                f"{direction} 转换失败 ({method} {source} → {target}): {e}",
                cause=e,
                context={"method": method, "from": str(source), "to": str(target), "direction": str(direction)},
            ) from e

        self._count_result(method, ok=True)
        logger.debug(f"{direction} 转换成功: {method} {source} → {target} ({len(data)} → {len(result)} 字段)")
        return result

    # =========================================================================
    # 通用流程
    # =========================================================================

    def _apply_field_mapping(self, data: Mapping[str, Any], source: ApiGeneration, target: ApiGeneration,
                             method: str, direction: Direction) -> Dict[str, Any]:
        mapping = self._field_mappings.get((source, target, method, direction), {})
        mapped: Dict[str, Any] = {}
        for key, value in data.items():
            name = mapping.get(key, key)
            if name in mapped:
                raise ValueError(f"字段 {key} 与其他字段都映射到 {name}")
            mapped[name] = value
        return mapped

    def _convert_types(self, data: Dict[str, Any], target: ApiGeneration,
                       method: str, direction: Direction) -> Dict[str, Any]:
        types = self._field_types.get((target, method, direction), {})
        converted = {}
        for key, value in data.items():
            if key in types:
                converted[key] = convert_type(value, types[key])
            elif key in IDENTIFIER_FIELDS:
                converted[key] = value
            else:
                converted[key] = coerce_loose(value)
        return converted

    def apply_default_values(self, data: Mapping[str, Any], generation: GenerationLike,
                             method: str, direction: Union[Direction, str]) -> Dict[str, Any]:
        """对缺失或为 None 的字段补默认值"""
        generation = ApiGeneration.parse_concrete(generation)
        defaults = self._default_values.get((generation, method, Direction(direction)), {})
        result = dict(data)
        for key, default in defaults.items():
            if result.get(key) is None:
                result[key] = default
        return result

    # =========================================================================
    # 查询 & 注册
    # =========================================================================

    def get_field_mapping(self, from_gen: GenerationLike, to_gen: GenerationLike,
                          method: str, direction: Union[Direction, str]) -> Dict[str, str]:
        source, target = self._validate(from_gen, to_gen)
        return dict(self._field_mappings.get((source, target, method, Direction(direction)), {}))

    def is_compatible(self, from_gen: GenerationLike, to_gen: GenerationLike, method: str) -> bool:
        source, target = self._validate(from_gen, to_gen)
        return self._compatibility.get((source, target, method), True)

    def set_compatibility(self, from_gen: GenerationLike, to_gen: GenerationLike,
                          method: str, allowed: bool) -> None:
        source, target = self._validate(from_gen, to_gen)
        with self._lock:
            self._compatibility[(source, target, method)] = bool(allowed)

    def register_custom_adapter(
            self,
            method: str,
            from_gen: GenerationLike,
            to_gen: GenerationLike,
            adapter: Union[CustomAdapter, AdapterFunc],
            name: Optional[str] = None,
    ) -> CustomAdapter:
        """
        注册自定义适配器，同一 (method, from, to) 后注册的覆盖先注册的

        Args:
            adapter: CustomAdapter 或签名为 (data, from, to, method, direction) 的函数
            name: 适配器名称，默认取函数名
        """
        source, target = self._validate(from_gen, to_gen)
        if not isinstance(adapter, CustomAdapter):
            if not callable(adapter):
                raise InvalidArgument("adapter 必须是可调用对象")
            adapter = CustomAdapter(name=name or getattr(adapter, "__name__", "custom"), func=adapter)

        with self._lock:
            replaced = self._custom.get((method, source, target))
            self._custom[(method, source, target)] = adapter

        if replaced is not None:
            logger.info(f"自定义适配器 {replaced.name} 被 {adapter.name} 覆盖: {method} {source} → {target}")
        else:
            logger.info(f"注册自定义适配器 {adapter.name}: {method} {source} → {target}")
        return adapter

    def unregister_custom_adapter(self, method: str, from_gen: GenerationLike, to_gen: GenerationLike) -> bool:
        source, target = self._validate(from_gen, to_gen)
        with self._lock:
            return self._custom.pop((method, source, target), None) is not None

    def custom_adapters(self) -> Dict[Tuple[str, str, str], str]:
        """已注册的自定义适配器：(method, from, to) → 名称"""
        return {
            (method, str(source), str(target)): adapter.name
            for (method, source, target), adapter in self._custom.items()
        }

    @staticmethod
    def supported_generations() -> List[ApiGeneration]:
        return list(CONCRETE_GENERATIONS)

    def stats(self) -> AdaptationStats:
        with self._lock:
            return AdaptationStats(**self._stats.to_dict())

    def clear_stats(self) -> None:
        with self._lock:
            self._stats = AdaptationStats()

    # =========================================================================
    # 内部工具
    # =========================================================================

    @staticmethod
    def _validate(from_gen: GenerationLike, to_gen: GenerationLike) -> Tuple[ApiGeneration, ApiGeneration]:
        return ApiGeneration.parse_concrete(from_gen), ApiGeneration.parse_concrete(to_gen)

    def _count_attempt(self, method: str, direction: Direction) -> None:
        with self._lock:
            self._stats.total += 1
            counts = self._stats.per_method.setdefault(method, {"request": 0, "response": 0, "failed": 0})
            counts[direction.value] += 1

    def _count_result(self, method: str, ok: bool) -> None:
        with self._lock:
            if ok:
                self._stats.succeeded += 1
            else:
                self._stats.failed += 1
                self._stats.per_method[method]["failed"] += 1
