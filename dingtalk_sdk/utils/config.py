# !/usr/bin/env python
# -*- coding: utf-8 -*-
# =====================================================
# @File   ：config.py
# @Date   ：2026/10/12 10:30
# @Author ：leemysw
# 2026/10/12 10:30   Create
# 2026/10/15 11:20   Support dotted-path lookup
# =====================================================
"""
[INPUT]: 依赖 json, os
[OUTPUT]: 对外提供 AppConfig, get_config_dir, DEFAULT_SETTINGS
[POS]: 配置管理，支持 配置文件 + 环境变量 + 默认值
[PROTOCOL]: 变更时更新此头部，然后检查 README.md
"""

import copy
import json
import os
from pathlib import Path
from typing import Any, Dict, Optional

from dingtalk_sdk import __version__

# ==============================================================================
# 默认配置
# ==============================================================================
DEFAULT_SETTINGS: Dict[str, Any] = {
    "api": {
        # auto（自动检测）/ v1（旧版 API）/ v2（新版 API）
        "version": "auto",
        # 所有检测策略都无法决定时使用的版本，置空则抛出 ConfigurationError
        "fallback_version": "v1",
        "v1": {
            "base_url": "https://oapi.dingtalk.com",
            "timeout": 30,
            "retry_delay": 5,
        },
        "v2": {
            "base_url": "https://api.dingtalk.com",
            "timeout": 30,
            "retry_delay": 5,
        },
    },
    "detection": {
        "connectivity_timeout": 5,
    },
    "app": {
        # 应用创建时间（Unix 时间戳或 ISO 8601），由调用方提供
        "created_at": None,
    },
    "sdk_version": __version__,
}


def get_config_dir() -> Path:
    """配置目录（可用 DINGTALK_SDK_HOME 覆盖）"""
    home = os.getenv("DINGTALK_SDK_HOME")
    if home:
        return Path(home)
    return Path.home() / ".dingtalk-sdk"


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


class AppConfig:
    """
    应用配置

    配置文件位置：~/.dingtalk-sdk/config.json
    读取优先级：环境变量 > 配置文件 > 默认值

    Usage:
        config = AppConfig.load()
        config.get("api.v1.base_url")
    """

    def __init__(
            self,
            app_key: Optional[str] = None,
            app_secret: Optional[str] = None,
            settings: Optional[Dict[str, Any]] = None,
            config_file: Optional[Path] = None,
    ):
        self.app_key = app_key
        self.app_secret = app_secret
        self.settings = _deep_merge(DEFAULT_SETTINGS, settings or {})
        self.config_file = config_file or get_config_dir() / "config.json"

    # =========================================================================
    # 加载 & 保存
    # =========================================================================

    @classmethod
    def load(cls, config_file: Optional[Path] = None) -> "AppConfig":
        """从配置文件加载，并应用环境变量覆盖"""
        config_file = config_file or get_config_dir() / "config.json"
        data: Dict[str, Any] = {}
        if config_file.exists():
            try:
                data = json.loads(config_file.read_text(encoding="utf-8"))
            except (OSError, ValueError):
                data = {}

        config = cls(
            app_key=data.get("app_key"),
            app_secret=data.get("app_secret"),
            settings=data.get("settings") or {},
            config_file=config_file,
        )
        config._apply_env()
        return config

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AppConfig":
        """从字典构建（不读取文件和环境变量）"""
        data = dict(data)
        return cls(
            app_key=data.pop("app_key", None),
            app_secret=data.pop("app_secret", None),
            settings=data,
        )

    def _apply_env(self) -> None:
        self.app_key = os.getenv("DINGTALK_APP_KEY") or self.app_key
        self.app_secret = os.getenv("DINGTALK_APP_SECRET") or self.app_secret
        env_version = os.getenv("DINGTALK_API_VERSION")
        if env_version:
            self.set("api.version", env_version)

    def save(self) -> None:
        """保存配置到文件"""
        self.config_file.parent.mkdir(parents=True, exist_ok=True)
        self.config_file.write_text(json.dumps({
            "app_key": self.app_key,
            "app_secret": self.app_secret,
            "settings": self.settings,
        }, indent=2, ensure_ascii=False), encoding="utf-8")

    def clear(self) -> None:
        """删除配置文件"""
        if self.config_file.exists():
            self.config_file.unlink()

    def has_credentials(self) -> bool:
        return bool(self.app_key and self.app_secret)

    # =========================================================================
    # 点路径读写
    # =========================================================================

    def get(self, path: str, default: Any = None) -> Any:
        """
        按点路径读取配置

        Args:
            path: 如 "api.v1.base_url"
            default: 路径不存在或值为 None 时返回的默认值
        """
        if path == "app_key":
            return self.app_key if self.app_key is not None else default
        if path == "app_secret":
            return self.app_secret if self.app_secret is not None else default

        node: Any = self.settings
        for part in path.split("."):
            if not isinstance(node, dict) or part not in node:
                return default
            node = node[part]
        return default if node is None else node

    def set(self, path: str, value: Any) -> None:
        """按点路径写入配置（中间节点不存在时自动创建）"""
        if path == "app_key":
            self.app_key = value
            return
        if path == "app_secret":
            self.app_secret = value
            return

        parts = path.split(".")
        node = self.settings
        for part in parts[:-1]:
            child = node.get(part)
            if not isinstance(child, dict):
                child = {}
                node[part] = child
            node = child
        node[parts[-1]] = value
