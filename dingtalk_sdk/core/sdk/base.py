# !/usr/bin/env python
# -*- coding: utf-8 -*-
# =====================================================
# @File   ：base.py
# @Date   ：2026/10/15 14:10
# @Author ：leemysw
# 2026/10/15 14:10   Create - SDK 基础类
# =====================================================
"""
[INPUT]: 依赖 core.client
[OUTPUT]: 对外提供 SDKCore, SubModule
[POS]: SDK 核心类和子模块基类
[PROTOCOL]: 变更时更新此头部，然后检查 README.md
"""

from typing import Any, Dict, Mapping, Optional, Union

from dingtalk_sdk.core.client import DingTalkClient
from dingtalk_sdk.core.generation import ApiGeneration


class SDKCore:
    """
    SDK 核心类

    持有共享资源：DingTalkClient、固定的 API 版本
    子模块通过组合方式访问这些资源
    """

    def __init__(
            self,
            client: Optional[DingTalkClient] = None,
            generation: Union[ApiGeneration, str, None] = None,
    ):
        """
        初始化 SDK 核心

        Args:
            client: 客户端，不传则按默认配置创建
            generation: 固定使用的 API 版本，None 表示每次调用自动检测
        """
        self.client = client or DingTalkClient()
        self.generation = ApiGeneration.parse_concrete(generation) if generation else None

    def build_options(self, options: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
        """合并调用选项（显式传入的 generation 优先）"""
        merged: Dict[str, Any] = {}
        if self.generation is not None:
            merged["generation"] = self.generation
        merged.update(options or {})
        return merged


class SubModule:
    """
    子模块基类

    所有功能模块继承此类，通过 core 访问共享资源
    """

    def __init__(self, core: SDKCore):
        self._core = core

    @property
    def client(self) -> DingTalkClient:
        return self._core.client

    def _call(
            self,
            method: str,
            params: Optional[Mapping[str, Any]] = None,
            verb: str = "POST",
            options: Optional[Mapping[str, Any]] = None,
    ) -> Dict[str, Any]:
        """丢弃值为 None 的参数后发起逻辑调用"""
        cleaned = {k: v for k, v in (params or {}).items() if v is not None}
        return self.client.call(method, cleaned, verb, self._core.build_options(options))
