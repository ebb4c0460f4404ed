# !/usr/bin/env python
# -*- coding: utf-8 -*-
# =====================================================
# @File   ：__init__.py
# @Date   ：2026/10/14 14:00
# @Author ：leemysw
# 2026/10/14 14:00   Create
# =====================================================
"""
[INPUT]: None
[OUTPUT]: 对外提供 CallAdapter, LegacyCallAdapter, CurrentCallAdapter, RequestStats
[POS]: adapters 模块入口
[PROTOCOL]: 变更时更新此头部，然后检查 README.md
"""

from dingtalk_sdk.core.adapters.base import CallAdapter, RequestStats
from dingtalk_sdk.core.adapters.current import CurrentCallAdapter
from dingtalk_sdk.core.adapters.legacy import LegacyCallAdapter, SIGNED_METHODS, sign

__all__ = ["CallAdapter", "RequestStats", "LegacyCallAdapter", "CurrentCallAdapter", "SIGNED_METHODS", "sign"]
