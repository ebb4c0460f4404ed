# !/usr/bin/env python
# -*- coding: utf-8 -*-
# =====================================================
# @File   ：__init__.py
# @Date   ：2026/10/12 10:20
# @Author ：leemysw
# 2026/10/12 10:20   Create
# =====================================================
"""
[INPUT]: 依赖 core.client, core.generation, exceptions
[OUTPUT]: 对外提供 DingTalkClient, ApiGeneration, 异常类型与 __version__
[POS]: 包入口
[PROTOCOL]: 变更时更新此头部，然后检查 README.md
"""

__version__ = "0.3.0"

from dingtalk_sdk.core.client import DingTalkClient
from dingtalk_sdk.core.generation import ApiGeneration, DetectionStrategy
from dingtalk_sdk.exceptions import (
    AdaptationError,
    ApiFailure,
    AuthFailure,
    ConfigurationError,
    DingTalkError,
    InvalidArgument,
    RateLimitFailure,
    TransportFailure,
    UnsupportedTranslationError,
)

__all__ = [
    "__version__",
    "DingTalkClient",
    "ApiGeneration",
    "DetectionStrategy",
    "DingTalkError",
    "ConfigurationError",
    "InvalidArgument",
    "UnsupportedTranslationError",
    "AdaptationError",
    "ApiFailure",
    "AuthFailure",
    "RateLimitFailure",
    "TransportFailure",
]
