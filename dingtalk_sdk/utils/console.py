# !/usr/bin/env python
# -*- coding: utf-8 -*-
# =====================================================
# @File   ：console.py
# @Date   ：2026/10/12 10:40
# @Author ：leemysw
# 2026/10/12 10:40   Create
# 2026/10/14 16:05   Add get_logger / mask_secrets
# =====================================================
"""
[INPUT]: 依赖 rich
[OUTPUT]: 对外提供 get_console, get_logger, mask_secrets
[POS]: 统一的终端输出与日志入口
[PROTOCOL]: 变更时更新此头部，然后检查 README.md
"""

import logging
import os
from typing import Any, Dict, Mapping, Optional

from rich.console import Console
from rich.logging import RichHandler

_console: Optional[Console] = None
_handler: Optional[RichHandler] = None

# 日志中需要隐藏的字段
SENSITIVE_KEYS = frozenset({
    "app_secret",
    "appSecret",
    "appsecret",
    "access_token",
    "accessToken",
    "signature",
})


def get_console() -> Console:
    """获取共享的 Console（输出到 stderr，避免污染管道输出）"""
    global _console
    if _console is None:
        _console = Console(stderr=True, soft_wrap=True)
    return _console


def get_logger(name: str) -> logging.Logger:
    """
    获取挂载 RichHandler 的 logger

    所有 dingtalk_sdk.* logger 共享同一个 handler，
    日志级别由环境变量 DINGTALK_SDK_LOG_LEVEL 控制（默认 WARNING）。
    """
    global _handler
    root = logging.getLogger("dingtalk_sdk")
    if _handler is None:
        _handler = RichHandler(console=get_console(), show_path=False, rich_tracebacks=True)
        _handler.setFormatter(logging.Formatter("%(message)s"))
        root.addHandler(_handler)
        root.setLevel(os.getenv("DINGTALK_SDK_LOG_LEVEL", "WARNING").upper())
        root.propagate = False
    return logging.getLogger(name)


def mask_secrets(params: Mapping[str, Any]) -> Dict[str, Any]:
    """返回隐藏敏感字段后的参数副本（仅用于日志）"""
    masked = {}
    for key, value in params.items():
        if key in SENSITIVE_KEYS and value:
            text = str(value)
            masked[key] = f"{text[:4]}***" if len(text) > 8 else "***"
        else:
            masked[key] = value
    return masked
