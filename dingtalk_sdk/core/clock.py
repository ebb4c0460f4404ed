# !/usr/bin/env python
# -*- coding: utf-8 -*-
# =====================================================
# @File   ：clock.py
# @Date   ：2026/10/12 14:40
# @Author ：leemysw
# 2026/10/12 14:40   Create
# =====================================================
"""
[INPUT]: 依赖 time, secrets
[OUTPUT]: 对外提供 Clock 协议, SystemClock
[POS]: 时间与随机数来源，测试时可注入固定实现
[PROTOCOL]: 变更时更新此头部，然后检查 README.md
"""

import secrets
import time

from typing import Protocol


class Clock(Protocol):
    """时间 / 随机数来源"""

    def now(self) -> float:
        """当前 Unix 时间戳（秒）"""
        ...

    def nonce(self) -> str:
        """一次性随机串"""
        ...


class SystemClock:
    """系统时钟"""

    def now(self) -> float:
        return time.time()

    def nonce(self) -> str:
        return secrets.token_hex(8)
