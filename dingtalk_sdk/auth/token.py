# !/usr/bin/env python
# -*- coding: utf-8 -*-
# =====================================================
# @File   ：token.py
# @Date   ：2026/10/14 10:10
# @Author ：leemysw
# 2026/10/14 10:10   Create
# =====================================================
"""
[INPUT]: 依赖 core.generation
[OUTPUT]: 对外提供 TokenInfo, TokenCache, CredentialProvider
[POS]: 通用的 Token 缓存，按 (API 版本, 凭证范围) 区分
[PROTOCOL]: 变更时更新此头部，然后检查 README.md
"""

import threading
from dataclasses import dataclass
from typing import Dict, Optional, Protocol, Tuple

from dingtalk_sdk.core.generation import ApiGeneration


class CredentialProvider(Protocol):
    """凭证提供方"""

    def get_access_token(self, force_refresh: bool = False) -> str:
        ...

    def signing_secret(self) -> str:
        ...

    def app_key(self) -> str:
        ...


@dataclass
class TokenInfo:
    """Token 信息"""
    access_token: str
    expires_at: float  # Unix 时间戳

    def is_expired(self, now: float, leeway: float = 300) -> bool:
        """检查 token 是否过期（默认提前 5 分钟）"""
        return now >= self.expires_at - leeway

    def to_dict(self) -> dict:
        return {
            "access_token": self.access_token,
            "expires_at": self.expires_at,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "TokenInfo":
        return cls(
            access_token=data["access_token"],
            expires_at=data["expires_at"],
        )


class TokenCache:
    """
    Token 缓存

    一个实例可被多个凭证提供方共享，key 为 (generation, scope)，
    scope 一般是 app_key，不同应用之间互不影响。
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._tokens: Dict[Tuple[ApiGeneration, str], TokenInfo] = {}

    def get(self, generation: ApiGeneration, scope: str) -> Optional[TokenInfo]:
        with self._lock:
            return self._tokens.get((generation, scope))

    def put(self, generation: ApiGeneration, scope: str, token: TokenInfo) -> None:
        with self._lock:
            self._tokens[(generation, scope)] = token

    def invalidate(self, generation: ApiGeneration, scope: str) -> None:
        with self._lock:
            self._tokens.pop((generation, scope), None)

    def clear(self) -> None:
        with self._lock:
            self._tokens.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._tokens)
