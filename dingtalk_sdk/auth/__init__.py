# !/usr/bin/env python
# -*- coding: utf-8 -*-
# =====================================================
# @File   ：__init__.py
# @Date   ：2026/10/14 10:00
# @Author ：leemysw
# 2026/10/14 10:00   Create
# =====================================================
"""
[INPUT]: None
[OUTPUT]: 对外提供 AppCredentials, StaticCredentials, TokenCache, TokenInfo, CredentialProvider
[POS]: auth 模块入口
[PROTOCOL]: 变更时更新此头部，然后检查 README.md
"""

from dingtalk_sdk.auth.tenant import AppCredentials, StaticCredentials
from dingtalk_sdk.auth.token import CredentialProvider, TokenCache, TokenInfo

__all__ = ["AppCredentials", "StaticCredentials", "CredentialProvider", "TokenCache", "TokenInfo"]
