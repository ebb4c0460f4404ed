# !/usr/bin/env python
# -*- coding: utf-8 -*-
# =====================================================
# @File   ：__init__.py
# @Date   ：2026/10/15 14:00
# @Author ：leemysw
# 2026/10/15 14:00   Create
# =====================================================
"""
[INPUT]: 依赖各子模块
[OUTPUT]: 对外提供 DingTalkSDK 类
[POS]: SDK 模块入口，使用组合模式组织各功能模块
[PROTOCOL]: 变更时更新此头部，然后检查 README.md
"""

from typing import Optional, Union

from dingtalk_sdk.core.client import DingTalkClient
from dingtalk_sdk.core.generation import ApiGeneration
from .attendance import AttendanceAPI
from .base import SDKCore
from .department import DepartmentAPI
from .media import MediaAPI
from .message import MessageAPI
from .user import UserAPI

__all__ = ["DingTalkSDK"]


class DingTalkSDK:
    """
    钉钉 API 封装

    使用组合模式组织各功能模块，通过属性访问：
    - sdk.user       - 通讯录用户
    - sdk.department - 通讯录部门
    - sdk.message    - 工作通知
    - sdk.attendance - 考勤
    - sdk.media      - 媒体文件

    参数和返回值统一使用新版 API 的字段结构，旧版 API 由 DingTalkClient 自动转换。

    Usage:
        sdk = DingTalkSDK()
        sdk.user.get("u1")
        sdk.message.send(agent_id, {"msgtype": "text", "text": {"content": "hi"}}, user_ids=["u1"])
    """

    def __init__(
            self,
            client: Optional[DingTalkClient] = None,
            generation: Union[ApiGeneration, str, None] = None,
    ):
        """
        初始化 SDK

        Args:
            client: 客户端，默认按配置文件创建
            generation: 固定 API 版本，默认每次调用自动检测
        """
        self._core = SDKCore(client=client, generation=generation)

        # 延迟初始化子模块
        self._user: Optional[UserAPI] = None
        self._department: Optional[DepartmentAPI] = None
        self._message: Optional[MessageAPI] = None
        self._attendance: Optional[AttendanceAPI] = None
        self._media: Optional[MediaAPI] = None

    @property
    def client(self) -> DingTalkClient:
        return self._core.client

    @property
    def generation(self) -> Optional[ApiGeneration]:
        return self._core.generation

    # =========================================================================
    # 子模块（延迟初始化）
    # =========================================================================

    @property
    def user(self) -> UserAPI:
        if self._user is None:
            self._user = UserAPI(self._core)
        return self._user

    @property
    def department(self) -> DepartmentAPI:
        if self._department is None:
            self._department = DepartmentAPI(self._core)
        return self._department

    @property
    def message(self) -> MessageAPI:
        if self._message is None:
            self._message = MessageAPI(self._core)
        return self._message

    @property
    def attendance(self) -> AttendanceAPI:
        if self._attendance is None:
            self._attendance = AttendanceAPI(self._core)
        return self._attendance

    @property
    def media(self) -> MediaAPI:
        if self._media is None:
            self._media = MediaAPI(self._core)
        return self._media
