# !/usr/bin/env python
# -*- coding: utf-8 -*-
# =====================================================
# @File   ：message.py
# @Date   ：2026/10/15 15:00
# @Author ：leemysw
# 2026/10/15 15:00   Create
# 2026/10/16 11:30   Add recall (current API only)
# =====================================================
"""
[INPUT]: 依赖 base.py
[OUTPUT]: 对外提供 MessageAPI
[POS]: SDK 工作通知消息 API
[PROTOCOL]: 变更时更新此头部，然后检查 README.md
"""

import json
from typing import Any, Dict, List, Optional

from .base import SubModule


class MessageAPI(SubModule):
    """工作通知消息 API"""

    def send(
            self,
            agent_id: int,
            msg: Dict[str, Any],
            user_ids: Optional[List[str]] = None,
            dept_ids: Optional[List[int]] = None,
            **options: Any,
    ) -> Dict[str, Any]:
        """
        发送工作通知

        Args:
            agent_id: 应用 AgentId
            msg: 消息体，如 {"msgtype": "text", "text": {"content": "hi"}}
            user_ids: 接收人 userId 列表
            dept_ids: 接收部门列表

        Returns:
            {"taskId": ...}
        """
        params = {
            "agentId": agent_id,
            "msgType": msg.get("msgtype"),
            "msg": json.dumps(msg, ensure_ascii=False),
            "userIdList": user_ids,
            "deptIdList": dept_ids,
        }
        return self._call("message.send", params, "POST", options)

    def recall(self, agent_id: int, task_id: int, **options: Any) -> Dict[str, Any]:
        """撤回工作通知（旧版 API 不支持，会抛出 UnsupportedTranslationError）"""
        return self._call("message.recall", {"agentId": agent_id, "taskId": task_id}, "POST", options)
