# !/usr/bin/env python
# -*- coding: utf-8 -*-
# =====================================================
# @File   ：attendance.py
# @Date   ：2026/10/15 15:20
# @Author ：leemysw
# 2026/10/15 15:20   Create
# =====================================================
"""
[INPUT]: 依赖 base.py
[OUTPUT]: 对外提供 AttendanceAPI
[POS]: SDK 考勤打卡 API
[PROTOCOL]: 变更时更新此头部，然后检查 README.md
"""

from typing import Any, Dict, List

from .base import SubModule


class AttendanceAPI(SubModule):
    """考勤 API"""

    def list(
            self,
            user_ids: List[str],
            work_date_from: str,
            work_date_to: str,
            offset: int = 0,
            limit: int = 50,
            **options: Any,
    ) -> Dict[str, Any]:
        """查询打卡结果，日期格式 yyyy-MM-dd HH:mm:ss"""
        params = {
            "userIdList": user_ids,
            "workDateFrom": work_date_from,
            "workDateTo": work_date_to,
            "offset": offset,
            "limit": limit,
        }
        return self._call("attendance.list", params, "POST", options)
