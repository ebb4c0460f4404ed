# !/usr/bin/env python
# -*- coding: utf-8 -*-
# =====================================================
# @File   ：user.py
# @Date   ：2026/10/15 14:30
# @Author ：leemysw
# 2026/10/15 14:30   Create
# =====================================================
"""
[INPUT]: 依赖 base.py
[OUTPUT]: 对外提供 UserAPI
[POS]: SDK 通讯录用户 API
[PROTOCOL]: 变更时更新此头部，然后检查 README.md
"""

from typing import Any, Dict, List, Optional

from .base import SubModule


class UserAPI(SubModule):
    """通讯录用户 API"""

    def get(self, user_id: str, language: Optional[str] = None, **options: Any) -> Dict[str, Any]:
        """获取用户详情"""
        return self._call("user.get", {"userId": user_id, "language": language}, "GET", options)

    def list(self, dept_id: int, cursor: int = 0, size: int = 100, **options: Any) -> Dict[str, Any]:
        """分页获取部门用户"""
        params = {"deptId": dept_id, "cursor": cursor, "size": size}
        return self._call("user.list", params, "GET", options)

    def create(
            self,
            name: str,
            mobile: str,
            dept_id_list: List[int],
            user_id: Optional[str] = None,
            job_number: Optional[str] = None,
            **options: Any,
    ) -> Dict[str, Any]:
        params = {
            "name": name,
            "mobile": mobile,
            "deptIdList": dept_id_list,
            "userId": user_id,
            "jobNumber": job_number,
        }
        return self._call("user.create", params, "POST", options)

    def update(self, user_id: str, fields: Dict[str, Any], **options: Any) -> Dict[str, Any]:
        params = dict(fields)
        params["userId"] = user_id
        return self._call("user.update", params, "PUT", options)

    def delete(self, user_id: str, **options: Any) -> Dict[str, Any]:
        return self._call("user.delete", {"userId": user_id}, "DELETE", options)
