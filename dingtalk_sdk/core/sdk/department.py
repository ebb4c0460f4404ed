# !/usr/bin/env python
# -*- coding: utf-8 -*-
# =====================================================
# @File   ：department.py
# @Date   ：2026/10/15 14:45
# @Author ：leemysw
# 2026/10/15 14:45   Create
# =====================================================
"""
[INPUT]: 依赖 base.py
[OUTPUT]: 对外提供 DepartmentAPI
[POS]: SDK 通讯录部门 API
[PROTOCOL]: 变更时更新此头部，然后检查 README.md
"""

from typing import Any, Dict, Optional

from .base import SubModule


class DepartmentAPI(SubModule):
    """通讯录部门 API"""

    def list(self, dept_id: int = 1, fetch_child: bool = False, **options: Any) -> Dict[str, Any]:
        """获取子部门列表"""
        return self._call("department.list", {"deptId": dept_id, "fetchChild": fetch_child}, "GET", options)

    def get(self, dept_id: int, **options: Any) -> Dict[str, Any]:
        return self._call("department.get", {"deptId": dept_id}, "GET", options)

    def create(self, name: str, parent_id: int = 1, order: Optional[int] = None, **options: Any) -> Dict[str, Any]:
        params = {"name": name, "parentId": parent_id, "order": order}
        return self._call("department.create", params, "POST", options)

    def update(self, dept_id: int, fields: Dict[str, Any], **options: Any) -> Dict[str, Any]:
        params = dict(fields)
        params["deptId"] = dept_id
        return self._call("department.update", params, "PUT", options)
