# !/usr/bin/env python
# -*- coding: utf-8 -*-
# =====================================================
# @File   ：media.py
# @Date   ：2026/10/15 15:35
# @Author ：leemysw
# 2026/10/15 15:35   Create
# =====================================================
"""
[INPUT]: 依赖 base.py
[OUTPUT]: 对外提供 MediaAPI
[POS]: SDK 媒体文件 API
[PROTOCOL]: 变更时更新此头部，然后检查 README.md
"""

import base64
from pathlib import Path
from typing import Any, Dict, Union

from .base import SubModule


class MediaAPI(SubModule):
    """媒体文件 API"""

    def upload(self, file_path: Union[str, Path], media_type: str = "image", **options: Any) -> Dict[str, Any]:
        """
        上传媒体文件

        Args:
            file_path: 本地文件路径
            media_type: image / voice / video / file

        Returns:
            {"mediaId": ..., "type": ..., "createdAt": ...}
        """
        p = Path(file_path)
        params = {
            "type": media_type,
            "fileName": p.name,
            "media": base64.b64encode(p.read_bytes()).decode("ascii"),
        }
        return self._call("media.upload", params, "POST", options)
