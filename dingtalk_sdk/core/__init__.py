# !/usr/bin/env python
# -*- coding: utf-8 -*-
# =====================================================
# @File   ：__init__.py
# @Date   ：2026/10/12 14:00
# @Author ：leemysw
# 2026/10/12 14:00   Create
# =====================================================
"""
[INPUT]: None
[OUTPUT]: None
[POS]: core 模块：版本选择、结构转换、按代调用
[PROTOCOL]: 变更时更新此头部，然后检查 README.md
"""
