# !/usr/bin/env python
# -*- coding: utf-8 -*-
# =====================================================
# @File   ：__init__.py
# @Date   ：2026/10/17 10:00
# @Author ：leemysw
# 2026/10/17 10:00   Create
# =====================================================
"""
[INPUT]: None
[OUTPUT]: None
[POS]: cli 模块，入口见 main.py
[PROTOCOL]: 变更时更新此头部，然后检查 README.md
"""
