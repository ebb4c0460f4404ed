# !/usr/bin/env python
# -*- coding: utf-8 -*-
# =====================================================
# @File   ：main.py
# @Date   ：2026/10/17 10:00
# @Author ：leemysw
#
# 2026/10/17 10:00   Create
# =====================================================

from dingtalk_sdk.cli.main import app

if __name__ == '__main__':
    app()
