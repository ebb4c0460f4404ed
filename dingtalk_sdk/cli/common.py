# !/usr/bin/env python
# -*- coding: utf-8 -*-
# =====================================================
# @File   ：common.py
# @Date   ：2026/10/17 10:00
# @Author ：leemysw
# 2026/10/17 10:00   Create
# =====================================================
"""
[INPUT]: 依赖 typer, dingtalk_sdk.utils.config, dingtalk_sdk.utils.console
[OUTPUT]: 对外提供 load_config, build_client, parse_params, parse_generation, mask, console
[POS]: cli 模块的共享工具函数
[PROTOCOL]: 变更时更新此头部，然后检查 README.md
"""

import json
from typing import Any, Dict, List, Optional

import typer

from dingtalk_sdk.core.client import DingTalkClient
from dingtalk_sdk.core.generation import ApiGeneration
from dingtalk_sdk.exceptions import InvalidArgument
from dingtalk_sdk.utils.config import AppConfig
from dingtalk_sdk.utils.console import get_console

console = get_console()


def load_config(
        app_key: Optional[str] = None,
        app_secret: Optional[str] = None,
) -> AppConfig:
    """
    加载配置（优先级：命令行参数 > 环境变量 > 配置文件）

    Args:
        app_key: 命令行传入的 AppKey
        app_secret: 命令行传入的 AppSecret
    """
    config = AppConfig.load()
    if app_key:
        config.app_key = app_key
    if app_secret:
        config.app_secret = app_secret
    return config


def build_client(config: AppConfig) -> DingTalkClient:
    return DingTalkClient(config)


def parse_generation(value: Optional[str]) -> Optional[ApiGeneration]:
    """解析命令行传入的版本，非法值直接退出"""
    if not value:
        return None
    try:
        return ApiGeneration.parse(value)
    except InvalidArgument as e:
        console.print(f"[red]❌ {e.message}[/red]")
        raise typer.Exit(1)


def parse_params(items: Optional[List[str]]) -> Dict[str, Any]:
    """
    解析 -p key=value 参数

    值能按 JSON 解析时使用解析结果（数字、布尔、列表），否则按字符串处理。
    """
    params: Dict[str, Any] = {}
    for item in items or []:
        key, sep, raw = item.partition("=")
        key = key.strip()
        if not sep or not key:
            console.print(f"[red]❌ 参数格式错误: {item}，应为 key=value[/red]")
            raise typer.Exit(1)
        try:
            params[key] = json.loads(raw)
        except ValueError:
            params[key] = raw
    return params


def mask(value: Optional[str]) -> str:
    if not value:
        return "[dim]未设置[/dim]"
    if len(value) > 14:
        return f"{value[:10]}...{value[-4:]}"
    return value
