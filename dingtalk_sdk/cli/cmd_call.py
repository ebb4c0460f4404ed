# !/usr/bin/env python
# -*- coding: utf-8 -*-
# =====================================================
# @File   ：cmd_call.py
# @Date   ：2026/10/17 11:00
# @Author ：leemysw
# 2026/10/17 11:00   Create
# =====================================================
"""
[INPUT]: 依赖 typer, dingtalk_sdk.core.client
[OUTPUT]: 对外提供 call 命令
[POS]: cli 模块的通用调用命令
[PROTOCOL]: 变更时更新此头部，然后检查 README.md
"""

import json
from typing import Any, Dict, List, Optional

import typer

from dingtalk_sdk.exceptions import DingTalkError, RateLimitFailure
from .common import build_client, console, load_config, parse_generation, parse_params


def call(
        method: str = typer.Argument(..., help="逻辑方法名，如 user.get"),
        param: Optional[List[str]] = typer.Option(
            None,
            "--param",
            "-p",
            help="请求参数 key=value（新版字段名），可多次指定",
        ),
        verb: str = typer.Option("POST", "--verb", "-X", help="HTTP 方法"),
        generation: Optional[str] = typer.Option(None, "--generation", "-g", help="固定 API 版本"),
        timeout: Optional[float] = typer.Option(None, "--timeout", help="请求超时（秒）"),
        app_key: Optional[str] = typer.Option(None, "--app-key", help="钉钉应用 AppKey"),
        app_secret: Optional[str] = typer.Option(None, "--app-secret", help="钉钉应用 AppSecret"),
):
    """
    调用钉钉 API，结果以 JSON 输出到 stdout

    参数使用新版 API 的字段名，旧版 API 会自动转换。

    示例:
        dingtalk-sdk call user.get -X GET -p userId=manager123
        dingtalk-sdk call department.list -X GET -p deptId=1 -g v1
    """
    params = parse_params(param)
    options: Dict[str, Any] = {}
    pinned = parse_generation(generation)
    if pinned is not None:
        options["generation"] = pinned
    if timeout is not None:
        options["timeout"] = timeout

    config = load_config(app_key, app_secret)
    if not config.has_credentials():
        console.print("[yellow]⚠️ 未配置 AppKey / AppSecret，运行 dingtalk-sdk config set 配置[/yellow]")

    with build_client(config) as client:
        try:
            result = client.call(method, params, verb, options)
        except RateLimitFailure as e:
            console.print(f"[red]❌ {e.message}[/red]\n[yellow]建议 {e.retry_after}s 后重试[/yellow]")
            raise typer.Exit(1)
        except DingTalkError as e:
            console.print(f"[red]❌ {e.message}[/red]")
            raise typer.Exit(1)

    typer.echo(json.dumps(result, indent=2, ensure_ascii=False))
