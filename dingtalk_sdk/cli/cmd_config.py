# !/usr/bin/env python
# -*- coding: utf-8 -*-
# =====================================================
# @File   ：cmd_config.py
# @Date   ：2026/10/17 11:20
# @Author ：leemysw
# 2026/10/17 11:20   Create
# =====================================================
"""
[INPUT]: 依赖 typer, dingtalk_sdk.utils.config
[OUTPUT]: 对外提供 config_set, config_show, config_clear 命令
[POS]: cli 模块的配置管理命令
[PROTOCOL]: 变更时更新此头部，然后检查 README.md
"""

import os
from typing import Optional

import typer
from rich.panel import Panel
from rich.table import Table

from dingtalk_sdk.utils.config import AppConfig, get_config_dir
from .common import console, mask, parse_generation


# ==============================================================================
# config set 命令
# ==============================================================================


def config_set(
        app_key: Optional[str] = typer.Option(None, "--app-key", help="钉钉应用 AppKey"),
        app_secret: Optional[str] = typer.Option(None, "--app-secret", help="钉钉应用 AppSecret"),
        api_version: Optional[str] = typer.Option(
            None,
            "--api-version",
            help="API 版本: auto (默认，自动检测) / v1 / v2",
        ),
        fallback_version: Optional[str] = typer.Option(None, "--fallback-version", help="检测失败时的兜底版本"),
        created_at: Optional[str] = typer.Option(None, "--created-at", help="应用创建时间"),
):
    """
    设置钉钉应用凭证和 API 版本偏好

    示例:
        dingtalk-sdk config set --app-key dingxxx --app-secret xxx
        dingtalk-sdk config set --api-version v2
    """
    config = AppConfig.load()

    # 更新配置（只更新传入的值）
    if app_key:
        config.app_key = app_key
    if app_secret:
        config.app_secret = app_secret
    if api_version:
        config.set("api.version", parse_generation(api_version).value)
    if fallback_version:
        fallback = parse_generation(fallback_version)
        if not fallback.is_concrete:
            console.print("[red]❌ 兜底版本必须是 v1 或 v2[/red]")
            raise typer.Exit(1)
        config.set("api.fallback_version", fallback.value)
    if created_at:
        config.set("app.created_at", created_at)

    # 交互式输入缺失的值
    if not config.app_key:
        config.app_key = typer.prompt("AppKey")
    if not config.app_secret:
        config.app_secret = typer.prompt("AppSecret", hide_input=True)

    config.save()

    console.print(Panel(
        f"✅ 配置已保存至: [cyan]{config.config_file}[/cyan]\n\n"
        f"AppKey: [green]{mask(config.app_key)}[/green]\n"
        f"AppSecret: [dim]已保存（已隐藏）[/dim]\n"
        f"API 版本: [blue]{config.get('api.version')}[/blue]\n\n"
        "现在你可以直接运行：\n"
        "  [cyan]dingtalk-sdk detect[/cyan] - 检测 API 版本",
        title="配置成功",
        border_style="green",
    ))


# ==============================================================================
# config show 命令
# ==============================================================================


def config_show():
    """显示当前配置"""
    config = AppConfig.load()

    table = Table(title="当前配置")
    table.add_column("配置项", style="cyan")
    table.add_column("来源", style="dim")
    table.add_column("值", style="green")

    # AppKey
    if os.getenv("DINGTALK_APP_KEY"):
        table.add_row("AppKey", "环境变量", mask(config.app_key))
    elif config.app_key:
        table.add_row("AppKey", "配置文件", mask(config.app_key))
    else:
        table.add_row("AppKey", "-", "[dim]未设置[/dim]")

    # AppSecret
    if os.getenv("DINGTALK_APP_SECRET"):
        table.add_row("AppSecret", "环境变量", "[dim]已设置（已隐藏）[/dim]")
    elif config.app_secret:
        table.add_row("AppSecret", "配置文件", "[dim]已设置（已隐藏）[/dim]")
    else:
        table.add_row("AppSecret", "-", "[dim]未设置[/dim]")

    version_source = "环境变量" if os.getenv("DINGTALK_API_VERSION") else "配置文件"
    table.add_row("API 版本", version_source, str(config.get("api.version")))
    table.add_row("兜底版本", "配置文件", str(config.get("api.fallback_version", "-")))
    table.add_row("应用创建时间", "配置文件", str(config.get("app.created_at", "-")))
    table.add_row("配置文件", "-", "存在" if config.config_file.exists() else "❌ 不存在")
    table.add_row("配置目录", "-", str(get_config_dir()))

    console.print(table)

    # 提示
    if not config.has_credentials():
        console.print("\n[yellow]💡 提示: 运行以下命令配置凭证[/yellow]")
        console.print("   [cyan]dingtalk-sdk config set --app-key xxx --app-secret xxx[/cyan]")


# ==============================================================================
# config clear 命令
# ==============================================================================


def config_clear(
        force: bool = typer.Option(False, "--force", "-f", help="跳过确认"),
):
    """清除配置文件"""
    config = AppConfig.load()

    if not config.config_file.exists():
        console.print("[yellow]没有可清除的配置[/yellow]")
        return

    if not force:
        if not typer.confirm("确定要清除配置文件吗？"):
            console.print("已取消")
            raise typer.Abort()

    config.clear()
    console.print("[green]✅ 配置文件已清除[/green]")
