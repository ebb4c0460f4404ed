# !/usr/bin/env python
# -*- coding: utf-8 -*-
# =====================================================
# @File   ：cmd_detect.py
# @Date   ：2026/10/17 10:30
# @Author ：leemysw
# 2026/10/17 10:30   Create
# =====================================================
"""
[INPUT]: 依赖 typer, rich, dingtalk_sdk.core
[OUTPUT]: 对外提供 detect, features, compat 命令
[POS]: cli 模块的版本检测与兼容性查询命令
[PROTOCOL]: 变更时更新此头部，然后检查 README.md
"""

from typing import Any, Dict, List, Optional

import typer
from rich.panel import Panel
from rich.table import Table

from dingtalk_sdk.core.generation import CONCRETE_GENERATIONS, FeatureCatalog
from dingtalk_sdk.exceptions import DingTalkError
from .common import build_client, console, load_config, parse_generation


# ==============================================================================
# detect 命令
# ==============================================================================


def detect(
        generation: Optional[str] = typer.Option(
            None,
            "--generation",
            "-g",
            help="显式指定版本 (v1 / v2 / legacy / current)，指定后不再检测",
        ),
        strategy: Optional[List[str]] = typer.Option(
            None,
            "--strategy",
            "-s",
            help="检测策略，可多次指定: config / app_time / connectivity / feature / compatibility",
        ),
        feature: Optional[List[str]] = typer.Option(
            None,
            "--feature",
            "-f",
            help="需要的功能，可多次指定，如 advanced_search",
        ),
        created_at: Optional[str] = typer.Option(
            None,
            "--created-at",
            help="应用创建时间（Unix 时间戳或 ISO 8601）",
        ),
):
    """
    检测应该使用的 API 版本

    示例:
        dingtalk-sdk detect
        dingtalk-sdk detect -s feature -f advanced_search
        dingtalk-sdk detect -s app_time --created-at 2022-06-01
    """
    options: Dict[str, Any] = {}
    pinned = parse_generation(generation)
    if pinned is not None:
        options["generation"] = pinned
    if strategy:
        options["strategies"] = strategy
    if feature:
        options["required_features"] = feature
    if created_at:
        options["created_at"] = created_at

    with build_client(load_config()) as client:
        try:
            resolved = client.resolve_generation(options)
        except DingTalkError as e:
            console.print(f"[red]❌ 检测失败: {e.message}[/red]")
            raise typer.Exit(1)
        stats = client.selector.stats()

    console.print(Panel(
        f"API 版本: [bold green]{resolved}[/bold green]\n"
        f"检测策略: {', '.join(strategy) if strategy else '默认顺序'}\n"
        f"使用兜底版本: {'是' if stats.fallback_used else '否'}",
        title="版本检测",
        border_style="blue",
    ))


# ==============================================================================
# features 命令
# ==============================================================================


def features(
        generation: Optional[str] = typer.Argument(None, help="只显示该版本支持的功能"),
):
    """列出各 API 版本支持的功能"""
    catalog = FeatureCatalog()
    pinned = parse_generation(generation)
    generations = [pinned] if pinned is not None and pinned.is_concrete else CONCRETE_GENERATIONS

    table = Table(title="功能支持")
    table.add_column("功能", style="cyan")
    for g in generations:
        table.add_column(str(g), justify="center")

    names = sorted({name for g in generations for name in catalog.features_for(g)})
    for name in names:
        table.add_row(name, *["✅" if catalog.is_supported(name, g) else "-" for g in generations])

    console.print(table)


# ==============================================================================
# compat 命令
# ==============================================================================


def compat(
        generation: str = typer.Argument(..., help="要检查的 API 版本"),
        feature: Optional[List[str]] = typer.Option(None, "--feature", "-f", help="需要的功能，可多次指定"),
):
    """检查运行环境与某个 API 版本的兼容性"""
    pinned = parse_generation(generation)
    if pinned is None or not pinned.is_concrete:
        console.print("[red]❌ 请指定具体版本: v1 或 v2[/red]")
        raise typer.Exit(1)

    with build_client(load_config()) as client:
        report = client.compatibility_report(pinned, feature or None)

    lines = [f"兼容: {'[green]是[/green]' if report.compatible else '[red]否[/red]'}"]
    if report.issues:
        lines.append("\n[bold]问题:[/bold]")
        lines.extend(f"  • {issue}" for issue in report.issues)
    if report.recommendations:
        lines.append("\n[bold]建议:[/bold]")
        lines.extend(f"  • {tip}" for tip in report.recommendations)

    console.print(Panel(
        "\n".join(lines),
        title=f"{pinned} 兼容性报告",
        border_style="green" if report.compatible else "red",
    ))
    if not report.compatible:
        raise typer.Exit(2)
