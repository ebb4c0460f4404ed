# !/usr/bin/env python
# -*- coding: utf-8 -*-
# =====================================================
# @File   ：main.py
# @Date   ：2026/10/17 10:00
# @Author ：leemysw
# 2026/10/17 10:00   Create
# 2026/10/18 16:20   Add compat command
# =====================================================
"""
[INPUT]: 依赖 typer, 各命令子模块
[OUTPUT]: 对外提供 app (Typer 应用) 作为 CLI 入口
[POS]: cli 模块的主入口，组装所有命令
[PROTOCOL]: 变更时更新此头部，然后检查 README.md
"""

import typer

from dingtalk_sdk import __version__
from .common import console

# ==============================================================================
# 创建 Typer 应用
# ==============================================================================
app = typer.Typer(
    name="dingtalk-sdk",
    help="🔀 钉钉 API 多版本兼容 SDK",
    add_completion=True,
    no_args_is_help=True,
    rich_markup_mode="rich",
)


# ==============================================================================
# 版本回调
# ==============================================================================
def version_callback(value: bool):
    if value:
        console.print(f"[bold blue]dingtalk-sdk[/bold blue] version [green]{__version__}[/green]")
        raise typer.Exit()


# ==============================================================================
# 主回调
# ==============================================================================
@app.callback()
def main(
        version: bool = typer.Option(
            None,
            "--version",
            "-v",
            help="显示版本号",
            callback=version_callback,
            is_eager=True,
        ),
):
    """
    🔀 钉钉 API 多版本兼容 SDK

    自动检测旧版 / 新版 API，并在两者之间转换参数和响应。
    """
    pass


# ==============================================================================
# 注册命令 - 版本检测
# ==============================================================================
from .cmd_detect import compat, detect, features

app.command()(detect)
app.command()(features)
app.command()(compat)

# ==============================================================================
# 注册命令 - 调用
# ==============================================================================
from .cmd_call import call

app.command()(call)

# ==============================================================================
# 配置命令组
# ==============================================================================
from .cmd_config import config_clear, config_set, config_show

config_app = typer.Typer(help="[dim]❄[/] 配置管理", rich_markup_mode="rich")
app.add_typer(config_app, name="config")

config_app.command("set")(config_set)
config_app.command("show")(config_show)
config_app.command("clear")(config_clear)

# ==============================================================================
# 入口点
# ==============================================================================
if __name__ == "__main__":
    app()
