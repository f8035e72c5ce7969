"""MathWorld CLI 入口：无界面地推进模拟并打印世界状况。"""

from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from mathworld.engine.turn import TurnReport, TurnRunner
from mathworld.models.character import dominant_emotion
from mathworld.state.scenario import (
    Scenario,
    build_world,
    default_scenario,
    load_scenario_from_yaml,
)
from mathworld.state.world_state import WorldState

console = Console()
logger = logging.getLogger("mathworld")


def _load_scenario(path: str | None) -> Scenario:
    if path is None:
        return default_scenario()
    src = Path(path)
    if not src.exists():
        console.print(f"[red]文件不存在: {src}[/red]")
        sys.exit(1)
    if src.suffix.lower() not in {".yaml", ".yml"}:
        raise ValueError(f"仅支持 YAML 场景文件: {src}")
    return load_scenario_from_yaml(src)


def _resolve_seed(arg_seed: int | None) -> int | None:
    """命令行参数优先，其次是环境变量 MATHWORLD_SEED。"""
    if arg_seed is not None:
        return arg_seed
    env_seed = os.environ.get("MATHWORLD_SEED", "").strip()
    return int(env_seed) if env_seed else None


# ──────────────────────────────────────────
# 展示
# ──────────────────────────────────────────


def display_characters(world: WorldState, runner: TurnRunner | None = None) -> None:
    table = Table(title="角色状态", show_lines=True)
    table.add_column("角色", style="cyan")
    table.add_column("地点", style="white")
    table.add_column("资源/权力", style="yellow")
    table.add_column("情绪", style="magenta")
    table.add_column("健康", style="red")

    for character in world.get_all_characters():
        emotion = character.emotion
        emotions = (
            f"信任:{emotion.trust:.2f} 恐惧:{emotion.fear:.2f} 愤怒:{emotion.anger:.2f}\n"
            f"喜悦:{emotion.joy:.2f} 绝望:{emotion.despair:.2f}\n"
            f"主导: {dominant_emotion(character).value}"
        )
        health = "-"
        if runner is not None:
            status = runner.disease.get_health_status(character.id)
            health = status.state.value if status else "-"
        name = f"{character.title} {character.name}".strip()
        if character.is_player:
            name += " (玩家)"
        table.add_row(
            name,
            character.location,
            f"{character.resources} / {character.power}",
            emotions,
            health,
        )
    console.print(table)


def display_relations(world: WorldState) -> None:
    table = Table(title="关系网络")
    table.add_column("从", style="cyan")
    table.add_column("到", style="cyan")
    table.add_column("信任", justify="right")
    table.add_column("畏惧", justify="right")
    table.add_column("尊重", justify="right")
    table.add_column("人情债", justify="right")
    for from_id, to_id, rel in world.relations.iter_edges():
        table.add_row(
            from_id, to_id, f"{rel.trust:+.2f}", f"{rel.fear:.2f}",
            f"{rel.respect:+.2f}", f"{rel.debt:.0f}",
        )
    console.print(table)


def display_simulations(runner: TurnRunner) -> None:
    economy = runner.economy.get_summary()
    table = Table(title=f"经济（通胀 {economy.inflation_rate:.3f}）")
    table.add_column("商品", style="cyan")
    table.add_column("平均价格", justify="right")
    for goods, price in economy.avg_prices.items():
        table.add_row(goods.value, f"{price:.1f}")
    console.print(table)

    eco_table = Table(title="生态")
    eco_table.add_column("地点", style="cyan")
    eco_table.add_column("物种", style="green")
    eco_table.add_column("稳定度", justify="right")
    for location_id in runner.ecosystem.ecosystems:
        info = runner.ecosystem.get_ecosystem_info(location_id)
        species = ", ".join(f"{s.name}:{s.population}" for s in info.species)
        eco_table.add_row(location_id, species, f"{info.stability:.2f}")
    console.print(eco_table)

    weather = runner.weather.get_summary()
    forecast = " → ".join(w.value for w in weather.forecast)
    console.print(
        Panel(
            f"{runner.weather.describe()}\n预报: {forecast}\n\n{runner.disease.describe()}",
            title="天气与疫情",
        )
    )


def display_report(report: TurnReport) -> None:
    for event in report.all_events:
        console.print(f"  [dim]#{report.turn}[/dim] [{event.type.value}] {event.description}")
    for line in report.change_summary:
        console.print(f"  [italic]{line}[/italic]")


# ──────────────────────────────────────────
# 命令
# ──────────────────────────────────────────


def cmd_run(args: argparse.Namespace) -> None:
    scenario = _load_scenario(args.scenario)
    seed = _resolve_seed(args.seed)
    logger.debug("随机种子: %s", seed)
    world = build_world(scenario, seed=seed)
    runner = TurnRunner(world)

    console.print(
        Panel(
            f"场景: [bold]{scenario.name}[/bold]\n{scenario.description}\n"
            f"回合数: {args.turns}  种子: {seed if seed is not None else '随机'}",
            title="MathWorld",
        )
    )
    if args.outbreak:
        if not runner.disease.start_outbreak(args.outbreak):
            console.print(f"[yellow]无法爆发疾病: {args.outbreak}[/yellow]")

    player = next((c for c in world.get_all_characters() if c.is_player), None)
    for _ in range(args.turns):
        report = runner.run_turn(player_id=player.id if player else None)
        display_report(report)

    display_characters(world, runner)
    display_relations(world)
    display_simulations(runner)
    snapshot = world.snapshot()
    console.print(
        f"[bold green]模拟结束[/bold green]：第 {snapshot.time} 回合，"
        f"{snapshot.global_state.season.value}，共 {snapshot.event_count} 个事件"
    )


def cmd_inspect(args: argparse.Namespace) -> None:
    scenario = _load_scenario(args.scenario)
    world = build_world(scenario)
    console.print(Panel(f"[bold]{scenario.name}[/bold]\n{scenario.description}", title="场景"))

    table = Table(title="地点", show_lines=True)
    table.add_column("ID", style="cyan")
    table.add_column("名称")
    table.add_column("类型", style="yellow")
    table.add_column("人口", justify="right")
    table.add_column("相连", style="green")
    for location in world.get_all_locations():
        table.add_row(
            location.id, location.name, location.type.value,
            str(location.population), ", ".join(location.connected_to),
        )
    console.print(table)
    display_characters(world)
    display_relations(world)


def main() -> None:
    """CLI 主入口。"""
    from dotenv import load_dotenv
    load_dotenv()

    parser = argparse.ArgumentParser(
        prog="mathworld",
        description="MathWorld - 数学驱动的世界模拟内核",
    )
    subparsers = parser.add_subparsers(dest="command", help="可用命令")

    run_parser = subparsers.add_parser("run", help="推进若干回合并输出世界状况")
    run_parser.add_argument("scenario", nargs="?", default=None, help="场景 YAML 路径（缺省为内置王国）")
    run_parser.add_argument("--turns", type=int, default=30, help="推进的回合数")
    run_parser.add_argument("--seed", type=int, default=None, help="随机种子（亦可用 MATHWORLD_SEED）")
    run_parser.add_argument("--outbreak", default=None, help="开局爆发的疾病 ID，如 plague")
    run_parser.add_argument("--verbose", "-v", action="store_true", help="输出调试日志")

    inspect_parser = subparsers.add_parser("inspect", help="查看场景的初始状态")
    inspect_parser.add_argument("scenario", nargs="?", default=None, help="场景 YAML 路径")
    inspect_parser.add_argument("--verbose", "-v", action="store_true", help="输出调试日志")

    args = parser.parse_args()

    # 配置日志
    log_level = logging.DEBUG if getattr(args, "verbose", False) else logging.INFO
    logging.basicConfig(
        level=log_level,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_time=False, show_path=False)],
    )

    if args.command == "run":
        cmd_run(args)
    elif args.command == "inspect":
        cmd_inspect(args)
    else:
        parser.print_help()


if __name__ == "__main__":
    main()
