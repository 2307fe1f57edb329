"""CLI 入口模块 - 动量衰竭退出检测命令行接口。"""

import json
import sys
from dataclasses import asdict
from pathlib import Path
from typing import Any

import click

from momentum_exit import __version__
from momentum_exit.config import get_settings
from momentum_exit.journal.store import JournalStore
from momentum_exit.monitor import ExitMonitor
from momentum_exit.risk.momentum_failure import MomentumFailureDetector
from momentum_exit.types import OpenPosition, OpenTrade, TechnicalIndicators
from momentum_exit.utils.logging import get_logger, setup_logging


@click.group(invoke_without_command=True)
@click.option("--version", "-v", is_flag=True, help="显示版本号")
@click.pass_context
def cli(ctx: click.Context, version: bool) -> None:
    """Momentum Exit - 持仓动量衰竭退出检测。

    对已盈利持仓检查价格行为、成交量与高周期趋势三个信号，满足两个即建议平仓。
    """
    if version:
        click.echo(f"momentum-exit version {__version__}")
        return

    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


@cli.command()
@click.argument("input_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--journal/--no-journal",
    default=True,
    help="是否将检测事件写入 JSONL 日志",
)
def evaluate(input_file: Path, journal: bool) -> None:
    """对 JSON 文件中的持仓执行一次退出检测。

    输入格式: {"trades": [...], "prices": {pair: price}, "indicators": {pair: {...}}}
    """
    setup_logging()
    logger = get_logger("momentum_exit.main")
    settings = get_settings()

    try:
        payload = json.loads(input_file.read_text(encoding="utf-8"))
        trades, prices, indicators = _parse_payload(payload)
    except (OSError, ValueError, KeyError, TypeError, AttributeError) as e:
        logger.error("invalid_input", path=str(input_file), error=str(e))
        sys.exit(1)

    store = None
    if journal:
        settings.ensure_directories()
        store = JournalStore(settings.journal_dir)

    result = ExitMonitor(settings, journal=store).run_exit_check(trades, prices, indicators)
    logger.info(
        "exit_check_completed",
        status=result.status,
        elapsed_ms=round(result.elapsed_ms, 2),
        orders=len(result.orders),
        warnings=result.warnings,
    )
    click.echo(json.dumps(asdict(result), indent=2, default=str))


@cli.command()
@click.option("--pair", default="BTC/USD", show_default=True, help="交易对")
@click.option("--entry-price", type=float, default=None, help="开仓价格")
@click.option("--current-price", type=float, required=True, help="当前价格")
@click.option("--profit-pct", type=float, required=True, help="当前盈亏百分比")
@click.option("--pyramid-levels", type=int, default=0, show_default=True, help="已触发加仓层数")
@click.option("--momentum-1h", type=float, default=None, help="1h 动量（百分比）")
@click.option("--momentum-4h", type=float, default=None, help="4h 动量（百分比）")
@click.option("--volume-ratio", type=float, default=None, help="成交量比")
@click.option("--ema200", type=float, default=None, help="EMA200")
@click.option("--recent-high", type=float, default=None, help="近期高点")
def detect(
    pair: str,
    entry_price: float | None,
    current_price: float,
    profit_pct: float,
    pyramid_levels: int,
    momentum_1h: float | None,
    momentum_4h: float | None,
    volume_ratio: float | None,
    ema200: float | None,
    recent_high: float | None,
) -> None:
    """对单个持仓执行一次检测并输出结果。"""
    setup_logging()
    detector = MomentumFailureDetector.from_settings(get_settings())
    position = OpenPosition(
        pair=pair,
        entry_price=entry_price if entry_price is not None else current_price,
        current_price=current_price,
        profit_pct=profit_pct,
        pyramid_levels_activated=pyramid_levels,
    )
    indicators = TechnicalIndicators(
        momentum_1h=momentum_1h,
        momentum_4h=momentum_4h,
        volume_ratio=volume_ratio,
        ema200=ema200,
        recent_high=recent_high,
    )
    result = detector.detect_momentum_failure(position, indicators)
    click.echo(json.dumps(result.to_dict(), indent=2))


@cli.command()
def status() -> None:
    """显示检测器状态和阈值配置。"""
    setup_logging()
    settings = get_settings()
    detector = MomentumFailureDetector.from_settings(settings)
    cfg = detector.config

    click.echo("=" * 50)
    click.echo("Momentum Exit - Status")
    click.echo("=" * 50)
    click.echo()

    click.echo(f"Detector: {'[ON] Enabled' if detector.is_enabled() else '[OFF] Disabled'}")
    click.echo()

    click.echo("[Thresholds]")
    click.echo(f"   Min profit: {cfg.min_profit_pct}%")
    click.echo(f"   Required signals: {cfg.required_signals}/3")
    click.echo(f"   1h profile momentum: {cfg.momentum_1h_failure_threshold}%")
    click.echo(f"   1h profile volume: {cfg.volume_exhaustion_threshold_1h}x")
    click.echo(f"   4h profile momentum: {cfg.momentum_4h_failure_threshold}%")
    click.echo(f"   4h profile volume: {cfg.volume_exhaustion_threshold_4h}x")
    click.echo(f"   4h profile after pyramid levels: {cfg.pyramid_levels_for_long_profile}")
    click.echo(f"   HTF momentum weakening: {cfg.htf_momentum_weakening}%")
    click.echo(f"   Near peak: {cfg.price_near_peak_threshold * 100:.1f}% of recent high")
    click.echo()

    click.echo("[Logging]")
    click.echo(f"   Log level: {settings.log_level}")
    click.echo(f"   Log format: {settings.log_format.value}")
    click.echo(f"   Journal dir: {settings.journal_dir}")
    click.echo()
    click.echo("=" * 50)


def _parse_payload(
    payload: dict[str, Any],
) -> tuple[list[OpenTrade], dict[str, float], dict[str, TechnicalIndicators]]:
    trades = [
        OpenTrade(
            trade_id=str(row["trade_id"]),
            pair=str(row["pair"]),
            entry_price=float(row["entry_price"]),
            quantity=float(row["quantity"]),
            entry_time=str(row["entry_time"]),
            pyramid_levels_activated=int(row.get("pyramid_levels_activated", 0)),
        )
        for row in payload.get("trades", [])
    ]
    prices = {str(pair): float(price) for pair, price in payload.get("prices", {}).items()}
    indicators = {
        str(pair): TechnicalIndicators.from_mapping(values)
        for pair, values in payload.get("indicators", {}).items()
    }
    return trades, prices, indicators


# 支持 python -m momentum_exit.main 调用
if __name__ == "__main__":
    cli()
