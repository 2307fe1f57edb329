"""结构化日志配置模块。

使用 structlog 提供结构化日志支持，支持 JSON 和控制台两种输出格式。
"""

import logging
import sys
from typing import Any

import structlog
from structlog.types import Processor

from momentum_exit.config import LogFormat, get_settings


def setup_logging() -> None:
    """配置结构化日志系统。

    根据配置设置日志级别和输出格式。
    """
    settings = get_settings()

    # 设置标准库日志级别
    log_level = getattr(logging, settings.log_level)
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=log_level,
    )

    # 共享处理器
    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if settings.log_format == LogFormat.JSON:
        processors: list[Processor] = [
            *shared_processors,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        # 控制台格式输出（带颜色）
        processors = [
            *shared_processors,
            structlog.dev.ConsoleRenderer(colors=True),
        ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """获取结构化日志记录器。

    Args:
        name: 日志记录器名称。如果为 None，则使用调用模块名。

    Returns:
        结构化日志记录器实例。
    """
    return structlog.get_logger(name)


def log_exit_signal(
    logger: structlog.stdlib.BoundLogger,
    *,
    pair: str,
    profit_pct: float,
    signal_count: int,
    **kwargs: Any,
) -> None:
    """记录退出信号。"""
    logger.info(
        "momentum_failure_detected",
        pair=pair,
        profit_pct=round(profit_pct, 4),
        signal_count=signal_count,
        **kwargs,
    )


def log_exit_order(
    logger: structlog.stdlib.BoundLogger,
    *,
    trade_id: str,
    pair: str,
    quantity: float,
    price: float,
    reason: str,
    status: str = "pending",
    **kwargs: Any,
) -> None:
    """记录平仓指令。"""
    logger.info(
        "exit_order",
        trade_id=trade_id,
        pair=pair,
        quantity=quantity,
        price=price,
        reason=reason,
        status=status,
        **kwargs,
    )
