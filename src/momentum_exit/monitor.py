"""Momentum-failure exit pass over open trades."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from time import perf_counter
from typing import Iterable, Mapping

from momentum_exit.config import Settings
from momentum_exit.journal.store import JournalStore
from momentum_exit.risk.momentum_failure import MomentumFailureDetector
from momentum_exit.types import (
    ExitCheckResult,
    MomentumFailureResult,
    OpenPosition,
    OpenTrade,
    TechnicalIndicators,
)
from momentum_exit.utils.logging import get_logger, log_exit_order

EARLY_EXIT_MAX_AGE_MIN = 5.0


class ExitMonitor:
    """Runs the detector over every open trade and builds close orders."""

    def __init__(
        self,
        settings: Settings,
        *,
        journal: JournalStore | None = None,
        detector: MomentumFailureDetector | None = None,
    ) -> None:
        self._settings = settings
        self._journal = journal
        self._detector = detector or MomentumFailureDetector.from_settings(settings)
        self._logger = get_logger("momentum_exit.monitor")

    def run_exit_check(
        self,
        trades: Iterable[OpenTrade],
        prices: Mapping[str, float],
        indicators_by_pair: Mapping[str, TechnicalIndicators],
        *,
        now: datetime | None = None,
        already_closing: Iterable[str] = (),
    ) -> ExitCheckResult:
        """Evaluate open trades; one close order at most per trade id."""
        started = perf_counter()
        now = now or datetime.now(timezone.utc)
        result = ExitCheckResult(status="unknown")

        if not self._detector.is_enabled():
            self._logger.debug("momentum_failure_detector_disabled")
            return _finish(result, self._journal, started, status="disabled")

        open_trades = list(trades)
        if not open_trades:
            return _finish(result, self._journal, started, status="no_open_trades")

        closing = {str(trade_id) for trade_id in already_closing}
        if self._journal is not None:
            # Journal files are keyed by UTC day; include yesterday for orders near midnight.
            utc_day = _as_utc(now).date()
            closing |= self._journal.pending_exit_trade_ids(utc_day)
            closing |= self._journal.pending_exit_trade_ids(utc_day - timedelta(days=1))

        pairs = sorted({t.pair for t in open_trades})

        self._append(
            "exit_check_start",
            {
                "trade_count": len(open_trades),
                "pairs": pairs,
                "started_at": now.isoformat(),
            },
        )
        self._logger.info(
            "checking_open_trades",
            trade_count=len(open_trades),
            pairs=pairs,
        )

        for trade in open_trades:
            if trade.trade_id in closing:
                result.warnings.append(f"exit_already_pending:{trade.trade_id}")
                continue
            price = prices.get(trade.pair)
            if price is None:
                self._logger.warning("no_market_data", pair=trade.pair, trade_id=trade.trade_id)
                result.warnings.append(f"missing_market_data:{trade.pair}")
                continue
            indicators = indicators_by_pair.get(trade.pair)
            if indicators is None:
                self._logger.warning("no_indicators", pair=trade.pair, trade_id=trade.trade_id)
                result.warnings.append(f"missing_indicators:{trade.pair}")
                continue

            try:
                position = build_position(trade, float(price))
                detection = self._detector.detect_momentum_failure(position, indicators)
                result.evaluated.append(
                    {
                        "trade_id": trade.trade_id,
                        "pair": trade.pair,
                        "profit_pct": position.profit_pct,
                        **detection.to_dict(),
                    }
                )
                if not detection.should_exit:
                    continue

                order = build_close_order(trade, position, detection, now)
                closing.add(trade.trade_id)
                result.orders.append(order)
                self._append("exit_signal", {"trade_id": trade.trade_id, **detection.to_dict()})
                self._append("order", order)
                log_exit_order(
                    self._logger,
                    trade_id=trade.trade_id,
                    pair=trade.pair,
                    quantity=trade.quantity,
                    price=position.current_price,
                    reason=str(order["reason"]),
                    profit_loss_pct=round(position.profit_pct, 4),
                )
            except Exception as exc:  # noqa: BLE001 - one bad trade must not stop the pass.
                self._logger.exception(
                    "trade_evaluation_failed",
                    trade_id=trade.trade_id,
                    pair=trade.pair,
                    error=str(exc),
                )
                result.warnings.append(f"evaluation_failed:{trade.trade_id}")
                self._append("error", {"trade_id": trade.trade_id, "error": str(exc)})

        status = "exits_triggered" if result.orders else "no_exit"
        return _finish(result, self._journal, started, status=status)

    def _append(self, event_type: str, payload: dict[str, object]) -> None:
        if self._journal is not None:
            self._journal.append(event_type, payload)


def build_position(trade: OpenTrade, current_price: float) -> OpenPosition:
    """Mark a trade to market as an ``OpenPosition``."""
    if trade.entry_price <= 0:
        raise ValueError(f"entry_price_non_positive: {trade.entry_price}")
    profit_pct = (current_price - trade.entry_price) / trade.entry_price * 100.0
    return OpenPosition(
        pair=trade.pair,
        entry_price=trade.entry_price,
        current_price=current_price,
        profit_pct=profit_pct,
        pyramid_levels_activated=trade.pyramid_levels_activated,
    )


def classify_exit_reason(entry_time: str, now: datetime) -> str:
    """Exits within the first minutes of a trade are tagged early.

    Entry times without an offset are read as UTC; unparseable ones count as late.
    """
    try:
        opened_at = _as_utc(datetime.fromisoformat(entry_time))
    except (TypeError, ValueError):
        return "momentum_failure_late"
    age_min = (_as_utc(now) - opened_at).total_seconds() / 60
    if 0 < age_min < EARLY_EXIT_MAX_AGE_MIN:
        return "momentum_failure_early"
    return "momentum_failure_late"


def build_close_order(
    trade: OpenTrade,
    position: OpenPosition,
    detection: MomentumFailureResult,
    now: datetime,
) -> dict[str, object]:
    profit_loss = (position.current_price - trade.entry_price) * trade.quantity
    return {
        "action": "close",
        "trade_id": trade.trade_id,
        "pair": trade.pair,
        "side": "SELL",
        "qty": trade.quantity,
        "price": position.current_price,
        "reason": classify_exit_reason(trade.entry_time, now),
        "profit_loss": profit_loss,
        "profit_loss_pct": position.profit_pct,
        "signals": detection.to_dict()["signals"],
        "reasoning": list(detection.reasoning),
        "status": "pending",
        "timestamp": now.isoformat(),
    }


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _finish(
    result: ExitCheckResult,
    journal: JournalStore | None,
    started: float,
    *,
    status: str,
) -> ExitCheckResult:
    elapsed_ms = (perf_counter() - started) * 1000
    result.status = status
    result.elapsed_ms = elapsed_ms
    if journal is not None and status not in {"disabled", "no_open_trades"}:
        journal.append(
            "exit_check_end",
            {"status": status, "orders": len(result.orders), "elapsed_ms": elapsed_ms},
        )
    return result
