"""Indicator snapshot computation from 15m candles."""

from __future__ import annotations

import pandas as pd  # type: ignore[import-untyped]

from momentum_exit.types import TechnicalIndicators

MIN_CANDLES = 26
# 15m candles: 4 per hour, 16 per four hours.
_BARS_1H = 4
_BARS_4H = 16
_RECENT_WINDOW = 20
_REQUIRED_COLUMNS = ("open_time", "high", "low", "close", "volume")


def compute_momentum_indicators(df_15m: pd.DataFrame) -> TechnicalIndicators:
    """Compute the snapshot consumed by the momentum-failure detector."""
    if df_15m.empty:
        raise ValueError("input_ohlcv_empty")
    missing = [col for col in _REQUIRED_COLUMNS if col not in df_15m.columns]
    if missing:
        raise ValueError(f"ohlcv_missing_columns: {','.join(missing)}")
    if not _is_time_ascending(df_15m):
        raise ValueError("ohlcv_timestamp_not_ascending")
    if len(df_15m) < MIN_CANDLES:
        raise ValueError(f"insufficient_candles: {len(df_15m)} < {MIN_CANDLES}")

    close = df_15m["close"].astype(float)
    volume = df_15m["volume"].astype(float)
    recent = df_15m.iloc[-_RECENT_WINDOW:]

    ema_period = 200 if len(close) >= 200 else min(len(close), 50)

    return TechnicalIndicators(
        momentum_1h=_momentum_pct(close, _BARS_1H),
        momentum_4h=_momentum_pct(close, _BARS_4H),
        volume_ratio=_volume_ratio(volume, _RECENT_WINDOW),
        ema200=float(_ema(close, ema_period).iloc[-1]),
        recent_high=float(recent["high"].astype(float).max()),
        recent_low=float(recent["low"].astype(float).min()),
    )


def _momentum_pct(close: pd.Series, bars: int) -> float:
    if len(close) < bars:
        return 0.0
    base = float(close.iloc[-bars])
    if base == 0:
        return 0.0
    return (float(close.iloc[-1]) - base) / base * 100.0


def _volume_ratio(volume: pd.Series, window: int) -> float:
    avg = float(volume.iloc[-window:].mean())
    if avg <= 0:
        return 1.0
    return float(volume.iloc[-1]) / avg


def _is_time_ascending(df: pd.DataFrame) -> bool:
    return bool(pd.Series(df["open_time"]).is_monotonic_increasing)


def _ema(series: pd.Series, period: int) -> pd.Series:
    return series.ewm(span=period, adjust=False).mean()
