from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pandas as pd
import pytest

from momentum_exit.features.indicators import compute_momentum_indicators


def _build_ohlcv(rows: int, start_price: float, drift: float) -> pd.DataFrame:
    now = datetime.now(UTC)
    times = [now + timedelta(minutes=15 * i) for i in range(rows)]
    closes = [start_price + i * drift for i in range(rows)]
    return pd.DataFrame(
        {
            "open_time": times,
            "open": closes,
            "high": [c + 1 for c in closes],
            "low": [c - 1 for c in closes],
            "close": closes,
            "volume": [1000.0 for _ in range(rows)],
        }
    )


def test_compute_momentum_indicators_uptrend() -> None:
    df = _build_ohlcv(rows=60, start_price=100.0, drift=1.0)
    indicators = compute_momentum_indicators(df)

    assert indicators.momentum_1h == pytest.approx((159.0 - 156.0) / 156.0 * 100)
    assert indicators.momentum_4h == pytest.approx((159.0 - 144.0) / 144.0 * 100)
    assert indicators.volume_ratio == pytest.approx(1.0)
    assert indicators.recent_high == pytest.approx(160.0)
    assert indicators.recent_low == pytest.approx(139.0)
    assert indicators.ema200 is not None
    assert 100.0 < indicators.ema200 < 159.0


def test_volume_spike_raises_ratio() -> None:
    df = _build_ohlcv(rows=40, start_price=100.0, drift=-0.5)
    df.loc[df.index[-1], "volume"] = 3000.0
    indicators = compute_momentum_indicators(df)
    assert indicators.volume_ratio == pytest.approx(3000.0 / (19 * 1000.0 + 3000.0) * 20)
    assert indicators.momentum_1h is not None and indicators.momentum_1h < 0


def test_insufficient_candles_rejected() -> None:
    with pytest.raises(ValueError, match="insufficient_candles"):
        compute_momentum_indicators(_build_ohlcv(rows=10, start_price=100.0, drift=1.0))


def test_descending_timestamps_rejected() -> None:
    df = _build_ohlcv(rows=30, start_price=100.0, drift=1.0).iloc[::-1].reset_index(drop=True)
    with pytest.raises(ValueError, match="ohlcv_timestamp_not_ascending"):
        compute_momentum_indicators(df)


def test_empty_frame_rejected() -> None:
    with pytest.raises(ValueError, match="input_ohlcv_empty"):
        compute_momentum_indicators(pd.DataFrame())


def test_missing_columns_rejected() -> None:
    df = _build_ohlcv(rows=30, start_price=100.0, drift=1.0).drop(columns=["open_time"])
    with pytest.raises(ValueError, match="ohlcv_missing_columns: open_time"):
        compute_momentum_indicators(df)
