"""Shared domain types for momentum-failure exit detection."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Literal, Mapping

ProfileName = Literal["1h", "4h"]

_INDICATOR_KEYS = {
    "momentum_1h": ("momentum_1h", "momentum1h"),
    "momentum_4h": ("momentum_4h", "momentum4h"),
    "volume_ratio": ("volume_ratio", "volumeRatio"),
    "ema200": ("ema200", "ema_200"),
    "recent_high": ("recent_high", "recentHigh"),
    "recent_low": ("recent_low", "recentLow"),
}


@dataclass(slots=True)
class OpenPosition:
    """Open long position as seen by the exit detector."""

    pair: str
    entry_price: float
    current_price: float
    profit_pct: float
    pyramid_levels_activated: int = 0


@dataclass(slots=True)
class TechnicalIndicators:
    """Indicator snapshot. ``None`` means the value was not supplied."""

    momentum_1h: float | None = None
    momentum_4h: float | None = None
    volume_ratio: float | None = None
    ema200: float | None = None
    recent_high: float | None = None
    recent_low: float | None = None

    @classmethod
    def from_mapping(cls, payload: Mapping[str, Any]) -> "TechnicalIndicators":
        """Build from a dict with snake_case or camelCase keys."""
        values: dict[str, float | None] = {}
        for name, aliases in _INDICATOR_KEYS.items():
            raw = None
            for alias in aliases:
                if payload.get(alias) is not None:
                    raw = payload[alias]
                    break
            values[name] = None if raw is None else float(raw)
        return cls(**values)


@dataclass(slots=True)
class MomentumFailureSignals:
    """The three independent exit signals."""

    price_action_failure: bool = False
    volume_exhaustion: bool = False
    htf_breakdown: bool = False

    def count(self) -> int:
        return sum((self.price_action_failure, self.volume_exhaustion, self.htf_breakdown))


@dataclass(slots=True)
class MomentumFailureResult:
    """Outcome of one momentum-failure evaluation."""

    should_exit: bool = False
    signals: MomentumFailureSignals = field(default_factory=MomentumFailureSignals)
    signal_count: int = 0
    reasoning: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True, slots=True)
class MomentumFailureConfig:
    """Detector thresholds. Momentum values are in percent, like the indicators."""

    min_profit_pct: float = 2.0
    required_signals: int = 2
    momentum_1h_failure_threshold: float = -0.5
    momentum_4h_failure_threshold: float = -0.3
    htf_momentum_weakening: float = -0.5
    volume_exhaustion_threshold_1h: float = 0.8
    volume_exhaustion_threshold_4h: float = 0.9
    price_near_peak_threshold: float = 0.985
    pyramid_levels_for_long_profile: int = 1


@dataclass(frozen=True, slots=True)
class ThresholdProfile:
    """Momentum/volume thresholds selected for one position."""

    name: ProfileName
    momentum_threshold: float
    volume_threshold: float


@dataclass(slots=True)
class OpenTrade:
    """Open trade row handed to the exit monitor."""

    trade_id: str
    pair: str
    entry_price: float
    quantity: float
    entry_time: str
    pyramid_levels_activated: int = 0


@dataclass(slots=True)
class ExitCheckResult:
    """Outcome of one exit-check pass over open trades."""

    status: str
    evaluated: list[dict[str, object]] = field(default_factory=list)
    orders: list[dict[str, object]] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    elapsed_ms: float = 0.0
