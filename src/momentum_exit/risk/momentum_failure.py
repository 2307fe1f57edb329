"""Momentum-failure exit detection.

Three independent signals are checked on a position that is already in
profit:

1. Price action failure: price near its recent high while 1h momentum turns
   negative, or a sharp 1h reversal anywhere.
2. Volume exhaustion: volume below its rolling average.
3. HTF breakdown: 4h momentum weakening, or price below EMA200.

An exit is signalled when at least ``required_signals`` of them fire.
"""

from __future__ import annotations

from momentum_exit.config import Settings
from momentum_exit.types import (
    MomentumFailureConfig,
    MomentumFailureResult,
    OpenPosition,
    TechnicalIndicators,
    ThresholdProfile,
)
from momentum_exit.utils.logging import get_logger, log_exit_signal

_logger = get_logger("momentum_exit.risk.momentum_failure")


class MomentumFailureDetector:
    """Stateless rule-based exit detector."""

    def __init__(self, config: MomentumFailureConfig | None = None, *, enabled: bool = True) -> None:
        self._config = config or MomentumFailureConfig()
        self._enabled = enabled

    @classmethod
    def from_settings(cls, settings: Settings) -> "MomentumFailureDetector":
        return cls(settings.momentum_failure_config(), enabled=settings.momentum_failure_enabled)

    @property
    def config(self) -> MomentumFailureConfig:
        return self._config

    def is_enabled(self) -> bool:
        """Whether callers should run the detector at all."""
        return self._enabled

    def select_profile(self, position: OpenPosition) -> ThresholdProfile:
        """Pick 4h thresholds for pyramided (longer) holds, 1h thresholds otherwise."""
        cfg = self._config
        if position.pyramid_levels_activated >= cfg.pyramid_levels_for_long_profile:
            return ThresholdProfile(
                name="4h",
                momentum_threshold=cfg.momentum_4h_failure_threshold,
                volume_threshold=cfg.volume_exhaustion_threshold_4h,
            )
        return ThresholdProfile(
            name="1h",
            momentum_threshold=cfg.momentum_1h_failure_threshold,
            volume_threshold=cfg.volume_exhaustion_threshold_1h,
        )

    def detect_momentum_failure(
        self,
        position: OpenPosition,
        indicators: TechnicalIndicators,
    ) -> MomentumFailureResult:
        """Evaluate one position. Never raises on missing indicator values."""
        cfg = self._config
        result = MomentumFailureResult()

        if position.profit_pct < cfg.min_profit_pct:
            _logger.debug(
                "momentum_failure_check_skipped",
                pair=position.pair,
                profit_pct=position.profit_pct,
                min_required=cfg.min_profit_pct,
            )
            return result

        profile = self.select_profile(position)
        momentum_1h = _or_default(indicators.momentum_1h, 0.0)
        momentum_4h = _or_default(indicators.momentum_4h, 0.0)
        volume_ratio = _or_default(indicators.volume_ratio, 1.0)
        ema200 = _or_default(indicators.ema200, 0.0)
        # Zero or missing high means no peak-distance information.
        recent_high = indicators.recent_high or position.current_price

        signals = result.signals
        momentum_failing = momentum_1h < profile.momentum_threshold

        price_near_peak = position.current_price / recent_high if recent_high else 1.0
        if price_near_peak >= cfg.price_near_peak_threshold and momentum_failing:
            signals.price_action_failure = True
            result.reasoning.append(
                f"Price action failure: {price_near_peak * 100:.1f}% of peak, "
                f"1h momentum {momentum_1h:.2f}% (threshold: {profile.momentum_threshold:.2f}%)"
            )
        elif momentum_failing:
            signals.price_action_failure = True
            result.reasoning.append(
                f"Strong 1h reversal: momentum {momentum_1h:.2f}% "
                f"(threshold: {profile.momentum_threshold:.2f}%)"
            )

        if volume_ratio < profile.volume_threshold:
            signals.volume_exhaustion = True
            result.reasoning.append(
                f"Volume exhaustion: {volume_ratio:.2f}x "
                f"(threshold: {profile.volume_threshold:.2f}x)"
            )

        if momentum_4h < cfg.htf_momentum_weakening:
            signals.htf_breakdown = True
            result.reasoning.append(
                f"4h momentum weakening: {momentum_4h:.2f}% "
                f"(threshold: {cfg.htf_momentum_weakening:.2f}%)"
            )
        elif ema200 > 0 and position.current_price < ema200:
            signals.htf_breakdown = True
            result.reasoning.append(
                f"EMA200 breakdown: price ${position.current_price:.2f} < EMA200 ${ema200:.2f}"
            )

        result.signal_count = signals.count()
        result.should_exit = result.signal_count >= cfg.required_signals

        if result.should_exit:
            result.reasoning.append(
                f"EXIT TRIGGERED: {result.signal_count}/{cfg.required_signals} signals met "
                f"(profit: {position.profit_pct:.2f}%)"
            )
            log_exit_signal(
                _logger,
                pair=position.pair,
                profit_pct=position.profit_pct,
                signal_count=result.signal_count,
                profile=profile.name,
                reasoning=result.reasoning,
            )
        elif result.signal_count > 0:
            _logger.debug(
                "momentum_failure_insufficient_signals",
                pair=position.pair,
                profit_pct=position.profit_pct,
                signal_count=result.signal_count,
                required=cfg.required_signals,
                profile=profile.name,
            )

        return result


def detect_momentum_failure(
    position: OpenPosition,
    indicators: TechnicalIndicators,
    config: MomentumFailureConfig | None = None,
) -> MomentumFailureResult:
    """Run a one-off detection with the given (or default) thresholds."""
    return MomentumFailureDetector(config).detect_momentum_failure(position, indicators)


def _or_default(value: float | None, default: float) -> float:
    return default if value is None else float(value)
