"""配置加载模块 - 从环境变量和 .env 文件加载配置。"""

from enum import Enum
from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from momentum_exit.types import MomentumFailureConfig

_DEFAULTS = MomentumFailureConfig()


class LogFormat(str, Enum):
    """日志格式枚举。"""

    JSON = "json"
    CONSOLE = "console"


class Settings(BaseSettings):
    """系统配置设置。

    从环境变量和 .env 文件加载配置。
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ==================== 检测器开关 ====================
    momentum_failure_enabled: bool = Field(default=True, description="是否启用动量衰竭退出检测")

    # ==================== 检测阈值 ====================
    min_profit_pct: float = Field(
        default=_DEFAULTS.min_profit_pct,
        ge=0.0,
        le=50.0,
        description="最低盈利门槛（百分比），低于此值不检测",
    )
    required_signals: int = Field(
        default=_DEFAULTS.required_signals,
        ge=1,
        le=3,
        description="触发退出所需信号数",
    )
    momentum_1h_failure_threshold: float = Field(
        default=_DEFAULTS.momentum_1h_failure_threshold,
        ge=-10.0,
        le=0.0,
        description="短周期画像 1h 动量阈值（百分比）",
    )
    momentum_4h_failure_threshold: float = Field(
        default=_DEFAULTS.momentum_4h_failure_threshold,
        ge=-10.0,
        le=0.0,
        description="长周期画像（已加仓）1h 动量阈值（百分比）",
    )
    htf_momentum_weakening: float = Field(
        default=_DEFAULTS.htf_momentum_weakening,
        ge=-10.0,
        le=0.0,
        description="4h 动量走弱阈值（百分比）",
    )
    volume_exhaustion_threshold_1h: float = Field(
        default=_DEFAULTS.volume_exhaustion_threshold_1h,
        gt=0.0,
        le=2.0,
        description="短周期画像成交量比阈值",
    )
    volume_exhaustion_threshold_4h: float = Field(
        default=_DEFAULTS.volume_exhaustion_threshold_4h,
        gt=0.0,
        le=2.0,
        description="长周期画像成交量比阈值",
    )
    price_near_peak_threshold: float = Field(
        default=_DEFAULTS.price_near_peak_threshold,
        gt=0.0,
        le=1.0,
        description="接近近期高点的价格比例",
    )
    pyramid_levels_for_long_profile: int = Field(
        default=_DEFAULTS.pyramid_levels_for_long_profile,
        ge=1,
        le=10,
        description="切换到长周期画像所需的加仓层数",
    )

    # ==================== 日志配置 ====================
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="日志级别",
    )
    log_format: LogFormat = Field(
        default=LogFormat.CONSOLE,
        description="日志输出格式",
    )

    # ==================== 数据存储 ====================
    journal_dir: Path = Field(
        default=Path("data/journal"),
        description="退出检测日志存储目录",
    )

    @field_validator("journal_dir", mode="before")
    @classmethod
    def parse_journal_dir(cls, v: str | Path) -> Path:
        """将字符串转换为 Path 对象。"""
        return Path(v) if isinstance(v, str) else v

    def ensure_directories(self) -> None:
        """确保必要的目录存在。"""
        self.journal_dir.mkdir(parents=True, exist_ok=True)

    def momentum_failure_config(self) -> MomentumFailureConfig:
        """构建检测器阈值配置。"""
        return MomentumFailureConfig(
            min_profit_pct=self.min_profit_pct,
            required_signals=self.required_signals,
            momentum_1h_failure_threshold=self.momentum_1h_failure_threshold,
            momentum_4h_failure_threshold=self.momentum_4h_failure_threshold,
            htf_momentum_weakening=self.htf_momentum_weakening,
            volume_exhaustion_threshold_1h=self.volume_exhaustion_threshold_1h,
            volume_exhaustion_threshold_4h=self.volume_exhaustion_threshold_4h,
            price_near_peak_threshold=self.price_near_peak_threshold,
            pyramid_levels_for_long_profile=self.pyramid_levels_for_long_profile,
        )


# 全局配置实例（延迟初始化）
_settings: Settings | None = None


def get_settings() -> Settings:
    """获取全局配置实例。"""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reload_settings() -> Settings:
    """重新加载配置。"""
    global _settings
    _settings = Settings()
    return _settings
