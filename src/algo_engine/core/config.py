"""
Explicit engine configuration.

A single frozen EngineConfig is passed into every entry point; nothing reads
process-wide state at call time. ``EngineConfig.from_env`` exists for operators
who configure a deployment through environment variables and is only ever called
once, at wiring time.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from algo_engine.core.time_frame import TimeFrame


class ExecutionMode(Enum):
    BACKTEST = "backtest"
    LIVE = "live"

    @property
    def is_backtest(self) -> bool:
        return self is ExecutionMode.BACKTEST


class OrderEngine(Enum):
    BROKER = "broker"  # fills at the order's target price
    BOT = "bot"  # fills at the bar price


class ActivationSource(Enum):
    CLOSE = "close"
    HIGHS_LOWS = "highs_lows"
    CROSS = "cross"  # highs/lows, and the previous bar must be on the other side


@dataclass(frozen=True)
class EngineConfig:
    max_buy_orders: int = 1
    max_sell_orders: int = 1
    max_stop_losses: int = 1
    max_pending_orders: int = 3
    valid_until_bars: int = 10
    time_frame: TimeFrame = TimeFrame.H1
    order_with_spread: bool = False
    non_profitable_outs: bool = True
    order_engine: OrderEngine = OrderEngine.BOT
    order_activation_source: ActivationSource = ActivationSource.HIGHS_LOWS
    execution_mode: ExecutionMode = ExecutionMode.BACKTEST
    order_size: float = 1.0  # default trade size when a stop is placed on its own
    strict_target_validation: bool = False

    def __post_init__(self) -> None:
        for name in (
            "max_buy_orders",
            "max_sell_orders",
            "max_stop_losses",
            "max_pending_orders",
        ):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must be >= 0")
        if self.valid_until_bars <= 0:
            raise ValueError("valid_until_bars must be > 0")
        if self.order_size <= 0:
            raise ValueError("order_size must be > 0")

        # Accept plain strings for the enum-valued options
        object.__setattr__(self, "time_frame", TimeFrame.from_str(self.time_frame))
        object.__setattr__(self, "order_engine", OrderEngine(self.order_engine))
        object.__setattr__(
            self,
            "order_activation_source",
            ActivationSource(self.order_activation_source),
        )
        object.__setattr__(self, "execution_mode", ExecutionMode(self.execution_mode))

    @property
    def is_backtest(self) -> bool:
        return self.execution_mode.is_backtest

    def with_overrides(self, **overrides) -> "EngineConfig":
        """Return a copy with the given fields replaced."""
        return dataclasses.replace(self, **overrides)

    @classmethod
    def from_env(cls) -> "EngineConfig":
        """Build a config from environment variables; unset keys keep defaults."""
        settings = EngineEnvSettings()
        return cls(**settings.model_dump(exclude_none=True))


class EngineEnvSettings(BaseSettings):
    """Environment overrides for EngineConfig (``MAX_BUY_ORDERS``, ``TIME_FRAME``, ...)."""

    model_config = SettingsConfigDict(case_sensitive=False, extra="ignore")

    max_buy_orders: Optional[int] = None
    max_sell_orders: Optional[int] = None
    max_stop_losses: Optional[int] = None
    max_pending_orders: Optional[int] = None
    valid_until_bars: Optional[int] = None
    time_frame: Optional[str] = None
    order_with_spread: Optional[bool] = None
    non_profitable_outs: Optional[bool] = None
    order_engine: Optional[str] = None
    order_activation_source: Optional[str] = None
    execution_mode: Optional[str] = None
    order_size: Optional[float] = None
    strict_target_validation: Optional[bool] = None

    @field_validator("order_engine", "order_activation_source", "execution_mode")
    @classmethod
    def normalize_option(cls, v: Optional[str]) -> Optional[str]:
        return v.strip().lower() if v is not None else v
