from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Pricing:
    """Bid/ask snapshot for the traded symbol at the current step."""

    symbol: str = ""
    ask: float = 0.0
    bid: float = 0.0
    spread: float = 0.0
    pip_size: float = 0.0001
    percentage: float = 0.0

    def __post_init__(self) -> None:
        if self.spread < 0:
            raise ValueError("spread must be >= 0")
        if self.pip_size <= 0:
            raise ValueError("pip_size must be > 0")

    @classmethod
    def from_quotes(cls, symbol: str, ask: float, bid: float, pip_size: float = 0.0001) -> "Pricing":
        return cls(symbol=symbol, ask=ask, bid=bid, spread=ask - bid, pip_size=pip_size)
