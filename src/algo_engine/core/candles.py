"""
Candle window: OHLCV bars held as NumPy arrays.

Mirrors the array layout used by the data providers ('Close Time', 'Open', 'High',
'Low', 'Close', 'Volume') plus an 'Is Closed' flag for live bars that are still
forming. Backtests load a fixed-length window; live feeds append bars one by one.
All timestamps are naive UTC.
"""

from __future__ import annotations

import datetime as dt
from dataclasses import dataclass
from typing import Dict, Iterable, Iterator, Optional

import numpy as np
import pandas as pd

COLUMNS = ("Close Time", "Open", "High", "Low", "Close", "Volume", "Is Closed")


def utc_now() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc).replace(tzinfo=None)


def to_datetime(value) -> dt.datetime:
    """Normalize numpy/pandas/str timestamps to a naive UTC datetime."""
    ts = pd.Timestamp(value)
    if ts.tz is not None:
        ts = ts.tz_convert("UTC").tz_localize(None)
    return ts.to_pydatetime()


def generate_ts_id(date) -> int:
    """Time-derived identifier: milliseconds since the epoch."""
    return int(pd.Timestamp(to_datetime(date)).value // 1_000_000)


@dataclass(frozen=True)
class Candle:
    date: dt.datetime
    open: float
    high: float
    low: float
    close: float
    volume: float = 0.0
    is_closed: bool = True

    @property
    def ts_id(self) -> int:
        return generate_ts_id(self.date)


class CandleWindow:
    """Indexable, ordered sequence of bars for a single instrument."""

    def __init__(self, arrays: Dict[str, np.ndarray]) -> None:
        missing = [c for c in COLUMNS[:5] if c not in arrays]
        if missing:
            raise ValueError(f"Candle arrays missing columns: {missing}")

        size = len(arrays["Close"])
        self.arrays: Dict[str, np.ndarray] = {
            "Close Time": np.asarray(arrays["Close Time"]).astype("datetime64[ns]"),
            "Open": np.asarray(arrays["Open"], dtype=float),
            "High": np.asarray(arrays["High"], dtype=float),
            "Low": np.asarray(arrays["Low"], dtype=float),
            "Close": np.asarray(arrays["Close"], dtype=float),
            "Volume": np.asarray(
                arrays.get("Volume", np.zeros(size)), dtype=float
            ),
            "Is Closed": np.asarray(
                arrays.get("Is Closed", np.ones(size, dtype=bool)), dtype=bool
            ),
        }
        lengths = {len(v) for v in self.arrays.values()}
        if len(lengths) != 1:
            raise ValueError("All candle arrays must have the same length")

    @classmethod
    def from_candles(cls, candles: Iterable[Candle]) -> "CandleWindow":
        candles = list(candles)
        return cls(
            {
                "Close Time": np.array(
                    [np.datetime64(c.date, "ns") for c in candles], dtype="datetime64[ns]"
                ),
                "Open": np.array([c.open for c in candles], dtype=float),
                "High": np.array([c.high for c in candles], dtype=float),
                "Low": np.array([c.low for c in candles], dtype=float),
                "Close": np.array([c.close for c in candles], dtype=float),
                "Volume": np.array([c.volume for c in candles], dtype=float),
                "Is Closed": np.array([c.is_closed for c in candles], dtype=bool),
            }
        )

    @classmethod
    def from_dataframe(cls, df: pd.DataFrame) -> "CandleWindow":
        """Build from a frame with a DatetimeIndex or a 'Close Time' column."""
        if "Close Time" in df.columns:
            times = pd.to_datetime(df["Close Time"], utc=True)
        else:
            times = pd.to_datetime(df.index, utc=True).to_series(index=df.index)
        arrays = {
            "Close Time": times.dt.tz_localize(None).values.astype("datetime64[ns]"),
            "Open": df["Open"].values.astype(float),
            "High": df["High"].values.astype(float),
            "Low": df["Low"].values.astype(float),
            "Close": df["Close"].values.astype(float),
        }
        if "Volume" in df.columns:
            arrays["Volume"] = df["Volume"].values.astype(float)
        if "Is Closed" in df.columns:
            arrays["Is Closed"] = df["Is Closed"].values.astype(bool)
        return cls(arrays)

    def __len__(self) -> int:
        return len(self.arrays["Close"])

    def __iter__(self) -> Iterator[Candle]:
        for idx in range(len(self)):
            yield self[idx]

    def __getitem__(self, index: int) -> Candle:
        a = self.arrays
        return Candle(
            date=to_datetime(a["Close Time"][index]),
            open=float(a["Open"][index]),
            high=float(a["High"][index]),
            low=float(a["Low"][index]),
            close=float(a["Close"][index]),
            volume=float(a["Volume"][index]),
            is_closed=bool(a["Is Closed"][index]),
        )

    def get(self, index: int) -> Optional[Candle]:
        """Candle at ``index`` or None when out of range (negative indices included)."""
        if index < 0 or index >= len(self):
            return None
        return self[index]

    def last(self) -> Optional[Candle]:
        return self.get(len(self) - 1)

    def last_index(self) -> int:
        return len(self) - 1

    def closes(self, start: int, end: int) -> np.ndarray:
        """Closes from ``start`` to ``end`` inclusive."""
        return self.arrays["Close"][start : end + 1]

    def append(self, candle: Candle) -> None:
        """Append a bar (live feeds). Replaces the last bar if it has the same date."""
        last = self.last()
        if last is not None and last.date == candle.date:
            self._set(len(self) - 1, candle)
            return
        if last is not None and candle.date < last.date:
            raise ValueError(
                f"Candle at {candle.date} is older than last bar {last.date}"
            )
        row = {
            "Close Time": np.array([np.datetime64(candle.date, "ns")]),
            "Open": np.array([candle.open]),
            "High": np.array([candle.high]),
            "Low": np.array([candle.low]),
            "Close": np.array([candle.close]),
            "Volume": np.array([candle.volume]),
            "Is Closed": np.array([candle.is_closed]),
        }
        for key, value in row.items():
            self.arrays[key] = np.concatenate(
                (self.arrays[key], value.astype(self.arrays[key].dtype))
            )

    def _set(self, index: int, candle: Candle) -> None:
        self.arrays["Open"][index] = candle.open
        self.arrays["High"][index] = candle.high
        self.arrays["Low"][index] = candle.low
        self.arrays["Close"][index] = candle.close
        self.arrays["Volume"][index] = candle.volume
        self.arrays["Is Closed"][index] = candle.is_closed

    def __repr__(self) -> str:
        return f"<CandleWindow bars={len(self)}>"
