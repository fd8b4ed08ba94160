"""Simple CSV data provider for user-supplied OHLCV files.

Loads a single CSV file specified by full filepath. Common column formats are
auto-detected (timestamp + OHLCV, volume optional). No caching: fresh load
every time for determinism.
"""

from __future__ import annotations

import logging
import os
from typing import Optional

import pandas as pd

from algo_engine.core.candles import CandleWindow
from algo_engine.data.base_provider import DataProvider

logger = logging.getLogger(__name__)

TIMESTAMP_CANDIDATES = ["timestamp", "date", "datetime", "time", "close time", "open time"]
OHLC_VARIANTS = {
    "Open": ["open", "o"],
    "High": ["high", "h"],
    "Low": ["low", "l"],
    "Close": ["close", "c"],
}


def _to_utc(ts: Optional[pd.Timestamp]) -> Optional[pd.Timestamp]:
    if ts is None:
        return None
    ts = pd.Timestamp(ts)
    return ts.tz_localize("UTC") if ts.tz is None else ts.tz_convert("UTC")


class CSVDataProvider(DataProvider):
    """CSV data provider loading from explicit filepaths."""

    def load_data(
        self,
        asset: str,
        timeframe: str,
        start_date: Optional[pd.Timestamp] = None,
        end_date: Optional[pd.Timestamp] = None,
        filepath: Optional[str] = None,
    ) -> CandleWindow:
        """Load a single CSV file and return a CandleWindow.

        Args:
            asset/timeframe: For error messages only (not used for path).
            filepath: Full path to CSV. Required, raises if None.
        """
        if filepath is None:
            raise ValueError("CSVDataProvider requires explicit filepath per series")

        if not os.path.exists(filepath):
            raise FileNotFoundError(f"CSV not found: {filepath}")

        df = pd.read_csv(filepath)

        if df.empty:
            raise ValueError(f"Empty CSV: {filepath}")

        cols = {c.lower().strip(): c for c in df.columns}

        timestamp_col = next((cols[c] for c in TIMESTAMP_CANDIDATES if c in cols), None)
        if timestamp_col is None:
            raise ValueError(f"No timestamp column in {filepath}")

        mapping = {}
        for std, variants in OHLC_VARIANTS.items():
            found = next((cols[v] for v in variants if v in cols), None)
            if found is None:
                raise ValueError(f"Missing {std} column in {filepath}")
            mapping[std] = found
        volume_col = next((cols[v] for v in ("volume", "vol") if v in cols), None)

        df[timestamp_col] = pd.to_datetime(df[timestamp_col], utc=True, errors="coerce")
        df = df.dropna(subset=[timestamp_col])

        start_ts = _to_utc(start_date)
        end_ts = _to_utc(end_date)
        if start_ts is not None:
            df = df[df[timestamp_col] >= start_ts]
        if end_ts is not None:
            df = df[df[timestamp_col] <= end_ts]

        if df.empty:
            raise ValueError(f"No data in date range for {filepath}")

        df = (
            df.sort_values(timestamp_col, kind="stable")
            .drop_duplicates(subset=[timestamp_col], keep="last")
            .reset_index(drop=True)
        )

        frame = pd.DataFrame({"Close Time": df[timestamp_col]})
        for std, col in mapping.items():
            frame[std] = df[col].astype(float)
        frame["Volume"] = df[volume_col].astype(float) if volume_col else 0.0

        logger.info(f"Loaded {len(frame)} bars for {asset} {timeframe} from {filepath}")
        return CandleWindow.from_dataframe(frame)
