"""Abstract base class defining the DataProvider interface.

Concrete providers (CSV, broker snapshots, etc.) implement load_data() and
return a CandleWindow ready for the engine.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional

import pandas as pd

from algo_engine.core.candles import CandleWindow


class DataProvider(ABC):
    """Abstract base class for all data providers."""

    @abstractmethod
    def load_data(
        self,
        asset: str,
        timeframe: str,
        start_date: Optional[pd.Timestamp] = None,
        end_date: Optional[pd.Timestamp] = None,
        filepath: Optional[str] = None,
    ) -> CandleWindow:
        """Load candles for a single asset/timeframe pair.

        Bars must be sorted ascending by time and contain no duplicates.
        Timestamps are naive UTC.
        """
        raise NotImplementedError
