from __future__ import annotations
from datetime import datetime
from typing import Dict, Optional

from dateutil.relativedelta import relativedelta

# Lookback windows offered by the chart, in display order.
TIMEFRAMES = ("1M", "3M", "6M", "1Y", "5Y", "10Y")
FALLBACK_TIMEFRAME = "1Y"

LOOKBACKS: Dict[str, relativedelta] = {
    "1M": relativedelta(months=1),
    "3M": relativedelta(months=3),
    "6M": relativedelta(months=6),
    "1Y": relativedelta(years=1),
    "5Y": relativedelta(years=5),
    "10Y": relativedelta(years=10),
}


def resolve_timeframe(window: Optional[str]) -> str:
    return window if window in LOOKBACKS else FALLBACK_TIMEFRAME


def cutoff_for(window: Optional[str], now: Optional[datetime] = None) -> datetime:
    """Earliest timestamp (inclusive) inside `window`, counted back from `now`.

    Unrecognized tokens use the 1Y lookback. Month arithmetic clamps to the
    last day of shorter months (Mar 31 - 1M -> Feb 28/29).
    """
    if now is None:
        now = datetime.now()
    return now - LOOKBACKS[resolve_timeframe(window)]
