from __future__ import annotations
from bisect import bisect_left
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Tuple

from dashboard.historical.normalize import MONTH_ABBREVIATIONS, NormalizedRecord, normalize
from dashboard.historical.timeframe import cutoff_for, resolve_timeframe


class NoDataError(ValueError):
    """Raised when a fetch produced no upstream records at all."""


@dataclass(frozen=True)
class Series:
    records: Tuple[NormalizedRecord, ...]
    # parallel to records; kept for the bisect in filter_series
    timestamps: Tuple[datetime, ...] = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        object.__setattr__(self, "timestamps", tuple(r.timestamp for r in self.records))

    def __len__(self) -> int:
        return len(self.records)

    def filter(self, window: Optional[str], now: Optional[datetime] = None) -> "FilteredView":
        return filter_series(self, window, now)


@dataclass(frozen=True)
class FilteredView:
    timeframe: str
    cutoff: datetime
    labels: List[str]
    values: List[Optional[float]]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "timeframe": self.timeframe,
            "cutoff": self.cutoff.isoformat(),
            "labels": list(self.labels),
            "values": list(self.values),
        }


def format_label(ts: datetime) -> str:
    """Short chart label, e.g. 'Jun 1, 2017'. Locale independent."""
    return f"{MONTH_ABBREVIATIONS[ts.month - 1].title()} {ts.day}, {ts.year}"


def build(records: Optional[Iterable[Dict[str, Any]]], convention: Optional[str] = None) -> Series:
    """Normalize every upstream record and sort ascending by timestamp.

    Absent values are kept so labels and values stay index-aligned.
    Raises NoDataError for a missing or empty input rather than returning an
    empty Series.
    """
    if records is None:
        raise NoDataError("no data available")
    normalized = [normalize(r, convention) for r in records]
    if not normalized:
        raise NoDataError("no data available")
    normalized.sort(key=lambda r: r.timestamp)
    return Series(records=tuple(normalized))


def filter_series(series: Series, window: Optional[str], now: Optional[datetime] = None) -> FilteredView:
    """Suffix of the sorted series with timestamp >= cutoff_for(window, now)."""
    cutoff = cutoff_for(window, now)
    start = bisect_left(series.timestamps, cutoff)
    selected = series.records[start:]
    return FilteredView(
        timeframe=resolve_timeframe(window),
        cutoff=cutoff,
        labels=[format_label(r.timestamp) for r in selected],
        values=[r.value for r in selected],
    )
