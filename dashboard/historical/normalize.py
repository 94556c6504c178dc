from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional
import math

"""
Upstream records come in one of two date encodings depending on the source
generation:

- period:    year + reference period label ("JUN", "June") -> first of month
- load_time: "YYYY-MM-DD HH:MM:SS" load timestamp -> full date-time

Field names are accepted both as QuickStats sends them (Value, year,
reference_period_desc, load_time) and in their short form (value, year,
periodLabel, loadTimestamp).
"""

MONTH_ABBREVIATIONS = (
    "JAN", "FEB", "MAR", "APR", "MAY", "JUN",
    "JUL", "AUG", "SEP", "OCT", "NOV", "DEC",
)
MONTHS: Dict[str, int] = {abbr: i for i, abbr in enumerate(MONTH_ABBREVIATIONS, start=1)}

PERIOD = "period"
LOAD_TIME = "load_time"

_VALUE_KEYS = ("value", "Value")
_PERIOD_KEYS = ("periodLabel", "reference_period_desc")
_LOAD_TIME_KEYS = ("loadTimestamp", "load_time")


class MalformedRecordError(ValueError):
    """Record lacks the date attributes its convention needs (no year, bad timestamp)."""


@dataclass(frozen=True)
class NormalizedRecord:
    timestamp: datetime
    value: Optional[float] = None  # None == absent, rendered as a gap

    @property
    def is_absent(self) -> bool:
        return self.value is None


def _first(raw: Dict[str, Any], keys) -> Any:
    for k in keys:
        if k in raw and raw[k] is not None:
            return raw[k]
    return None


def parse_value(v: Any) -> Optional[float]:
    """Direct numeric conversion; anything that is not a finite real number is absent."""
    if v is None or isinstance(v, bool):
        return None
    try:
        out = float(str(v).strip())
    except (TypeError, ValueError):
        return None
    return out if math.isfinite(out) else None


def month_index(label: Any) -> int:
    """1-based month for a period label; unknown, empty or missing labels fall back to January."""
    if not label:
        return 1
    return MONTHS.get(str(label).strip().upper()[:3], 1)


def parse_period(year: Any, label: Any) -> datetime:
    try:
        return datetime(int(str(year).strip()), month_index(label), 1)
    except (TypeError, ValueError):
        # unparseable or outside 1..9999
        raise MalformedRecordError(f"record has no usable year: {year!r}")


def parse_load_time(stamp: Any) -> datetime:
    s = str(stamp).strip().replace(" ", "T", 1)
    try:
        return datetime.fromisoformat(s)
    except ValueError:
        raise MalformedRecordError(f"unparseable load timestamp: {stamp!r}")


def resolve_timestamp(raw: Dict[str, Any], convention: Optional[str] = None) -> datetime:
    if not isinstance(raw, dict):
        raise MalformedRecordError(f"record is not an object: {raw!r}")
    if convention is None:
        convention = LOAD_TIME if _first(raw, _LOAD_TIME_KEYS) is not None else PERIOD
    if convention == LOAD_TIME:
        stamp = _first(raw, _LOAD_TIME_KEYS)
        if stamp is None:
            raise MalformedRecordError("record has no load timestamp")
        return parse_load_time(stamp)
    if convention == PERIOD:
        return parse_period(raw.get("year"), _first(raw, _PERIOD_KEYS))
    raise ValueError(f"unknown date convention: {convention!r}")


def normalize(raw: Dict[str, Any], convention: Optional[str] = None) -> NormalizedRecord:
    """Convert one upstream record into a (timestamp, value) pair.

    With no explicit convention the record decides: a load timestamp wins,
    otherwise year + period label is used. Non-numeric values become absent
    rather than zero.
    """
    return NormalizedRecord(
        timestamp=resolve_timestamp(raw, convention),
        value=parse_value(_first(raw, _VALUE_KEYS)),
    )
