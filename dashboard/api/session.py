from __future__ import annotations
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Deque, Dict, List, Optional
import logging
import threading
import time

from dashboard.config.env import get_series_config
from dashboard.explain.cache import ExplanationCache
from dashboard.historical.normalize import MalformedRecordError
from dashboard.historical.series import FilteredView, NoDataError, Series, build, filter_series

logger = logging.getLogger(__name__)

EMPTY = "empty"
READY = "ready"
FAILED = "failed"

NO_DATA = "no_data"
UPSTREAM_ERROR = "upstream_error"
MALFORMED_DATA = "malformed_data"

MAX_EVENTS = 100

Fetcher = Callable[[], List[Dict[str, Any]]]


class SessionNotReady(RuntimeError):
    pass


class SessionFailed(RuntimeError):
    def __init__(self, code: str, detail: Optional[str] = None):
        super().__init__(detail or code)
        self.code = code
        self.detail = detail


@dataclass
class ChartSession:
    """One chart's Series slot plus the explanation cache that goes with it.

    empty -> ready|failed on the first completed fetch; ready|failed are left
    only by a newer fetch. Results carry the sequence number of the fetch
    that produced them and only the latest issued one is committed.
    """
    convention: Optional[str] = None
    state: str = EMPTY
    error: Optional[str] = None
    detail: Optional[str] = None
    series: Optional[Series] = None
    committed_seq: int = 0
    events: Deque[Dict[str, Any]] = field(default_factory=lambda: deque(maxlen=MAX_EVENTS))
    cache: ExplanationCache = field(default_factory=ExplanationCache)
    _issued: int = field(default=0, init=False, repr=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False, compare=False)

    @property
    def latest_seq(self) -> int:
        with self._lock:
            return self._issued

    def _event(self, stage: str, message: str):
        self.events.append({"stage": stage, "message": message, "ts": time.time()})

    def begin_fetch(self) -> int:
        with self._lock:
            self._issued += 1
            self._event("Fetch", f"Fetch #{self._issued} started")
            return self._issued

    def _is_stale(self, seq: int) -> bool:
        if seq != self._issued:
            logger.info("Discarding stale fetch #%d (latest is #%d)", seq, self._issued)
            self._event("Stale", f"Fetch #{seq} discarded")
            return True
        return False

    def commit(self, seq: int, raw_records: Optional[List[Dict[str, Any]]]) -> bool:
        """Build and install the Series for fetch `seq`. False if `seq` is stale."""
        try:
            series = build(raw_records, self.convention)
        except NoDataError as e:
            return self._set_failed(seq, NO_DATA, str(e))
        except MalformedRecordError as e:
            return self._set_failed(seq, MALFORMED_DATA, str(e))
        with self._lock:
            if self._is_stale(seq):
                return False
            self.series = series
            self.state, self.error, self.detail = READY, None, None
            self.committed_seq = seq
            self._event("Build", f"Fetch #{seq} built {len(series)} points")
        return True

    def fail(self, seq: int, error: Exception) -> bool:
        return self._set_failed(seq, UPSTREAM_ERROR, str(error))

    def _set_failed(self, seq: int, code: str, detail: str) -> bool:
        with self._lock:
            if self._is_stale(seq):
                return False
            self.series = None
            self.state, self.error, self.detail = FAILED, code, detail
            self.committed_seq = seq
            self._event("Error", f"Fetch #{seq}: {detail}")
        logger.warning("Fetch #%d failed (%s): %s", seq, code, detail)
        return True

    def view(self, window: Optional[str], now: Optional[datetime] = None) -> FilteredView:
        with self._lock:
            state, series = self.state, self.series
            error, detail = self.error, self.detail
        if state == EMPTY:
            raise SessionNotReady("no series fetched yet")
        if state == FAILED:
            raise SessionFailed(error or UPSTREAM_ERROR, detail)
        return filter_series(series, window, now)

    def run_fetch(self, seq: int, fetcher: Fetcher) -> bool:
        # Runs on a daemon thread: every failure has to land in the session
        try:
            records = fetcher()
        except Exception as e:
            return self.fail(seq, e)
        try:
            return self.commit(seq, records)
        except Exception as e:
            logger.exception("Building fetch #%d failed", seq)
            return self._set_failed(seq, MALFORMED_DATA, str(e))

    def refresh(self, fetcher: Fetcher, background: bool = True) -> int:
        """Start a fetch. Background fetches run on a daemon thread."""
        seq = self.begin_fetch()
        if background:
            t = threading.Thread(target=self.run_fetch, args=(seq, fetcher), daemon=True)
            t.start()
        else:
            self.run_fetch(seq, fetcher)
        return seq

    def status(self) -> Dict[str, Any]:
        with self._lock:
            return {
                "state": self.state,
                "seq": self.committed_seq,
                "latest_seq": self._issued,
                "count": len(self.series) if self.series is not None else 0,
                "error": self.error,
                "detail": self.detail,
                "events": list(self.events),
            }


def new_session() -> ChartSession:
    return ChartSession(convention=get_series_config().date_convention)
