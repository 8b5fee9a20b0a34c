# services/sweeper.py
"""Periodic expiry sweep.

Lapsed duties are already hidden by ``is_displayable``; the sweep only makes
the stored status converge to "completed". It runs once at start and then
on a fixed interval. A manual status change racing with the sweep is
settled by whichever write lands last.
"""
from __future__ import annotations

import logging
import threading
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from config import settings
from duty.lifecycle import sweep_expired
from duty.models import Duty, decode_all
from services.time_utils import now_utc

logger = logging.getLogger(__name__)


class ExpirySweeper:
    def __init__(
        self,
        store: Any,
        snapshot: Callable[[], List[Dict[str, Any]]],
        interval_sec: float = settings.SWEEP_INTERVAL_SEC,
        clock: Callable[[], datetime] = now_utc,
    ):
        self.store = store
        self.snapshot = snapshot
        self.interval_sec = interval_sec
        self.clock = clock
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def run_once(self) -> List[str]:
        """Apply one sweep; returns the ids that were updated."""
        # Polling backends (Firestore REST) only push on refresh
        refresh = getattr(self.store, "refresh", None)
        if callable(refresh):
            refresh()
        duties = decode_all(self.snapshot(), Duty)
        done = []
        for duty_id, status in sweep_expired(duties, self.clock()):
            try:
                self.store.update(duty_id, {"status": status})
            except Exception as e:
                logger.warning(f"Failed to update expired duty {duty_id}: {e}")
                continue
            done.append(duty_id)
        if done:
            logger.info(f"Expiry sweep closed {len(done)} duties")
        return done

    def start(self) -> None:
        if self._thread and self._thread.is_alive():
            return
        self._stop.clear()

        def _loop() -> None:
            while True:
                try:
                    self.run_once()
                except Exception:
                    logger.exception("Expiry sweep failed")
                if self._stop.wait(self.interval_sec):
                    break

        self._thread = threading.Thread(target=_loop, name="DutyExpirySweeper", daemon=True)
        self._thread.start()

    def stop(self) -> None:
        self._stop.set()
        t = self._thread
        if t and t.is_alive():
            t.join(timeout=2)
        self._thread = None

    @property
    def running(self) -> bool:
        return bool(self._thread and self._thread.is_alive())
