"""
Background sweep of expired refresh tokens.

SQL stores have no TTL index, so a daemon thread deletes rows whose
expires_at has passed. Lookups already treat expired rows as invalid;
the reaper only keeps the table from growing.
"""
from __future__ import annotations

import logging
import threading

from sqlalchemy.exc import SQLAlchemyError

logger = logging.getLogger(__name__)


class TokenReaper:
    def __init__(self, token_service, storage, interval_seconds: float):
        self.token_service = token_service
        self.storage = storage
        self.interval_seconds = float(interval_seconds)
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None
        self._lock = threading.Lock()

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        with self._lock:
            if self.running or self.interval_seconds <= 0:
                return
            self._stop.clear()
            self._thread = threading.Thread(target=self._loop, name="chess_api.token_reaper", daemon=True)
            self._thread.start()
            logger.info("Token reaper started (every %.0fs)", self.interval_seconds)

    def stop(self, timeout: float | None = 5.0) -> None:
        with self._lock:
            thread = self._thread
            self._stop.set()
            self._thread = None
        if thread is not None:
            thread.join(timeout=timeout)

    def sweep(self) -> int:
        """Run one purge; errors are logged and reported as 0 so the loop keeps going."""
        try:
            removed = self.token_service.purge_expired()
        except SQLAlchemyError:
            logger.exception("Expired refresh token sweep failed")
            return 0
        finally:
            # the reaper thread owns its own scoped session
            self.storage.close()
        if removed:
            logger.info("Purged %d expired refresh token(s)", removed)
        return removed

    def _loop(self) -> None:
        while not self._stop.wait(self.interval_seconds):
            self.sweep()
