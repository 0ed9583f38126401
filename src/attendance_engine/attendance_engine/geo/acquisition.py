"""Device position acquisition, at most one attempt in flight per session."""

from __future__ import annotations

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeout
from typing import Protocol

from ..common.validators import require_device_coordinates
from ..core.constants import DEFAULT_LOCATION_TIMEOUT_SECONDS
from ..core.exceptions import AcquisitionInProgress, DomainError, LocationUnavailable
from .model import GeoPoint

logger = logging.getLogger(__name__)


class PositionProvider(Protocol):
    def get_position(self, *, cancel: threading.Event) -> GeoPoint:
        """Block until a fix is available.

        Implementations must poll ``cancel`` and return promptly once it is set;
        a timed-out request otherwise holds a worker thread until it finishes.
        """
        raise NotImplementedError


class PositionAcquirer:
    """Runs position requests with a timeout and rejects duplicates per session."""

    def __init__(self, *, timeout_seconds: float = DEFAULT_LOCATION_TIMEOUT_SECONDS, max_workers: int = 4):
        self._timeout = float(timeout_seconds)
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="position")
        self._lock = threading.Lock()
        self._in_flight: dict[str, threading.Event] = {}

    def is_in_flight(self, session_id: str) -> bool:
        with self._lock:
            return session_id in self._in_flight

    def cancel(self, session_id: str) -> bool:
        with self._lock:
            event = self._in_flight.get(session_id)
        if event is None:
            return False
        event.set()
        return True

    def acquire(self, session_id: str, provider: PositionProvider) -> GeoPoint:
        cancel = threading.Event()
        with self._lock:
            if session_id in self._in_flight:
                raise AcquisitionInProgress("A location request is already in progress")
            self._in_flight[session_id] = cancel

        try:
            try:
                future = self._executor.submit(provider.get_position, cancel=cancel)
            except RuntimeError as e:
                # submit after close()
                raise LocationUnavailable("Location service is shutting down") from e
            try:
                point = future.result(timeout=self._timeout)
            except FutureTimeout:
                cancel.set()
                raise LocationUnavailable("Timed out while determining your location")
            except DomainError:
                raise
            except Exception as e:
                logger.warning("Position provider failed for session %s: %s", session_id, e)
                raise LocationUnavailable("Unable to determine your location") from e

            if cancel.is_set():
                raise LocationUnavailable("Location request was cancelled")
            return point
        finally:
            with self._lock:
                self._in_flight.pop(session_id, None)

    def close(self) -> None:
        """Cancel every in-flight request and stop the worker pool.

        Workers are not interrupted: a provider blocked in ``get_position`` keeps
        its thread until it notices the cancel event.
        """
        with self._lock:
            pending = list(self._in_flight.values())
        for event in pending:
            event.set()
        self._executor.shutdown(wait=False, cancel_futures=True)


class SubmittedPosition:
    """Position already reported by the client (browser geolocation)."""

    def __init__(self, lat, lng):
        self._lat = lat
        self._lng = lng

    def get_position(self, *, cancel: threading.Event) -> GeoPoint:
        return GeoPoint(*require_device_coordinates(self._lat, self._lng))
