from __future__ import annotations

import logging
import threading
import time
from typing import Callable, Optional, Set, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class SerializerClosedError(RuntimeError):
    pass


class WriteSerializer:
    """
    First-come-first-served mutual exclusion for read-check-write sequences.

    Callers draw a ticket and wait until it is being served, so tasks run one
    at a time in arrival order. A task that raises still hands the turn on.
    Waiters that time out before their turn give the ticket back; a task that
    has started always runs to completion.
    """

    def __init__(self) -> None:
        self._cond = threading.Condition()
        self._next_ticket = 0
        self._now_serving = 0
        self._abandoned: Set[int] = set()
        self._owner: Optional[int] = None
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def open(self) -> None:
        with self._cond:
            self._closed = False

    def close(self, wait: bool = True) -> None:
        """Refuse new tasks; optionally block until queued tasks have drained."""
        with self._cond:
            self._closed = True
            if wait:
                while self._now_serving < self._next_ticket:
                    self._cond.wait()
        logger.debug("Write serializer closed")

    def run_exclusive(self, task: Callable[[], T], timeout: Optional[float] = None) -> T:
        me = threading.get_ident()
        with self._cond:
            if self._owner == me:
                raise RuntimeError("run_exclusive is not re-entrant")
            if self._closed:
                raise SerializerClosedError("write serializer is closed")
            ticket = self._next_ticket
            self._next_ticket += 1

            deadline = None if timeout is None else time.monotonic() + timeout
            while ticket != self._now_serving:
                if deadline is None:
                    self._cond.wait()
                    continue
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    self._abandoned.add(ticket)
                    raise TimeoutError("timed out waiting for the reservation write lock")
                self._cond.wait(remaining)
            self._owner = me

        try:
            return task()
        finally:
            with self._cond:
                self._owner = None
                self._advance()

    def _advance(self) -> None:
        # caller holds self._cond
        self._now_serving += 1
        while self._now_serving in self._abandoned:
            self._abandoned.discard(self._now_serving)
            self._now_serving += 1
        self._cond.notify_all()
