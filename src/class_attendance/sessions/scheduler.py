from __future__ import annotations

import itertools
import logging
import threading
from datetime import datetime
from typing import Callable, Optional

from ..common.datetime_utils import now_utc
from ..core.exceptions import NotFound, StateConflict
from ..tokens.model import VerificationToken
from .service import SessionWindowManager

logger = logging.getLogger(__name__)

TokenListener = Callable[[VerificationToken], None]


def log_published_token(token: VerificationToken) -> None:
    logger.info(
        "token published: session=%s expires_at=%s",
        token.session_id,
        token.expires_at.isoformat(),
    )


class TokenRotationScheduler:
    """Background timer per open window.

    When a window's expiry is reached the scheduler either refreshes it (new
    token, same duration) or, with auto-refresh off or once the session's
    scheduled end has passed, closes it. Check-ins are never blocked by it.
    """

    def __init__(
        self,
        manager: SessionWindowManager,
        *,
        auto_refresh: bool = True,
        on_token: Optional[TokenListener] = None,
        clock: Callable[[], datetime] = now_utc,
        timer_factory: Callable[..., threading.Timer] = threading.Timer,
    ):
        self._manager = manager
        self._auto_refresh = bool(auto_refresh)
        self._on_token = on_token
        self._clock = clock
        self._timer_factory = timer_factory
        # session id -> (generation, timer); a firing timer acts only if still current
        self._timers: dict[int, tuple[int, threading.Timer]] = {}
        self._generations = itertools.count(1)
        self._lock = threading.Lock()

    def watch(self, session_id: int, expires_at: datetime) -> None:
        session_id = int(session_id)
        delay = max(0.0, (expires_at - self._clock()).total_seconds())
        with self._lock:
            generation = next(self._generations)
            timer = self._timer_factory(delay, self._fire, args=(session_id, generation))
            timer.daemon = True
            previous = self._timers.get(session_id)
            self._timers[session_id] = (generation, timer)
        if previous:
            previous[1].cancel()
        timer.start()

    def resume(self) -> list[int]:
        """Pick up windows left open by an earlier process. Returns the watched ids."""
        self._manager.close_expired(now=self._clock())
        resumed = []
        for session in self._manager.open_windows():
            self.watch(session.session_id, session.window_expires_at)
            resumed.append(session.session_id)
        if resumed:
            logger.info("rotation resumed: sessions=%s", resumed)
        return resumed

    def cancel(self, session_id: int) -> None:
        with self._lock:
            entry = self._timers.pop(int(session_id), None)
        if entry:
            entry[1].cancel()

    def watched(self) -> list[int]:
        with self._lock:
            return sorted(self._timers)

    def shutdown(self) -> None:
        with self._lock:
            timers = [timer for _, timer in self._timers.values()]
            self._timers.clear()
        for timer in timers:
            timer.cancel()

    def _fire(self, session_id: int, generation: int) -> None:
        with self._lock:
            entry = self._timers.get(session_id)
            if entry is None or entry[0] != generation:
                return
            del self._timers[session_id]

        try:
            token = self._manager.rotate(session_id, auto_refresh=self._auto_refresh, now=self._clock())
        except (StateConflict, NotFound) as exc:
            # Window was closed (or session removed) by someone else.
            logger.info("rotation stopped: session=%s reason=%s", session_id, type(exc).__name__)
            return
        except Exception:
            logger.exception("rotation failed: session=%s", session_id)
            return

        if token is None:
            return
        if self._on_token:
            self._on_token(token)
        self.watch(session_id, token.expires_at)
