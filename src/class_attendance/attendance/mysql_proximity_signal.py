from __future__ import annotations

from datetime import datetime, timedelta
from typing import Callable

from ..common.datetime_utils import now_utc
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchone, to_db_datetime
from .strategies.beacon_strategy import ProximitySignal


class MySQLProximitySignal(ProximitySignal):
    """Reads detections the beacon gateway writes to ``beacon_detections``.

    A student counts as present when a detection for the session is no older
    than ``max_age``.
    """

    def __init__(
        self,
        conn_factory: DatabaseConnection,
        *,
        max_age: timedelta,
        clock: Callable[[], datetime] = now_utc,
    ):
        self._conn_factory = conn_factory
        self._max_age = max_age
        self._clock = clock

    def is_present(self, *, session_id: int, student_id: int) -> bool:
        since = self._clock() - self._max_age
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT 1 AS hit
                FROM beacon_detections
                WHERE session_id=%s AND student_id=%s AND detected_at >= %s
                LIMIT 1
                """,
                (int(session_id), int(student_id), to_db_datetime(since)),
            )
            return fetchone(cur) is not None
