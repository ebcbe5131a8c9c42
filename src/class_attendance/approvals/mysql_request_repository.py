from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Mapping, Optional, Sequence

from mysql.connector import errorcode
from mysql.connector.errors import IntegrityError

from ..core.enums import ApprovalKind, RequestStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, from_db_datetime, to_db_datetime
from .model import ApprovalRequest
from .repository import ApprovalRequestRepository


@dataclass(frozen=True)
class RequestTable:
    name: str
    subject_column: str
    target_column: str


REQUEST_TABLES: dict[ApprovalKind, RequestTable] = {
    ApprovalKind.COURSE_ENROLLMENT: RequestTable("course_enrollment_requests", "student_id", "course_id"),
    ApprovalKind.SCHOOL_MEMBERSHIP: RequestTable("school_membership_requests", "student_id", "school_id"),
    ApprovalKind.ACCOUNT_ACTIVATION: RequestTable("account_activation_requests", "user_id", "account_id"),
}


class MySQLApprovalRequestRepository(ApprovalRequestRepository):
    def __init__(self, conn_factory: DatabaseConnection, kind: ApprovalKind):
        if kind not in REQUEST_TABLES:
            raise ValueError(f"No request table for {kind.value}")
        self._conn_factory = conn_factory
        self._kind = kind
        self._table = REQUEST_TABLES[kind]

    @property
    def _select(self) -> str:
        t = self._table
        return f"""
            SELECT request_id, {t.subject_column} AS subject_id, {t.target_column} AS target_id,
                   status, requested_at, reviewed_by, reviewed_at, review_notes
            FROM {t.name}
        """

    def _to_request(self, r: dict) -> ApprovalRequest:
        return ApprovalRequest(
            request_id=int(r["request_id"]),
            kind=self._kind,
            subject_id=int(r["subject_id"]),
            target_id=int(r["target_id"]),
            status=RequestStatus(r["status"]),
            requested_at=from_db_datetime(r["requested_at"]),
            reviewer_id=r.get("reviewed_by"),
            reviewed_at=from_db_datetime(r.get("reviewed_at")),
            review_notes=r.get("review_notes"),
        )

    def create_pending(self, *, subject_id: int, target_id: int, requested_at: datetime) -> Optional[int]:
        t = self._table
        with db_cursor(self._conn_factory) as (_, cur):
            try:
                cur.execute(
                    f"""
                    INSERT INTO {t.name}({t.subject_column}, {t.target_column}, status, requested_at)
                    VALUES(%s,%s,%s,%s)
                    """,
                    (int(subject_id), int(target_id), RequestStatus.PENDING.value, to_db_datetime(requested_at)),
                )
            except IntegrityError as exc:
                # The pending_flag unique key allows one pending row per (subject, target).
                if exc.errno != errorcode.ER_DUP_ENTRY:
                    raise
                return None
            return int(cur.lastrowid)

    def get(self, request_id: int) -> Optional[ApprovalRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"{self._select} WHERE request_id=%s", (int(request_id),))
            r = fetchone(cur)
            return self._to_request(r) if r else None

    def list_requests(
        self,
        *,
        status: Optional[RequestStatus] = None,
        limit: int = 200,
    ) -> Sequence[ApprovalRequest]:
        clauses = ["1=1"]
        params: list[object] = []

        if status is not None:
            clauses.append("status=%s")
            params.append(status.value)

        where = " AND ".join(clauses)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                {self._select}
                WHERE {where}
                ORDER BY requested_at ASC
                LIMIT %s
                """,
                tuple(params + [int(limit)]),
            )
            return [self._to_request(r) for r in fetchall(cur)]

    def mark_decided(
        self,
        *,
        request_id: int,
        status: RequestStatus,
        reviewer_id: int,
        reviewed_at: datetime,
        review_notes: Optional[str] = None,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                UPDATE {self._table.name}
                SET status=%s, reviewed_by=%s, reviewed_at=%s, review_notes=%s
                WHERE request_id=%s AND status=%s
                """,
                (
                    status.value,
                    int(reviewer_id),
                    to_db_datetime(reviewed_at),
                    review_notes,
                    int(request_id),
                    RequestStatus.PENDING.value,
                ),
            )
            return cur.rowcount > 0

    def count_by_status(self) -> Mapping[RequestStatus, int]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT status, COUNT(*) AS n FROM {self._table.name} GROUP BY status")
            counts = {status: 0 for status in RequestStatus}
            for r in fetchall(cur):
                counts[RequestStatus(r["status"])] = int(r["n"])
            return counts
