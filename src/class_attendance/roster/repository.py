from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import Student


class StudentDirectory(Protocol):
    def get_student(self, student_id: int) -> Optional[Student]:
        raise NotImplementedError

    def list_course_roster(self, course_id: int) -> Sequence[Student]:
        """Students enrolled in the course, in display order."""

        raise NotImplementedError
