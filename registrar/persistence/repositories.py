"""
Row mappers between entities and their CSV records.

users.csv        type(S|I), id, name, email, credentialDigestHex
courses.csv      code, title, instructorIdOrNone, totalSessions
enrollments.csv  studentId, courseCode, assignment, quiz, final,
                 attendanceCount, totalSessions

Malformed numeric fields fall back to zero instead of failing the load.
"""

from typing import List, Optional

from ..core.credentials import PasswordCredential
from ..core.entities import Course, Enrollment, Instructor, Student, User
from ..core.enums import UserType
from ..core.exceptions import ValidationError
from ..core.interfaces import RowMapper


NO_INSTRUCTOR = "None"


def safe_int(value: str, default: int = 0) -> int:
    try:
        return int(value.strip())
    except (AttributeError, ValueError):
        return default


def safe_float(value: str, default: float = 0.0) -> float:
    try:
        return float(value.strip())
    except (AttributeError, ValueError):
        return default


class UserRowMapper(RowMapper[User]):
    """Students and instructors share one file, told apart by the type code."""

    FIELDS = 5

    def to_row(self, entity: User) -> List[str]:
        return [
            entity.user_type.value,
            entity.id,
            entity.name,
            entity.email,
            entity.credential_digest,
        ]

    def from_row(self, row: List[str]) -> Optional[User]:
        if len(row) < self.FIELDS:
            return None
        type_code, user_id, name, email, digest = row[:self.FIELDS]
        if not user_id:
            return None
        credential = PasswordCredential(digest)
        if type_code == UserType.STUDENT.value:
            return Student(user_id, name, email, credential)
        if type_code == UserType.INSTRUCTOR.value:
            return Instructor(user_id, name, email, credential)
        return None


class CourseRowMapper(RowMapper[Course]):

    FIELDS = 4

    def to_row(self, entity: Course) -> List[str]:
        return [
            entity.code,
            entity.title,
            entity.instructor_id or NO_INSTRUCTOR,
            str(entity.total_sessions),
        ]

    def from_row(self, row: List[str]) -> Optional[Course]:
        if len(row) < self.FIELDS:
            return None
        code, title, instructor_id, sessions = row[:self.FIELDS]
        if instructor_id in ("", NO_INSTRUCTOR):
            instructor_id = None
        try:
            return Course(code, title, instructor_id, max(0, safe_int(sessions)))
        except ValidationError:
            return None


class EnrollmentRowMapper(RowMapper[Enrollment]):

    FIELDS = 7

    def to_row(self, entity: Enrollment) -> List[str]:
        return [
            entity.student_id,
            entity.course_code,
            repr(entity.assignment_score),
            repr(entity.quiz_score),
            repr(entity.final_score),
            str(entity.attendance_count),
            str(entity.total_sessions),
        ]

    def from_row(self, row: List[str]) -> Optional[Enrollment]:
        if len(row) < self.FIELDS:
            return None
        student_id, course_code = row[0], row[1]
        if not student_id or not course_code:
            return None
        return Enrollment(
            student_id,
            course_code,
            assignment_score=safe_float(row[2]),
            quiz_score=safe_float(row[3]),
            final_score=safe_float(row[4]),
            attendance_count=max(0, safe_int(row[5])),
            total_sessions=max(0, safe_int(row[6])),
        )
