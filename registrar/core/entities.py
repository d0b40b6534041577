"""
Core entities for the Registrar engine.
"""

import re
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from .credentials import Credential, PasswordCredential
from .enums import UserType
from .exceptions import ValidationError
from . import metrics


_WHITESPACE = re.compile(r"\s+")


def normalize_code(code: str) -> str:
    """Canonical lookup form of a course code: no whitespace, upper case."""
    return _WHITESPACE.sub("", code or "").upper()


class AbstractEntity(ABC):
    """Base abstract entity with identity, lifecycle timestamps and versioning."""

    def __init__(self, entity_id: str):
        self._id = entity_id
        self._created_at = datetime.now(timezone.utc)
        self._updated_at = self._created_at
        self._version = 1

    @property
    def id(self) -> str:
        """Get the entity ID."""
        return self._id

    @property
    def created_at(self) -> datetime:
        """Get creation timestamp."""
        return self._created_at

    @property
    def updated_at(self) -> datetime:
        """Get last update timestamp."""
        return self._updated_at

    @property
    def version(self) -> int:
        """Get current version."""
        return self._version

    def update(self, **kwargs) -> None:
        """Update entity with new data."""
        for key, value in kwargs.items():
            if hasattr(self, f"_{key}"):
                setattr(self, f"_{key}", value)
        self._updated_at = datetime.now(timezone.utc)
        self._version += 1

    def to_dict(self) -> Dict[str, Any]:
        """Convert entity to dictionary."""
        return {
            'id': self._id,
            'created_at': self._created_at.isoformat(),
            'updated_at': self._updated_at.isoformat(),
            'version': self._version,
        }

    def __str__(self) -> str:
        return f"{self.__class__.__name__}(id={self._id})"

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(id={self._id}, version={self._version})"


class User(AbstractEntity):
    """Abstract base class for everyone who can log in."""

    def __init__(self, user_id: str, name: str, email: str, credential: Credential):
        super().__init__(user_id)
        self._name = name
        self._email = email
        self._credential = credential

    @property
    def name(self) -> str:
        return self._name

    @property
    def email(self) -> str:
        return self._email

    @property
    def credential_digest(self) -> str:
        return self._credential.digest

    @property
    @abstractmethod
    def user_type(self) -> UserType:
        """Role of this user."""
        pass

    def check_secret(self, secret: str) -> bool:
        """Compare the digest of ``secret`` against the stored digest."""
        return self._credential.matches(secret)

    def rotate_secret(self, secret: str) -> None:
        """Replace the stored credential."""
        self._credential = PasswordCredential.from_secret(secret)
        self.update()

    def matches(self, fragment: str) -> bool:
        """Case-insensitive substring match over id and name."""
        needle = fragment.strip().lower()
        return needle in self._id.lower() or needle in self._name.lower()

    def to_dict(self) -> Dict[str, Any]:
        base_dict = super().to_dict()
        base_dict.update({
            'name': self._name,
            'email': self._email,
            'user_type': self.user_type.value,
        })
        return base_dict


class Student(User):
    """Student entity holding back-references to its enrollments."""

    def __init__(self, user_id: str, name: str, email: str, credential: Credential):
        super().__init__(user_id, name, email, credential)
        self._enrollments: Dict[str, 'Enrollment'] = {}  # normalized code -> enrollment

    @property
    def user_type(self) -> UserType:
        return UserType.STUDENT

    @property
    def enrollments(self) -> List['Enrollment']:
        return list(self._enrollments.values())

    def get_enrollment(self, course_code: str) -> Optional['Enrollment']:
        """Look up this student's enrollment in a course."""
        return self._enrollments.get(normalize_code(course_code))

    def attach_enrollment(self, enrollment: 'Enrollment') -> bool:
        """Index an enrollment. Returns False if the course is already indexed."""
        if enrollment.student_id != self._id:
            raise ValidationError(
                f"Enrollment for {enrollment.student_id} cannot be attached to student {self._id}"
            )
        key = enrollment.normalized_code
        if key in self._enrollments:
            return False
        self._enrollments[key] = enrollment
        self.update()
        return True

    def to_dict(self) -> Dict[str, Any]:
        base_dict = super().to_dict()
        base_dict['enrollments'] = [e.course_code for e in self._enrollments.values()]
        return base_dict


class Instructor(User):
    """Instructor entity with the codes of the courses it teaches."""

    def __init__(self, user_id: str, name: str, email: str, credential: Credential):
        super().__init__(user_id, name, email, credential)
        self._courses: Dict[str, str] = {}  # normalized code -> code

    @property
    def user_type(self) -> UserType:
        return UserType.INSTRUCTOR

    @property
    def courses(self) -> List[str]:
        return list(self._courses.values())

    def teaches(self, course_code: str) -> bool:
        return normalize_code(course_code) in self._courses

    def add_course(self, course_code: str) -> None:
        """Add a course to teach."""
        self._courses.setdefault(normalize_code(course_code), course_code)
        self.update()

    def remove_course(self, course_code: str) -> None:
        """Stop teaching a course."""
        self._courses.pop(normalize_code(course_code), None)
        self.update()

    def to_dict(self) -> Dict[str, Any]:
        base_dict = super().to_dict()
        base_dict['courses'] = self.courses
        return base_dict


class Course(AbstractEntity):
    """Course entity. The instructor is a weak reference by id."""

    def __init__(self, code: str, title: str, instructor_id: Optional[str] = None,
                 total_sessions: int = 0):
        if not normalize_code(code):
            raise ValidationError("Course code cannot be empty")
        if total_sessions < 0:
            raise ValidationError("Total sessions cannot be negative")
        super().__init__(code)
        self._code = code
        self._title = title
        self._instructor_id = instructor_id
        self._total_sessions = total_sessions

    @property
    def code(self) -> str:
        return self._code

    @property
    def normalized_code(self) -> str:
        return normalize_code(self._code)

    @property
    def title(self) -> str:
        return self._title

    @property
    def instructor_id(self) -> Optional[str]:
        return self._instructor_id

    @property
    def total_sessions(self) -> int:
        return self._total_sessions

    def set_instructor(self, instructor_id: Optional[str]) -> None:
        self._instructor_id = instructor_id
        self.update()

    def grow_sessions(self, total_sessions: int) -> None:
        """Raise the session count to ``total_sessions``. Never lowers it."""
        if total_sessions > self._total_sessions:
            self._total_sessions = total_sessions
            self.update()

    def matches(self, fragment: str) -> bool:
        """Case-insensitive substring match over code and title."""
        needle = fragment.strip().lower()
        return needle in self._code.lower() or needle in self._title.lower()

    def to_dict(self) -> Dict[str, Any]:
        base_dict = super().to_dict()
        base_dict.update({
            'code': self._code,
            'title': self._title,
            'instructor_id': self._instructor_id,
            'total_sessions': self._total_sessions,
        })
        return base_dict


class Enrollment(AbstractEntity):
    """Grades and attendance of one student in one course.

    ``attendance_count <= total_sessions`` always holds: whenever attendance
    would exceed the session count, the session count is raised to match.
    """

    def __init__(self, student_id: str, course_code: str,
                 assignment_score: float = 0.0, quiz_score: float = 0.0,
                 final_score: float = 0.0, attendance_count: int = 0,
                 total_sessions: int = 0):
        if attendance_count < 0 or total_sessions < 0:
            raise ValidationError("Attendance and session counts cannot be negative")
        super().__init__(f"{student_id}:{normalize_code(course_code)}")
        self._student_id = student_id
        self._course_code = course_code
        self._assignment_score = float(assignment_score)
        self._quiz_score = float(quiz_score)
        self._final_score = float(final_score)
        self._attendance_count = attendance_count
        self._total_sessions = max(total_sessions, attendance_count)

    @property
    def student_id(self) -> str:
        return self._student_id

    @property
    def course_code(self) -> str:
        return self._course_code

    @property
    def normalized_code(self) -> str:
        return normalize_code(self._course_code)

    @property
    def key(self) -> Tuple[str, str]:
        return (self._student_id, self.normalized_code)

    @property
    def assignment_score(self) -> float:
        return self._assignment_score

    @property
    def quiz_score(self) -> float:
        return self._quiz_score

    @property
    def final_score(self) -> float:
        return self._final_score

    @property
    def attendance_count(self) -> int:
        return self._attendance_count

    @property
    def total_sessions(self) -> int:
        return self._total_sessions

    @property
    def overall(self) -> float:
        return metrics.compute_overall(self)

    @property
    def attendance_percentage(self) -> float:
        return metrics.attendance_percentage(self)

    def set_grades(self, assignment: float, quiz: float, final: float) -> None:
        """Overwrite the three component scores. No range checks here."""
        self._assignment_score = float(assignment)
        self._quiz_score = float(quiz)
        self._final_score = float(final)
        self.update()

    def record_attendance(self, present: bool) -> None:
        """Count one session and keep the session total at least the attendance."""
        if present:
            self._attendance_count += 1
        self._total_sessions = max(self._total_sessions, self._attendance_count)
        self.update()

    def restore(self, other: 'Enrollment') -> None:
        """Take over the recorded state of another definition of the same pair."""
        if other.key != self.key:
            raise ValidationError(f"Cannot restore {self.id} from {other.id}")
        self._assignment_score = other.assignment_score
        self._quiz_score = other.quiz_score
        self._final_score = other.final_score
        self._attendance_count = other.attendance_count
        self._total_sessions = max(other.total_sessions, other.attendance_count)
        self.update()

    def to_dict(self) -> Dict[str, Any]:
        base_dict = super().to_dict()
        base_dict.update({
            'student_id': self._student_id,
            'course_code': self._course_code,
            'assignment_score': self._assignment_score,
            'quiz_score': self._quiz_score,
            'final_score': self._final_score,
            'attendance_count': self._attendance_count,
            'total_sessions': self._total_sessions,
            'overall': self.overall,
            'attendance_percentage': self.attendance_percentage,
        })
        return base_dict
