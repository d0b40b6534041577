"""
Course registry keyed by normalized course code.
"""

from typing import Dict, List, Optional, Tuple

from ..core.entities import Course, normalize_code
from ..core.enums import AuditAction
from ..core.exceptions import (
    CourseNotFoundError, DuplicateCodeError, InstructorNotFoundError, ValidationError
)
from .audit_service import AuditTrail
from .concurrency_manager import ConcurrencyManager, Resource
from .identity_service import IdentityStore


# Catalog seeded into an empty registry on first start.
DEFAULT_CATALOG: List[Tuple[str, str]] = [
    ("Litr 102", "ASEAN Literature"),
    ("PATHFIT 3", "Traditional and Recreational Games"),
    ("CS 121", "Advanced Computer Programming"),
    ("Phy 101", "Calculus-Based Physics"),
    ("CPE 405", "Discrete Mathematics"),
    ("IT 212", "Computer Networking 1"),
    ("IT 211", "Database Management System"),
    ("CS 211", "Object-Oriented Programming"),
]


class CourseRegistry:
    """Courses keyed by code, each optionally taught by one instructor.

    Codes are compared in normalized form (whitespace removed, upper case),
    so ``" cs 121 "`` and ``"CS121"`` name the same course. The instructor is
    stored as an id and resolved through the identity store on use.
    """

    def __init__(self, identity_store: IdentityStore, concurrency_manager: ConcurrencyManager,
                 audit: Optional[AuditTrail] = None):
        self._identity_store = identity_store
        self._concurrency_manager = concurrency_manager
        self._audit = audit or AuditTrail()
        self._courses: Dict[str, Course] = {}

    def create_course(self, code: str, title: str, instructor_id: Optional[str] = None,
                      total_sessions: int = 0) -> Course:
        """Register a new course."""
        code = (code or "").strip()
        if not normalize_code(code):
            raise ValidationError("Code cannot be empty", error_code="invalid_code")
        if total_sessions < 0:
            raise ValidationError("Total sessions cannot be negative", error_code="invalid_sessions")

        with self._concurrency_manager.lock(Resource.IDENTITY, Resource.COURSES):
            instructor = None
            if instructor_id is not None:
                instructor = self._identity_store.get_instructor(instructor_id)
                if instructor is None:
                    raise InstructorNotFoundError(f"Instructor {instructor_id} not found")

            key = normalize_code(code)
            if key in self._courses:
                raise DuplicateCodeError(f"Course {code} already exists", error_code="duplicate_code")

            course = Course(code, (title or "").strip(), instructor_id, total_sessions)
            self._courses[key] = course
            if instructor is not None:
                instructor.add_course(course.code)

        by = f" by instructor {instructor_id}" if instructor_id else ""
        self._audit.action(AuditAction.CREATE_COURSE, f"Course added {course.code}{by}")
        return course

    def assign_instructor(self, code: str, instructor_id: str) -> Course:
        """Make ``instructor_id`` the instructor of the course matching ``code``."""
        with self._concurrency_manager.lock(Resource.IDENTITY, Resource.COURSES):
            instructor = self._identity_store.get_instructor((instructor_id or "").strip())
            if instructor is None:
                raise InstructorNotFoundError(f"Instructor {instructor_id} not found")

            course = self.require(code)
            previous = course.instructor_id
            if previous and previous != instructor.id:
                former = self._identity_store.get_instructor(previous)
                if former is not None:
                    former.remove_course(course.code)

            course.set_instructor(instructor.id)
            instructor.add_course(course.code)

        self._audit.action(
            AuditAction.ASSIGN_INSTRUCTOR, f"Instructor {instructor.id} assigned to {course.code}"
        )
        return course

    def add_loaded_course(self, course: Course) -> Course:
        """Insert a course read from storage, folding it into an existing definition.

        A later definition of the same normalized code replaces the title and
        instructor of the earlier one; the session count keeps the larger of
        the two. Returns the course instance kept in the registry.
        """
        with self._concurrency_manager.lock(Resource.IDENTITY, Resource.COURSES):
            existing = self._courses.get(course.normalized_code)
            if existing is None:
                self._courses[course.normalized_code] = course
                kept = course
            else:
                if existing.instructor_id and existing.instructor_id != course.instructor_id:
                    former = self._identity_store.get_instructor(existing.instructor_id)
                    if former is not None:
                        former.remove_course(existing.code)
                existing.update(title=course.title, instructor_id=course.instructor_id)
                existing.grow_sessions(course.total_sessions)
                kept = existing

            if kept.instructor_id:
                instructor = self._identity_store.get_instructor(kept.instructor_id)
                if instructor is not None:
                    instructor.add_course(kept.code)
            return kept

    def ensure_default_catalog(self) -> int:
        """Seed the default catalog into an empty registry. Returns courses added."""
        with self._concurrency_manager.lock(Resource.COURSES):
            if self._courses:
                return 0
            for code, title in DEFAULT_CATALOG:
                course = Course(code, title)
                self._courses[course.normalized_code] = course

        self._audit.record("Initialized default courses.")
        return len(DEFAULT_CATALOG)

    def get(self, code: str) -> Optional[Course]:
        return self._courses.get(normalize_code(code))

    def require(self, code: str) -> Course:
        course = self.get(code)
        if course is None:
            raise CourseNotFoundError(f"Course {code!r} not found", error_code="course_not_found")
        return course

    def courses(self) -> List[Course]:
        return list(self._courses.values())

    def lookup(self, fragment: str) -> List[Course]:
        """Substring search over codes and titles, in registration order."""
        return [c for c in self._courses.values() if c.matches(fragment)]

    def clear(self) -> None:
        with self._concurrency_manager.lock(Resource.COURSES):
            self._courses.clear()

    def get_statistics(self) -> Dict[str, int]:
        return {
            'courses': len(self._courses),
            'unassigned': sum(1 for c in self._courses.values() if not c.instructor_id),
        }
