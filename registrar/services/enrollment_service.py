"""
Enrollment ledger: the single source of truth for grades and attendance.
"""

from typing import Dict, List, Optional, Tuple

from ..core import metrics
from ..core.entities import Course, Enrollment, Student, normalize_code
from ..core.enums import AuditAction
from ..core.exceptions import AlreadyEnrolledError, StudentNotFoundError
from .audit_service import AuditTrail
from .concurrency_manager import ConcurrencyManager, Resource
from .course_service import CourseRegistry
from .identity_service import IdentityStore


class EnrollmentLedger:
    """Master list of enrollments, at most one per (student, course) pair.

    Students keep an index of their own enrollments, but the ledger owns the
    instances: an enrollment reached through a student and through the
    ledger is the same object.
    """

    def __init__(self, identity_store: IdentityStore, course_registry: CourseRegistry,
                 concurrency_manager: ConcurrencyManager, audit: Optional[AuditTrail] = None):
        self._identity_store = identity_store
        self._course_registry = course_registry
        self._concurrency_manager = concurrency_manager
        self._audit = audit or AuditTrail()
        self._ledger: List[Enrollment] = []
        self._by_key: Dict[Tuple[str, str], Enrollment] = {}

    def _resolve(self, student_id: str, course_code: str) -> Tuple[Student, Course]:
        student = self._identity_store.get_student((student_id or "").strip())
        if student is None:
            raise StudentNotFoundError(f"Student {student_id} not found", error_code="student_not_found")
        return student, self._course_registry.require(course_code)

    def _existing(self, student: Student, course: Course) -> Optional[Enrollment]:
        """Find the pair's enrollment, reattaching a ledger-only one to the student."""
        enrollment = student.get_enrollment(course.code)
        if enrollment is not None:
            return enrollment
        enrollment = self._by_key.get((student.id, course.normalized_code))
        if enrollment is not None:
            student.attach_enrollment(enrollment)
        return enrollment

    def _create(self, student: Student, course: Course) -> Enrollment:
        enrollment = Enrollment(student.id, course.code, total_sessions=course.total_sessions)
        self._ledger.append(enrollment)
        self._by_key[enrollment.key] = enrollment
        student.attach_enrollment(enrollment)
        return enrollment

    def get_or_create(self, student_id: str, course_code: str) -> Enrollment:
        """Return the pair's enrollment, creating it on first use."""
        with self._concurrency_manager.lock(Resource.IDENTITY, Resource.COURSES, Resource.ENROLLMENTS):
            student, course = self._resolve(student_id, course_code)
            enrollment = self._existing(student, course)
            if enrollment is None:
                enrollment = self._create(student, course)
            return enrollment

    def enroll(self, student_id: str, course_code: str) -> Enrollment:
        """Student-initiated enrollment. Enrolling twice is an error."""
        with self._concurrency_manager.lock(Resource.IDENTITY, Resource.COURSES, Resource.ENROLLMENTS):
            student, course = self._resolve(student_id, course_code)
            if self._existing(student, course) is not None:
                raise AlreadyEnrolledError(
                    f"Student {student.id} is already enrolled in {course.code}",
                    error_code="already_enrolled",
                )
            enrollment = self._create(student, course)

        self._audit.action(AuditAction.ENROLL, f"Student {student.id} enrolled in {course.code}")
        return enrollment

    def set_grades(self, enrollment: Enrollment, assignment: float, quiz: float, final: float) -> None:
        """Overwrite the component scores. Range checks belong to the caller."""
        with self._concurrency_manager.lock(Resource.ENROLLMENTS):
            enrollment.set_grades(assignment, quiz, final)

        self._audit.action(
            AuditAction.GRADE,
            f"Grades assigned for student {enrollment.student_id} in {enrollment.course_code}",
        )

    def record_attendance(self, enrollment: Enrollment, present: bool) -> None:
        """Record one session; session growth propagates to the course."""
        with self._concurrency_manager.lock(Resource.COURSES, Resource.ENROLLMENTS):
            enrollment.record_attendance(present)
            course = self._course_registry.get(enrollment.course_code)
            if course is not None:
                course.grow_sessions(enrollment.total_sessions)

        self._audit.action(
            AuditAction.ATTENDANCE,
            f"Attendance recorded for student {enrollment.student_id} in {enrollment.course_code}",
            present=present,
        )

    def compute_overall(self, enrollment: Enrollment) -> float:
        return metrics.compute_overall(enrollment)

    def attendance_percentage(self, enrollment: Enrollment) -> float:
        return metrics.attendance_percentage(enrollment)

    def gpa_for(self, student_id: str) -> float:
        return metrics.gpa(self.enrollments_for(student_id))

    def attach_loaded(self, enrollment: Enrollment) -> Optional[Enrollment]:
        """Merge an enrollment read from storage into the ledger.

        Returns None (the row is dropped) when its student or course cannot
        be resolved. A second definition of an already known pair overwrites
        the recorded state of the existing instance instead of adding one.
        """
        with self._concurrency_manager.lock(Resource.IDENTITY, Resource.COURSES, Resource.ENROLLMENTS):
            student = self._identity_store.get_student(enrollment.student_id)
            course = self._course_registry.get(enrollment.course_code)
            if student is None or course is None:
                return None

            if enrollment.course_code != course.code:
                canonical = Enrollment(student.id, course.code)
                canonical.restore(enrollment)
                enrollment = canonical

            existing = self._by_key.get(enrollment.key)
            if existing is not None:
                existing.restore(enrollment)
                student.attach_enrollment(existing)
                return existing

            self._ledger.append(enrollment)
            self._by_key[enrollment.key] = enrollment
            student.attach_enrollment(enrollment)
            return enrollment

    def find(self, student_id: str, course_code: str) -> Optional[Enrollment]:
        return self._by_key.get(((student_id or "").strip(), normalize_code(course_code)))

    def enrollments_for(self, student_id: str) -> List[Enrollment]:
        return [e for e in self._ledger if e.student_id == student_id]

    def enrollments_in(self, course_code: str) -> List[Enrollment]:
        key = normalize_code(course_code)
        return [e for e in self._ledger if e.normalized_code == key]

    def all(self) -> List[Enrollment]:
        return list(self._ledger)

    def clear(self) -> None:
        with self._concurrency_manager.lock(Resource.ENROLLMENTS):
            self._ledger.clear()
            self._by_key.clear()

    def get_statistics(self) -> Dict[str, int]:
        return {
            'total_enrollments': len(self._ledger),
            'students_enrolled': len({e.student_id for e in self._ledger}),
        }
