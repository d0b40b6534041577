"""
Student transcript export.
"""

import csv
import io
import json
import os
from typing import Any, Dict, Optional

from ..core import metrics
from ..core.enums import AuditAction, ReportFormat
from ..core.exceptions import PersistenceError, StudentNotFoundError, ValidationError
from ..core.interfaces import Reportable
from .audit_service import AuditTrail
from .course_service import CourseRegistry
from .enrollment_service import EnrollmentLedger
from .identity_service import IdentityStore


STUDENT_HEADER = ["Student ID", "Name", "Email"]
ENROLLMENT_HEADER = [
    "CourseCode", "CourseTitle", "Assignment", "Quiz", "FinalExam",
    "Overall", "AttendanceCount", "TotalSessions", "Attendance%",
]


class ReportService(Reportable):
    """Write-only reports derived from the ledger. Never read back."""

    def __init__(self, identity_store: IdentityStore, course_registry: CourseRegistry,
                 ledger: EnrollmentLedger, audit: Optional[AuditTrail] = None):
        self._identity_store = identity_store
        self._course_registry = course_registry
        self._ledger = ledger
        self._audit = audit or AuditTrail()

    def build_report(self, student_id: str) -> Dict[str, Any]:
        """Collect the transcript of one student as plain data."""
        student = self._identity_store.get_student(student_id)
        if student is None:
            raise StudentNotFoundError(f"Student {student_id} not found", error_code="student_not_found")

        enrollments = self._ledger.enrollments_for(student.id)
        rows = []
        for e in enrollments:
            course = self._course_registry.get(e.course_code)
            rows.append({
                'course_code': e.course_code,
                'course_title': course.title if course is not None else "",
                'assignment': e.assignment_score,
                'quiz': e.quiz_score,
                'final_exam': e.final_score,
                'overall': metrics.compute_overall(e),
                'attendance_count': e.attendance_count,
                'total_sessions': e.total_sessions,
                'attendance_percentage': metrics.attendance_percentage(e),
            })

        return {
            'student_id': student.id,
            'name': student.name,
            'email': student.email,
            'enrollments': rows,
            'gpa': metrics.gpa(enrollments),
        }

    def generate_report(self, subject_id: str, format: ReportFormat = ReportFormat.CSV) -> str:
        report = self.build_report(subject_id)
        if format == ReportFormat.CSV:
            return self._render_csv(report)
        if format == ReportFormat.JSON:
            return json.dumps(report, indent=2)
        raise ValidationError(f"Unsupported report format: {format}")

    def _render_csv(self, report: Dict[str, Any]) -> str:
        buffer = io.StringIO()
        writer = csv.writer(buffer, lineterminator="\n")
        writer.writerow(STUDENT_HEADER)
        writer.writerow([report['student_id'], report['name'], report['email']])
        writer.writerow([])
        writer.writerow(ENROLLMENT_HEADER)
        for row in report['enrollments']:
            writer.writerow([
                row['course_code'],
                row['course_title'],
                f"{row['assignment']:.2f}",
                f"{row['quiz']:.2f}",
                f"{row['final_exam']:.2f}",
                f"{row['overall']:.2f}",
                row['attendance_count'],
                row['total_sessions'],
                f"{row['attendance_percentage']:.1f}",
            ])
        writer.writerow([])
        writer.writerow(["GPA", f"{report['gpa']:.2f}"])
        return buffer.getvalue()

    def export_report(self, student_id: str, directory: str = ".",
                      format: ReportFormat = ReportFormat.CSV) -> str:
        """Write ``student_report_<id>.<ext>`` into ``directory``. Returns the path."""
        content = self.generate_report(student_id, format)
        path = os.path.join(directory, f"student_report_{student_id}.{format.value}")
        try:
            os.makedirs(directory, exist_ok=True)
            with open(path, "w", encoding="utf-8", newline="") as f:
                f.write(content)
        except OSError as e:
            raise PersistenceError(f"Failed to export report: {str(e)}")

        self._audit.action(AuditAction.EXPORT, f"Exported report for student {student_id}")
        return path
