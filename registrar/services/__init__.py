"""
Services module containing the record stores and their supporting components.
"""

from .identity_service import IdentityStore
from .course_service import CourseRegistry
from .enrollment_service import EnrollmentLedger
from .report_service import ReportService
from .audit_service import AuditTrail
from .concurrency_manager import ConcurrencyManager, Resource

__all__ = [
    "IdentityStore",
    "CourseRegistry",
    "EnrollmentLedger",
    "ReportService",
    "AuditTrail",
    "ConcurrencyManager",
    "Resource",
]
