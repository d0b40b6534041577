"""
Core module containing the entity model, metrics and base classes.
"""

from .entities import *
from .interfaces import *
from .exceptions import *
from .enums import *

__all__ = [
    # Entities
    "AbstractEntity",
    "User",
    "Student",
    "Instructor",
    "Course",
    "Enrollment",
    "normalize_code",
    
    # Interfaces
    "Reportable",
    "RecordStore",
    "RowMapper",
    "AuditSink",
    
    # Enums
    "UserType",
    "ReportFormat",
    "AuditAction",
    
    # Exceptions
    "RegistrarException",
    "ValidationError",
    "DuplicateEntityError",
    "DuplicateIdError",
    "DuplicateCodeError",
    "NotFoundError",
    "StudentNotFoundError",
    "InstructorNotFoundError",
    "CourseNotFoundError",
    "EnrollmentError",
    "AlreadyEnrolledError",
    "ConcurrencyError",
    "PersistenceError",
]
