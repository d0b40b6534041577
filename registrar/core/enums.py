"""
Enumerations and constants for the Registrar engine.
"""

from enum import Enum


class UserType(Enum):
    """Roles a user can hold. Values are the codes used in users.csv."""
    STUDENT = "S"
    INSTRUCTOR = "I"


class ReportFormat(Enum):
    """Supported report formats."""
    CSV = "csv"
    JSON = "json"


class AuditAction(Enum):
    """Types of audited actions."""
    REGISTER = "register"
    LOGIN = "login"
    CREATE_COURSE = "create_course"
    ASSIGN_INSTRUCTOR = "assign_instructor"
    ENROLL = "enroll"
    GRADE = "grade"
    ATTENDANCE = "attendance"
    EXPORT = "export"
    LOAD = "load"
    SAVE = "save"
