"""
Custom exceptions for the Registrar engine.
"""

from typing import Optional, Any, Dict


class RegistrarException(Exception):
    """Base exception for all Registrar-related errors."""
    
    def __init__(self, message: str, error_code: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.details = details or {}


class ValidationError(RegistrarException):
    """Raised when data validation fails."""
    pass


class DuplicateEntityError(RegistrarException):
    """Raised when attempting to create a duplicate entity."""
    pass


class DuplicateIdError(DuplicateEntityError):
    """Raised when a user id is already taken by a student or an instructor."""
    pass


class DuplicateCodeError(DuplicateEntityError):
    """Raised when a course code is already registered."""
    pass


class NotFoundError(RegistrarException):
    """Raised when a referenced resource is not found."""
    pass


class StudentNotFoundError(NotFoundError):
    """Raised when a student id cannot be resolved."""
    pass


class InstructorNotFoundError(NotFoundError):
    """Raised when an instructor id cannot be resolved."""
    pass


class CourseNotFoundError(NotFoundError):
    """Raised when a course code cannot be resolved."""
    pass


class EnrollmentError(RegistrarException):
    """Raised when enrollment operations fail."""
    pass


class AlreadyEnrolledError(EnrollmentError):
    """Raised when a student explicitly enrolls in a course twice."""
    pass


class ConcurrencyError(RegistrarException):
    """Raised when concurrency control fails."""
    pass


class PersistenceError(RegistrarException):
    """Raised when persistence operations fail."""
    pass
