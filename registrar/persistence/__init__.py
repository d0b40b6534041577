"""
Persistence module for flat-file storage of the record stores.
"""

from .file_store import CsvFileStore
from .repositories import UserRowMapper, CourseRowMapper, EnrollmentRowMapper
from .gateway import (
    PersistenceGateway, Collection, CollectionState,
    USERS_FILE, COURSES_FILE, ENROLLMENTS_FILE,
)

__all__ = [
    "CsvFileStore",
    "UserRowMapper",
    "CourseRowMapper",
    "EnrollmentRowMapper",
    "PersistenceGateway",
    "Collection",
    "CollectionState",
    "USERS_FILE",
    "COURSES_FILE",
    "ENROLLMENTS_FILE",
]
