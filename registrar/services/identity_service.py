"""
Identity store for students and instructors.
"""

import re
from typing import Dict, List, Optional, Union

from ..core.credentials import PasswordCredential
from ..core.entities import Instructor, Student, User
from ..core.enums import AuditAction
from ..core.exceptions import DuplicateIdError, ValidationError
from .audit_service import AuditTrail
from .concurrency_manager import ConcurrencyManager, Resource


ID_LENGTH = 5
MIN_SECRET_LENGTH = 4

_ID_PATTERN = re.compile(rf"^\d{{{ID_LENGTH}}}$")
_NAME_PATTERN = re.compile(r"^[A-Za-z ]+$")


def validate_user_id(user_id: str) -> str:
    user_id = (user_id or "").strip()
    if not _ID_PATTERN.match(user_id):
        raise ValidationError(f"ID must be exactly {ID_LENGTH} digits", error_code="invalid_id")
    return user_id


def validate_name(name: str) -> str:
    name = (name or "").strip()
    if not name or not _NAME_PATTERN.match(name):
        raise ValidationError("Name must contain letters and spaces only", error_code="invalid_name")
    return name


def validate_email(email: str) -> str:
    """Exactly one ``@``, placed before the last ``.``."""
    email = (email or "").strip()
    if email.count("@") != 1 or "." not in email or email.index("@") > email.rindex("."):
        raise ValidationError("Invalid email format", error_code="invalid_email")
    return email


def validate_secret(secret: str) -> str:
    if secret is None or len(secret) < MIN_SECRET_LENGTH:
        raise ValidationError(
            f"Password must be at least {MIN_SECRET_LENGTH} characters", error_code="invalid_secret"
        )
    return secret


class IdentityStore:
    """Students and instructors keyed by id. An id belongs to at most one role."""

    def __init__(self, concurrency_manager: ConcurrencyManager, audit: Optional[AuditTrail] = None):
        self._concurrency_manager = concurrency_manager
        self._audit = audit or AuditTrail()
        self._students: Dict[str, Student] = {}
        self._instructors: Dict[str, Instructor] = {}

    def register_student(self, user_id: str, name: str, email: str, secret: str) -> Student:
        """Register a new student."""
        return self._register(Student, user_id, name, email, secret)

    def register_instructor(self, user_id: str, name: str, email: str, secret: str) -> Instructor:
        """Register a new instructor."""
        return self._register(Instructor, user_id, name, email, secret)

    def _register(self, user_cls, user_id: str, name: str, email: str, secret: str) -> User:
        user_id = validate_user_id(user_id)
        with self._concurrency_manager.lock(Resource.IDENTITY):
            if self.contains(user_id):
                raise DuplicateIdError(f"ID {user_id} already exists", error_code="duplicate_id")
            user = user_cls(
                user_id,
                validate_name(name),
                validate_email(email),
                PasswordCredential.from_secret(validate_secret(secret)),
            )
            self._index(user)

        self._audit.action(AuditAction.REGISTER, f"Registered new {user.user_type.name.lower()}: {user_id}")
        return user

    def _index(self, user: User) -> None:
        if isinstance(user, Student):
            self._students[user.id] = user
        else:
            self._instructors[user.id] = user

    def add_loaded_user(self, user: User) -> bool:
        """Insert a user read from storage, skipping validation.

        A user whose id is held by the other role is rejected (returns False).
        A user whose id is already held by the same role replaces it.
        """
        with self._concurrency_manager.lock(Resource.IDENTITY):
            other = self._instructors if isinstance(user, Student) else self._students
            if user.id in other:
                return False
            self._index(user)
            return True

    def authenticate(self, user_id: str, secret: str) -> Optional[Union[Student, Instructor]]:
        """Return the user whose stored digest matches ``secret``, else None."""
        user = self.get_user((user_id or "").strip())
        if user is None or not user.check_secret(secret):
            return None
        self._audit.action(AuditAction.LOGIN, f"{user.user_type.name.title()} {user.id} logged in.")
        return user

    def contains(self, user_id: str) -> bool:
        return user_id in self._students or user_id in self._instructors

    def get_student(self, user_id: str) -> Optional[Student]:
        return self._students.get(user_id)

    def get_instructor(self, user_id: str) -> Optional[Instructor]:
        return self._instructors.get(user_id)

    def get_user(self, user_id: str) -> Optional[User]:
        return self._students.get(user_id) or self._instructors.get(user_id)

    def students(self) -> List[Student]:
        return list(self._students.values())

    def instructors(self) -> List[Instructor]:
        return list(self._instructors.values())

    def find_students(self, fragment: str) -> List[Student]:
        return [s for s in self._students.values() if s.matches(fragment)]

    def find_instructors(self, fragment: str) -> List[Instructor]:
        return [i for i in self._instructors.values() if i.matches(fragment)]

    def find(self, fragment: str) -> List[User]:
        """Substring search over ids and names; students first, then instructors."""
        return self.find_students(fragment) + self.find_instructors(fragment)

    def clear(self) -> None:
        with self._concurrency_manager.lock(Resource.IDENTITY):
            self._students.clear()
            self._instructors.clear()

    def get_statistics(self) -> Dict[str, int]:
        return {
            'students': len(self._students),
            'instructors': len(self._instructors),
        }
