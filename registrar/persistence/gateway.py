"""
Persistence gateway: hydrates the record stores from CSV files and flushes
them back.
"""

import logging
import threading
from enum import Enum
from typing import Dict, List, Optional

from ..core.enums import AuditAction
from ..core.exceptions import PersistenceError
from ..core.interfaces import RecordStore
from ..services.audit_service import AuditTrail
from ..services.course_service import CourseRegistry
from ..services.enrollment_service import EnrollmentLedger
from ..services.identity_service import IdentityStore
from .repositories import CourseRowMapper, EnrollmentRowMapper, UserRowMapper


logger = logging.getLogger(__name__)


USERS_FILE = "users.csv"
COURSES_FILE = "courses.csv"
ENROLLMENTS_FILE = "enrollments.csv"


class Collection(Enum):
    """Persisted collections, in load order."""
    USERS = "users"
    COURSES = "courses"
    ENROLLMENTS = "enrollments"


class CollectionState(Enum):
    UNLOADED = "unloaded"
    LOADED = "loaded"
    FLUSHED = "flushed"


class PersistenceGateway:
    """Moves the three record stores to and from flat files.

    Load order is fixed: users, then courses (which reference instructor
    ids), then enrollments (which reference student ids and course codes).
    Enrollment rows whose student or course cannot be resolved are dropped;
    a course whose instructor is unknown is kept without one.

    Flushing is caller-triggered and rewrites a whole collection from the
    in-memory snapshot. There is no merge with the file's current content.
    A collection that was never loaded is never flushed, so a file that
    could not be read is left as it is on disk.
    """

    # Collections whose rows reference another collection.
    DEPENDENCIES = {
        Collection.USERS: (),
        Collection.COURSES: (Collection.USERS,),
        Collection.ENROLLMENTS: (Collection.USERS, Collection.COURSES),
    }

    def __init__(self, store: RecordStore, identity_store: IdentityStore,
                 course_registry: CourseRegistry, ledger: EnrollmentLedger,
                 audit: Optional[AuditTrail] = None,
                 file_names: Optional[Dict[Collection, str]] = None):
        self._store = store
        self._identity_store = identity_store
        self._course_registry = course_registry
        self._ledger = ledger
        self._audit = audit or AuditTrail()
        self._file_names = {
            Collection.USERS: USERS_FILE,
            Collection.COURSES: COURSES_FILE,
            Collection.ENROLLMENTS: ENROLLMENTS_FILE,
        }
        self._file_names.update(file_names or {})
        self._states = {collection: CollectionState.UNLOADED for collection in Collection}
        self._users = UserRowMapper()
        self._courses = CourseRowMapper()
        self._enrollments = EnrollmentRowMapper()
        self._lock = threading.RLock()

    def file_name(self, collection: Collection) -> str:
        return self._file_names[collection]

    def state(self, collection: Collection) -> CollectionState:
        return self._states[collection]

    # Hydration

    def unloaded(self) -> List[Collection]:
        return [c for c in Collection if self._states[c] is CollectionState.UNLOADED]

    def hydrate(self) -> Dict[str, int]:
        """Load every collection in dependency order. Returns loaded counts.

        A collection that cannot be read stays UNLOADED, and so does every
        collection referencing it; the others still load.
        """
        loaders = {
            Collection.USERS: self.load_users,
            Collection.COURSES: self.load_courses,
            Collection.ENROLLMENTS: self.load_enrollments,
        }
        counts: Dict[str, int] = {}
        with self._lock:
            for collection in Collection:
                missing = [d.value for d in self.DEPENDENCIES[collection]
                           if self._states[d] is CollectionState.UNLOADED]
                if missing:
                    logger.warning("Skipping %s: %s not loaded", collection.value, ", ".join(missing))
                    continue
                try:
                    counts[collection.value] = loaders[collection]()
                except PersistenceError as e:
                    logger.warning("Load of %s failed, leaving it on disk: %s", collection.value, e.message)
        return counts

    def load_users(self) -> int:
        name = self.file_name(Collection.USERS)
        loaded = 0
        for row in self._store.read_rows(name):
            user = self._users.from_row(row)
            if user is None:
                logger.debug("Skipping malformed user row: %r", row)
                continue
            if not self._identity_store.add_loaded_user(user):
                logger.debug("Dropping user %s: id already held by another role", user.id)
                continue
            loaded += 1

        self._states[Collection.USERS] = CollectionState.LOADED
        self._audit.action(AuditAction.LOAD, f"Loaded users from {name}")
        return loaded

    def load_courses(self) -> int:
        name = self.file_name(Collection.COURSES)
        loaded = 0
        for row in self._store.read_rows(name):
            course = self._courses.from_row(row)
            if course is None:
                logger.debug("Skipping malformed course row: %r", row)
                continue
            if course.instructor_id and self._identity_store.get_instructor(course.instructor_id) is None:
                logger.debug("Course %s references unknown instructor %s", course.code, course.instructor_id)
                course.set_instructor(None)
            self._course_registry.add_loaded_course(course)
            loaded += 1

        self._states[Collection.COURSES] = CollectionState.LOADED
        self._audit.action(AuditAction.LOAD, f"Loaded courses from {name}")
        return loaded

    def load_enrollments(self) -> int:
        name = self.file_name(Collection.ENROLLMENTS)
        loaded = 0
        for row in self._store.read_rows(name):
            enrollment = self._enrollments.from_row(row)
            if enrollment is None:
                logger.debug("Skipping malformed enrollment row: %r", row)
                continue
            if self._ledger.attach_loaded(enrollment) is None:
                logger.debug("Dropping enrollment %s: unresolved student or course", enrollment.id)
                continue
            loaded += 1

        self._states[Collection.ENROLLMENTS] = CollectionState.LOADED
        self._audit.action(AuditAction.LOAD, f"Loaded enrollments from {name}")
        return loaded

    # Flushing

    def _require_loaded(self, collection: Collection) -> None:
        if self._states[collection] is CollectionState.UNLOADED:
            raise PersistenceError(
                f"Refusing to overwrite {self.file_name(collection)}: it was never loaded",
                error_code="not_loaded",
            )

    def flush_users(self) -> int:
        self._require_loaded(Collection.USERS)
        name = self.file_name(Collection.USERS)
        users = self._identity_store.students() + self._identity_store.instructors()
        with self._lock:
            count = self._store.write_rows(name, (self._users.to_row(u) for u in users))
            self._states[Collection.USERS] = CollectionState.FLUSHED
        self._audit.action(AuditAction.SAVE, f"Saved users to {name}")
        return count

    def flush_courses(self) -> int:
        self._require_loaded(Collection.COURSES)
        name = self.file_name(Collection.COURSES)
        courses = self._course_registry.courses()
        with self._lock:
            count = self._store.write_rows(name, (self._courses.to_row(c) for c in courses))
            self._states[Collection.COURSES] = CollectionState.FLUSHED
        self._audit.action(AuditAction.SAVE, f"Saved courses to {name}")
        return count

    def flush_enrollments(self) -> int:
        self._require_loaded(Collection.ENROLLMENTS)
        name = self.file_name(Collection.ENROLLMENTS)
        enrollments = self._ledger.all()
        with self._lock:
            count = self._store.write_rows(name, (self._enrollments.to_row(e) for e in enrollments))
            self._states[Collection.ENROLLMENTS] = CollectionState.FLUSHED
        self._audit.action(AuditAction.SAVE, f"Saved enrollments to {name}")
        return count

    def flush(self, collection: Collection) -> int:
        flushers = {
            Collection.USERS: self.flush_users,
            Collection.COURSES: self.flush_courses,
            Collection.ENROLLMENTS: self.flush_enrollments,
        }
        return flushers[collection]()
