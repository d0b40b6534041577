"""
Main entry point for the Registrar engine.
"""

import logging
import os
from typing import Any, Dict, List, Optional

from .core.exceptions import PersistenceError
from .persistence import (
    Collection, CsvFileStore, PersistenceGateway,
    USERS_FILE, COURSES_FILE, ENROLLMENTS_FILE,
)
from .services import (
    AuditTrail, ConcurrencyManager, CourseRegistry, EnrollmentLedger,
    IdentityStore, ReportService,
)


logger = logging.getLogger(__name__)


DEFAULT_CONFIG: Dict[str, Any] = {
    'data_dir': ".",
    'users_file': USERS_FILE,
    'courses_file': COURSES_FILE,
    'enrollments_file': ENROLLMENTS_FILE,
    'audit_log': "audit.log",
    'report_dir': None,
    'seed_default_courses': True,
    'autosave': True,
    'lock_timeout': None,
    'verbose': False,
}


class RecordsPlatform:
    """Context object owning every record store.

    Nothing is read from disk until ``load()`` and nothing is written until
    ``save()`` (or ``shutdown()`` with autosave on). Callers pass this object
    around instead of reaching for process-wide collections.
    """

    def __init__(self, config: Optional[dict] = None):
        self._config = dict(DEFAULT_CONFIG)
        self._config.update(config or {})
        self._loaded = False
        self._initialize_platform()

    def _say(self, message: str) -> None:
        if self._config['verbose']:
            print(message)

    def _data_path(self, name: Optional[str]) -> Optional[str]:
        if name is None:
            return None
        return os.path.join(self._config['data_dir'], name)

    def _initialize_platform(self):
        """Wire the stores together."""
        self._say("Initializing Registrar...")

        self._audit = AuditTrail(self._data_path(self._config['audit_log']))
        self._concurrency_manager = ConcurrencyManager(default_timeout=self._config['lock_timeout'])

        self._identity_store = IdentityStore(self._concurrency_manager, self._audit)
        self._course_registry = CourseRegistry(self._identity_store, self._concurrency_manager, self._audit)
        self._ledger = EnrollmentLedger(
            self._identity_store, self._course_registry, self._concurrency_manager, self._audit
        )
        self._reports = ReportService(self._identity_store, self._course_registry, self._ledger, self._audit)
        self._say("✓ Record stores initialized")

        self._store = CsvFileStore(self._config['data_dir'])
        self._gateway = PersistenceGateway(
            self._store,
            self._identity_store,
            self._course_registry,
            self._ledger,
            self._audit,
            file_names={
                Collection.USERS: self._config['users_file'],
                Collection.COURSES: self._config['courses_file'],
                Collection.ENROLLMENTS: self._config['enrollments_file'],
            },
        )
        self._say(f"✓ Persistence gateway initialized: {self._config['data_dir']}")

    @property
    def config(self) -> Dict[str, Any]:
        return dict(self._config)

    @property
    def identity_store(self) -> IdentityStore:
        return self._identity_store

    @property
    def course_registry(self) -> CourseRegistry:
        return self._course_registry

    @property
    def ledger(self) -> EnrollmentLedger:
        return self._ledger

    @property
    def reports(self) -> ReportService:
        return self._reports

    @property
    def gateway(self) -> PersistenceGateway:
        return self._gateway

    @property
    def audit(self) -> AuditTrail:
        return self._audit

    @property
    def is_loaded(self) -> bool:
        return self._loaded

    def load(self) -> Dict[str, int]:
        """Hydrate every store from disk, then seed the default catalog if empty.

        A collection that cannot be read is logged and left unloaded; its
        file is not overwritten by ``save()``. The platform keeps running.
        """
        counts = self._gateway.hydrate()
        unloaded = self._gateway.unloaded()
        if unloaded:
            logger.warning("Continuing without %s", ", ".join(c.value for c in unloaded))

        if self._config['seed_default_courses'] and Collection.COURSES not in unloaded:
            self._course_registry.ensure_default_catalog()

        self._loaded = True
        stats = self.get_statistics()
        self._say(
            f"✓ Data loaded. Students: {stats['students']}, Instructors: {stats['instructors']}, "
            f"Courses: {stats['courses']}, Enrollments: {stats['total_enrollments']}"
        )
        return counts

    def save(self) -> List[str]:
        """Flush every collection. Returns the names of collections that failed.

        Collections that were never loaded count as failed. Failures are
        logged as warnings; in-memory state stays authoritative.
        """
        failed = []
        for collection in Collection:
            try:
                self._gateway.flush(collection)
            except PersistenceError as e:
                logger.warning("Could not save %s: %s", collection.value, e.message)
                failed.append(collection.value)
        return failed

    def export_report(self, student_id: str) -> str:
        directory = self._config['report_dir'] or self._config['data_dir']
        return self._reports.export_report(student_id, directory)

    def shutdown(self) -> List[str]:
        """Flush (when autosave is on) and release the audit log."""
        failed = self.save() if self._config['autosave'] and self._loaded else []
        self._audit.close()
        self._say("✓ Registrar stopped")
        return failed

    def get_statistics(self) -> Dict[str, int]:
        stats: Dict[str, int] = {}
        stats.update(self._identity_store.get_statistics())
        stats.update(self._course_registry.get_statistics())
        stats.update(self._ledger.get_statistics())
        return stats

    def start_rest_server(self, host: str = "127.0.0.1", port: int = 8000):
        """Serve the REST API until interrupted."""
        import uvicorn
        from .api.rest_api import RegistrarRestAPI

        api = RegistrarRestAPI(self)
        self._say(f"✓ REST server starting on http://{host}:{port} (docs at /docs)")
        uvicorn.run(api.app, host=host, port=port, log_level="info")

    def run_demo(self):
        """Walk through a short enrollment, grading and attendance session."""
        self._say("Running Registrar demonstration...")

        identity = self._identity_store
        student = identity.get_student("10001") or identity.register_student(
            "10001", "Alice Johnson", "alice@university.edu", "alice-pass")
        instructor = identity.get_instructor("20001") or identity.register_instructor(
            "20001", "Bob Smith", "bob@university.edu", "bob-pass")

        course = self._course_registry.get("CS121") or self._course_registry.create_course(
            "CS121", "Advanced Computer Programming")
        self._course_registry.assign_instructor(" cs 121 ", instructor.id)

        enrollment = self._ledger.get_or_create(student.id, course.code)
        for _ in range(3):
            self._ledger.record_attendance(enrollment, True)
        self._ledger.set_grades(enrollment, 90, 80, 70)

        print(f"\n=== {student.name} in {course.code} ===")
        print(f"Overall: {self._ledger.compute_overall(enrollment):.2f}")
        print(f"Attendance: {enrollment.attendance_count}/{enrollment.total_sessions} "
              f"({self._ledger.attendance_percentage(enrollment):.1f}%)")
        print(f"GPA: {self._ledger.gpa_for(student.id):.2f}")
        print(f"Report: {self.export_report(student.id)}")
        print("\n✓ Demo completed")


def main():
    """Main entry point."""
    import argparse
    import json

    parser = argparse.ArgumentParser(description="Registrar academic record engine")
    parser.add_argument("--data-dir", type=str, help="Directory holding the CSV files")
    parser.add_argument("--config", type=str, help="Configuration file path (JSON)")
    parser.add_argument("--demo", action="store_true", help="Run demo mode")
    parser.add_argument("--serve", action="store_true", help="Serve the REST API")
    parser.add_argument("--host", type=str, default="127.0.0.1", help="REST server host")
    parser.add_argument("--port", type=int, default=8000, help="REST server port")

    args = parser.parse_args()
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    # Load configuration
    config = {'verbose': True}
    if args.config:
        with open(args.config, 'r') as f:
            config.update(json.load(f))
    if args.data_dir:
        config['data_dir'] = args.data_dir

    platform = RecordsPlatform(config)
    platform.load()

    try:
        if args.serve:
            platform.start_rest_server(args.host, args.port)
        elif args.demo:
            platform.run_demo()
        else:
            parser.print_help()
    except KeyboardInterrupt:
        print("\nShutting down...")
    finally:
        failed = platform.shutdown()
        if failed:
            print(f"Warning: could not save {', '.join(failed)}")


if __name__ == "__main__":
    main()
