import logging
import re

from registrar.core.enums import AuditAction
from registrar.main import RecordsPlatform
from registrar.services.audit_service import AuditTrail


LINE = re.compile(r"^\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2} \| ")


def test_entries_are_timestamped_lines(tmp_path):
    trail = AuditTrail(str(tmp_path / "audit.log"))
    trail.record("Initialized default courses.")
    trail.action(AuditAction.ATTENDANCE, "Attendance recorded", present=True)
    trail.close()

    lines = (tmp_path / "audit.log").read_text(encoding="utf-8").splitlines()
    assert len(lines) == 2
    assert all(LINE.match(line) for line in lines)
    assert lines[0].endswith("| Initialized default courses.")
    assert lines[1].endswith("| [attendance] Attendance recorded (present=True)")


def test_trail_appends_across_instances(tmp_path):
    path = str(tmp_path / "audit.log")
    for message in ("first", "second"):
        trail = AuditTrail(path)
        trail.record(message)
        trail.close()

    assert len((tmp_path / "audit.log").read_text(encoding="utf-8").splitlines()) == 2


def test_unwritable_trail_never_fails_the_action(tmp_path):
    trail = AuditTrail(str(tmp_path / "missing" / "audit.log"))

    trail.record("dropped")
    trail.close()


def test_platform_audits_state_changes(tmp_path):
    records = RecordsPlatform({'data_dir': str(tmp_path), 'seed_default_courses': False})
    records.identity_store.register_student("10001", "Alice", "alice@uni.edu", "pass")
    records.identity_store.authenticate("10001", "pass")
    records.shutdown()

    text = (tmp_path / "audit.log").read_text(encoding="utf-8")
    assert "[register] Registered new student: 10001" in text
    assert "[login] Student 10001 logged in." in text


def test_trails_do_not_accumulate_registered_loggers(tmp_path):
    registered = len(logging.Logger.manager.loggerDict)

    for index in range(5):
        trail = AuditTrail(str(tmp_path / f"audit{index}.log"))
        trail.record("entry")
        trail.close()
        AuditTrail().close()

    assert len(logging.Logger.manager.loggerDict) == registered
