import os

import pytest

from registrar.core.credentials import hash_secret
from registrar.core.exceptions import PersistenceError
from registrar.main import RecordsPlatform
from registrar.persistence import Collection, CollectionState, CsvFileStore


def _reopen(tmp_path):
    records = RecordsPlatform({
        'data_dir': str(tmp_path),
        'audit_log': None,
        'seed_default_courses': False,
        'autosave': False,
    })
    records.load()
    return records


def _write(tmp_path, name, text):
    (tmp_path / name).write_text(text, encoding="utf-8")


def test_save_then_load_restores_every_collection(tmp_path, platform, enrolled, ledger):
    _, registry = enrolled
    registry.create_course("IT 211", "Database, Management, \"Systems\"")
    registry.assign_instructor("CS121", "20001")
    enrollment = ledger.get_or_create("10001", "CS121")
    ledger.set_grades(enrollment, 90.5, 80, 70)
    ledger.record_attendance(enrollment, True)

    assert platform.save() == []

    restored = _reopen(tmp_path)
    student = restored.identity_store.get_student("10001")
    assert student.credential_digest == hash_secret("alice-pass")
    assert restored.identity_store.authenticate("20001", "bob-pass") is not None
    assert restored.course_registry.get("IT211").title == "Database, Management, \"Systems\""
    assert restored.course_registry.get("CS121").instructor_id == "20001"
    assert restored.identity_store.get_instructor("20001").teaches("CS121")

    loaded = restored.ledger.find("10001", "CS121")
    assert loaded.assignment_score == 90.5
    assert (loaded.attendance_count, loaded.total_sessions) == (1, 1)
    assert student.get_enrollment("CS121") is loaded


def test_course_without_instructor_is_written_as_none(tmp_path, platform, enrolled):
    platform.save()

    rows = CsvFileStore(str(tmp_path)).read_rows("courses.csv")
    assert rows == [["CS121", "Advanced Computer Programming", "None", "0"]]


def test_missing_files_load_as_empty(tmp_path):
    restored = _reopen(tmp_path)

    assert restored.get_statistics()['students'] == 0
    assert restored.gateway.state(Collection.USERS) is CollectionState.LOADED


def test_malformed_rows_are_skipped(tmp_path):
    _write(tmp_path, "users.csv",
           "S,10001,Alice,alice@uni.edu,abc\n"
           "X,10002,Nobody,n@uni.edu,abc\n"
           "S,10003\n"
           "\n"
           "I,20001,Bob,bob@uni.edu,abc\n")
    _write(tmp_path, "courses.csv",
           "CS121,Programming,20001,oops\n"
           ",No code,None,3\n")
    _write(tmp_path, "enrollments.csv",
           "10001,CS121,90,bad,70,2,1\n"
           "10001,CS121\n")

    restored = _reopen(tmp_path)

    assert restored.get_statistics()['students'] == 1
    assert restored.get_statistics()['instructors'] == 1
    assert restored.course_registry.get("CS121").total_sessions == 0
    assert len(restored.course_registry.courses()) == 1
    enrollment = restored.ledger.find("10001", "CS121")
    assert enrollment.quiz_score == 0.0
    assert (enrollment.attendance_count, enrollment.total_sessions) == (2, 2)


def test_dangling_references_are_dropped_or_cleared(tmp_path):
    _write(tmp_path, "users.csv", "S,10001,Alice,alice@uni.edu,abc\n")
    _write(tmp_path, "courses.csv", "CS121,Programming,29999,3\n")
    _write(tmp_path, "enrollments.csv",
           "10001,CS121,90,80,70,1,3\n"
           "19999,CS121,90,80,70,1,3\n"
           "10001,NOPE1,90,80,70,1,3\n")

    restored = _reopen(tmp_path)

    assert restored.course_registry.get("CS121").instructor_id is None
    assert [e.student_id for e in restored.ledger.all()] == ["10001"]


def test_duplicate_rows_fold_into_one_record(tmp_path):
    _write(tmp_path, "users.csv",
           "S,10001,Alice,alice@uni.edu,abc\n"
           "S,10001,Alice Cruz,alice@uni.edu,abc\n"
           "I,10001,Imposter,imp@uni.edu,abc\n")
    _write(tmp_path, "courses.csv",
           "CS121,Old title,None,5\n"
           "cs 121,New title,None,2\n")
    _write(tmp_path, "enrollments.csv",
           "10001,CS121,10,10,10,1,1\n"
           "10001,cs121,90,90,90,2,2\n")

    restored = _reopen(tmp_path)

    assert restored.identity_store.get_student("10001").name == "Alice Cruz"
    assert restored.identity_store.get_instructor("10001") is None
    course = restored.course_registry.get("CS121")
    assert (course.title, course.total_sessions) == ("New title", 5)
    assert len(restored.ledger.all()) == 1
    assert restored.ledger.find("10001", "CS121").final_score == 90.0


def test_load_seeds_default_catalog_when_empty(tmp_path):
    records = RecordsPlatform({'data_dir': str(tmp_path), 'audit_log': None, 'autosave': False})
    records.load()

    assert records.get_statistics()['courses'] == 8


def test_write_failure_is_reported_and_state_kept(tmp_path, platform, enrolled):
    os.mkdir(tmp_path / "users.csv")

    failed = platform.save()

    assert failed == [Collection.USERS.value]
    assert platform.identity_store.get_student("10001") is not None
    assert (tmp_path / "courses.csv").exists()
    assert not [p for p in os.listdir(tmp_path) if p.endswith(".tmp")]


def test_unreadable_file_raises_persistence_error(tmp_path):
    os.mkdir(tmp_path / "users.csv")

    with pytest.raises(PersistenceError):
        CsvFileStore(str(tmp_path)).read_rows("users.csv")


def test_shutdown_autosaves_after_load(tmp_path):
    records = RecordsPlatform({'data_dir': str(tmp_path), 'audit_log': None, 'seed_default_courses': False})
    records.load()
    records.identity_store.register_student("10001", "Alice", "alice@uni.edu", "pass")

    assert records.shutdown() == []
    assert _reopen(tmp_path).identity_store.get_student("10001") is not None


def test_unreadable_users_file_leaves_every_file_untouched(tmp_path):
    (tmp_path / "users.csv").write_bytes(b"\xff\xfe")
    _write(tmp_path, "courses.csv", "CS121,Programming,20001,3\n")
    _write(tmp_path, "enrollments.csv", "10001,CS121,90,80,70,2,3\n")

    records = RecordsPlatform({'data_dir': str(tmp_path), 'audit_log': None})
    records.load()
    failed = records.shutdown()

    assert failed == ["users", "courses", "enrollments"]
    assert records.get_statistics()['courses'] == 0
    assert (tmp_path / "users.csv").read_bytes() == b"\xff\xfe"
    assert (tmp_path / "courses.csv").read_text(encoding="utf-8") == "CS121,Programming,20001,3\n"
    assert (tmp_path / "enrollments.csv").read_text(encoding="utf-8") == "10001,CS121,90,80,70,2,3\n"


def test_unreadable_enrollments_file_still_loads_the_rest(tmp_path):
    _write(tmp_path, "users.csv", "S,10001,Alice,alice@uni.edu,abc\n")
    _write(tmp_path, "courses.csv", "CS121,Programming,None,3\n")
    (tmp_path / "enrollments.csv").write_bytes(b"10001,\xff\n")

    records = RecordsPlatform({'data_dir': str(tmp_path), 'audit_log': None})
    records.load()

    assert records.gateway.unloaded() == [Collection.ENROLLMENTS]
    assert records.identity_store.get_student("10001") is not None
    assert records.course_registry.get("CS121").total_sessions == 3
    assert records.get_statistics()['courses'] == 1

    assert records.shutdown() == ["enrollments"]
    assert (tmp_path / "enrollments.csv").read_bytes() == b"10001,\xff\n"


def test_flush_before_load_is_refused(tmp_path):
    _write(tmp_path, "users.csv", "S,10001,Alice,alice@uni.edu,abc\n")
    records = RecordsPlatform({'data_dir': str(tmp_path), 'audit_log': None, 'autosave': False})

    with pytest.raises(PersistenceError):
        records.gateway.flush(Collection.USERS)
    assert records.save() == ["users", "courses", "enrollments"]
    assert (tmp_path / "users.csv").read_text(encoding="utf-8") == "S,10001,Alice,alice@uni.edu,abc\n"
