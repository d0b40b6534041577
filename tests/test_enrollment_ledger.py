import threading

import pytest

from registrar.core.entities import Enrollment
from registrar.core.exceptions import (
    AlreadyEnrolledError, CourseNotFoundError, StudentNotFoundError
)


def test_attendance_grows_enrollment_and_course_sessions(enrolled, ledger):
    _, registry = enrolled
    enrollment = ledger.enroll("10001", "CS121")

    for _ in range(3):
        ledger.record_attendance(enrollment, True)

    assert enrollment.attendance_count == 3
    assert enrollment.total_sessions == 3
    assert ledger.attendance_percentage(enrollment) == pytest.approx(100.0)
    assert registry.get("CS121").total_sessions == 3


def test_grades_give_overall_and_point(enrolled, ledger):
    enrollment = ledger.get_or_create("10001", "CS121")
    ledger.set_grades(enrollment, 90, 80, 70)

    assert ledger.compute_overall(enrollment) == pytest.approx(81.0)
    assert ledger.gpa_for("10001") == pytest.approx(2.7)


def test_absence_counts_a_session_only_when_needed(enrolled, ledger):
    _, registry = enrolled
    registry.get("CS121").grow_sessions(4)
    enrollment = ledger.get_or_create("10001", "CS121")
    assert enrollment.total_sessions == 4

    ledger.record_attendance(enrollment, False)
    ledger.record_attendance(enrollment, True)

    assert (enrollment.attendance_count, enrollment.total_sessions) == (1, 4)
    assert ledger.attendance_percentage(enrollment) == pytest.approx(25.0)


def test_get_or_create_is_idempotent(enrolled, ledger):
    identity, _ = enrolled
    first = ledger.get_or_create("10001", "CS121")
    second = ledger.get_or_create("10001", " cs 121 ")

    assert first is second
    assert len(ledger.all()) == 1
    assert identity.get_student("10001").enrollments == [first]


def test_enroll_twice_is_an_error(enrolled, ledger):
    ledger.enroll("10001", "CS121")
    with pytest.raises(AlreadyEnrolledError):
        ledger.enroll("10001", "cs121")


def test_enroll_requires_known_student_and_course(enrolled, ledger):
    with pytest.raises(StudentNotFoundError):
        ledger.enroll("19999", "CS121")
    with pytest.raises(StudentNotFoundError):
        ledger.enroll("20001", "CS121")
    with pytest.raises(CourseNotFoundError):
        ledger.enroll("10001", "NOPE1")
    assert ledger.all() == []


def test_mutation_is_visible_through_every_reference(enrolled, ledger):
    identity, _ = enrolled
    enrollment = ledger.get_or_create("10001", "CS121")
    ledger.set_grades(enrollment, 50, 60, 70)

    via_student = identity.get_student("10001").get_enrollment("cs 121")
    via_ledger = ledger.find("10001", "CS121")
    assert via_student is via_ledger is enrollment
    assert via_student.final_score == 70.0


def test_ledger_only_enrollment_is_reattached(enrolled, ledger):
    identity, _ = enrolled
    loaded = ledger.attach_loaded(Enrollment("10001", "cs121", 80, 80, 80, 2, 5))
    student = identity.get_student("10001")
    student._enrollments.clear()

    found = ledger.get_or_create("10001", "CS121")

    assert found is loaded
    assert found.course_code == "CS121"
    assert student.get_enrollment("CS121") is loaded
    assert len(ledger.all()) == 1


def test_attach_loaded_drops_unresolved_references(enrolled, ledger):
    assert ledger.attach_loaded(Enrollment("19999", "CS121")) is None
    assert ledger.attach_loaded(Enrollment("10001", "NOPE1")) is None
    assert ledger.all() == []


def test_attach_loaded_overwrites_existing_pair(enrolled, ledger):
    first = ledger.attach_loaded(Enrollment("10001", "CS121", 10, 10, 10, 1, 1))
    second = ledger.attach_loaded(Enrollment("10001", "CS121", 90, 90, 90, 2, 3))

    assert second is first
    assert (first.final_score, first.attendance_count, first.total_sessions) == (90.0, 2, 3)
    assert len(ledger.all()) == 1


def test_enrollment_invariant_holds_on_construction():
    enrollment = Enrollment("10001", "CS121", attendance_count=5, total_sessions=2)
    assert enrollment.total_sessions == 5


def test_concurrent_get_or_create_yields_one_enrollment(enrolled, ledger):
    results = []

    def worker():
        results.append(ledger.get_or_create("10001", "CS121"))

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(ledger.all()) == 1
    assert all(r is results[0] for r in results)


def test_attendance_sequence_keeps_invariant(enrolled, ledger):
    enrollment = ledger.get_or_create("10001", "CS121")

    for present in (True, False, True, True, False, True):
        ledger.record_attendance(enrollment, present)
        assert enrollment.attendance_count <= enrollment.total_sessions

    assert ledger.get_or_create("10001", "CS121") is enrollment
