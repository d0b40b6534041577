import json

import pytest

from registrar.core.enums import ReportFormat
from registrar.core.exceptions import StudentNotFoundError


@pytest.fixture
def graded(enrolled, ledger):
    enrollment = ledger.get_or_create("10001", "CS121")
    for _ in range(3):
        ledger.record_attendance(enrollment, True)
    ledger.set_grades(enrollment, 90, 80, 70)
    return enrollment


def test_csv_report_layout(platform, graded):
    report = platform.reports.generate_report("10001")

    assert report == (
        "Student ID,Name,Email\n"
        "10001,Alice Johnson,alice@uni.edu\n"
        "\n"
        "CourseCode,CourseTitle,Assignment,Quiz,FinalExam,Overall,AttendanceCount,TotalSessions,Attendance%\n"
        "CS121,Advanced Computer Programming,90.00,80.00,70.00,81.00,3,3,100.0\n"
        "\n"
        "GPA,2.70\n"
    )


def test_json_report(platform, graded):
    report = json.loads(platform.reports.generate_report("10001", ReportFormat.JSON))

    assert report['student_id'] == "10001"
    assert report['gpa'] == pytest.approx(2.7)
    assert report['enrollments'][0]['overall'] == pytest.approx(81.0)


def test_report_without_enrollments(platform, enrolled):
    report = platform.reports.build_report("10001")

    assert report['enrollments'] == []
    assert report['gpa'] == 0.0


def test_export_report_writes_named_file(tmp_path, platform, graded):
    path = platform.export_report("10001")

    assert path == str(tmp_path / "student_report_10001.csv")
    assert (tmp_path / "student_report_10001.csv").read_text(encoding="utf-8").endswith("GPA,2.70\n")


def test_unknown_student_has_no_report(platform):
    with pytest.raises(StudentNotFoundError):
        platform.reports.generate_report("19999")
