"""
Script to add sample records to a running Registrar server via the REST API.
Make sure the server is running before executing this script.

Usage:
    python -m registrar.main --serve
    python add_data.py
"""

import json
import os
import sys

import requests


def _console_supports_utf8() -> bool:
    enc = getattr(sys.stdout, "encoding", None)
    return enc is not None and "utf" in enc.lower()


_OK_CHAR = "✓" if _console_supports_utf8() else "[OK]"
_FAIL_CHAR = "✗" if _console_supports_utf8() else "[FAIL]"
_INFO_CHAR = "ℹ" if _console_supports_utf8() else "[INFO]"


def _detect_base_url() -> str:
    """Determine a reachable BASE_URL.

    Priority: environment variable `REGISTRAR_BASE_URL`, then common local ports.
    If nothing responds, fall back to http://127.0.0.1:8000.
    """
    env = os.environ.get("REGISTRAR_BASE_URL")
    if env:
        return env

    candidates = [
        "http://127.0.0.1:8000",
        "http://localhost:8000",
    ]

    for c in candidates:
        try:
            resp = requests.get(f"{c}/health", timeout=0.5)
            if resp.status_code == 200:
                return c
        except requests.exceptions.RequestException:
            continue

    return candidates[0]


BASE_URL = _detect_base_url()


def check_server():
    """Check if the server is running."""
    try:
        response = requests.get(f"{BASE_URL}/health", timeout=2)
        if response.status_code == 200:
            print(f"{_OK_CHAR} Server is running")
            return True
    except requests.exceptions.RequestException:
        pass
    print(f"{_FAIL_CHAR} Server is not running!")
    print("\nPlease start the server first:")
    print("  python -m registrar.main --serve --port 8000")
    return False


def _post(path, data, label):
    try:
        response = requests.post(f"{BASE_URL}{path}", json=data)
    except requests.exceptions.RequestException as e:
        print(f"{_FAIL_CHAR} Error creating {label}: {e}")
        return None
    if response.status_code in (200, 201):
        print(f"{_OK_CHAR} Created {label}")
        return response.json()
    if response.status_code == 409:
        print(f"{_INFO_CHAR} {label} already exists")
        return None
    print(f"{_FAIL_CHAR} Failed to create {label}: {response.text}")
    return None


def create_student(user_id, name, email, password):
    return _post("/students", {"user_id": user_id, "name": name, "email": email, "password": password},
                 f"student {name} ({user_id})")


def create_instructor(user_id, name, email, password):
    return _post("/instructors", {"user_id": user_id, "name": name, "email": email, "password": password},
                 f"instructor {name} ({user_id})")


def create_course(code, title, instructor_id=None):
    return _post("/courses", {"code": code, "title": title, "instructor_id": instructor_id},
                 f"course {code} - {title}")


def enroll_student(student_id, course_code):
    return _post("/enrollments", {"student_id": student_id, "course_code": course_code},
                 f"enrollment {student_id} in {course_code}")


def assign_grades(student_id, course_code, assignment, quiz, final):
    """Assign grades to an enrollment."""
    url = f"{BASE_URL}/enrollments/{student_id}/{course_code}/grades"
    try:
        response = requests.put(url, json={"assignment": assignment, "quiz": quiz, "final": final})
        if response.status_code == 200:
            result = response.json()
            print(f"{_OK_CHAR} Graded {student_id} in {course_code}: overall {result['overall']:.2f}")
            return result
        print(f"{_FAIL_CHAR} Failed to grade: {response.text}")
    except requests.exceptions.RequestException as e:
        print(f"{_FAIL_CHAR} Error grading: {e}")
    return None


def mark_attendance(student_id, course_code, present):
    url = f"{BASE_URL}/enrollments/{student_id}/{course_code}/attendance"
    try:
        response = requests.post(url, json={"present": present})
        if response.status_code == 200:
            return response.json()
        print(f"{_FAIL_CHAR} Failed to record attendance: {response.text}")
    except requests.exceptions.RequestException as e:
        print(f"{_FAIL_CHAR} Error recording attendance: {e}")
    return None


def list_courses():
    """List all courses."""
    try:
        response = requests.get(f"{BASE_URL}/courses")
        if response.status_code == 200:
            courses = response.json()
            print(f"\n{'='*60}")
            print(f"Courses ({len(courses)})")
            print(f"{'='*60}")
            for course in courses:
                instructor = course.get('instructor_id') or "None"
                print(f"  {course['code']:10} | {course['title']:35} | {instructor}")
            return courses
        print(f"{_FAIL_CHAR} Failed to list courses: {response.text}")
    except requests.exceptions.RequestException as e:
        print(f"{_FAIL_CHAR} Error listing courses: {e}")
    return []


def get_statistics():
    """Get record counts."""
    try:
        response = requests.get(f"{BASE_URL}/statistics")
        if response.status_code == 200:
            stats = response.json()
            print(f"\n{'='*60}")
            print("Statistics")
            print(f"{'='*60}")
            print(json.dumps(stats['statistics'], indent=2))
            return stats
        print(f"{_FAIL_CHAR} Failed to get statistics: {response.text}")
    except requests.exceptions.RequestException as e:
        print(f"{_FAIL_CHAR} Error getting statistics: {e}")
    return None


def persist():
    try:
        response = requests.post(f"{BASE_URL}/persist")
        result = response.json()
        if result.get('success'):
            print(f"{_OK_CHAR} Records saved")
        else:
            print(f"{_FAIL_CHAR} Could not save: {', '.join(result.get('failed', []))}")
        return result
    except requests.exceptions.RequestException as e:
        print(f"{_FAIL_CHAR} Error saving: {e}")
    return None


def main():
    """Main execution."""
    print("="*60)
    print("Registrar - Data Addition Script")
    print("="*60)
    print()

    if not check_server():
        sys.exit(1)

    print("\nCreating instructors...")
    create_instructor("20001", "Bob Smith", "bob.smith@university.edu", "bob-pass")
    create_instructor("20002", "Grace Hopper", "grace.hopper@university.edu", "grace-pass")

    print("\nCreating students...")
    students = [
        ("10001", "Alice Johnson", "alice.johnson@university.edu"),
        ("10002", "Carol Davis", "carol.davis@university.edu"),
        ("10003", "David Wilson", "david.wilson@university.edu"),
    ]
    for user_id, name, email in students:
        create_student(user_id, name, email, "student-pass")

    print("\nCreating courses...")
    create_course("CS 301", "Database Systems", "20001")
    create_course("MATH 101", "Calculus I", "20002")

    print("\nEnrolling students...")
    enroll_student("10001", "CS 301")
    enroll_student("10002", "CS 301")
    enroll_student("10003", "MATH 101")

    print("\nRecording attendance and grades...")
    for student_id, course_code in (("10001", "CS301"), ("10002", "CS301"), ("10003", "MATH101")):
        for present in (True, True, False):
            mark_attendance(student_id, course_code, present)
    assign_grades("10001", "CS301", 95, 90, 88)
    assign_grades("10002", "CS301", 72, 68, 75)
    assign_grades("10003", "MATH101", 85, 80, 91)

    list_courses()
    get_statistics()
    persist()

    print("\n" + "="*60)
    print(f"{_OK_CHAR} Sample data added successfully!")
    print("="*60)
    print("\nYou can now:")
    print(f"  - View API docs: {BASE_URL}/docs")
    print(f"  - Student report: curl {BASE_URL}/students/10001/report")
    print(f"  - Get statistics: curl {BASE_URL}/statistics")
    print()


if __name__ == "__main__":
    try:
        main()
    except KeyboardInterrupt:
        print(f"\n\n{_FAIL_CHAR} Interrupted by user")
        sys.exit(1)
