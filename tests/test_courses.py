import pytest

from registrar.core.exceptions import (
    CourseNotFoundError, DuplicateCodeError, InstructorNotFoundError, ValidationError
)
from registrar.services.course_service import DEFAULT_CATALOG


def test_codes_are_compared_normalized(enrolled):
    _, registry = enrolled

    assert registry.get(" cs 121 ").code == "CS121"
    assert registry.get("cs121") is registry.get("CS 121")
    with pytest.raises(DuplicateCodeError):
        registry.create_course("cs 121", "Another title")


def test_create_course_validation(registry):
    with pytest.raises(ValidationError):
        registry.create_course("  ", "Empty")
    with pytest.raises(ValidationError):
        registry.create_course("X1", "Negative", total_sessions=-1)
    with pytest.raises(InstructorNotFoundError):
        registry.create_course("X1", "Ghost", instructor_id="29999")
    assert registry.courses() == []


def test_assign_instructor_moves_course_between_instructors(enrolled):
    identity, registry = enrolled
    identity.register_instructor("20002", "Grace Hopper", "grace@uni.edu", "pass")

    registry.assign_instructor(" cs 121 ", "20001")
    assert identity.get_instructor("20001").teaches("CS121")

    course = registry.assign_instructor("CS121", "20002")
    assert course.instructor_id == "20002"
    assert identity.get_instructor("20002").courses == ["CS121"]
    assert not identity.get_instructor("20001").teaches("CS121")


def test_assign_instructor_errors(enrolled):
    _, registry = enrolled

    with pytest.raises(InstructorNotFoundError):
        registry.assign_instructor("CS121", "10001")
    with pytest.raises(CourseNotFoundError):
        registry.assign_instructor("NOPE1", "20001")


def test_lookup_matches_code_or_title(enrolled):
    _, registry = enrolled
    registry.create_course("Phy 101", "Calculus-Based Physics")

    assert [c.code for c in registry.lookup("programming")] == ["CS121"]
    assert [c.code for c in registry.lookup("phy")] == ["Phy 101"]
    assert len(registry.lookup("")) == 2


def test_default_catalog_only_seeds_empty_registry(registry):
    assert registry.ensure_default_catalog() == len(DEFAULT_CATALOG)
    assert registry.ensure_default_catalog() == 0
    assert registry.get("CS121").title == "Advanced Computer Programming"
    assert registry.get_statistics() == {'courses': 8, 'unassigned': 8}
