import pytest

from registrar.main import RecordsPlatform


@pytest.fixture
def platform(tmp_path):
    """
    A fresh platform for each test, with every file redirected to a
    temporary directory and no default catalog.
    """
    records = RecordsPlatform({
        'data_dir': str(tmp_path),
        'audit_log': None,
        'seed_default_courses': False,
        'autosave': False,
    })
    records.load()
    yield records
    records.shutdown()


@pytest.fixture
def identity(platform):
    return platform.identity_store


@pytest.fixture
def registry(platform):
    return platform.course_registry


@pytest.fixture
def ledger(platform):
    return platform.ledger


@pytest.fixture
def enrolled(identity, registry):
    """Student 10001, instructor 20001 and an empty CS121 course."""
    identity.register_student("10001", "Alice Johnson", "alice@uni.edu", "alice-pass")
    identity.register_instructor("20001", "Bob Smith", "bob@uni.edu", "bob-pass")
    registry.create_course("CS121", "Advanced Computer Programming")
    return identity, registry
