"""
Shared test fixtures and helpers for the servicebay test suite.

``sample_app`` (next to this file) provides the packages scanned by the
container tests; it is importable because pytest puts this directory on
``sys.path``.
"""

import pytest

from servicebay import Container

from sample_app import journal


SAMPLE_ADDONS = "sample_app.addons"


# ============================================================================
# Fixtures
# ============================================================================


@pytest.fixture(autouse=True)
def clear_journal():
    """Every test starts with an empty lifecycle journal."""
    journal.clear()
    yield
    journal.clear()


@pytest.fixture
def events():
    return journal.EVENTS


@pytest.fixture
def make_container():
    """
    Factory for containers that never touch the real filesystem config.

    Usage:
        container = make_container("sample_app.greeting", config={...})
    """
    def factory(*packages, config=None, **kwargs):
        container = Container(config=config if config is not None else {}, **kwargs)
        for package in packages:
            container.add_package_to_scan(package)
        return container

    return factory


@pytest.fixture
def config_file(tmp_path):
    """Write a YAML file under tmp_path and return its path as str."""
    def write(text, name="servicebay.yaml"):
        path = tmp_path / name
        path.write_text(text, encoding="utf-8")
        return str(path)

    return write
