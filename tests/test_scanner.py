"""
Package scanning and type loading.
"""

import pytest

from servicebay.discovery import PackageScanner, load_type
from servicebay.errors import DiscoveryError

from sample_app import extra, nested
from sample_app.greeting.services import Clock, Greeter, Helper, Mood, Replaceable


class TestPackageScanner:

    def test_definition_order(self):
        scanner = PackageScanner()
        found = scanner.scan_package("sample_app.greeting")

        assert found == [Mood, Clock, Greeter, Replaceable, Helper]

    def test_imported_names_not_reported(self):
        found = PackageScanner().scan_package("sample_app.hosting")

        assert Clock not in found
        assert [c.__name__ for c in found] == ["ActivationHost", "Widget"]

    def test_plain_module(self):
        found = PackageScanner().scan_package("sample_app.extra")
        assert found == [extra.Extra, extra.NotAService]

    def test_nested_classes_not_reported(self):
        found = PackageScanner().scan_package("sample_app.nested")
        assert found == [nested.Outer]

    def test_predicate(self):
        found = PackageScanner().scan_package(
            "sample_app.greeting", predicate=lambda cls: cls.__name__.startswith("G")
        )
        assert found == [Greeter]

    def test_non_recursive(self):
        found = PackageScanner().scan_package("sample_app.greeting", recursive=False)
        assert found == []

    def test_missing_package(self):
        with pytest.raises(DiscoveryError) as exc_info:
            PackageScanner().scan_package("sample_app.absent")

        assert exc_info.value.target == "sample_app.absent"
        assert isinstance(exc_info.value.__cause__, ImportError)

    def test_broken_submodule_reported_and_skipped(self):
        errors = []
        scanner = PackageScanner()
        found = scanner.scan_package("sample_app.broken", on_error=errors.append)

        assert [c.__name__ for c in found] == ["Fine"]
        assert len(errors) == 1
        assert errors[0].target == "sample_app.broken.bad"
        assert isinstance(errors[0].__cause__, RuntimeError)
        assert scanner.get_stats()["errors_encountered"] == 1

    def test_broken_submodule_without_callback(self):
        found = PackageScanner().scan_package("sample_app.broken")
        assert [c.__name__ for c in found] == ["Fine"]

    def test_stats(self):
        scanner = PackageScanner()
        scanner.scan_package("sample_app.greeting")
        stats = scanner.get_stats()

        assert stats["modules_scanned"] == 2
        assert stats["classes_found"] == 5
        assert stats["scan_time"] >= 0


class TestLoadType:

    def test_dotted_name(self):
        assert load_type("sample_app.greeting.services.Greeter") is Greeter

    def test_colon_form(self):
        assert load_type("sample_app.greeting.services:Greeter") is Greeter

    def test_nested_class(self):
        assert load_type("sample_app.nested.Outer.Inner") is nested.Outer.Inner
        assert load_type("sample_app.nested:Outer.Inner") is nested.Outer.Inner

    def test_missing_attribute(self):
        with pytest.raises(DiscoveryError, match="Could not load class") as exc_info:
            load_type("sample_app.extra.Nope")
        assert exc_info.value.target == "sample_app.extra.Nope"

    def test_missing_module(self):
        with pytest.raises(DiscoveryError):
            load_type("sample_app.nowhere.Thing")

    def test_no_module_at_all(self):
        with pytest.raises(DiscoveryError, match="no importable module"):
            load_type("NoSuchTopLevelThing")

    def test_failing_module_is_not_masked(self):
        with pytest.raises(DiscoveryError) as exc_info:
            load_type("sample_app.broken.bad.Anything")
        assert isinstance(exc_info.value.__cause__, RuntimeError)

    def test_not_a_class(self):
        with pytest.raises(DiscoveryError, match="is not a class"):
            load_type("sample_app.journal.record")
