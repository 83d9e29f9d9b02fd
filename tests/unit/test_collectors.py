"""Tests for loading the collector suite."""

import pytest

from api.exceptions import CollectorsNotConfiguredError
from worker.collectors.base import CollectorSuite, load_collector_suite


class TestLoadCollectorSuite:
    """Tests for the configured collector factory."""

    def test_not_configured(self, settings):
        settings.collector_suite_factory = None

        with pytest.raises(CollectorsNotConfiguredError) as exc_info:
            load_collector_suite(settings)

        assert exc_info.value.status_code == 503

    @pytest.mark.parametrize(
        "path",
        ["build_suite", "launchpilot_missing.collectors:build", "tests.fixtures.facts:missing"],
    )
    def test_unloadable_factory(self, settings, path):
        settings.collector_suite_factory = path

        with pytest.raises(CollectorsNotConfiguredError):
            load_collector_suite(settings)

    @pytest.mark.parametrize(
        "path", ["tests.fixtures.facts:build_suite", "tests.fixtures.facts.build_suite"]
    )
    def test_loads_factory(self, settings, path):
        settings.collector_suite_factory = path

        suite = load_collector_suite(settings)

        assert isinstance(suite, CollectorSuite)
        assert suite.ssl is None

    def test_phase_one_collectors_exist(self):
        fields = CollectorSuite.__dataclass_fields__
        assert all(name in fields for name in CollectorSuite.PHASE_ONE)
