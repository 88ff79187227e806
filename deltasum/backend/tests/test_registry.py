"""
tests/test_registry.py

Tests for registry.py — aggregator discovery and lookup.
"""

from __future__ import annotations

import pytest

from deltasum.backend import registry
from deltasum.backend.aggregation.aggregator import DeltaSumAggregator
from deltasum.backend.aggregation.base import BaseAggregator
from deltasum.backend.config import AggregatorConfig, ConfigurationError


@pytest.fixture
def clean_registry(monkeypatch):
    registry.available()
    monkeypatch.setattr(registry, "_registry", dict(registry._registry))


class TestDiscovery:

    def test_dbcounter_is_available(self):
        assert "dbcounter" in registry.available()

    def test_create_returns_configured_instance(self):
        cfg = AggregatorConfig(group_by_labels=["zone"])
        agg = registry.create("dbcounter", cfg)
        assert isinstance(agg, DeltaSumAggregator)
        assert agg.policy.mode == "group_by"

    def test_create_propagates_configuration_error(self):
        cfg = AggregatorConfig(group_by_labels=["a"], group_without_labels=["b"])
        with pytest.raises(ConfigurationError):
            registry.create("dbcounter", cfg)

    def test_unknown_name_raises(self):
        with pytest.raises(KeyError):
            registry.create("nope")

    def test_instances_are_independent(self):
        a = registry.create("dbcounter")
        b = registry.create("dbcounter")
        assert a.delta_states is not b.delta_states


class TestRegister:

    def test_duplicate_name_raises(self, clean_registry):
        class Other(DeltaSumAggregator):
            name = "dbcounter"

        with pytest.raises(ValueError):
            registry.register(Other)

    def test_nameless_class_raises(self, clean_registry):
        class Nameless(BaseAggregator):
            def ingest(self, sample):
                return False

            def flush(self, sink, now=None):
                return 0

            def reset(self, now=None):
                return 0

        with pytest.raises(ValueError):
            registry.register(Nameless)

    def test_register_as_decorator(self, clean_registry):
        @registry.register
        class Custom(DeltaSumAggregator):
            name = "custom"

        assert registry.create("custom").__class__ is Custom
