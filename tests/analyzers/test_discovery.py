"""Tests for analyzer discovery utilities."""

from __future__ import annotations

from types import SimpleNamespace

import pytest

from primer.analyzers import (
    ArchitectureAnalyzer,
    ConventionsAnalyzer,
    DependencyAnalyzer,
    KnowledgeAnalyzer,
    discover_analyzers,
)


class DummyAnalyzer(KnowledgeAnalyzer):
    """Test analyzer used for plugin discovery validation."""

    title = "Dummy"

    def lines(self, context):  # pragma: no cover - unused
        return []


def _patch_entry_points(monkeypatch, entries) -> None:
    class DummyEntryPoints(list):
        def select(self, **kwargs):
            if kwargs.get("group") == "primer.analyzers":
                return self
            return []

    monkeypatch.setattr(
        "primer.analyzers.metadata.entry_points",
        lambda: DummyEntryPoints(entries),
        raising=False,
    )


def test_builtin_analyzers_in_fitting_order(monkeypatch) -> None:
    _patch_entry_points(monkeypatch, [])
    analyzers = discover_analyzers()
    assert [type(analyzer) for analyzer in analyzers] == [
        ArchitectureAnalyzer,
        ConventionsAnalyzer,
        DependencyAnalyzer,
    ]


def test_discover_analyzers_respects_enabled_filter() -> None:
    analyzers = discover_analyzers(["conventions"])
    assert len(analyzers) == 1
    assert isinstance(analyzers[0], ConventionsAnalyzer)


def test_discover_analyzers_loads_entry_points(monkeypatch) -> None:
    _patch_entry_points(monkeypatch, [SimpleNamespace(name="dummy", load=lambda: DummyAnalyzer)])

    analyzers = discover_analyzers(["dummy"])

    assert len(analyzers) == 1
    assert isinstance(analyzers[0], DummyAnalyzer)


def test_broken_plugin_is_skipped(monkeypatch) -> None:
    def _boom():
        raise ImportError("missing dependency")

    _patch_entry_points(monkeypatch, [SimpleNamespace(name="broken", load=_boom)])

    analyzers = discover_analyzers()

    assert len(analyzers) == 3


def test_discover_analyzers_raises_for_unknown_name() -> None:
    with pytest.raises(ValueError):
        discover_analyzers(["does-not-exist"])
