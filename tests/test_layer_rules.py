# -*- coding: utf-8 -*-
"""Tests for layers, the rule engine and class dissolving."""

import warnings

import pytest
from conftest import line_samples

from ecodomain import (
    BathymetryRasterizer,
    ConfigurationWarning,
    DomainWarning,
    Layer,
    LayerManager,
    Rule,
    RuleSet,
    attach_zone_area_stats,
    dissolve_by_class,
)
from ecodomain.core.rules import band_condition


@pytest.fixture
def grid():
    return BathymetryRasterizer(resolution=10.0, crs=None).execute(
        line_samples([-5.0, -50.0, -80.0, -300.0], spacing=10.0), layer_name="Grid"
    )


def test_band_condition_is_inclusive(grid):
    mask = Rule("band", band_condition("elevation", -80, -50)).evaluate(grid.objects)
    assert mask.tolist() == [False, True, True, False]


def test_later_rules_override_earlier_ones(grid):
    rules = RuleSet(name="Depth")
    rules.add_rule("Shelf", "elevation >= -100")
    rules.add_rule("Coastal", "elevation >= -10")
    manager = LayerManager()

    result = rules.execute(grid, layer_manager=manager, result_field="depth_class")

    assert result.type == "classification"
    assert result.parent is grid
    assert result.objects["depth_class"].tolist() == ["Coastal", "Shelf", "Shelf", None]
    assert manager.get_layer("Grid_Depth") is result
    assert "depth_class" not in grid.objects.columns
    assert rules.get_rules() == [("Shelf", "elevation >= -100"), ("Coastal", "elevation >= -10")]


def test_string_conditions_fall_back_to_pandas(grid):
    """numexpr cannot compare strings, so such rules are evaluated by pandas."""
    first = RuleSet(name="First")
    first.add_rule("Deep", "elevation < -60")
    classified = first.execute(grid)

    second = RuleSet(name="Second")
    second.add_rule("Very_Deep", "(classification == 'Deep') & (elevation < -100)", class_value="abyss")
    result = second.execute(classified, result_field="refined")

    assert result.objects["refined"].tolist() == [None, None, None, "abyss"]


def test_broken_condition_raises(grid):
    with pytest.raises(ValueError, match="no_such_column"):
        Rule("broken", "no_such_column > 1").evaluate(grid.objects)


def test_dissolve_keeps_requested_classes_in_order(grid):
    rules = RuleSet(name="Depth")
    rules.add_rule("Shallow", "elevation >= -60")
    classified = rules.execute(grid)

    merged = dissolve_by_class(classified, "classification", class_values=["Shallow", "Missing"])
    objects = merged.objects

    assert merged.type == "merged"
    assert objects["classification"].tolist() == ["Shallow", "Missing"]
    assert objects["n_cells"].tolist() == [2, 0]
    assert objects["area_units"].tolist() == pytest.approx([200.0, 0.0])
    assert objects.geometry.iloc[0].geom_type == "Polygon", "Adjacent cells should dissolve into one polygon."
    assert objects.geometry.iloc[1].is_empty
    assert objects["min_elevation"].iloc[0] == -50.0
    assert objects["max_elevation"].iloc[0] == -5.0


def test_zone_area_stats(grid):
    rules = RuleSet(name="Depth")
    rules.add_rule("Shallow", "elevation >= -60")
    rules.add_rule("Deep", "elevation < -60")
    merged = dissolve_by_class(rules.execute(grid), "classification")
    merged.objects = merged.objects.rename(
        columns={"classification": "zone", "min_elevation": "max_depth", "max_elevation": "min_depth"}
    )

    merged.attach_function(attach_zone_area_stats, name="areas")
    stats = merged.get_function_result("areas")

    assert stats["total_area"] == pytest.approx(400.0)
    assert stats["zone_percentages"] == {"Shallow": 50.0, "Deep": 50.0}
    assert stats["zone_depths"]["Deep"] == {"min_depth": -80.0, "max_depth": -300.0, "n_cells": 2}


def test_issues_flow_to_derived_layers():
    parent = Layer(name="parent")
    parent.add_issue(ConfigurationWarning("threshold too small", value=1.0))
    child = parent.derive("child", type="zone")
    child.add_issue(DomainWarning("only on the child"))

    assert len(parent.issues) == 1
    assert len(child.issues) == 2
    assert child.issues_of(ConfigurationWarning)[0].to_dict() == {
        "kind": "ConfigurationWarning",
        "message": "threshold too small",
        "value": 1.0,
    }

    with warnings.catch_warnings(record=True) as caught:
        warnings.simplefilter("always")
        child.raise_issues()
    assert [type(w.message) for w in caught] == [ConfigurationWarning, DomainWarning]


def test_layer_manager_lookup():
    manager = LayerManager()
    first = manager.add_layer(Layer(name="first", type="grid"))
    second = manager.add_layer(Layer(name="second", type="zone"))

    assert manager.get_layer_names() == ["first", "second"]
    assert manager.get_layer(first.id) is first
    assert manager.get_layer("second") is second
    assert manager.get_layers_by_type("zone") == [second]
    assert manager.active_layer is second
    with pytest.raises(ValueError):
        manager.get_layer("third")


def test_copy_is_independent(grid):
    clone = grid.copy()
    clone.objects["extra"] = 1
    clone.add_issue(DomainWarning("only on the copy"))

    assert "extra" not in grid.objects.columns
    assert not grid.issues
    assert "issues: 1" in str(clone)
