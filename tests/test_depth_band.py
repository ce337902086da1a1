# -*- coding: utf-8 -*-
"""Tests for depth band selection, single and batched."""

import itertools

import numpy as np
import pandas as pd
import pytest
from conftest import line_samples

from ecodomain import BathymetryRasterizer, ConfigurationWarning, DepthBandClassifier


@pytest.fixture
def step_grid():
    """One row of cells at the elevations used by the end-to-end depth scenario."""
    samples = line_samples([-10.0, -55.0, -200.0, -550.0, -900.0])
    return BathymetryRasterizer(resolution=10000.0, crs=None).execute(samples)


def random_grid(seed, size=12):
    """Square grid with random elevations between -1000 and 0."""
    rng = np.random.default_rng(seed)
    xs, ys = np.meshgrid(np.arange(size) + 0.5, np.arange(size) + 0.5)
    samples = pd.DataFrame({"x": xs.ravel(), "y": ys.ravel(), "elevation": -rng.uniform(0.0, 1000.0, xs.size)})
    return BathymetryRasterizer(resolution=1.0, crs=None).execute(samples)


def test_offshore_band_selects_only_cells_inside(step_grid):
    """Band [-500, -60] keeps -200 and drops -10, -55, -550 and -900."""
    layer = DepthBandClassifier().execute(step_grid, shallow_limit=-60, deep_limit=-500)
    candidate = layer.objects.iloc[0]

    assert layer.type == "depth_band"
    assert candidate["zone"] == "Offshore"
    assert candidate["n_cells"] == 1, "Exactly one cell lies between -60 and -500."
    assert candidate["min_depth"] == -200.0
    assert candidate["max_depth"] == -200.0
    assert candidate["area_units"] == pytest.approx(1.0e8)
    assert candidate.geometry.bounds == (20000.0, -5000.0, 30000.0, 5000.0)


def test_band_bounds_are_inclusive():
    """Cells exactly on either limit are part of the band."""
    grid = BathymetryRasterizer(resolution=10.0, crs=None).execute(line_samples([-59.9, -60.0, -500.0, -500.1], spacing=10.0))
    layer = DepthBandClassifier().execute(grid, shallow_limit=-60, deep_limit=-500)

    assert layer.objects["n_cells"].iloc[0] == 2
    assert layer.objects["min_depth"].iloc[0] == -60.0
    assert layer.objects["max_depth"].iloc[0] == -500.0


@pytest.mark.parametrize("seed", range(5))
def test_area_grows_as_interval_widens(seed):
    """Widening the interval never shrinks the candidate."""
    grid = random_grid(seed)
    classifier = DepthBandClassifier()
    rng = np.random.default_rng(seed + 100)

    shallow, deep = -400.0, -600.0
    previous = classifier.execute(grid, shallow, deep).objects["area_units"].iloc[0]
    for _ in range(6):
        shallow = min(0.0, shallow + rng.uniform(0.0, 80.0))
        deep = deep - rng.uniform(0.0, 80.0)
        area = classifier.execute(grid, shallow, deep).objects["area_units"].iloc[0]
        assert area >= previous - 1e-9, f"Area shrank when widening to [{deep:.0f}, {shallow:.0f}]."
        previous = area


def test_reversed_limits_raise(step_grid):
    """A shallow limit below the deep limit is a caller error."""
    with pytest.raises(ValueError):
        DepthBandClassifier().execute(step_grid, shallow_limit=-500, deep_limit=-60)


def test_empty_band_is_reported(step_grid):
    """A band with no cells returns an empty candidate and a configuration warning."""
    layer = DepthBandClassifier().execute(step_grid, shallow_limit=-1000, deep_limit=-2000)

    assert layer.objects["n_cells"].iloc[0] == 0
    assert layer.objects.geometry.iloc[0].is_empty
    assert layer.objects["area_units"].iloc[0] == 0.0
    assert len(layer.issues_of(ConfigurationWarning)) == 1


def test_batch_matches_single_evaluations(sample_grid):
    """A 4x4 batch gives the same candidates, in product order, as 16 separate calls."""
    shallow_limits = [-40, -60, -80, -100]
    deep_limits = [-300, -400, -500, -600]
    classifier = DepthBandClassifier()

    batch = classifier.execute_batch(sample_grid, shallow_limits, deep_limits, max_workers=1)

    assert len(batch.objects) == 16
    expected_order = list(itertools.product([float(v) for v in shallow_limits], [float(v) for v in deep_limits]))
    assert list(zip(batch.objects["shallow_limit"], batch.objects["deep_limit"], strict=True)) == expected_order

    for (shallow, deep), area in zip(expected_order, batch.objects["area_units"], strict=True):
        single = classifier.execute(sample_grid, shallow, deep).objects["area_units"].iloc[0]
        assert area == pytest.approx(single)


def test_parallel_batch_is_deterministic(sample_grid):
    """Running the batch in a worker pool returns exactly the serial result."""
    classifier = DepthBandClassifier()
    serial = classifier.execute_batch(sample_grid, [-40, -60], [-300, -400], max_workers=1).objects
    parallel = classifier.execute_batch(sample_grid, [-40, -60], [-300, -400], max_workers=2).objects

    assert serial["n_cells"].tolist() == parallel["n_cells"].tolist()
    assert serial["area_units"].tolist() == pytest.approx(parallel["area_units"].tolist())
    assert all(a.equals(b) for a, b in zip(serial.geometry, parallel.geometry, strict=True))


def test_batch_skips_invalid_combinations(step_grid):
    """Combinations whose shallow limit lies below the deep limit are skipped with a warning."""
    batch = DepthBandClassifier().execute_batch(step_grid, [-60, -600], [-500], max_workers=1)

    assert len(batch.objects) == 1
    skipped = batch.issues_of(ConfigurationWarning)
    assert len(skipped) == 1
    assert skipped[0].context == {"shallow_limit": -600.0, "deep_limit": -500.0}
