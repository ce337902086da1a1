# -*- coding: utf-8 -*-
"""Tests for distance to the nearest coastline feature."""

import geopandas as gpd
import numpy as np
import pytest
from conftest import line_samples, west_coast
from shapely import affinity
from shapely.geometry import Point, box

from ecodomain import BathymetryRasterizer, InputShapeError, ShoreDistanceEstimator, attach_shore_distance
from ecodomain.core import shore_distance


def test_distance_to_straight_coast():
    """Points east of a coast along x=0 are exactly their x coordinate away."""
    estimator = ShoreDistanceEstimator(west_coast())
    distances = estimator.distances(np.array([[15000.0, 0.0], [25000.0, 300.0], [1.0, -50.0]]), max_workers=1)

    assert distances == pytest.approx([15000.0, 25000.0, 1.0])


def test_point_on_land_is_zero():
    """A point inside a land polygon has zero distance."""
    estimator = ShoreDistanceEstimator([west_coast()])
    assert estimator.distances([Point(-100.0, 0.0)], max_workers=1)[0] == 0.0


def test_nearest_of_many_features():
    """With several islands the closest one wins."""
    islands = gpd.GeoDataFrame(geometry=[box(0, 0, 1, 1), box(10, 0, 11, 1), box(100, 100, 101, 101)])
    estimator = ShoreDistanceEstimator(islands)
    distances = estimator.distances(gpd.GeoSeries([Point(5, 0.5), Point(12, 0.5), Point(100.5, 90)]), max_workers=1)

    assert distances == pytest.approx([4.0, 1.0, 10.0])


@pytest.mark.parametrize("seed", range(3))
def test_distances_survive_isometries(seed):
    """Rotating and translating points and coast together keeps every distance and their rank order."""
    rng = np.random.default_rng(seed)
    points = [Point(x, y) for x, y in rng.uniform(-50.0, 150.0, size=(200, 2))]
    coast = [box(0, 0, 20, 40), box(60, 80, 90, 95)]

    angle = rng.uniform(0.0, 360.0)
    offset = rng.uniform(-1000.0, 1000.0, size=2)

    def move(geom):
        return affinity.translate(affinity.rotate(geom, angle, origin=(0, 0)), *offset)

    before = ShoreDistanceEstimator(coast).distances(points, max_workers=1)
    after = ShoreDistanceEstimator([move(g) for g in coast]).distances([move(p) for p in points], max_workers=1)

    assert after == pytest.approx(before, abs=1e-6)
    ranked = np.argsort(before, kind="stable")
    assert np.all(np.diff(after[ranked]) >= -1e-6), "Rank order changed under an isometry."


def test_parallel_chunks_match_serial(monkeypatch):
    """Chunked parallel evaluation keeps input order and values."""
    monkeypatch.setattr(shore_distance, "MIN_POINTS_PER_TASK", 100)
    rng = np.random.default_rng(7)
    coords = rng.uniform(0.0, 1000.0, size=(1000, 2))
    estimator = ShoreDistanceEstimator([box(-10, -10, 0, 1010), box(400, 400, 420, 420)])

    serial = estimator.distances(coords, max_workers=1)
    parallel = estimator.distances(coords, max_workers=3)

    assert np.array_equal(serial, parallel)


def test_region_prefilter_keeps_only_local_features():
    """Features outside the region box are not considered."""
    estimator = ShoreDistanceEstimator([box(0, 0, 1, 1), box(50, 0, 51, 1)], region=(40, -10, 60, 10))

    assert len(estimator.features) == 1
    assert estimator.distances([Point(2, 0.5)], max_workers=1)[0] == pytest.approx(48.0)

    with pytest.raises(InputShapeError):
        ShoreDistanceEstimator([box(0, 0, 1, 1)], region=(500, 500, 600, 600))


@pytest.mark.parametrize("coastline", [[], gpd.GeoSeries([]), ["not a geometry"]])
def test_invalid_coastline_raises(coastline):
    """Empty or non-geometric coastlines are rejected."""
    with pytest.raises(InputShapeError):
        ShoreDistanceEstimator(coastline)


def test_distance_to_polygon():
    """Distance between a polygon and the coast is the gap between their edges."""
    estimator = ShoreDistanceEstimator(west_coast())

    assert estimator.distance_to(box(12000, 0, 20000, 10)) == pytest.approx(12000.0)
    assert estimator.distance_to(box(-1, 0, 5, 5)) == 0.0
    assert np.isnan(estimator.distance_to(box(0, 0, 0, 0).buffer(-1)))


def test_attach_shore_distance_uses_cell_centroids():
    """Every cell receives the distance of its centroid."""
    grid = BathymetryRasterizer(resolution=10000.0, crs=None).execute(line_samples([-50.0, -100.0, -150.0]))
    grid.attach_function(attach_shore_distance, name="shore", estimator=ShoreDistanceEstimator(west_coast()), max_workers=1)

    assert grid.objects["shore_distance"].tolist() == pytest.approx([5000.0, 15000.0, 25000.0])
    assert grid.get_function_result("shore") == pytest.approx({"min": 5000.0, "max": 25000.0, "mean": 15000.0})


def test_coastline_is_reprojected_to_point_crs():
    """Coastline and points in different CRSs are compared in the point CRS."""
    coast = gpd.GeoSeries([box(19.0, 69.0, 20.0, 71.0)], crs="EPSG:4326")
    estimator = ShoreDistanceEstimator(coast)
    points = gpd.GeoSeries([Point(20.5, 70.0)], crs="EPSG:4326").to_crs("EPSG:3035")

    distance = estimator.distances(points, max_workers=1)[0]
    assert 15000.0 < distance < 22000.0, "Half a degree of longitude at 70N is about 19 km."
