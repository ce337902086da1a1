# -*- coding: utf-8 -*-
"""Shared fixtures for the ecodomain test suite."""

import pandas as pd
import pytest
from shapely.geometry import box

from ecodomain import BathymetryRasterizer, ShoreDistanceEstimator, create_sample_data


def line_samples(elevations, spacing=10000.0, y=0.0):
    """Samples on one row, the first centred half a cell east of x=0."""
    xs = [spacing / 2.0 + i * spacing for i in range(len(elevations))]
    return pd.DataFrame({"longitude": xs, "latitude": [y] * len(xs), "elevation": list(elevations)})


def west_coast(extent=1.0e6):
    """Land everywhere west of x=0."""
    return box(-extent, -extent, 0.0, extent)


@pytest.fixture(scope="session")
def sample_data():
    """Synthetic shelf shared by the tests."""
    return create_sample_data()


@pytest.fixture
def sample_grid(sample_data):
    """Grid layer rasterized from the synthetic shelf."""
    return BathymetryRasterizer(resolution=5000.0, crs=None).execute(sample_data["samples"], layer_name="Sample_Grid")


@pytest.fixture(scope="session")
def sample_estimator(sample_data):
    """Distance estimator over the synthetic coastline."""
    return ShoreDistanceEstimator(sample_data["coastline"])
