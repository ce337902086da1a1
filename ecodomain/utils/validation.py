# -*- coding: utf-8 -*-
"""Structural checks on the collections handed to the core.

Every check either returns a clean frame with canonical column names or raises ``InputShapeError`` before any
output is produced.
"""

import geopandas as gpd
import numpy as np
import pandas as pd
from shapely.geometry.base import BaseGeometry

from ..core.errors import InputShapeError

COORDINATE_ALIASES = {
    "x": ("longitude", "lon", "x"),
    "y": ("latitude", "lat", "y"),
    "elevation": ("elevation", "elev", "z"),
}

QUARTERS = ("Q1", "Q2", "Q3", "Q4")


def _find_column(frame, aliases):
    for alias in aliases:
        if alias in frame.columns:
            return alias
    return None


def _numeric(series, label):
    try:
        return pd.to_numeric(series, errors="raise").astype(float)
    except (TypeError, ValueError) as e:
        raise InputShapeError(f"Column '{label}' must be numeric: {e}") from e


def validate_samples(samples):
    """Validate a bathymetry point collection.

    Parameters:
    -----------
    samples : pandas.DataFrame or geopandas.GeoDataFrame
        Records with longitude/latitude (or point geometries) and an elevation column

    Returns:
    --------
    frame : pandas.DataFrame
        Frame with float columns ``x``, ``y`` and ``elevation``. Elevation may hold NaN.
    """
    if not isinstance(samples, pd.DataFrame):
        raise InputShapeError(f"Bathymetry samples must be a DataFrame, got {type(samples).__name__}")
    if len(samples) == 0:
        raise InputShapeError("Bathymetry samples are empty")

    elevation_col = _find_column(samples, COORDINATE_ALIASES["elevation"])
    if elevation_col is None:
        raise InputShapeError(f"Bathymetry samples have no elevation column (expected one of {COORDINATE_ALIASES['elevation']})")

    x_col = _find_column(samples, COORDINATE_ALIASES["x"])
    y_col = _find_column(samples, COORDINATE_ALIASES["y"])

    if x_col is not None and y_col is not None:
        x = _numeric(samples[x_col], x_col)
        y = _numeric(samples[y_col], y_col)
    elif isinstance(samples, gpd.GeoDataFrame) and samples.geometry is not None:
        if not (samples.geometry.geom_type == "Point").all():
            raise InputShapeError("Bathymetry geometries must all be points")
        x = pd.Series(samples.geometry.x.to_numpy(), index=samples.index)
        y = pd.Series(samples.geometry.y.to_numpy(), index=samples.index)
    else:
        raise InputShapeError("Bathymetry samples have no longitude/latitude columns or point geometry")

    if not (np.isfinite(x.to_numpy()).all() and np.isfinite(y.to_numpy()).all()):
        raise InputShapeError("Bathymetry coordinates contain missing or infinite values")

    elevation = _numeric(samples[elevation_col], elevation_col)

    return pd.DataFrame(
        {"x": x.to_numpy(), "y": y.to_numpy(), "elevation": elevation.to_numpy()},
        index=samples.index,
    )


def validate_coastline(coastline, crs=None):
    """Validate coastline features and return them as a GeoSeries.

    Parameters:
    -----------
    coastline : GeoDataFrame, GeoSeries, shapely geometry or sequence of geometries
        Land polygons (lines are accepted too)
    crs : optional
        CRS to assign when the input does not carry one

    Returns:
    --------
    features : geopandas.GeoSeries
        Non-empty, valid geometries
    """
    if isinstance(coastline, gpd.GeoDataFrame):
        features = coastline.geometry
    elif isinstance(coastline, gpd.GeoSeries):
        features = coastline
    elif isinstance(coastline, BaseGeometry):
        features = gpd.GeoSeries([coastline], crs=crs)
    else:
        try:
            geoms = list(coastline)
        except TypeError as e:
            raise InputShapeError(f"Unsupported coastline type: {type(coastline).__name__}") from e
        if not all(isinstance(geom, BaseGeometry) for geom in geoms):
            raise InputShapeError("Coastline features must be shapely geometries")
        features = gpd.GeoSeries(geoms, crs=crs)

    if features.crs is None and crs is not None:
        features = features.set_crs(crs)

    features = features[features.notna()]
    features = features[~features.is_empty]
    if len(features) == 0:
        raise InputShapeError("Coastline collection holds no geometries")

    invalid = ~features.is_valid
    if invalid.any():
        features = features.copy()
        features[invalid] = features[invalid].buffer(0)

    return features.reset_index(drop=True)


def normalize_quarter(values):
    """Map quarter labels ('Q1', 'q1', 1, '1') to the canonical 'Q1'..'Q4' strings."""
    labels = []
    for value in values:
        text = str(value).strip().upper()
        if text.startswith("Q"):
            text = text[1:]
        try:
            number = int(float(text))
        except ValueError as e:
            raise InputShapeError(f"Unrecognised quarter value: {value!r}") from e
        if number not in (1, 2, 3, 4):
            raise InputShapeError(f"Quarter must be 1-4, got {value!r}")
        labels.append(f"Q{number}")
    return labels


def validate_observations(observations):
    """Validate a vertical time series collection.

    Parameters:
    -----------
    observations : pandas.DataFrame
        Records with ``depth``, ``diffusivity`` and either ``quarter`` or ``time``.
        ``year`` and ``area`` are optional.

    Returns:
    --------
    frame : pandas.DataFrame
        Frame with float ``depth``, ``diffusivity``, ``area`` (NaN when absent) and canonical ``quarter`` labels
    """
    if not isinstance(observations, pd.DataFrame):
        raise InputShapeError(f"Observations must be a DataFrame, got {type(observations).__name__}")

    for column in ("depth", "diffusivity"):
        if column not in observations.columns:
            raise InputShapeError(f"Observations have no '{column}' column")

    frame = pd.DataFrame(index=observations.index)
    frame["depth"] = _numeric(observations["depth"], "depth")
    frame["diffusivity"] = _numeric(observations["diffusivity"], "diffusivity")

    if (frame["depth"] < 0).any():
        raise InputShapeError("Observation depths must be positive metres below the surface")
    if (frame["diffusivity"] < 0).any():
        raise InputShapeError("Diffusivity must be non-negative")

    if "quarter" in observations.columns:
        frame["quarter"] = normalize_quarter(observations["quarter"])
    elif "time" in observations.columns:
        times = pd.to_datetime(observations["time"], errors="coerce")
        if times.isna().any():
            raise InputShapeError("Observation times could not be parsed")
        frame["quarter"] = [f"Q{q}" for q in times.dt.quarter]
        frame["year"] = times.dt.year.to_numpy()
    else:
        raise InputShapeError("Observations need a 'quarter' or 'time' column")

    if "year" in observations.columns:
        frame["year"] = observations["year"].to_numpy()

    if "area" in observations.columns:
        frame["area"] = _numeric(observations["area"], "area")
    else:
        frame["area"] = np.nan

    if len(frame) and frame["depth"].isna().any():
        raise InputShapeError("Observation depths contain missing values")

    return frame
