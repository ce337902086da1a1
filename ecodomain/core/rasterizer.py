# -*- coding: utf-8 -*-
"""Turns scattered depth soundings into a regular grid of elevation cells.

Each sounding is assigned to the grid cell containing it. The cell keeps the sampled value (no interpolation)
and becomes a square polygon whose edges coincide exactly with its neighbours, so unions of cells have no gaps.
Cells that never receive a valid sample are left out of every downstream polygon.
"""

import logging

import geopandas as gpd
import numpy as np
import pandas as pd
import shapely
from pyproj import CRS
from rasterio.transform import from_origin, rowcol

from ..utils.validation import validate_samples
from .errors import ConfigurationWarning, DataGapError
from .layer import Layer

logger = logging.getLogger(__name__)

DEFAULT_SOURCE_CRS = "EPSG:4326"
DEFAULT_TARGET_CRS = "EPSG:3035"

MAX_GRID_CELLS = 25_000_000


def infer_resolution(x, y):
    """Infer the grid spacing as the median distance from each sample to its nearest neighbour.

    Coincident samples are ignored, so duplicated soundings do not shrink the spacing. On a regular survey this is
    the survey spacing; on a scattered point cloud it is the typical gap between soundings.

    Parameters:
    -----------
    x, y : array-like
        Sample coordinates

    Returns:
    --------
    resolution : float
        Grid spacing in coordinate units
    """
    points = shapely.points(np.asarray(x, dtype=float), np.asarray(y, dtype=float))
    tree = shapely.STRtree(points)
    (_, _), distances = tree.query_nearest(points, return_distance=True, exclusive=True, all_matches=False)
    distances = distances[distances > 0]

    if distances.size == 0:
        raise ValueError("Cannot infer a grid resolution from a single sample position; pass resolution explicitly")

    return float(np.median(distances))


class BathymetryRasterizer:
    """Rasterize a depth point cloud into elevation bearing polygon cells."""

    def __init__(self, resolution=None, crs=DEFAULT_SOURCE_CRS, target_crs=None):
        """Initialize the rasterizer.

        Parameters:
        -----------
        resolution : float, optional
            Cell size in the units of ``crs``. Inferred from the sample spacing when None.
            Choose it no finer than the sample spacing.
        crs : str or pyproj.CRS, optional
            Coordinate reference system of the samples. None for plain planar coordinates.
        target_crs : str or pyproj.CRS, optional
            Projected CRS the cell polygons are transformed to. None keeps a projected ``crs`` and transforms
            geographic samples to DEFAULT_TARGET_CRS, so areas and shore distances come out in metres.
        """
        if resolution is not None and resolution <= 0:
            raise ValueError(f"resolution must be positive, got {resolution}")
        self.resolution = resolution
        self.crs = crs
        self.target_crs = target_crs

    def execute(self, samples, layer_manager=None, layer_name=None):
        """Rasterize samples and create a grid layer.

        Parameters:
        -----------
        samples : pandas.DataFrame or geopandas.GeoDataFrame
            Depth samples with longitude, latitude and elevation
        layer_manager : LayerManager, optional
            Layer manager to add the result layer to
        layer_name : str, optional
            Name for the result layer

        Returns:
        --------
        layer : Layer
            Grid layer. ``raster`` holds the elevation grid (NaN where empty), ``objects`` one polygon per cell.
        """
        frame = validate_samples(samples)
        resolution = self.resolution or infer_resolution(frame["x"], frame["y"])

        west = frame["x"].min() - resolution / 2.0
        north = frame["y"].max() + resolution / 2.0
        transform = from_origin(west, north, resolution, resolution)

        rows, cols = rowcol(transform, frame["x"].to_numpy(), frame["y"].to_numpy())
        frame["row"] = np.asarray(rows, dtype=int)
        frame["col"] = np.asarray(cols, dtype=int)
        height = int(frame["row"].max()) + 1
        width = int(frame["col"].max()) + 1
        if height * width > MAX_GRID_CELLS:
            raise ValueError(
                f"Resolution {resolution:g} gives a {height}x{width} grid (limit {MAX_GRID_CELLS} cells); "
                "pass a coarser resolution explicitly"
            )

        representatives = self._select_representatives(frame)

        raster = np.full((height, width), np.nan)
        valid = representatives[representatives["elevation"].notna()]
        raster[valid["row"].to_numpy(), valid["col"].to_numpy()] = valid["elevation"].to_numpy()

        if not layer_name:
            layer_name = f"Grid_res{resolution:g}"

        layer = Layer(name=layer_name, type="grid")
        layer.raster = raster
        layer.transform = transform
        layer.raster_crs = self.crs

        n_missing = int(height * width - len(valid))
        n_empty_samples = int(frame["elevation"].isna().sum())
        if n_missing:
            layer.add_issue(
                DataGapError(
                    f"{n_missing} of {height * width} grid cells have no elevation and are excluded",
                    n_missing=n_missing,
                    n_empty_samples=n_empty_samples,
                )
            )

        cells = self._create_cell_objects(valid, transform, resolution)
        layer.crs = self.crs
        target_crs = self._resolve_target_crs()
        if target_crs is not None:
            cells = self._reproject(cells, layer, target_crs)

        cells["area_units"] = cells.geometry.area
        layer.objects = cells
        layer.metadata = {
            "resolution": resolution,
            "source_crs": str(self.crs) if self.crs is not None else None,
            "raster_crs": str(layer.raster_crs) if layer.raster_crs is not None else None,
            "target_crs": str(layer.crs) if layer.crs is not None else None,
            "shape": (height, width),
            "n_samples": len(frame),
            "n_cells": len(cells),
            "n_missing": n_missing,
        }

        logger.info("Rasterized %d samples into %d cells (%dx%d grid)", len(frame), len(cells), height, width)

        if layer_manager:
            layer_manager.add_layer(layer)

        return layer

    @staticmethod
    def _select_representatives(frame):
        """Keep one sample per cell, preferring valid elevations, independent of input order."""
        ordered = frame.assign(_missing=frame["elevation"].isna())
        ordered = ordered.sort_values(["row", "col", "_missing", "x", "y", "elevation"], kind="mergesort")
        first = ordered.drop_duplicates(subset=["row", "col"], keep="first")
        return first.drop(columns="_missing").reset_index(drop=True)

    def _create_cell_objects(self, valid, transform, resolution):
        """Create one square polygon per cell with an elevation.

        Parameters:
        -----------
        valid : pandas.DataFrame
            One row per cell with ``row``, ``col`` and ``elevation``
        transform : affine.Affine
            Grid transform
        resolution : float
            Cell size

        Returns:
        --------
        cells : geopandas.GeoDataFrame
            Cells ordered by (row, col)
        """
        valid = valid.sort_values(["row", "col"]).reset_index(drop=True)
        rows = valid["row"].to_numpy()
        cols = valid["col"].to_numpy()

        west = transform.c + cols * resolution
        east = transform.c + (cols + 1) * resolution
        north = transform.f - rows * resolution
        south = transform.f - (rows + 1) * resolution

        geometries = shapely.box(west, south, east, north)

        cells = pd.DataFrame(
            {
                "cell_id": np.arange(len(valid), dtype=int),
                "row": rows,
                "col": cols,
                "elevation": valid["elevation"].to_numpy(dtype=float),
                "x": (west + east) / 2.0,
                "y": (south + north) / 2.0,
            }
        )
        return gpd.GeoDataFrame(cells, geometry=geometries, crs=self.crs)

    def _resolve_target_crs(self):
        """Target CRS to use, defaulting geographic samples to DEFAULT_TARGET_CRS."""
        if self.target_crs is not None:
            return self.target_crs
        if self.crs is not None and CRS.from_user_input(self.crs).is_geographic:
            logger.info("Samples are geographic; projecting cells to %s", DEFAULT_TARGET_CRS)
            return DEFAULT_TARGET_CRS
        return None

    def _reproject(self, cells, layer, target_crs):
        """Transform cells to the target CRS, recording a warning when that is not possible or sensible.

        Cell polygons and the ``x``/``y`` centres move to the target CRS. The raster and its transform stay on the
        source grid, which ``layer.raster_crs`` keeps track of.
        """
        target = CRS.from_user_input(target_crs)

        if not target.is_projected:
            layer.add_issue(
                ConfigurationWarning(
                    f"Target CRS {target.to_string()} is not projected; distances and areas are not in linear units",
                    target_crs=target.to_string(),
                )
            )

        if cells.crs is None:
            layer.add_issue(
                ConfigurationWarning(
                    "Samples have no CRS; cells are kept in their input coordinates",
                    target_crs=target.to_string(),
                )
            )
            return cells

        centres = gpd.GeoSeries(gpd.points_from_xy(cells["x"], cells["y"]), crs=cells.crs).to_crs(target)
        projected = cells.to_crs(target)
        projected["x"] = centres.x.to_numpy()
        projected["y"] = centres.y.to_numpy()

        layer.crs = target
        return projected
