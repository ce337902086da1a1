# -*- coding: utf-8 -*-
"""Selects the grid cells inside a depth band and merges them into one zone candidate polygon.

Depths are elevations in negative metres and both bounds are inclusive, so the band ``[-500, -60]`` keeps a cell at
-60 m and drops one at -550 m. ``execute_batch`` evaluates a whole grid of candidate limits against the same
rasterized grid, one independent task per combination.
"""

import itertools
import logging

import geopandas as gpd
import numpy as np
from shapely.ops import unary_union

from ..utils.parallel import parallel_map
from .errors import ConfigurationWarning
from .rules import Rule, band_condition

logger = logging.getLogger(__name__)


def check_depth_limits(shallow_limit, deep_limit):
    """Raise ValueError when the shallow limit lies below the deep limit."""
    if shallow_limit < deep_limit:
        raise ValueError(
            f"shallow_limit ({shallow_limit}) must not be deeper than deep_limit ({deep_limit}); "
            "both are elevations in negative metres"
        )


def _band_polygon(task):
    """Select and union the cells of one depth band. Runs inside pool workers."""
    cells, shallow_limit, deep_limit = task
    rule = Rule("band", band_condition("elevation", deep_limit, shallow_limit))
    selected = cells[rule.evaluate(cells)]
    elevations = selected["elevation"].to_numpy()
    return {
        "shallow_limit": float(shallow_limit),
        "deep_limit": float(deep_limit),
        "min_depth": float(elevations.max()) if elevations.size else np.nan,
        "max_depth": float(elevations.min()) if elevations.size else np.nan,
        "n_cells": int(elevations.size),
        "geometry": unary_union(selected.geometry.values),
    }


class DepthBandClassifier:
    """Build zone candidate polygons from the cells whose elevation lies in a depth band."""

    def __init__(self, label="Offshore"):
        """Initialize the classifier.

        Parameters:
        -----------
        label : str
            Zone label written on the candidate polygons
        """
        self.label = label

    def execute(self, grid_layer, shallow_limit, deep_limit, layer_manager=None, layer_name=None):
        """Select one depth band.

        Parameters:
        -----------
        grid_layer : Layer
            Grid layer from BathymetryRasterizer
        shallow_limit : float
            Shallow (upper) bound in negative metres, e.g. -60
        deep_limit : float
            Deep (lower) bound in negative metres, e.g. -500
        layer_manager : LayerManager, optional
            Layer manager to add the result layer to
        layer_name : str, optional
            Name for the result layer

        Returns:
        --------
        layer : Layer
            Depth band layer with a single candidate row
        """
        check_depth_limits(shallow_limit, deep_limit)

        if not layer_name:
            layer_name = f"{self.label}_{shallow_limit:g}_{deep_limit:g}"

        record = _band_polygon((self._cells(grid_layer), shallow_limit, deep_limit))
        layer = self._build_layer(grid_layer, [record], layer_name)

        if layer_manager:
            layer_manager.add_layer(layer)

        return layer

    def execute_batch(
        self, grid_layer, shallow_limits, deep_limits, max_workers=None, layer_manager=None, layer_name=None
    ):
        """Evaluate every (shallow, deep) combination of candidate limits against one grid.

        Parameters:
        -----------
        grid_layer : Layer
            Grid layer from BathymetryRasterizer, built once and shared by every combination
        shallow_limits : sequence of float
            Candidate shallow bounds
        deep_limits : sequence of float
            Candidate deep bounds
        max_workers : int, optional
            Worker pool size. None uses every core, 1 runs serially.
        layer_manager : LayerManager, optional
            Layer manager to add the result layer to
        layer_name : str, optional
            Name for the result layer

        Returns:
        --------
        layer : Layer
            Layer with one candidate row per valid combination, ordered like
            ``itertools.product(shallow_limits, deep_limits)``
        """
        if not layer_name:
            layer_name = f"{self.label}_batch"

        cells = self._cells(grid_layer)
        combinations = list(itertools.product(shallow_limits, deep_limits))
        tasks = []
        skipped = []
        for shallow_limit, deep_limit in combinations:
            if shallow_limit < deep_limit:
                skipped.append((shallow_limit, deep_limit))
                continue
            tasks.append((cells, shallow_limit, deep_limit))

        logger.info("Evaluating %d depth band combinations", len(tasks))
        records = parallel_map(_band_polygon, tasks, max_workers=max_workers)
        layer = self._build_layer(grid_layer, records, layer_name)

        for shallow_limit, deep_limit in skipped:
            layer.add_issue(
                ConfigurationWarning(
                    f"Skipped band [{deep_limit:g}, {shallow_limit:g}]: shallow limit is deeper than deep limit",
                    shallow_limit=float(shallow_limit),
                    deep_limit=float(deep_limit),
                )
            )

        layer.metadata["shallow_limits"] = [float(v) for v in shallow_limits]
        layer.metadata["deep_limits"] = [float(v) for v in deep_limits]

        if layer_manager:
            layer_manager.add_layer(layer)

        return layer

    @staticmethod
    def _cells(grid_layer):
        if grid_layer.objects is None or "elevation" not in grid_layer.objects.columns:
            raise ValueError(f"Layer '{grid_layer.name}' has no elevation cells")
        return grid_layer.objects[["elevation", "geometry"]]

    def _build_layer(self, grid_layer, records, layer_name):
        candidates = gpd.GeoDataFrame(
            [{key: value for key, value in record.items() if key != "geometry"} for record in records],
            geometry=[record["geometry"] for record in records],
            crs=grid_layer.objects.crs,
        )
        candidates.insert(0, "zone", self.label)
        candidates["area_units"] = candidates.geometry.area

        layer = grid_layer.derive(layer_name, type="depth_band")
        layer.objects = candidates
        layer.metadata = {"label": self.label, "n_candidates": len(candidates)}

        for record in records:
            if record["n_cells"] == 0:
                layer.add_issue(
                    ConfigurationWarning(
                        f"Depth band [{record['deep_limit']:g}, {record['shallow_limit']:g}] selects no cells",
                        shallow_limit=record["shallow_limit"],
                        deep_limit=record["deep_limit"],
                    )
                )
            else:
                logger.debug(
                    "Band [%g, %g]: %d cells", record["deep_limit"], record["shallow_limit"], record["n_cells"]
                )

        return layer
