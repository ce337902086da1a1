# -*- coding: utf-8 -*-
"""Splits the model area into an Inshore and an Offshore zone.

Offshore holds the cells inside the offshore depth band that lie at least ``min_shore_distance`` from any coastline
feature. Inshore holds every other sea cell down to the deep limit: the water between the coast and the Offshore inner
boundary, including band cells that are too close to shore. Land (elevation above 0) and water deeper than the deep
limit are outside the analysis area. Both zones are built from whole cells, so they never overlap and together cover
the analysis area exactly.

Thresholds are model tuning inputs. Degenerate results (Offshore touching the coast, no Inshore area, an empty band)
are recorded as ConfigurationWarning issues on the zone layer instead of being rejected.
"""

import logging

import numpy as np
from pyproj import CRS

from .depth_band import check_depth_limits
from .errors import ConfigurationWarning
from .rules import RuleSet, band_condition, dissolve_by_class
from .shore_distance import attach_shore_distance

logger = logging.getLogger(__name__)

INSHORE = "Inshore"
OFFSHORE = "Offshore"
ZONE_LABELS = (INSHORE, OFFSHORE)


def check_zone_invariants(zone_layer, tolerance=1e-6):
    """Check that the zones are disjoint and cover the analysis area.

    Parameters:
    -----------
    zone_layer : Layer
        Layer produced by ZonePartitioner
    tolerance : float
        Relative area tolerance

    Returns:
    --------
    report : dict
        ``overlap_area``, ``coverage_gap`` (extent area minus zone union area) and ``valid``
    """
    zones = zone_layer.objects.set_index("zone")
    inshore = zones.geometry[INSHORE]
    offshore = zones.geometry[OFFSHORE]

    overlap_area = float(inshore.intersection(offshore).area)
    union_area = float(inshore.union(offshore).area)
    extent_area = float(zone_layer.metadata.get("extent_area", union_area))
    coverage_gap = extent_area - union_area

    scale = max(extent_area, 1.0)
    valid = overlap_area <= tolerance * scale and abs(coverage_gap) <= tolerance * scale

    return {"overlap_area": overlap_area, "coverage_gap": coverage_gap, "valid": bool(valid)}


class ZonePartitioner:
    """Partition a depth grid into Inshore and Offshore zone polygons."""

    def __init__(self, shallow_limit=-60.0, deep_limit=-400.0, min_shore_distance=20000.0):
        """Initialize the partitioner.

        Parameters:
        -----------
        shallow_limit : float
            Shallowest elevation of the Offshore zone in negative metres
        deep_limit : float
            Deepest elevation of the analysis area in negative metres
        min_shore_distance : float
            Minimum distance between an Offshore cell centroid and the coast, in grid CRS units (metres)
        """
        check_depth_limits(shallow_limit, deep_limit)
        if shallow_limit > 0:
            raise ValueError(f"shallow_limit must be at or below sea level, got {shallow_limit}")
        if min_shore_distance < 0:
            raise ValueError(f"min_shore_distance must be non-negative, got {min_shore_distance}")

        self.shallow_limit = float(shallow_limit)
        self.deep_limit = float(deep_limit)
        self.min_shore_distance = float(min_shore_distance)

    def build_rules(self):
        """Rules labelling cells; Offshore is applied last and overrides Inshore."""
        rules = RuleSet(name="Zones")
        rules.add_rule(INSHORE, band_condition("elevation", self.deep_limit, 0.0))
        rules.add_rule(
            OFFSHORE,
            band_condition("elevation", self.deep_limit, self.shallow_limit)
            + f" & (shore_distance >= {self.min_shore_distance!r})",
        )
        return rules

    def execute(self, grid_layer, estimator=None, max_workers=None, layer_manager=None, layer_name=None):
        """Partition the grid into zones.

        Parameters:
        -----------
        grid_layer : Layer
            Grid layer from BathymetryRasterizer. If its cells already carry ``shore_distance`` those values are reused.
        estimator : ShoreDistanceEstimator, optional
            Needed when the grid has no ``shore_distance`` column; also used for the exact touches-coast check
        max_workers : int, optional
            Worker pool size for the distance computation
        layer_manager : LayerManager, optional
            Layer manager to add the result layer to
        layer_name : str, optional
            Name for the result layer

        Returns:
        --------
        layer : Layer
            Zone layer with two rows (Inshore, Offshore): ``zone``, ``min_depth``, ``max_depth``, ``n_cells``,
            ``area_units`` and geometry
        """
        if not layer_name:
            layer_name = f"Zones_{self.shallow_limit:g}_{self.deep_limit:g}_{self.min_shore_distance:g}"

        working = grid_layer.copy()
        working.name = grid_layer.name
        if "shore_distance" not in working.objects.columns:
            if estimator is None:
                raise ValueError("Grid cells have no 'shore_distance' column and no ShoreDistanceEstimator was given")
            attach_shore_distance(working, estimator, max_workers=max_workers)

        classified = self.build_rules().execute(working, result_field="zone")
        cells = classified.objects
        in_extent = cells["zone"].notna()
        in_band = (cells["elevation"] >= self.deep_limit) & (cells["elevation"] <= self.shallow_limit)

        dissolved = dissolve_by_class(classified, "zone", class_values=list(ZONE_LABELS))
        zones = dissolved.objects.rename(columns={"min_elevation": "max_depth", "max_elevation": "min_depth"})
        zones = zones[["zone", "min_depth", "max_depth", "n_cells", "area_units", "geometry"]]

        layer = grid_layer.derive(layer_name, type="zone")
        layer.objects = zones
        layer.metadata = {
            "shallow_limit": self.shallow_limit,
            "deep_limit": self.deep_limit,
            "min_shore_distance": self.min_shore_distance,
            "extent_area": float(cells.loc[in_extent, "area_units"].sum()),
            "n_extent_cells": int(in_extent.sum()),
            "n_excluded_cells": int((~in_extent).sum()),
            "n_band_cells": int(in_band.sum()),
            "n_band_cells_near_shore": int((in_band & (cells["zone"] == INSHORE)).sum()),
        }

        self._check_configuration(layer, cells, estimator)

        report = check_zone_invariants(layer)
        layer.metadata["invariants"] = report
        if not report["valid"]:
            layer.add_issue(
                ConfigurationWarning(
                    "Zones overlap or do not cover the analysis area",
                    overlap_area=report["overlap_area"],
                    coverage_gap=report["coverage_gap"],
                )
            )

        for _, zone in zones.iterrows():
            logger.info("%s: %d cells, area %.3g", zone["zone"], zone["n_cells"], zone["area_units"])

        if layer_manager:
            layer_manager.add_layer(layer)

        return layer

    def _check_configuration(self, layer, cells, estimator):
        """Record warnings for degenerate zones."""
        grid_crs = CRS.from_user_input(layer.crs) if layer.crs is not None else None
        if grid_crs is not None and grid_crs.is_geographic:
            layer.add_issue(
                ConfigurationWarning(
                    f"Grid CRS {grid_crs.to_string()} is geographic; "
                    f"min_shore_distance={self.min_shore_distance:g} and zone areas are in degrees",
                    crs=grid_crs.to_string(),
                )
            )

        zones = layer.objects.set_index("zone")
        offshore = zones.loc[OFFSHORE]
        inshore = zones.loc[INSHORE]

        if layer.metadata["n_band_cells"] == 0:
            layer.add_issue(
                ConfigurationWarning(
                    f"Offshore depth band [{self.deep_limit:g}, {self.shallow_limit:g}] selects no cells",
                    shallow_limit=self.shallow_limit,
                    deep_limit=self.deep_limit,
                )
            )
        elif offshore["n_cells"] == 0:
            layer.add_issue(
                ConfigurationWarning(
                    f"Every offshore band cell lies closer than {self.min_shore_distance:g} to the coast",
                    min_shore_distance=self.min_shore_distance,
                )
            )

        if inshore["area_units"] <= 0:
            layer.add_issue(ConfigurationWarning("Inshore zone has zero area", shallow_limit=self.shallow_limit))

        if offshore["n_cells"] > 0 and self._offshore_touches_coast(offshore, cells, estimator, layer):
            layer.add_issue(
                ConfigurationWarning(
                    f"Offshore zone touches the coastline; min_shore_distance={self.min_shore_distance:g} is too small",
                    min_shore_distance=self.min_shore_distance,
                )
            )

    def _offshore_touches_coast(self, offshore, cells, estimator, layer):
        if estimator is not None:
            gap = estimator.distance_to(offshore.geometry, crs=layer.crs)
            layer.metadata["offshore_coast_gap"] = gap
            return bool(gap <= 0)

        # Without the coastline, a cell can only touch it when its centroid is within half a diagonal
        selected = cells[cells["zone"] == OFFSHORE]
        bounds = selected.geometry.bounds
        half_diagonal = 0.5 * np.hypot(bounds["maxx"] - bounds["minx"], bounds["maxy"] - bounds["miny"])
        return bool(((selected["shore_distance"] - half_diagonal) <= 0).any())
