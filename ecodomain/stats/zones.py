# -*- coding: utf-8 -*-
"""Area statistics for zone and depth band layers."""

import numpy as np


def attach_zone_area_stats(layer, zone_column="zone", area_column="area_units"):
    """Calculate area and depth range per zone.

    Parameters:
    -----------
    layer : Layer
        Zone or depth band layer
    zone_column : str
        Column holding zone labels
    area_column : str
        Column holding areas

    Returns:
    --------
    stats : dict
        Total area plus area, percentage, cell count and depth range per zone
    """
    if layer.objects is None or area_column not in layer.objects.columns:
        return {}

    total_area = float(layer.objects[area_column].sum())

    zone_areas = {}
    zone_percentages = {}
    zone_depths = {}
    for zone, group in layer.objects.groupby(zone_column, sort=False):
        zone_area = float(group[area_column].sum())
        zone_areas[zone] = zone_area
        zone_percentages[zone] = round(zone_area / total_area * 100, 2) if total_area > 0 else 0.0
        zone_depths[zone] = {
            "min_depth": float(group["min_depth"].max()) if "min_depth" in group else np.nan,
            "max_depth": float(group["max_depth"].min()) if "max_depth" in group else np.nan,
            "n_cells": int(group["n_cells"].sum()) if "n_cells" in group else len(group),
        }

    return {
        "total_area": total_area,
        "zone_areas": zone_areas,
        "zone_percentages": zone_percentages,
        "zone_depths": zone_depths,
    }


def attach_band_sensitivity(layer, area_column="area_units"):
    """Tabulate candidate area against the (shallow, deep) limits of a depth band batch.

    Returns:
    --------
    table : dict
        ``{shallow_limit: {deep_limit: area}}``
    """
    if layer.objects is None or len(layer.objects) == 0:
        return {}

    table = layer.objects.pivot_table(index="shallow_limit", columns="deep_limit", values=area_column, aggfunc="sum")
    return {float(shallow): {float(deep): float(area) for deep, area in row.items()} for shallow, row in table.iterrows()}
