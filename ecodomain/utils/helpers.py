# -*- coding: utf-8 -*-
"""Helpers for synthetic sample data and run summaries."""

import json
import os

import geopandas as gpd
import numpy as np
import pandas as pd
from shapely.geometry import box

from .validation import QUARTERS


def create_sample_data(n_x=60, n_y=40, spacing=5000.0, slope=250.0, gap_fraction=0.02, seed=0):
    """Create a synthetic shelf for demos and tests.

    Land occupies x < 0. The seabed deepens eastwards by one metre every ``slope`` metres, so with the defaults
    the 60 m isobath sits 15 km offshore and the 400 m isobath 100 km offshore. Coordinates are planar metres.

    Parameters:
    -----------
    n_x, n_y : int
        Number of sample columns and rows
    spacing : float
        Distance between samples in metres
    slope : float
        Horizontal metres per metre of depth
    gap_fraction : float
        Fraction of samples dropped to leave holes in the grid
    seed : int
        Random seed

    Returns:
    --------
    data : dict
        ``samples`` (DataFrame with longitude, latitude, elevation), ``coastline`` (GeoDataFrame with the land polygon)
        and ``observations`` (vertical diffusivity time series)
    """
    rng = np.random.default_rng(seed)

    xs = spacing / 2.0 + spacing * np.arange(n_x)
    ys = spacing / 2.0 + spacing * np.arange(n_y)
    grid_x, grid_y = np.meshgrid(xs, ys)
    grid_x = grid_x.ravel()
    grid_y = grid_y.ravel()
    elevation = -grid_x / slope + rng.normal(0.0, 2.0, grid_x.size)

    samples = pd.DataFrame({"longitude": grid_x, "latitude": grid_y, "elevation": np.minimum(elevation, -1.0)})
    if gap_fraction > 0:
        keep = rng.random(len(samples)) >= gap_fraction
        samples = samples[keep].reset_index(drop=True)

    land = box(-10 * spacing, -spacing, 0.0, (n_y + 1) * spacing)
    coastline = gpd.GeoDataFrame({"name": ["mainland"]}, geometry=[land])

    return {
        "samples": samples,
        "coastline": coastline,
        "observations": create_sample_observations(seed=seed),
    }


def create_sample_observations(depths=None, years=(2000, 2001, 2002), seed=0):
    """Create a synthetic vertical diffusivity series with winter deep convection.

    Diffusivity decays with depth; in Q1 roughly one observation in ten is a convection event with values far above
    the normal range. Sampled area shrinks with depth.
    """
    rng = np.random.default_rng(seed)
    if depths is None:
        depths = np.arange(10.0, 310.0, 10.0)

    records = []
    for year in years:
        for quarter in QUARTERS:
            for depth in depths:
                for _ in range(4):
                    diffusivity = 0.05 * np.exp(-depth / 80.0) * rng.lognormal(0.0, 0.3)
                    if quarter == "Q1" and rng.random() < 0.1:
                        diffusivity = rng.uniform(0.2, 0.5)
                    records.append(
                        {
                            "depth": float(depth),
                            "diffusivity": float(diffusivity),
                            "year": year,
                            "quarter": quarter,
                            "area": float(1.0e5 * np.exp(-depth / 400.0)),
                        }
                    )

    return pd.DataFrame.from_records(records)


def calculate_statistics_summary(layer_manager, output_file=None):
    """Calculate summary statistics for all layers in a layer manager.

    Parameters:
    -----------
    layer_manager : LayerManager
        Layer manager containing layers
    output_file : str, optional
        Path to save the summary to (as JSON)

    Returns:
    --------
    summary : dict
        Dictionary with summary statistics
    """
    summary = {}

    for layer in layer_manager.layers.values():
        layer_summary = {
            "type": layer.type,
            "created_at": str(layer.created_at),
            "parent": layer.parent.name if layer.parent else None,
            "issues": [issue.to_dict() for issue in layer.issues],
        }

        if layer.objects is not None:
            layer_summary["object_count"] = len(layer.objects)

            if "area_units" in layer.objects.columns:
                layer_summary["total_area"] = float(layer.objects["area_units"].sum())

            if "zone" in layer.objects.columns and layer.type == "zone":
                layer_summary["zone_areas"] = {
                    str(zone): float(area) for zone, area in zip(layer.objects["zone"], layer.objects["area_units"], strict=False)
                }

            if layer.type == "profile" and len(layer.objects):
                layer_summary["overall_convection_fraction"] = float(
                    layer.objects["n_convection"].sum() / layer.objects["n_samples"].sum()
                )

        if layer.attached_functions:
            layer_summary["functions"] = list(layer.attached_functions.keys())

        summary[layer.name] = layer_summary

    if output_file:
        directory = os.path.dirname(output_file)
        if directory:
            os.makedirs(directory, exist_ok=True)
        with open(output_file, "w") as f:
            json.dump(summary, f, indent=2, default=str)

    return summary
