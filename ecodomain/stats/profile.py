# -*- coding: utf-8 -*-
"""Diagnostics on vertical profile layers.

These summaries support choosing the depth of the shallow/deep layer boundary: how mixing and convection differ
above and below a candidate depth, and whether the sampled area behaves as expected down the water column.
"""

import logging

import numpy as np

logger = logging.getLogger(__name__)

DEFAULT_BOUNDARY_DEPTH = 60.0


def attach_area_monotonicity(layer, area_column="sampled_area"):
    """Check, per quarter, that sampled area does not grow with depth.

    Convection removes shallow samples, so a non-monotonic quarter is reported, never treated as an error.

    Parameters:
    -----------
    layer : Layer
        Profile layer from VerticalProfileAggregator
    area_column : str
        Column to check; falls back to ``n_samples`` when the area is unknown

    Returns:
    --------
    report : dict
        ``{"monotonic": {quarter: bool}, "non_monotonic_quarters": [...], "column": name}``
    """
    profile = layer.objects.reset_index()
    column = area_column
    if column not in profile.columns or profile[column].isna().all():
        column = "n_samples"

    monotonic = {}
    for quarter, group in profile.groupby("quarter", sort=True):
        values = group.sort_values("depth")[column].dropna().to_numpy()
        monotonic[quarter] = bool(np.all(np.diff(values) <= 0))

    non_monotonic = [quarter for quarter, ok in monotonic.items() if not ok]
    if non_monotonic:
        logger.info("Sampled %s increases with depth in %s", column, ", ".join(non_monotonic))

    return {"monotonic": monotonic, "non_monotonic_quarters": non_monotonic, "column": column}


def attach_boundary_summary(layer, boundary_depth=DEFAULT_BOUNDARY_DEPTH):
    """Compare mixing above and below a candidate layer boundary, per quarter.

    Means are weighted by the number of normal (non-convection) samples in each bin, so they equal the mean of the
    underlying normal observations.

    Parameters:
    -----------
    layer : Layer
        Profile layer from VerticalProfileAggregator
    boundary_depth : float
        Candidate boundary in positive metres. Bins at exactly this depth count as shallow.

    Returns:
    --------
    summary : dict
        ``{quarter: {"shallow": {...}, "deep": {...}}}`` with ``mean_diffusivity``, ``convection_fraction`` and
        ``n_samples`` for each side
    """
    profile = layer.objects.reset_index()
    profile["side"] = np.where(profile["depth"] <= boundary_depth, "shallow", "deep")
    profile["n_normal"] = profile["n_samples"] - profile["n_convection"]
    profile["weighted"] = profile["mean_diffusivity"].fillna(0.0) * profile["n_normal"]

    summary = {}
    for (quarter, side), group in profile.groupby(["quarter", "side"], sort=True):
        n_samples = int(group["n_samples"].sum())
        n_normal = int(group["n_normal"].sum())
        summary.setdefault(quarter, {})[side] = {
            "mean_diffusivity": float(group["weighted"].sum() / n_normal) if n_normal else np.nan,
            "convection_fraction": float(group["n_convection"].sum() / n_samples) if n_samples else np.nan,
            "n_samples": n_samples,
        }

    layer.metadata["boundary_depth"] = boundary_depth
    return summary
