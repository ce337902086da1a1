# -*- coding: utf-8 -*-
"""Bins vertical diffusivity observations into a depth x quarter grid.

For every (depth, quarter) partition the aggregator reports the mean diffusivity of the normal observations, the
fraction of observations flagged as deep convection, the number of contributing samples and the mean horizontal
area sampled at that depth. The sample count and area feed the area sensitivity diagnostics: area shrinks with depth
as the seabed cuts in, but convection can remove shallow samples, so monotonic area is reported, not enforced.

Depths are used at the native resolution of the source grid unless ``depth_step`` asks for coarser buckets.
Partitions without observations are omitted and reported, never filled with zeros.
"""

import itertools
import logging

import numpy as np
import pandas as pd

from ..utils.validation import QUARTERS, validate_observations
from .convection import DeepConvectionClassifier
from .errors import EmptyBinWarning, InputShapeError
from .layer import Layer

logger = logging.getLogger(__name__)

PROFILE_COLUMNS = ["mean_diffusivity", "convection_fraction", "n_samples", "n_convection", "sampled_area"]


class VerticalProfileAggregator:
    """Aggregate (depth, diffusivity, quarter) observations into profile bins."""

    def __init__(self, classifier=None, depth_step=None, quarters=QUARTERS):
        """Initialize the aggregator.

        Parameters:
        -----------
        classifier : DeepConvectionClassifier, optional
            Rule labelling convection events. Defaults to the standard threshold.
        depth_step : float, optional
            Snap depths to multiples of this step. None keeps the native depths.
        quarters : sequence of str
            Quarters expected in a complete profile, used to report empty bins. Observations in any other
            quarter are rejected with InputShapeError.
        """
        if depth_step is not None and depth_step <= 0:
            raise ValueError(f"depth_step must be positive, got {depth_step}")
        self.classifier = classifier if classifier is not None else DeepConvectionClassifier()
        self.depth_step = depth_step
        self.quarters = tuple(quarters)

    def execute(self, observations, layer_manager=None, layer_name=None):
        """Aggregate observations into a profile layer.

        Parameters:
        -----------
        observations : pandas.DataFrame
            Vertical observations with depth, diffusivity, quarter (or time) and optionally year and area
        layer_manager : LayerManager, optional
            Layer manager to add the result layer to
        layer_name : str, optional
            Name for the result layer

        Returns:
        --------
        layer : Layer
            Profile layer. ``objects`` is indexed by (depth, quarter) with the columns in PROFILE_COLUMNS.
        """
        frame = validate_observations(observations)
        unexpected = sorted(set(frame["quarter"]) - set(self.quarters))
        if unexpected:
            raise InputShapeError(f"Observations hold quarters {unexpected} outside the expected {list(self.quarters)}")

        n_missing = int(frame["diffusivity"].isna().sum())
        if n_missing:
            logger.info("Ignoring %d observations without diffusivity", n_missing)
            frame = frame[frame["diffusivity"].notna()]

        if self.depth_step is not None:
            frame = frame.assign(depth=np.round(frame["depth"] / self.depth_step) * self.depth_step)

        if not layer_name:
            layer_name = f"Profile_T{self.classifier.threshold:g}"

        layer = Layer(name=layer_name, type="profile")
        layer.objects = self._aggregate(frame)
        layer.metadata = {
            "threshold": self.classifier.threshold,
            "depth_step": self.depth_step,
            "n_observations": len(frame),
            "n_bins": len(layer.objects),
            "years": sorted(pd.unique(frame["year"]).tolist()) if "year" in frame.columns else None,
        }

        self._report_empty_bins(layer, frame)

        logger.info("Aggregated %d observations into %d profile bins", len(frame), len(layer.objects))

        if layer_manager:
            layer_manager.add_layer(layer)

        return layer

    def _aggregate(self, frame):
        flags = self.classifier.flag(frame["diffusivity"].to_numpy())
        labelled = frame.assign(
            deep_convection=flags.astype(int),
            normal_diffusivity=frame["diffusivity"].where(~flags),
            quarter=pd.Categorical(frame["quarter"], categories=self.quarters, ordered=True),
        )

        profile = labelled.groupby(["depth", "quarter"], observed=True, sort=True).agg(
            mean_diffusivity=("normal_diffusivity", "mean"),
            n_samples=("diffusivity", "size"),
            n_convection=("deep_convection", "sum"),
            sampled_area=("area", "mean"),
        )
        profile["n_samples"] = profile["n_samples"].astype(int)
        profile["n_convection"] = profile["n_convection"].astype(int)
        profile["convection_fraction"] = profile["n_convection"] / profile["n_samples"]

        profile = profile.reset_index()
        profile["quarter"] = profile["quarter"].astype(str)
        return profile.set_index(["depth", "quarter"])[PROFILE_COLUMNS]

    def _report_empty_bins(self, layer, frame):
        if len(frame) == 0:
            layer.add_issue(EmptyBinWarning("No observations to aggregate", n_bins=0))
            return

        observed = set(layer.objects.index)
        for depth, quarter in itertools.product(sorted(pd.unique(frame["depth"])), self.quarters):
            if (depth, quarter) not in observed:
                layer.add_issue(
                    EmptyBinWarning(
                        f"No observations at depth {depth:g} m in {quarter}; bin omitted",
                        depth=float(depth),
                        quarter=quarter,
                    )
                )
