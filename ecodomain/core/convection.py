# -*- coding: utf-8 -*-
"""Labels diffusivity observations that belong to deep convection events.

Vertical diffusivity spreads over a continuous range except for a separate cluster of very high values, produced when
surface cooling overturns the whole water column. Observations in that cluster are excluded from the normal mixing
statistics and counted as a separate rate. The default threshold was tuned on Barents Sea model output and should be
re-derived for other regions.
"""

import numpy as np

DEEP_CONVECTION_THRESHOLD = 0.14


class DeepConvectionClassifier:
    """Threshold rule: a value is a deep convection event when it is at or above the threshold."""

    def __init__(self, threshold=DEEP_CONVECTION_THRESHOLD):
        """Initialize the classifier.

        Parameters:
        -----------
        threshold : float
            Diffusivity at or above which an observation is a deep convection event
        """
        if not np.isfinite(threshold):
            raise ValueError(f"threshold must be finite, got {threshold}")
        self.threshold = float(threshold)

    def __call__(self, value):
        """Classify a single diffusivity value. NaN is never an event."""
        return bool(value >= self.threshold)

    def flag(self, values):
        """Vectorised classification of an array of diffusivity values."""
        values = np.asarray(values, dtype=float)
        with np.errstate(invalid="ignore"):
            return values >= self.threshold

    def execute(self, observations, column="diffusivity", result_field="deep_convection"):
        """Return a copy of ``observations`` with a boolean deep convection column."""
        labelled = observations.copy()
        labelled[result_field] = self.flag(labelled[column].to_numpy())
        return labelled

    def __repr__(self):
        """String representation of the classifier."""
        return f"DeepConvectionClassifier(threshold={self.threshold:g})"
