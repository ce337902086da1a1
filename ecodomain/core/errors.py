# -*- coding: utf-8 -*-
"""Error and warning types raised or recorded while partitioning a model domain.

Only malformed input is fatal. Everything else (degenerate zones, holes in the depth grid,
empty profile bins) is recorded on the resulting layer so the operator can look at the
result and retune the thresholds.
"""


class InputShapeError(ValueError):
    """Bathymetry, coastline or observation data failed structural validation."""


class DomainWarning(UserWarning):
    """Base class for non-fatal issues collected on a layer."""

    def __init__(self, message, **context):
        """Initialize the warning.

        Parameters:
        -----------
        message : str
            Human readable description
        **context : dict
            Extra values describing where the issue happened (thresholds, bin keys, counts)
        """
        super().__init__(message)
        self.message = message
        self.context = context

    def to_dict(self):
        """Return a JSON friendly representation."""
        return {"kind": type(self).__name__, "message": self.message, **self.context}

    def __str__(self):
        """String representation of the warning."""
        return self.message


class ConfigurationWarning(DomainWarning):
    """Depth or distance thresholds produced a degenerate zone."""


class DataGapError(DomainWarning):
    """Grid cells without a contributing sample. Resolved by excluding the cells."""


class EmptyBinWarning(DomainWarning):
    """A (depth, quarter) partition holds no observations. Resolved by omitting the bin."""
