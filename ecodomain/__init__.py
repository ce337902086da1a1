# -*- coding: utf-8 -*-
# ecodomain/__init__.py

"""
ecodomain: spatial and vertical partitioning of an ecosystem model domain
=========================================================================

ecodomain derives the inshore/offshore zones and the shallow/deep layer boundary of an
ecological simulation domain from bathymetry soundings, a coastline and ocean model output.

Key features:
- Rasterization of depth soundings into polygon cells
- Depth band selection over single or batched thresholds
- Distance to coast with a spatial index
- Inshore/Offshore zone partitioning with configuration checks
- Deep convection classification and depth x quarter diffusivity profiles
"""

__version__ = "0.1.0"

from .core.convection import DEEP_CONVECTION_THRESHOLD, DeepConvectionClassifier
from .core.depth_band import DepthBandClassifier
from .core.errors import ConfigurationWarning, DataGapError, DomainWarning, EmptyBinWarning, InputShapeError
from .core.layer import Layer, LayerManager
from .core.partition import INSHORE, OFFSHORE, ZonePartitioner, check_zone_invariants
from .core.profile import VerticalProfileAggregator
from .core.rasterizer import DEFAULT_TARGET_CRS, BathymetryRasterizer
from .core.rules import Rule, RuleSet, dissolve_by_class
from .core.shore_distance import ShoreDistanceEstimator, attach_shore_distance

from .stats.profile import DEFAULT_BOUNDARY_DEPTH, attach_area_monotonicity, attach_boundary_summary
from .stats.zones import attach_band_sensitivity, attach_zone_area_stats

from .utils.helpers import calculate_statistics_summary, create_sample_data, create_sample_observations
from .utils.parallel import parallel_map
