# -*- coding: utf-8 -*-
"""Computes the minimum distance from points or cells to the nearest coastline feature.

Coastline features are indexed with an STR-tree over their bounding boxes. ``query_nearest`` only measures the exact
distance to features whose envelope could hold the true nearest one, so hundreds of features against tens of
thousands of points stays cheap. An optional ``region`` box restricts the feature set further, which is useful when
the analysis area sits inside one known subregion of a larger coastline.

Distances are planar, in the units of the grid CRS, so the grid should be projected (metres).
"""

import logging

import geopandas as gpd
import numpy as np
import shapely
from shapely.geometry import box

from ..utils.parallel import chunked, parallel_map, resolve_workers
from ..utils.validation import validate_coastline
from .errors import InputShapeError

logger = logging.getLogger(__name__)

MIN_POINTS_PER_TASK = 2000


def _nearest_distances(task):
    """Distance from every point of a chunk to its nearest feature. Runs inside pool workers."""
    features, points = task
    distances = np.full(len(points), np.nan)
    if len(points) == 0:
        return distances
    tree = shapely.STRtree(features)
    (point_idx, _), nearest = tree.query_nearest(points, return_distance=True, all_matches=False)
    distances[point_idx] = nearest
    return distances


def _as_points(points):
    """Convert GeoSeries/GeoDataFrame/(N, 2) arrays/geometry lists to an array of shapely points and a CRS."""
    if isinstance(points, gpd.GeoDataFrame):
        return np.asarray(points.geometry.values, dtype=object), points.crs
    if isinstance(points, gpd.GeoSeries):
        return np.asarray(points.values, dtype=object), points.crs

    array = np.asarray(points)
    if array.dtype != object and array.ndim == 2 and array.shape[1] == 2:
        if not np.isfinite(array).all():
            raise InputShapeError("Point coordinates contain missing or infinite values")
        return shapely.points(array[:, 0], array[:, 1]), None

    geoms = np.asarray(list(points), dtype=object)
    if not all(isinstance(geom, shapely.Geometry) for geom in geoms):
        raise InputShapeError("Points must be geometries or an (N, 2) coordinate array")
    return geoms, None


class ShoreDistanceEstimator:
    """Minimum distance to a set of coastline features."""

    def __init__(self, coastline, crs=None, region=None):
        """Initialize the estimator.

        Parameters:
        -----------
        coastline : GeoDataFrame, GeoSeries, geometry or sequence of geometries
            Land polygons (or coastline lines)
        crs : str or pyproj.CRS, optional
            CRS of the coastline when the input does not carry one
        region : tuple of float, optional
            (minx, miny, maxx, maxy) box in the coastline CRS. Only features intersecting it are kept.
        """
        features = validate_coastline(coastline, crs=crs)

        if region is not None:
            features = features[features.intersects(box(*region))].reset_index(drop=True)
            if len(features) == 0:
                raise InputShapeError(f"No coastline feature intersects region {tuple(region)}")

        self.features = features
        self.region = region
        logger.info("Indexed %d coastline features", len(features))

    @property
    def crs(self):
        """CRS of the indexed features."""
        return self.features.crs

    def _features_for(self, crs):
        """Return the feature geometries expressed in ``crs``."""
        features = self.features
        if crs is not None and features.crs is not None and not features.crs.equals(crs):
            features = features.to_crs(crs)
        elif crs is None or features.crs is None:
            logger.debug("Points or coastline lack a CRS; assuming they share coordinates")
        return np.asarray(features.values, dtype=object)

    def distances(self, points, crs=None, max_workers=None):
        """Compute the distance from each point to the nearest coastline feature.

        Parameters:
        -----------
        points : GeoSeries, GeoDataFrame, (N, 2) array or sequence of shapely points
            Query points, e.g. cell centroids
        crs : str or pyproj.CRS, optional
            CRS of the points when they do not carry one
        max_workers : int, optional
            Worker pool size. None uses every core, 1 runs serially.

        Returns:
        --------
        distances : numpy.ndarray
            One distance per point in input order (NaN for empty geometries)
        """
        geoms, points_crs = _as_points(points)
        points_crs = points_crs if points_crs is not None else crs
        features = self._features_for(points_crs)

        workers = resolve_workers(max_workers)
        n_chunks = max(1, min(workers, len(geoms) // MIN_POINTS_PER_TASK))
        tasks = [(features, chunk) for chunk in chunked(geoms, n_chunks)]

        results = parallel_map(_nearest_distances, tasks, max_workers=workers)
        if not results:
            return np.array([], dtype=float)
        return np.concatenate(results)

    def distance_to(self, geometry, crs=None):
        """Minimum distance between one geometry (e.g. a zone polygon) and any coastline feature.

        Returns NaN for an empty geometry.
        """
        if geometry is None or geometry.is_empty:
            return np.nan
        return float(_nearest_distances((self._features_for(crs), np.array([geometry], dtype=object)))[0])


def attach_shore_distance(layer, estimator, column="shore_distance", max_workers=None):
    """Attach the distance from every cell centroid to the coast.

    Parameters:
    -----------
    layer : Layer
        Grid layer with polygon cells
    estimator : ShoreDistanceEstimator
        Estimator holding the coastline
    column : str
        Column to store distances in
    max_workers : int, optional
        Worker pool size

    Returns:
    --------
    stats : dict
        Minimum, maximum and mean distance
    """
    if layer.objects is None or len(layer.objects) == 0:
        return {}

    centroids = layer.objects.geometry.centroid
    distances = estimator.distances(centroids, crs=layer.objects.crs, max_workers=max_workers)
    layer.objects[column] = distances
    layer.metadata[f"{column}_attached"] = True

    return {
        "min": float(np.nanmin(distances)),
        "max": float(np.nanmax(distances)),
        "mean": float(np.nanmean(distances)),
    }
