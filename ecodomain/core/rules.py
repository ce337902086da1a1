# -*- coding: utf-8 -*-
"""Provides a rule engine that labels grid cells from their attributes.

A rule is a string condition over object attributes (``elevation``, ``shore_distance``, ...) evaluated with numexpr.
Rules in a RuleSet are applied in order, so a later rule overrides an earlier one on the cells both select. This is how
depth bands and inshore/offshore zones are expressed. ``dissolve_by_class`` then merges every cell of a class into
a single (multi)polygon.
"""

import logging

import geopandas as gpd
import numexpr as ne
import numpy as np
import pandas as pd
from shapely.ops import unary_union

logger = logging.getLogger(__name__)


def band_condition(column, lower, upper):
    """Build an inclusive ``lower <= column <= upper`` condition string."""
    return f"({column} >= {float(lower)!r}) & ({column} <= {float(upper)!r})"


class Rule:
    """A rule defines a condition to classify objects."""

    def __init__(self, name, condition, class_value=None):
        """Initialize a rule.

        Parameters:
        -----------
        name : str
            Name of the rule
        condition : str
            Condition as a string expression that can be evaluated using numexpr
        class_value : str, optional
            Value to assign when the condition is met.
            If None, uses the rule name.
        """
        self.name = name
        self.condition = condition
        self.class_value = class_value if class_value is not None else name

    def evaluate(self, objects):
        """Evaluate the condition over a frame of objects.

        Parameters:
        -----------
        objects : pandas.DataFrame
            Objects with the attribute columns referenced by the condition

        Returns:
        --------
        mask : pandas.Series
            Boolean mask aligned with ``objects``
        """
        local_dict = {col: objects[col].to_numpy() for col in objects.columns if col != "geometry"}
        try:
            mask = ne.evaluate(self.condition, local_dict=local_dict)
        except (KeyError, NotImplementedError, SyntaxError, TypeError, ValueError):
            # numexpr cannot compare strings; pandas can
            try:
                mask = objects.drop(columns="geometry", errors="ignore").eval(self.condition, engine="python")
            except Exception as e:
                raise ValueError(f"Error applying rule '{self.name}': {e}") from e

        mask = np.asarray(mask, dtype=bool)
        if mask.ndim == 0:
            mask = np.full(len(objects), bool(mask))
        return pd.Series(mask, index=objects.index)

    def __str__(self):
        """String representation of the rule."""
        return f"Rule '{self.name}': {self.condition} -> {self.class_value}"


class RuleSet:
    """A collection of rules to apply to a layer."""

    def __init__(self, name=None):
        """Initialize a rule set.

        Parameters:
        -----------
        name : str, optional
            Name of the rule set
        """
        self.name = name if name else "RuleSet"
        self.rules = []

    def add_rule(self, name, condition, class_value=None):
        """Add a rule to the rule set.

        Parameters:
        -----------
        name : str
            Name of the rule
        condition : str
            Condition as a string expression that can be evaluated using numexpr
        class_value : str, optional
            Value to assign when the condition is met

        Returns:
        --------
        rule : Rule
            The added rule
        """
        rule = Rule(name, condition, class_value)
        self.rules.append(rule)
        return rule

    def get_rules(self):
        """Get the (name, condition) pairs of every rule."""
        return [(rule.name, rule.condition) for rule in self.rules]

    def execute(
        self,
        source_layer,
        layer_manager=None,
        layer_name=None,
        result_field="classification",
    ):
        """Apply rules to classify objects in a layer.

        Parameters:
        -----------
        source_layer : Layer
            Source layer with objects to classify
        layer_manager : LayerManager, optional
            Layer manager to add the result layer to
        layer_name : str, optional
            Name for the result layer
        result_field : str
            Field name to store classification results. Unmatched objects hold None.

        Returns:
        --------
        result_layer : Layer
            Layer with classification results
        """
        if not layer_name:
            layer_name = f"{source_layer.name}_{self.name}"

        result_layer = source_layer.derive(layer_name, type="classification")
        result_layer.raster = source_layer.raster
        result_layer.objects = source_layer.objects.copy()

        if result_field not in result_layer.objects.columns:
            result_layer.objects[result_field] = None

        result_layer.metadata = {
            "ruleset_name": self.name,
            "rules": [
                {
                    "name": rule.name,
                    "condition": rule.condition,
                    "class_value": rule.class_value,
                }
                for rule in self.rules
            ],
            "result_field": result_field,
        }

        for rule in self.rules:
            mask = rule.evaluate(result_layer.objects)
            result_layer.objects.loc[mask, result_field] = rule.class_value
            logger.debug("%s selected %d objects", rule, int(mask.sum()))

        if layer_manager:
            layer_manager.add_layer(result_layer)

        return result_layer


def dissolve_by_class(source_layer, class_column_name="classification", class_values=None, layer_name=None):
    """Merge every object of the same class into one (multi)polygon.

    Adjacent cells share their edges exactly, so the union of a class is gap free. Classes listed in
    ``class_values`` that select no object come out as an empty polygon rather than disappearing.

    Parameters:
    -----------
    source_layer : Layer
        Layer with classified polygon objects
    class_column_name : str
        Column holding class values
    class_values : list of str, optional
        Classes to output, in order. Defaults to every non-null class found.
    layer_name : str, optional
        Name for the result layer

    Returns:
    --------
    result_layer : Layer
        Layer with one row per class: class value, ``n_cells``, ``min_elevation``, ``max_elevation``,
        ``area_units`` and geometry
    """
    objects = source_layer.objects
    if class_values is None:
        class_values = [value for value in pd.unique(objects[class_column_name]) if value is not None and value == value]

    if not layer_name:
        layer_name = f"{source_layer.name}_dissolved"

    rows = []
    geometries = []
    for class_value in class_values:
        group = objects[objects[class_column_name] == class_value]
        geometries.append(unary_union(group.geometry.values))
        rows.append(
            {
                class_column_name: class_value,
                "n_cells": len(group),
                "min_elevation": float(group["elevation"].min()) if len(group) else np.nan,
                "max_elevation": float(group["elevation"].max()) if len(group) else np.nan,
            }
        )

    dissolved = gpd.GeoDataFrame(rows, geometry=geometries, crs=objects.crs)
    dissolved["area_units"] = dissolved.geometry.area

    result_layer = source_layer.derive(layer_name, type="merged")
    result_layer.objects = dissolved
    result_layer.metadata = {"dissolved_field": class_column_name, "classes": list(class_values)}
    return result_layer
