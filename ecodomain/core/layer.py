# -*- coding: utf-8 -*-
"""Defines the Layer class and related functionality for organizing derived domain artifacts.

A layer is the container every step of the workflow hands to the next one: the rasterized depth grid,
depth band candidates, the inshore/offshore zones and the vertical profile table. Each layer keeps a link
to the layer it was derived from, the parameters that produced it and the non-fatal issues found on the way.
"""

import logging
import uuid
import warnings

import pandas as pd

logger = logging.getLogger(__name__)


class Layer:
    """A Layer represents a set of objects (cells, zones or profile bins) with associated properties.

    Layers are derived from rasterization, depth band selection, zone partitioning or profile aggregation.
    Each layer can have functions attached to calculate additional properties.
    """

    def __init__(self, name=None, parent=None, type="generic"):
        """Initialize a Layer.

        Parameters:
        -----------
        name : str, optional
            Name of the layer. If None, a unique name will be generated.
        parent : Layer, optional
            Parent layer that this layer is derived from. Its issues are carried over.
        type : str
            Type of layer: "grid", "depth_band", "zone", "profile", "classification", "merged" or "generic"
        """
        self.id = str(uuid.uuid4())
        self.name = name if name else f"Layer_{self.id[:8]}"
        self.parent = parent
        self.type = type
        self.created_at = pd.Timestamp.now()

        self.raster = None
        self.objects = None
        self.metadata = {}
        self.transform = None
        self.crs = None
        # CRS of raster and transform; differs from crs once cells are reprojected
        self.raster_crs = None

        self.issues = list(parent.issues) if parent is not None else []
        self.attached_functions = {}

    def add_issue(self, issue):
        """Record a non-fatal issue on this layer and log it.

        Parameters:
        -----------
        issue : DomainWarning
            Issue to record

        Returns:
        --------
        issue : DomainWarning
            The recorded issue
        """
        self.issues.append(issue)
        logger.warning("[%s] %s: %s", self.name, type(issue).__name__, issue.message)
        return issue

    def issues_of(self, kind):
        """Return the recorded issues that are instances of ``kind``."""
        return [issue for issue in self.issues if isinstance(issue, kind)]

    def raise_issues(self):
        """Re-emit every recorded issue through the warnings module."""
        for issue in self.issues:
            warnings.warn(issue, stacklevel=2)

    def attach_function(self, function, name=None, **kwargs):
        """Attach a function to this layer and execute it.

        Parameters:
        -----------
        function : callable
            Function to attach and execute
        name : str, optional
            Name for this function. If None, uses function.__name__
        **kwargs : dict
            Arguments to pass to the function

        Returns:
        --------
        self : Layer
            Returns self for chaining
        """
        func_name = name if name else function.__name__

        result = function(self, **kwargs)

        self.attached_functions[func_name] = {
            "function": function,
            "args": kwargs,
            "result": result,
        }

        return self

    def get_function_result(self, function_name):
        """Get the result of an attached function.

        Parameters:
        -----------
        function_name : str
            Name of the attached function

        Returns:
        --------
        result : any
            Result of the function
        """
        if function_name not in self.attached_functions:
            raise ValueError(f"Function '{function_name}' not attached to this layer")

        return self.attached_functions[function_name]["result"]

    def derive(self, name, type):
        """Create a child layer that shares this layer's georeferencing."""
        child = Layer(name=name, parent=self, type=type)
        child.transform = self.transform
        child.crs = self.crs
        child.raster_crs = self.raster_crs
        return child

    def copy(self):
        """Create a copy of this layer.

        Returns:
        --------
        layer_copy : Layer
            Copy of this layer
        """
        new_layer = Layer(name=f"{self.name}_copy", parent=self.parent, type=self.type)

        if self.raster is not None:
            new_layer.raster = self.raster.copy()

        if self.objects is not None:
            new_layer.objects = self.objects.copy()

        new_layer.metadata = self.metadata.copy()
        new_layer.transform = self.transform
        new_layer.crs = self.crs
        new_layer.raster_crs = self.raster_crs
        new_layer.issues = list(self.issues)

        return new_layer

    def __str__(self):
        """String representation of the layer."""
        if self.objects is not None:
            num_objects = len(self.objects)
        else:
            num_objects = 0

        parent_name = self.parent.name if self.parent else "None"

        return (
            f"Layer '{self.name}' (type: {self.type}, parent: {parent_name}, "
            f"objects: {num_objects}, issues: {len(self.issues)})"
        )


class LayerManager:
    """Manages the layers produced by one exploratory run."""

    def __init__(self):
        """Initialize the layer manager."""
        self.layers = {}
        self.active_layer = None

    def add_layer(self, layer, set_active=True):
        """Add a layer to the manager.

        Parameters:
        -----------
        layer : Layer
            Layer to add
        set_active : bool
            Whether to set this layer as the active layer

        Returns:
        --------
        layer : Layer
            The added layer
        """
        self.layers[layer.id] = layer

        if set_active:
            self.active_layer = layer

        return layer

    def get_layer(self, layer_id_or_name):
        """Get a layer by ID or name.

        Parameters:
        -----------
        layer_id_or_name : str
            Layer ID or name

        Returns:
        --------
        layer : Layer
            The requested layer
        """
        if layer_id_or_name in self.layers:
            return self.layers[layer_id_or_name]

        for layer in self.layers.values():
            if layer.name == layer_id_or_name:
                return layer

        raise ValueError(f"Layer '{layer_id_or_name}' not found")

    def get_layer_names(self):
        """Get a list of all layer names."""
        return [layer.name for layer in self.layers.values()]

    def get_layers_by_type(self, type):
        """Get all layers of one type in insertion order."""
        return [layer for layer in self.layers.values() if layer.type == type]
