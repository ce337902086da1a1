# -*- coding: utf-8 -*-
"""The core package holds the data structures and algorithms of the domain partitioning.

It covers layers, the cell rule engine, rasterization, depth bands, distance to coast, zone partitioning,
deep convection classification and vertical profile aggregation.
"""
