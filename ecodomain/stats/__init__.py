# -*- coding: utf-8 -*-
"""Summary statistics attached to zone, depth band and profile layers."""
