# -*- coding: utf-8 -*-
"""Input validation, the worker pool and sample data helpers."""
