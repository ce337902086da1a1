# -*- coding: utf-8 -*-
"""Stateless worker pool used for the embarrassingly parallel steps.

Tasks only read their arguments and return a value, so a process pool with ``executor.map`` keeps the output
in input order and parallel runs return exactly what a serial run returns.
"""

import concurrent.futures
import logging
import os

logger = logging.getLogger(__name__)


def resolve_workers(max_workers=None):
    """Return the pool size, defaulting to the number of available cores."""
    if max_workers is None:
        return os.cpu_count() or 1
    if max_workers < 1:
        raise ValueError(f"max_workers must be >= 1, got {max_workers}")
    return int(max_workers)


def parallel_map(func, items, max_workers=None):
    """Apply ``func`` to every item, in a fixed-size process pool when it pays off.

    Parameters:
    -----------
    func : callable
        Module level (picklable) function taking a single item
    items : iterable
        Task arguments
    max_workers : int, optional
        Pool size. None uses every available core, 1 runs serially in-process.

    Returns:
    --------
    results : list
        One result per item, in input order
    """
    items = list(items)
    workers = min(resolve_workers(max_workers), len(items))

    if workers <= 1:
        return [func(item) for item in items]

    logger.debug("Mapping %s over %d tasks with %d workers", getattr(func, "__name__", func), len(items), workers)
    with concurrent.futures.ProcessPoolExecutor(max_workers=workers) as executor:
        return list(executor.map(func, items))


def chunked(sequence, n_chunks):
    """Split a sequence into at most ``n_chunks`` contiguous, order preserving slices."""
    n_items = len(sequence)
    if n_items == 0:
        return []
    n_chunks = max(1, min(n_chunks, n_items))
    size, extra = divmod(n_items, n_chunks)
    chunks = []
    start = 0
    for i in range(n_chunks):
        stop = start + size + (1 if i < extra else 0)
        chunks.append(sequence[start:stop])
        start = stop
    return chunks
