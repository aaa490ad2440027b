#!/usr/bin/env python
"""Quick-start guide for psptree.

Run with: python -m psptree

This module does not import psptree internals, so the guide prints without
touching numpy.
"""

from __future__ import annotations

QUICKSTART = """\
================================================================================
                                 PSPTREE
        Hypersphere space-partitioning tree: exact lookup, k-NN, range
================================================================================

BASIC USAGE
-----------
    from psptree import PSPTreeMap

    index = PSPTreeMap("euclidean", dimension=2)
    index.put((0.0, 0.0), "a")
    index.put((3.0, 4.0), "b")
    index.put((1.0, 1.0), "c")

    index.get((3.0, 4.0))                      # 'b'
    index.k_nearest_neighbor((0.0, 0.0), 2)    # nearest first
    index.range_search((0.0, 0.0), 2.0)        # everything within 2.0
    index.remove((1.0, 1.0))                   # 'c'

METRICS
-------
    from psptree import Metric, available_metrics

    available_metrics()                        # ('euclidean', 'squared_euclidean')
    PSPTreeMap("squared_euclidean", dimension=3)

    # Any callable taking two float64 arrays works; it is assumed to be a
    # true metric (triangle inequality) for pruning purposes.
    manhattan = Metric(name="manhattan", kernel=lambda a, b: float(abs(a - b).sum()))
    PSPTreeMap(manhattan, dimension=3)

CONFIGURATION (environment)
---------------------------
    PSPTREE_METRIC              default metric name      (euclidean)
    PSPTREE_LOG_LEVEL           psptree logger level     (INFO)
    PSPTREE_ENABLE_DIAGNOSTICS  cpu/rss in operation logs (1)
    PSPTREE_SENTINEL_SEED       reproducible sentinel    (unset)

BENCHMARKING
------------
    python -m benchmarks.queries --dimension 3 --points 4096 --queries 256 --k 8

================================================================================
"""


def main() -> None:
    """Print quick-start guide."""
    print(QUICKSTART)


if __name__ == "__main__":
    main()
