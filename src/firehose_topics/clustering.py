"""Density-based clustering of embedded messages (DBSCAN).

A point is a core point when at least ``min_points`` points, itself
included, lie within Euclidean distance ``radius``. Clusters grow from
core points in input order; every point within ``radius`` of a core point
joins that core point's cluster. A border point reachable from several
clusters stays in the first one that reached it. Points that no cluster
reaches are noise and appear in no cluster.

Labelling is done by scikit-learn's DBSCAN, which numbers clusters in the
order their first core point appears in the input.
"""

import logging
import time
from typing import Dict, List, Sequence

import numpy as np
from sklearn.cluster import DBSCAN

from .models import Cluster, EmbeddedMessage

logger = logging.getLogger(__name__)

NOISE_LABEL = -1


def _as_matrix(points: Sequence[EmbeddedMessage]) -> np.ndarray:
    dim = len(points[0].vector)
    for idx, point in enumerate(points):
        if len(point.vector) != dim:
            raise ValueError(
                f"Inconsistent vector dimension at index {idx}: "
                f"expected {dim}, got {len(point.vector)}"
            )
    return np.asarray([p.vector for p in points], dtype=np.float64)


def cluster_messages(
    points: Sequence[EmbeddedMessage],
    radius: float,
    min_points: int,
) -> List[Cluster]:
    """Group embedded messages into density-based clusters.

    Args:
        points: Embedded messages, all with vectors of the same dimension
        radius: Neighborhood radius (Euclidean)
        min_points: Minimum neighborhood size, the point itself included,
            for a point to be a core point

    Returns:
        Clusters ordered by the input index of the core point that started
        them; members within a cluster keep input order. Noise is dropped.
        Empty when there are fewer than ``min_points`` points or no core
        points.

    Raises:
        ValueError: On invalid parameters or mixed vector dimensions
    """
    if radius <= 0:
        raise ValueError(f"radius must be positive, got {radius}")
    if min_points < 1:
        raise ValueError(f"min_points must be at least 1, got {min_points}")
    if len(points) < min_points:
        logger.info(
            "Only %d points for min_points=%d; no cluster possible",
            len(points), min_points
        )
        return []

    start = time.time()
    X = _as_matrix(points)
    labels = DBSCAN(eps=radius, min_samples=min_points, metric="euclidean").fit(X).labels_

    members: Dict[int, List[int]] = {}
    for idx, label in enumerate(labels):
        if label != NOISE_LABEL:
            members.setdefault(int(label), []).append(idx)

    clusters = [
        Cluster(points=[points[i] for i in members[label]])
        for label in sorted(members)
    ]

    clustered = sum(len(c) for c in clusters)
    logger.info(
        "✓ Clustered %d points into %d clusters (%d noise) in %.2fs",
        len(points), len(clusters), len(points) - clustered, time.time() - start
    )
    return clusters
