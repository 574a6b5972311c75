"""Partition embedding vectors into K groups with k-means."""

import logging
from dataclasses import dataclass

import numpy
from sklearn.cluster import KMeans

from constants import (
    CLUSTER_FILES_PER_CLUSTER,
    CLUSTER_MAX_K,
    CLUSTER_MIN_K,
    CLUSTER_RANDOM_STATE,
)
from repo_wiki.models import Cluster, FileRecord

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ClusterResult:
    assignment: list[int]  # assignment[i] is the cluster index of vectors[i]
    centroids: list[list[float]]

    @property
    def k(self) -> int:
        return len(self.centroids)


def choose_k(n: int) -> int:
    """Roughly one cluster per five files, clamped to [2, 8].

    Fewer than two vectors cannot be split, so they form one implicit cluster.
    """
    if n < 2:
        return 1
    k = n // CLUSTER_FILES_PER_CLUSTER
    k = max(CLUSTER_MIN_K, min(CLUSTER_MAX_K, k))
    return min(k, n)


def cluster(vectors: list[list[float]] | numpy.ndarray) -> ClusterResult:
    """Run k-means and assign each vector to its nearest centroid.

    Distances are Euclidean; ties go to the lowest cluster index. Every input
    vector receives exactly one index in ``[0, K)``.
    """
    data = numpy.asarray(vectors, dtype=numpy.float64)
    n = data.shape[0] if data.ndim else 0
    if n == 0:
        raise ValueError("Cannot cluster zero vectors.")
    if data.ndim != 2:
        raise ValueError(f"Expected a 2-D array of vectors, got shape {data.shape}.")

    if n < 2:
        logger.info("Clustering skipped: %d vector(s), using one implicit cluster", n)
        return ClusterResult(assignment=[0] * n, centroids=[data.mean(axis=0).tolist()])

    k = choose_k(n)
    model = KMeans(n_clusters=k, n_init=10, random_state=CLUSTER_RANDOM_STATE)
    model.fit(data)
    centroids = model.cluster_centers_

    # Squared distances to every centroid; argmin returns the first minimum.
    distances = ((data[:, None, :] - centroids[None, :, :]) ** 2).sum(axis=2)
    assignment = distances.argmin(axis=1)

    sizes = numpy.bincount(assignment, minlength=k)
    logger.info("Clustered n=%d k=%d sizes=%s", n, k, sizes.tolist())
    return ClusterResult(
        assignment=[int(a) for a in assignment],
        centroids=centroids.tolist(),
    )


def build_clusters(files: list[FileRecord], result: ClusterResult) -> list[Cluster]:
    """Group ``files`` by ``result.assignment``, keeping input order within each cluster."""
    if len(files) != len(result.assignment):
        raise ValueError(
            f"Assignment length {len(result.assignment)} does not match {len(files)} files."
        )
    clusters = [Cluster(centroid=list(c)) for c in result.centroids]
    for f, idx in zip(files, result.assignment):
        clusters[idx].members.append(f)
    return clusters
