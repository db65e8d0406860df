"""K-means clustering of trait profiles and the diagnostics used to pick K.

Everything here works on a Trait Table: a DataFrame indexed by entity
(species) with one numeric column per trait. The random seed is always an
explicit argument so repeated runs give the same partition.
"""
import logging

import numpy as np
import pandas as pd
from sklearn.cluster import KMeans
from sklearn.decomposition import PCA
from sklearn.metrics import silhouette_samples

from utils.constants import DEFAULT_RESTARTS, DEFAULT_SEED, K_CANDIDATES
from utils.data_loader import DataQualityError

logger = logging.getLogger(__name__)


def scale_traits(traits):
    """Standardize each column to sample mean 0 and sample SD 1 (ddof=1)."""
    if len(traits) < 2:
        raise DataQualityError(f"need at least 2 entities to scale traits, got {len(traits)}")
    means = traits.mean()
    sds = traits.std(ddof=1)
    for col in traits.columns:
        sd = sds[col]
        if not np.isfinite(sd) or sd <= 1e-12 * max(1.0, abs(means[col])):
            raise DataQualityError(f"column '{col}' has zero variance and cannot be scaled")
    return (traits - means) / sds


def _relabel(raw_labels, k):
    """Map sklearn labels 0..k-1 to 1..k in order of first appearance."""
    order = list(pd.unique(raw_labels))
    order += [lab for lab in range(k) if lab not in order]
    return {old: new for new, old in enumerate(order, start=1)}


def distinct_rows(scaled):
    """Number of distinct trait profiles, the largest K k-means can fill."""
    return len(scaled.drop_duplicates())


def run_kmeans(scaled, k, restarts=DEFAULT_RESTARTS, seed=DEFAULT_SEED):
    """Partition entities into K clusters, keeping the best of several random starts.

    Each of the ``restarts`` runs begins from K randomly chosen entities; the
    run with the smallest total within-cluster sum of squares wins.

    Returns a dict with ``labels`` (Series of ints in 1..K, indexed by entity),
    ``centroids`` (K x p DataFrame indexed by label), ``total_within_ss``,
    ``k`` and ``seed``.
    """
    n = len(scaled)
    if not 1 <= k <= n:
        raise ValueError(f"k must be between 1 and the number of entities ({n}), got {k}")
    n_distinct = distinct_rows(scaled)
    if k > n_distinct:
        dupes = scaled.index[scaled.duplicated(keep=False)].tolist()
        raise ValueError(
            f"k={k} exceeds the {n_distinct} distinct trait profiles; identical rows: {dupes}"
        )
    if restarts < 1:
        raise ValueError(f"restarts must be at least 1, got {restarts}")

    km = KMeans(n_clusters=k, init="random", n_init=restarts, random_state=seed)
    raw = km.fit_predict(scaled.values)

    mapping = _relabel(raw, k)
    labels = pd.Series([mapping[lab] for lab in raw], index=scaled.index, name="cluster")
    centroids = pd.DataFrame(km.cluster_centers_, columns=scaled.columns)
    centroids.index = [mapping[i] for i in range(k)]
    centroids = centroids.sort_index()
    centroids.index.name = "cluster"

    logger.info("k-means k=%d restarts=%d seed=%s total_within_ss=%.4f",
                k, restarts, seed, km.inertia_)
    return {
        "labels": labels,
        "centroids": centroids,
        "total_within_ss": float(km.inertia_),
        "k": k,
        "seed": seed,
    }


def dispersion_curve(scaled, k_values=K_CANDIDATES, restarts=DEFAULT_RESTARTS, seed=DEFAULT_SEED):
    """Total within-cluster sum of squares for each candidate K (the elbow curve)."""
    max_k = distinct_rows(scaled)
    rows = []
    for k in k_values:
        if k > max_k:
            continue
        result = run_kmeans(scaled, k, restarts=restarts, seed=seed)
        rows.append({"k": k, "total_within_ss": result["total_within_ss"]})
    return pd.DataFrame(rows, columns=["k", "total_within_ss"])


def silhouette_values(scaled, labels):
    """Per-entity silhouette width s = (b - a) / max(a, b), Euclidean distance."""
    labels = labels.reindex(scaled.index)
    n_clusters = labels.nunique()
    if not 2 <= n_clusters <= len(scaled) - 1:
        raise ValueError(
            f"silhouette is undefined for {n_clusters} cluster(s) over {len(scaled)} entities"
        )
    values = silhouette_samples(scaled.values, labels.values, metric="euclidean")
    return pd.Series(values, index=scaled.index, name="silhouette")


def silhouette_curve(scaled, k_values=K_CANDIDATES, restarts=DEFAULT_RESTARTS, seed=DEFAULT_SEED):
    """Mean silhouette width for each candidate K.

    K=1 is skipped. A K whose partition has no defined silhouette (every
    entity alone, more clusters than distinct profiles, or fewer than two
    clusters found) is reported as NaN.
    """
    n = len(scaled)
    max_k = distinct_rows(scaled)
    rows = []
    for k in k_values:
        if k < 2:
            continue
        mean_sil = np.nan
        if k < n and k <= max_k:
            labels = run_kmeans(scaled, k, restarts=restarts, seed=seed)["labels"]
            if labels.nunique() >= 2:
                mean_sil = float(silhouette_values(scaled, labels).mean())
        rows.append({"k": k, "mean_silhouette": mean_sil})
    return pd.DataFrame(rows, columns=["k", "mean_silhouette"])


def summarize_clusters(traits, labels):
    """Mean of each original (unscaled) trait per cluster, one row per label."""
    labels = labels.reindex(traits.index)
    summary = traits.groupby(labels.rename("cluster")).mean()
    return summary.reset_index()


def cluster_sizes(labels):
    """Number of entities in each cluster."""
    return labels.value_counts().sort_index().rename("n_members")


def pca_projection(scaled, n_components=2):
    """Project scaled traits onto the leading principal components.

    Returns (scores, explained) where scores is indexed by entity with
    columns PC1..PCn, and explained is the variance ratio per component.
    """
    if min(scaled.shape) < n_components:
        raise ValueError(
            f"need at least {n_components} entities and traits for a {n_components}-component projection"
        )
    pca = PCA(n_components=n_components)
    cols = [f"PC{i + 1}" for i in range(n_components)]
    scores = pd.DataFrame(pca.fit_transform(scaled.values), index=scaled.index, columns=cols)
    explained = pd.Series(pca.explained_variance_ratio_, index=cols)
    return scores, explained
