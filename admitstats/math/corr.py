"""
Correlation analysis for admitstats.

This module computes correlation matrices over the numeric columns of a
dataset, answers threshold queries for strongly correlated column pairs,
and orders variables by hierarchical clustering for heatmap display.
"""

import logging
from typing import FrozenSet, List, NamedTuple

import numpy as np
import pandas as pd
import scipy.stats
import scipy.cluster.hierarchy as hcluster
from scipy.spatial.distance import squareform

from admitstats.errors import DegenerateColumnError
from admitstats.math.named_matrix import NamedMatrix

logger = logging.getLogger(__name__)

CORRELATION_METHODS = ('pearson', 'spearman', 'kendall')


class CorrelatedPair(NamedTuple):
    """Two distinct columns whose absolute correlation exceeds a threshold."""

    a: str
    b: str
    r: float

    @property
    def key(self) -> FrozenSet[str]:
        """Order-free identity of the pair."""
        return frozenset((self.a, self.b))


def check_variance(df: pd.DataFrame) -> None:
    """
    Fail on the first column whose standard deviation is zero or undefined.

    Args:
        df: Numeric DataFrame

    Raises:
        DegenerateColumnError: naming the offending column
    """
    for column in df.columns:
        values = df[column].to_numpy(dtype=float)
        std = df[column].std(ddof=1)
        # Relative to the column's magnitude, so small-scale measurements still count
        scale = np.abs(values).max() if len(values) else 0.0
        if not np.isfinite(std) or std <= 1e-12 * scale:
            logger.error(f"Column '{column}' is degenerate (std={std})")
            raise DegenerateColumnError(str(column))


def correlation_matrix(df: pd.DataFrame, method: str = 'pearson') -> NamedMatrix:
    """
    Compute the correlation matrix between the columns of a DataFrame.

    Args:
        df: Numeric DataFrame (rows are records, columns are variables)
        method: Correlation method ('pearson', 'spearman', or 'kendall')

    Returns:
        Symmetric NamedMatrix indexed by column name on both axes,
        with an exact 1.0 diagonal
    """
    if method not in CORRELATION_METHODS:
        raise ValueError(f"Unknown correlation method: {method}")

    check_variance(df)

    names = [str(c) for c in df.columns]
    values = df.to_numpy(dtype=float)
    n_cols = values.shape[1]

    if method == 'pearson':
        corr = np.atleast_2d(np.corrcoef(values, rowvar=False))
    elif method == 'spearman':
        # Pearson over average ranks
        ranks = scipy.stats.rankdata(values, axis=0)
        corr = np.atleast_2d(np.corrcoef(ranks, rowvar=False))
    else:
        corr = np.ones((n_cols, n_cols))
        for i in range(n_cols):
            for j in range(i + 1, n_cols):
                tau, _ = scipy.stats.kendalltau(values[:, i], values[:, j])
                corr[i, j] = corr[j, i] = tau

    # Symmetric by construction, unit diagonal exactly
    corr = (corr + corr.T) / 2.0
    np.fill_diagonal(corr, 1.0)

    logger.debug(f"Computed {method} correlation over {n_cols} columns")
    return NamedMatrix(corr, rownames=names, colnames=names)


def correlated_pairs(corr: NamedMatrix, threshold: float) -> List[CorrelatedPair]:
    """
    Find all unordered column pairs with |r| above a threshold.

    Args:
        corr: Correlation matrix from correlation_matrix
        threshold: Cutoff in the open interval (0, 1)

    Returns:
        Pairs sorted by descending |r|, ties in column order
    """
    if not 0.0 < threshold < 1.0:
        raise ValueError(f"Threshold must be in (0, 1), got {threshold}")

    if not corr.is_symmetric():
        raise ValueError("Correlation matrix must be square and symmetric with matching names")

    names = corr.colnames()
    pairs = []

    for i in range(len(names)):
        for j in range(i + 1, len(names)):
            r = corr.get(names[i], names[j])
            if abs(r) > threshold:
                pairs.append(CorrelatedPair(names[i], names[j], r))

    # Stable sort keeps column order among equal magnitudes
    pairs.sort(key=lambda p: -abs(p.r))
    return pairs


def cluster_order(corr: NamedMatrix, method: str = 'average') -> List[str]:
    """
    Order variables so that strongly correlated ones sit next to each other.

    Args:
        corr: Correlation matrix
        method: Linkage method ('single', 'complete', 'average', 'weighted')

    Returns:
        Column names in dendrogram leaf order
    """
    names = corr.colnames()
    if len(names) < 3:
        return names

    distances = 1.0 - np.abs(corr.values)
    np.fill_diagonal(distances, 0.0)
    distances = np.clip((distances + distances.T) / 2.0, 0.0, None)

    linkage = hcluster.linkage(squareform(distances, checks=False), method=method)
    return [names[i] for i in hcluster.leaves_list(linkage)]


def blockify(corr: NamedMatrix, order: List[str]) -> NamedMatrix:
    """
    Reorder both axes of a correlation matrix.

    Args:
        corr: Correlation matrix
        order: Column names in the desired order

    Returns:
        Reordered NamedMatrix
    """
    if sorted(order) != sorted(corr.colnames()):
        raise ValueError("Order must be a permutation of the matrix columns")
    return corr.rowname_subset(order).colname_subset(order)
