"""
PCA (Principal Component Analysis) implementation for admitstats.

Columns are standardized to zero mean and unit variance, and the
components are the eigenvectors of the resulting correlation matrix,
ordered by descending eigenvalue.

Eigenvectors are only defined up to sign. `fit` flips each one so that
its largest-magnitude entry is positive, which makes repeated runs
identical, but the sign carries no meaning and may differ from other
libraries. Everything that ranks variables uses absolute loadings or
squared loadings.
"""

import logging
from dataclasses import dataclass
from typing import Dict, List, Tuple

import numpy as np
import pandas as pd
from sklearn.preprocessing import StandardScaler

from admitstats.math.corr import check_variance
from admitstats.math.named_matrix import NamedMatrix

logger = logging.getLogger(__name__)

DEFAULT_CONTRIBUTION_COMPONENTS = 3


@dataclass(frozen=True, eq=False)
class PCAResult:
    """Outcome of one PCA fit over a numeric dataset."""
    variables: List[str]
    mean: np.ndarray
    scale: np.ndarray
    eigenvalues: np.ndarray
    components: np.ndarray      # shape (n_components, n_variables), unit rows
    n_samples: int

    @property
    def n_components(self) -> int:
        return self.components.shape[0]

    def component_names(self) -> List[str]:
        return [f"PC{i + 1}" for i in range(self.n_components)]

    def loadings(self) -> NamedMatrix:
        """Loading matrix with components as rows and variables as columns."""
        return NamedMatrix(self.components, rownames=self.component_names(), colnames=self.variables)


def standardize(df: pd.DataFrame) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """
    Scale every column to zero mean and unit variance.

    Args:
        df: Numeric DataFrame

    Returns:
        Tuple of (standardized data, column means, column scales)

    Raises:
        DegenerateColumnError: if a column cannot be standardized
    """
    check_variance(df)

    scaler = StandardScaler()
    z = scaler.fit_transform(df.to_numpy(dtype=float))
    return z, scaler.mean_, scaler.scale_


def _fix_signs(vectors: np.ndarray) -> np.ndarray:
    """Flip each row so that its largest absolute entry is positive."""
    pivots = np.argmax(np.abs(vectors), axis=1)
    signs = np.sign(vectors[np.arange(vectors.shape[0]), pivots])
    signs[signs == 0] = 1.0
    return vectors * signs[:, np.newaxis]


def fit(df: pd.DataFrame) -> PCAResult:
    """
    Fit PCA to the numeric columns of a DataFrame.

    Args:
        df: Numeric DataFrame with at least two rows

    Returns:
        PCAResult with one component per column
    """
    z, mean, scale = standardize(df)
    n_samples = z.shape[0]

    # Population-scaled data, so this is exactly the Pearson correlation matrix
    corr = (z.T @ z) / n_samples
    corr = (corr + corr.T) / 2.0

    eigenvalues, eigenvectors = np.linalg.eigh(corr)

    order = np.argsort(eigenvalues)[::-1]
    eigenvalues = np.clip(eigenvalues[order], 0.0, None)
    components = _fix_signs(eigenvectors[:, order].T)

    logger.info(f"Fitted PCA on {n_samples} rows x {len(df.columns)} columns")

    return PCAResult(
        variables=[str(c) for c in df.columns],
        mean=mean,
        scale=scale,
        eigenvalues=eigenvalues,
        components=components,
        n_samples=n_samples
    )


def explained_variance(result: PCAResult) -> List[float]:
    """
    Fraction of total variance captured by each component.

    Args:
        result: Fitted PCA

    Returns:
        Non-negative fractions in component order, summing to 1.0
    """
    total = float(np.sum(result.eigenvalues))
    if total == 0.0:
        return [0.0] * result.n_components
    return [float(v) / total for v in result.eigenvalues]


def cumulative_variance(result: PCAResult) -> List[float]:
    """Running total of explained variance."""
    return [float(v) for v in np.cumsum(explained_variance(result))]


def components_for_variance(result: PCAResult, target: float) -> int:
    """
    Smallest number of leading components whose cumulative variance reaches target.

    Args:
        result: Fitted PCA
        target: Fraction of variance in (0, 1]

    Returns:
        Number of components
    """
    if not 0.0 < target <= 1.0:
        raise ValueError(f"Variance target must be in (0, 1], got {target}")

    for i, total in enumerate(cumulative_variance(result)):
        if total >= target - 1e-12:
            return i + 1
    return result.n_components


def top_loadings(result: PCAResult, component_index: int, k: int) -> List[Tuple[str, float]]:
    """
    Variables with the largest absolute loading on one component.

    Args:
        result: Fitted PCA
        component_index: Zero-based component index
        k: Number of variables to return

    Returns:
        (variable, loading) pairs by descending |loading|
    """
    if not 0 <= component_index < result.n_components:
        raise IndexError(
            f"Component index {component_index} out of range for {result.n_components} components"
        )
    if k < 0:
        raise ValueError(f"k must be non-negative, got {k}")

    loadings = result.components[component_index]
    # Stable so equal magnitudes keep column order
    order = np.argsort(-np.abs(loadings), kind='stable')
    return [(result.variables[i], float(loadings[i])) for i in order[:k]]


def contributions(result: PCAResult, num_components: int) -> NamedMatrix:
    """
    Squared loadings, variables as rows and the first num_components as columns.

    Args:
        result: Fitted PCA
        num_components: Number of leading components to include

    Returns:
        NamedMatrix of contribution scores
    """
    if num_components < 1:
        raise ValueError(f"num_components must be >= 1, got {num_components}")

    n = min(num_components, result.n_components)
    squared = result.components[:n] ** 2
    return NamedMatrix(squared.T, rownames=result.variables, colnames=result.component_names()[:n])


def total_contribution(result: PCAResult,
                       num_components: int = DEFAULT_CONTRIBUTION_COMPONENTS) -> Dict[str, float]:
    """
    Sum of squared loadings over the leading components, per variable.

    Args:
        result: Fitted PCA
        num_components: Number of leading components (clamped to those available)

    Returns:
        Mapping from variable to total contribution, least influential first
    """
    totals = contributions(result, num_components).values.sum(axis=1)
    ranked = sorted(zip(result.variables, totals), key=lambda item: item[1])
    return {name: float(total) for name, total in ranked}


def transform(result: PCAResult, df: pd.DataFrame) -> pd.DataFrame:
    """
    Project rows onto the principal components.

    Args:
        result: Fitted PCA
        df: DataFrame holding at least the fitted variables

    Returns:
        Component scores, one column per component, indexed like df
    """
    missing = [v for v in result.variables if v not in df.columns]
    if missing:
        raise KeyError(f"Columns missing for projection: {missing}")

    values = df[result.variables].to_numpy(dtype=float)
    z = (values - result.mean) / result.scale
    return pd.DataFrame(z @ result.components.T, index=df.index, columns=result.component_names())
