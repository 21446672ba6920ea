"""
Static plots for the analysis report.

Each function draws one figure, saves it and closes it.
"""

import logging
from pathlib import Path
from typing import Dict, List, Optional, Union

import matplotlib
matplotlib.use('Agg')
import matplotlib.pyplot as plt
import numpy as np
import seaborn as sns

from admitstats.math import pca
from admitstats.math.corr import blockify
from admitstats.math.named_matrix import NamedMatrix

logger = logging.getLogger(__name__)

sns.set_style("whitegrid")


def _save(fig, output_file: Union[str, Path], dpi: int) -> str:
    output_file = str(output_file)
    fig.tight_layout()
    fig.savefig(output_file, dpi=dpi, bbox_inches='tight')
    plt.close(fig)
    logger.info(f"Saved plot: {output_file}")
    return output_file


def plot_correlation_heatmap(corr: NamedMatrix,
                             output_file: Union[str, Path],
                             order: Optional[List[str]] = None,
                             dpi: int = 150) -> str:
    """
    Draw the correlation matrix as an annotated heatmap.

    Args:
        corr: Correlation matrix
        output_file: Image path
        order: Optional variable order (e.g. from cluster_order)
        dpi: Image resolution

    Returns:
        Path of the written file
    """
    if order:
        corr = blockify(corr, order)

    n = len(corr.colnames())
    size = max(6, min(20, 0.8 * n + 3))
    fig, ax = plt.subplots(figsize=(size, size * 0.85))

    sns.heatmap(
        corr.to_dataframe(),
        ax=ax,
        vmin=-1.0,
        vmax=1.0,
        center=0.0,
        cmap='coolwarm',
        annot=n <= 15,
        fmt='.2f',
        square=True,
        cbar_kws={'label': 'Correlation'}
    )
    ax.set_title('Correlation Matrix')

    return _save(fig, output_file, dpi)


def plot_scree(result: pca.PCAResult,
               output_file: Union[str, Path],
               dpi: int = 150) -> str:
    """
    Draw explained variance per component with the cumulative curve.

    Args:
        result: Fitted PCA
        output_file: Image path
        dpi: Image resolution

    Returns:
        Path of the written file
    """
    variance = np.array(pca.explained_variance(result)) * 100.0
    cumulative = np.cumsum(variance)
    positions = np.arange(1, result.n_components + 1)

    fig, ax = plt.subplots(figsize=(max(6, result.n_components * 0.7 + 2), 5))
    ax.bar(positions, variance, color=sns.color_palette()[0], label='Explained variance')
    ax.plot(positions, cumulative, marker='o', color=sns.color_palette()[1], label='Cumulative')

    for x, y in zip(positions, variance):
        ax.annotate(f'{y:.1f}%', (x, y), ha='center', va='bottom', fontsize=8)

    ax.set_xticks(positions)
    ax.set_xticklabels(result.component_names())
    ax.set_ylim(0, 105)
    ax.set_xlabel('Principal component')
    ax.set_ylabel('Variance explained (%)')
    ax.set_title('Scree Plot')
    ax.legend(loc='center right')

    return _save(fig, output_file, dpi)


def plot_contributions(result: pca.PCAResult,
                       contribution: Dict[str, float],
                       output_file: Union[str, Path],
                       dpi: int = 150) -> str:
    """
    Variable plot: loadings on the first two components, coloured by total contribution.

    Args:
        result: Fitted PCA
        contribution: Output of total_contribution
        output_file: Image path
        dpi: Image resolution

    Returns:
        Path of the written file
    """
    pc1 = result.components[0]
    pc2 = result.components[1] if result.n_components > 1 else np.zeros_like(pc1)
    colours = [contribution.get(v, 0.0) for v in result.variables]
    variance = pca.explained_variance(result)

    fig, ax = plt.subplots(figsize=(7, 7))

    circle = plt.Circle((0, 0), 1.0, fill=False, color='grey', linestyle='--', linewidth=0.8)
    ax.add_patch(circle)
    ax.axhline(0, color='grey', linewidth=0.5)
    ax.axvline(0, color='grey', linewidth=0.5)

    points = ax.scatter(pc1, pc2, c=colours, cmap='viridis', s=60, zorder=3)
    for name, x, y in zip(result.variables, pc1, pc2):
        ax.annotate(name, (x, y), xytext=(4, 4), textcoords='offset points', fontsize=9)

    fig.colorbar(points, ax=ax, label='Total contribution')
    ax.set_xlim(-1.1, 1.1)
    ax.set_ylim(-1.1, 1.1)
    ax.set_aspect('equal')
    ax.set_xlabel(f'PC1 ({variance[0] * 100:.1f}%)')
    second = variance[1] * 100 if len(variance) > 1 else 0.0
    ax.set_ylabel(f'PC2 ({second:.1f}%)')
    ax.set_title('Variable Contributions')

    return _save(fig, output_file, dpi)
