"""
Analysis orchestration for admitstats.

An Analysis ties the stages together for one dataset snapshot: the
correlation matrix, the PCA fit, contribution scores and the pruning
decision derived from them.
"""

import logging
import time
from copy import copy
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import pandas as pd

from admitstats.components.config import Config, ConfigManager
from admitstats.data.loader import LoadedDataset, load_dataset
from admitstats.math.corr import CorrelatedPair, cluster_order, correlated_pairs, correlation_matrix
from admitstats.math.named_matrix import NamedMatrix
from admitstats.math import pca
from admitstats.math.pruning import PruningDecision, apply_pruning, suggest_drops
from admitstats.utils.general import round_to

logger = logging.getLogger(__name__)


class Analysis:
    """
    Correlation and PCA analysis of one numeric dataset.
    """

    def __init__(self, dataset: LoadedDataset, config: Optional[Config] = None):
        """
        Initialize an analysis.

        Args:
            dataset: Numeric subset produced by the loader
            config: Configuration (defaults to the shared instance)
        """
        self.dataset = dataset
        self.config = config or ConfigManager.get_config()

        # Computed by run()
        self.corr: Optional[NamedMatrix] = None
        self.corr_order: List[str] = []
        self.pairs: List[CorrelatedPair] = []
        self.pca: Optional[pca.PCAResult] = None
        self.contribution: Dict[str, float] = {}
        self.pruning: Optional[PruningDecision] = None
        self.pruned: Optional[pd.DataFrame] = None

    @property
    def computed(self) -> bool:
        return self.pca is not None

    def run(self) -> 'Analysis':
        """
        Run every stage over the dataset.

        Returns:
            A new, computed Analysis; this one is left untouched
        """
        result = copy(self)
        start_time = time.time()
        data = self.dataset.data
        policy = self.config.pruning_policy()

        logger.info(f"Analysing {len(data)} rows x {len(data.columns)} columns from {self.dataset.source}")

        result.corr = correlation_matrix(data, self.config.get('analysis.correlation-method', 'pearson'))
        result.corr_order = cluster_order(result.corr)
        result.pairs = correlated_pairs(result.corr, policy.correlation_threshold)
        logger.info(f"Found {len(result.pairs)} pairs with |r| > {policy.correlation_threshold}")

        result.pca = pca.fit(data)
        result.contribution = pca.total_contribution(result.pca, policy.contribution_components)

        result.pruning = suggest_drops(result.corr, result.pca, policy)
        result.pruned = apply_pruning(data, result.pruning)

        logger.info(f"Analysis completed in {time.time() - start_time:.2f}s")
        return result

    def _require_computed(self) -> None:
        if not self.computed:
            raise RuntimeError("Analysis has not been run")

    def top_loadings(self, k: Optional[int] = None) -> Dict[str, List[Dict[str, Any]]]:
        """
        Ranked loadings for each of the leading components.

        Args:
            k: Variables per component (defaults to analysis.top-loadings)

        Returns:
            Mapping from component name to ranked variable/loading entries
        """
        self._require_computed()
        k = k if k is not None else self.config.get('analysis.top-loadings', 5)
        n_comps = min(self.config.get('analysis.contribution-components', 3), self.pca.n_components)

        return {
            name: [
                {'variable': var, 'loading': loading}
                for var, loading in pca.top_loadings(self.pca, i, k)
            ]
            for i, name in enumerate(self.pca.component_names()[:n_comps])
        }

    def get_summary(self) -> Dict[str, Any]:
        """
        Short overview of the analysis.

        Returns:
            Dictionary of headline numbers
        """
        self._require_computed()
        variance = pca.explained_variance(self.pca)
        target = self.config.get('analysis.variance-target', 0.8)

        return {
            'source': self.dataset.source,
            'rows': self.dataset.n_rows,
            'dropped_rows': self.dataset.dropped_rows,
            'columns': len(self.dataset.columns),
            'excluded_columns': list(self.dataset.excluded_columns),
            'correlated_pairs': len(self.pairs),
            'pc1_variance': round_to(variance[0], 4),
            'components_for_target': pca.components_for_variance(self.pca, target),
            'pruned_columns': list(self.pruning.dropped),
            'remaining_columns': list(self.pruned.columns)
        }

    def to_dict(self) -> Dict[str, Any]:
        """
        Full analysis results as plain Python data.

        Returns:
            Dictionary suitable for JSON encoding
        """
        self._require_computed()

        return {
            'summary': self.get_summary(),
            'correlation': {
                'method': self.config.get('analysis.correlation-method', 'pearson'),
                'columns': self.corr.colnames(),
                'matrix': self.corr.values.tolist(),
                'cluster_order': list(self.corr_order)
            },
            'correlated_pairs': [
                {'a': p.a, 'b': p.b, 'r': p.r} for p in self.pairs
            ],
            'pca': {
                'variables': list(self.pca.variables),
                'eigenvalues': self.pca.eigenvalues.tolist(),
                'explained_variance': pca.explained_variance(self.pca),
                'cumulative_variance': pca.cumulative_variance(self.pca),
                'loadings': self.pca.components.tolist(),
                'top_loadings': self.top_loadings()
            },
            'contribution': dict(self.contribution),
            'pruning': {
                'dropped': list(self.pruning.dropped),
                'reasons': dict(self.pruning.reasons)
            }
        }


def run_analysis(path: Union[str, Path], config: Optional[Config] = None) -> Analysis:
    """
    Load a dataset and run the full analysis.

    Args:
        path: Spreadsheet or CSV path
        config: Configuration (defaults to the shared instance)

    Returns:
        Computed Analysis
    """
    config = config or ConfigManager.get_config()
    dataset = load_dataset(
        path,
        sheet=config.get('input.sheet', 0),
        drop_columns=config.get('input.drop-columns') or ()
    )
    return Analysis(dataset, config).run()
