"""
Report export for admitstats.

Writes the plots, the ranked tables and a JSON summary of an Analysis
into one output directory.
"""

import logging
from pathlib import Path
from typing import Dict, List, Optional, Union

import pandas as pd
from pydantic import BaseModel

from admitstats.analysis import Analysis
from admitstats.math import pca
from admitstats.report import plots
from admitstats.utils.general import to_serializable

logger = logging.getLogger(__name__)


class LoadingEntry(BaseModel):
    """One variable's loading on a component."""

    variable: str
    loading: float


class ComponentSummary(BaseModel):
    """Variance and leading loadings of one component."""

    name: str
    eigenvalue: float
    explained_variance: float
    cumulative_variance: float
    top_loadings: List[LoadingEntry]


class PairEntry(BaseModel):
    """Correlated column pair."""

    a: str
    b: str
    r: float


class DatasetSummary(BaseModel):
    """What the loader kept and filtered out."""

    source: str
    rows: int
    dropped_rows: int
    columns: List[str]
    excluded_columns: List[str]
    dropped_columns: List[str]


class ReportSummary(BaseModel):
    """Top-level JSON report."""

    dataset: DatasetSummary
    correlation_method: str
    correlation_threshold: float
    correlated_pairs: List[PairEntry]
    components: List[ComponentSummary]
    components_for_target: int
    variance_target: float
    contribution_components: int
    total_contribution: Dict[str, float]
    pruned_columns: List[str]
    pruning_reasons: Dict[str, str]
    remaining_columns: List[str]
    files: List[str] = []


def build_summary(analysis: Analysis) -> ReportSummary:
    """
    Assemble the JSON report model from a computed analysis.

    Args:
        analysis: Computed Analysis

    Returns:
        ReportSummary
    """
    config = analysis.config
    result = analysis.pca
    top = analysis.top_loadings()
    variance = pca.explained_variance(result)
    cumulative = pca.cumulative_variance(result)
    target = config.get('analysis.variance-target', 0.8)

    components = [
        ComponentSummary(
            name=name,
            eigenvalue=float(result.eigenvalues[i]),
            explained_variance=variance[i],
            cumulative_variance=cumulative[i],
            top_loadings=[LoadingEntry(**entry) for entry in top.get(name, [])]
        )
        for i, name in enumerate(result.component_names())
    ]

    dataset = analysis.dataset
    return ReportSummary(
        dataset=DatasetSummary(
            source=dataset.source,
            rows=dataset.n_rows,
            dropped_rows=dataset.dropped_rows,
            columns=dataset.columns,
            excluded_columns=list(dataset.excluded_columns),
            dropped_columns=list(dataset.dropped_columns)
        ),
        correlation_method=config.get('analysis.correlation-method', 'pearson'),
        correlation_threshold=config.get('analysis.correlation-threshold'),
        correlated_pairs=[PairEntry(a=p.a, b=p.b, r=p.r) for p in analysis.pairs],
        components=components,
        components_for_target=pca.components_for_variance(result, target),
        variance_target=target,
        contribution_components=config.get('analysis.contribution-components'),
        total_contribution=to_serializable(analysis.contribution),
        pruned_columns=list(analysis.pruning.dropped),
        pruning_reasons=dict(analysis.pruning.reasons),
        remaining_columns=list(analysis.pruned.columns)
    )


def write_tables(analysis: Analysis, output_dir: Path) -> List[str]:
    """
    Write the CSV tables of a computed analysis.

    Args:
        analysis: Computed Analysis
        output_dir: Target directory

    Returns:
        Paths of the written files
    """
    result = analysis.pca
    n_comps = analysis.config.get('analysis.contribution-components', 3)
    written = []

    def save(df: pd.DataFrame, name: str, index: bool = True) -> None:
        path = output_dir / name
        df.to_csv(path, index=index)
        written.append(str(path))

    save(analysis.corr.to_dataframe(), 'correlation.csv')
    save(pd.DataFrame([p._asdict() for p in analysis.pairs], columns=['a', 'b', 'r']),
         'correlated_pairs.csv', index=False)
    save(result.loadings().to_dataframe(), 'loadings.csv')

    rows = [
        {'component': name, 'rank': rank + 1, 'variable': entry['variable'], 'loading': entry['loading']}
        for name, entries in analysis.top_loadings().items()
        for rank, entry in enumerate(entries)
    ]
    save(pd.DataFrame(rows, columns=['component', 'rank', 'variable', 'loading']),
         'top_loadings.csv', index=False)

    contrib = pca.contributions(result, n_comps).to_dataframe()
    contrib['total'] = contrib.sum(axis=1)
    save(contrib.sort_values('total'), 'contributions.csv')

    save(analysis.pruned.describe().T, 'filtered_summary.csv')

    return written


def write_report(analysis: Analysis,
                 output_dir: Optional[Union[str, Path]] = None,
                 with_plots: Optional[bool] = None) -> ReportSummary:
    """
    Render the full report for a computed analysis.

    Args:
        analysis: Computed Analysis
        output_dir: Target directory (defaults to report.output-dir)
        with_plots: Whether to draw the figures (defaults to report.plots)

    Returns:
        The ReportSummary that was written to summary.json
    """
    if not analysis.computed:
        raise RuntimeError("Analysis has not been run")

    config = analysis.config
    output_dir = Path(output_dir or config.get('report.output-dir', 'report'))
    output_dir.mkdir(parents=True, exist_ok=True)
    with_plots = config.get('report.plots', True) if with_plots is None else with_plots
    dpi = config.get('report.dpi', 150)

    files = write_tables(analysis, output_dir)

    # Settings the run used, so the report can be reproduced
    config_path = output_dir / 'config.yaml'
    config.save_to_file(str(config_path))
    files.append(str(config_path))

    if with_plots:
        order = analysis.corr_order if config.get('report.cluster-heatmap', False) else None
        files.append(plots.plot_correlation_heatmap(analysis.corr, output_dir / 'correlation_heatmap.png',
                                                    order=order, dpi=dpi))
        files.append(plots.plot_scree(analysis.pca, output_dir / 'scree.png', dpi=dpi))
        files.append(plots.plot_contributions(analysis.pca, analysis.contribution,
                                              output_dir / 'contributions.png', dpi=dpi))

    summary = build_summary(analysis)
    summary_path = output_dir / 'summary.json'
    summary.files = files + [str(summary_path)]
    summary_path.write_text(summary.model_dump_json(indent=2))

    logger.info(f"Report written to {output_dir} ({len(summary.files)} files)")
    return summary
