"""
Feature pruning driven by correlation and PCA contribution.

For every strongly correlated pair, the member that contributes less to
the leading components is dropped. An optional contribution floor drops
the remaining low-value columns. Protected columns are never dropped.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

import pandas as pd

from admitstats.math.corr import correlated_pairs
from admitstats.math.named_matrix import NamedMatrix
from admitstats.math.pca import PCAResult, total_contribution

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PruningPolicy:
    """Named options for automated feature pruning."""
    correlation_threshold: float = 0.7
    contribution_components: int = 3
    min_total_contribution: Optional[float] = None
    protected: Tuple[str, ...] = ()


@dataclass
class PruningDecision:
    """Columns chosen for removal, in decision order, with the reason for each."""
    dropped: List[str] = field(default_factory=list)
    reasons: Dict[str, str] = field(default_factory=dict)
    contribution: Dict[str, float] = field(default_factory=dict)

    def drop(self, column: str, reason: str) -> None:
        self.dropped.append(column)
        self.reasons[column] = reason
        logger.info(f"Pruning '{column}': {reason}")


def suggest_drops(corr: NamedMatrix, result: PCAResult, policy: PruningPolicy) -> PruningDecision:
    """
    Decide which columns to drop under a pruning policy.

    Args:
        corr: Correlation matrix of the numeric dataset
        result: PCA fitted on the same dataset
        policy: Pruning options

    Returns:
        PruningDecision
    """
    scores = total_contribution(result, policy.contribution_components)
    order = {name: i for i, name in enumerate(result.variables)}
    protected = set(policy.protected)
    decision = PruningDecision(contribution=scores)

    for pair in correlated_pairs(corr, policy.correlation_threshold):
        if pair.a in decision.reasons or pair.b in decision.reasons:
            continue

        candidates = [c for c in (pair.a, pair.b) if c not in protected]
        if not candidates:
            continue

        # Lower contribution goes first; ties drop the later column
        victim = min(candidates, key=lambda c: (scores.get(c, 0.0), -order.get(c, 0)))
        keeper = pair.b if victim == pair.a else pair.a
        decision.drop(
            victim,
            f"|r|={abs(pair.r):.3f} with '{keeper}' and lower contribution "
            f"({scores.get(victim, 0.0):.3f} <= {scores.get(keeper, 0.0):.3f})"
        )

    if policy.min_total_contribution is not None:
        remaining = [c for c in result.variables if c not in decision.reasons]
        # Scores ascend, so the column left standing is the most influential one
        for name, score in scores.items():
            if name in protected or name in decision.reasons:
                continue
            if score < policy.min_total_contribution:
                if len(remaining) == 1:
                    logger.warning(f"Keeping '{name}' below the contribution floor: no other column remains")
                    break
                decision.drop(name, f"contribution {score:.3f} below {policy.min_total_contribution:.3f}")
                remaining.remove(name)

    return decision


def apply_pruning(df: pd.DataFrame, decision: PruningDecision) -> pd.DataFrame:
    """
    Return the dataset without the dropped columns.

    Args:
        df: Numeric DataFrame
        decision: Output of suggest_drops

    Returns:
        New DataFrame
    """
    return df.drop(columns=[c for c in decision.dropped if c in df.columns])
