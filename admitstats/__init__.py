"""
Admitstats package for admissions data analysis.

Correlation analysis, principal component analysis and feature
pruning over a tabular admissions dataset.
"""

__version__ = '0.1.0'

from admitstats.errors import AnalysisError, DataAccessError, SchemaError, DegenerateColumnError
from admitstats.components.config import Config, ConfigManager
from admitstats.analysis import Analysis, run_analysis
