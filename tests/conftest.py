"""
Pytest configuration and fixtures for admitstats tests.
"""

import numpy as np
import pandas as pd
import pytest

from admitstats.components.config import Config, ConfigManager

CONFIG_ENV_VARS = [
    'INPUT_SHEET', 'INPUT_DROP_COLUMNS', 'CORRELATION_METHOD', 'CORRELATION_THRESHOLD',
    'CONTRIBUTION_COMPONENTS', 'TOP_LOADINGS', 'VARIANCE_TARGET', 'MIN_CONTRIBUTION',
    'PROTECTED_COLUMNS', 'REPORT_OUTPUT_DIR', 'REPORT_DPI', 'REPORT_PLOTS',
    'REPORT_CLUSTER_HEATMAP', 'LOG_LEVEL',
]

# Rows of the admissions fixture that carry a missing numeric value
MISSING_ROWS = [4, 17, 31]


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Isolate every test from configuration environment variables and the shared config."""
    for name in CONFIG_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    ConfigManager.reset()
    yield
    ConfigManager.reset()


@pytest.fixture
def config():
    return Config()


@pytest.fixture
def admissions_df():
    """Synthetic admissions table: identifier, mixed types, one tightly correlated pair, a few gaps."""
    rng = np.random.default_rng(7)
    n = 60

    gre = rng.normal(316, 11, n)
    toefl = 0.5 * gre - 50 + rng.normal(0, 1.5, n)
    cgpa = 0.02 * gre + 2.2 + rng.normal(0, 0.3, n)
    sop = rng.uniform(1, 5, n)
    research = rng.integers(0, 2, n)
    chance = 0.004 * gre + 0.05 * cgpa + rng.normal(0, 0.05, n) - 0.9

    df = pd.DataFrame({
        'Serial No.': np.arange(1, n + 1),
        'GRE Score': gre,
        'TOEFL Score': toefl,
        'SOP': sop,
        'CGPA': cgpa,
        'Research': research,
        'Program': rng.choice(['CS', 'EE', 'ME'], n),
        'Chance of Admit ': chance,
    })

    df.loc[MISSING_ROWS[0], 'SOP'] = np.nan
    df.loc[MISSING_ROWS[1], 'CGPA'] = np.nan
    df.loc[MISSING_ROWS[2], 'Chance of Admit '] = np.nan
    # A gap in a text column never removes a row
    df.loc[10, 'Program'] = None

    return df


@pytest.fixture
def admissions_xlsx(tmp_path, admissions_df):
    path = tmp_path / 'admissions.xlsx'
    admissions_df.to_excel(path, index=False)
    return path


@pytest.fixture
def correlated_df():
    """Two nearly identical columns and two independent ones."""
    rng = np.random.default_rng(11)
    n = 200
    a = rng.normal(size=n)
    return pd.DataFrame({
        'a': a,
        'b': a + rng.normal(scale=1e-3, size=n),
        'c': rng.normal(size=n),
        'd': rng.normal(size=n),
    })


@pytest.fixture
def missing_rows():
    return list(MISSING_ROWS)
