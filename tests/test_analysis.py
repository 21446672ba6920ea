"""
Tests for the analysis pipeline, report export and command line entry point.
"""

import json
import numpy as np
import pandas as pd
import pytest
import sys
import os

# Add the parent directory to the path to import the module
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from admitstats.__main__ import build_overrides, main, parse_args
from admitstats.analysis import Analysis, run_analysis
from admitstats.components.config import Config, load_file
from admitstats.data.loader import load_dataframe
from admitstats.errors import DegenerateColumnError
from admitstats.report.export import build_summary, write_report


@pytest.fixture
def analysis_config():
    return Config({
        'input': {'drop-columns': ['Serial No.']},
        'analysis': {'protected-columns': ['Chance of Admit']},
    })


@pytest.fixture
def computed(admissions_df, analysis_config):
    dataset = load_dataframe(admissions_df, drop_columns=['Serial No.'])
    return Analysis(dataset, analysis_config).run()


class TestAnalysis:
    """Tests for the Analysis orchestration."""

    def test_run_returns_new_analysis(self, admissions_df, analysis_config):
        dataset = load_dataframe(admissions_df, drop_columns=['Serial No.'])
        pending = Analysis(dataset, analysis_config)
        done = pending.run()

        assert done is not pending
        assert not pending.computed
        assert done.computed
        assert done.dataset is pending.dataset

    def test_requires_run(self, admissions_df, analysis_config):
        pending = Analysis(load_dataframe(admissions_df), analysis_config)
        with pytest.raises(RuntimeError):
            pending.get_summary()

    def test_stage_outputs(self, computed):
        columns = computed.dataset.columns

        assert computed.corr.colnames() == columns
        assert sorted(computed.corr_order) == sorted(columns)
        assert computed.pca.variables == columns
        assert set(computed.contribution) == set(columns)

        # GRE and TOEFL are built to be near copies
        assert frozenset(('GRE Score', 'TOEFL Score')) in {p.key for p in computed.pairs}
        assert 'Chance of Admit' not in computed.pruning.dropped
        assert list(computed.pruned.columns) == [c for c in columns if c not in computed.pruning.dropped]

    def test_summary(self, computed, missing_rows):
        summary = computed.get_summary()

        assert summary['rows'] == computed.dataset.n_rows
        assert summary['dropped_rows'] == len(missing_rows)
        assert summary['excluded_columns'] == ['Program']
        assert summary['correlated_pairs'] == len(computed.pairs)
        assert 0.0 < summary['pc1_variance'] <= 1.0
        assert 1 <= summary['components_for_target'] <= len(computed.dataset.columns)

    def test_top_loadings(self, computed):
        top = computed.top_loadings(k=2)
        assert list(top) == ['PC1', 'PC2', 'PC3']
        assert all(len(entries) == 2 for entries in top.values())

    def test_to_dict_is_json_encodable(self, computed):
        data = computed.to_dict()
        encoded = json.loads(json.dumps(data))

        assert encoded['correlation']['columns'] == computed.dataset.columns
        assert np.isclose(sum(encoded['pca']['explained_variance']), 1.0)
        assert encoded['pruning']['dropped'] == computed.pruning.dropped

    def test_degenerate_dataset(self, analysis_config):
        df = pd.DataFrame({'x': [1.0, 2.0, 3.0], 'same': [4.0, 4.0, 4.0]})
        with pytest.raises(DegenerateColumnError):
            Analysis(load_dataframe(df), analysis_config).run()

    def test_run_analysis_from_file(self, admissions_xlsx, analysis_config):
        analysis = run_analysis(admissions_xlsx, analysis_config)
        assert 'Serial No.' not in analysis.dataset.columns
        assert analysis.dataset.dropped_columns == ['Serial No.']
        assert analysis.computed


class TestReport:
    """Tests for report export."""

    def test_build_summary(self, computed):
        summary = build_summary(computed)

        assert summary.dataset.rows == computed.dataset.n_rows
        assert len(summary.components) == computed.pca.n_components
        assert summary.components[0].name == 'PC1'
        assert len(summary.components[0].top_loadings) == 5
        assert summary.components[-1].top_loadings == []
        assert summary.pruned_columns == computed.pruning.dropped

    def test_write_report_tables_only(self, computed, tmp_path):
        summary = write_report(computed, tmp_path / 'out', with_plots=False)
        out = tmp_path / 'out'

        for name in ['correlation.csv', 'correlated_pairs.csv', 'loadings.csv', 'top_loadings.csv',
                     'contributions.csv', 'filtered_summary.csv', 'config.yaml', 'summary.json']:
            assert (out / name).exists(), name
        assert not (out / 'scree.png').exists()

        data = json.loads((out / 'summary.json').read_text())
        assert data['dataset']['rows'] == computed.dataset.n_rows
        assert data['files'] == summary.files

        loadings = pd.read_csv(out / 'loadings.csv', index_col=0)
        assert list(loadings.columns) == computed.pca.variables

        contributions = pd.read_csv(out / 'contributions.csv', index_col=0)
        assert list(contributions['total']) == sorted(contributions['total'])

        filtered = pd.read_csv(out / 'filtered_summary.csv', index_col=0)
        assert list(filtered.index) == list(computed.pruned.columns)

        saved = load_file(str(out / 'config.yaml'))
        assert saved['analysis']['protected-columns'] == ['Chance of Admit']

    def test_write_report_with_high_contribution_floor(self, admissions_df, tmp_path):
        config = Config({'analysis': {'min-contribution': 2.0}})
        dataset = load_dataframe(admissions_df, drop_columns=['Serial No.'])
        analysis = Analysis(dataset, config).run()

        summary = write_report(analysis, tmp_path, with_plots=False)

        assert len(summary.remaining_columns) == 1
        filtered = pd.read_csv(tmp_path / 'filtered_summary.csv', index_col=0)
        assert list(filtered.index) == summary.remaining_columns

    def test_write_report_with_plots(self, computed, tmp_path):
        computed.config.set('report.cluster-heatmap', True)
        write_report(computed, tmp_path, with_plots=True)

        for name in ['correlation_heatmap.png', 'scree.png', 'contributions.png']:
            assert (tmp_path / name).stat().st_size > 0

    def test_write_report_requires_run(self, admissions_df, analysis_config, tmp_path):
        with pytest.raises(RuntimeError):
            write_report(Analysis(load_dataframe(admissions_df), analysis_config), tmp_path)


class TestCommandLine:
    """Tests for the command line entry point."""

    def test_build_overrides(self, tmp_path):
        config_path = tmp_path / 'cfg.json'
        config_path.write_text(json.dumps({'analysis': {'top-loadings': 3}}))
        args = parse_args([
            'data.xlsx', '--config', str(config_path), '--threshold', '0.8',
            '--components', '2', '--sheet', '1', '--output-dir', 'out', '--no-plots',
        ])
        overrides = build_overrides(args)

        assert overrides['analysis'] == {
            'top-loadings': 3, 'correlation-threshold': 0.8, 'contribution-components': 2
        }
        assert overrides['input'] == {'sheet': 1}
        assert overrides['report'] == {'output-dir': 'out', 'plots': False}

    def test_main_writes_report(self, admissions_xlsx, tmp_path, capsys):
        out = tmp_path / 'report'
        status = main([str(admissions_xlsx), '--output-dir', str(out), '--no-plots'])

        assert status == 0
        assert (out / 'summary.json').exists()
        assert 'Report saved to' in capsys.readouterr().out

    def test_main_missing_file(self, tmp_path):
        assert main([str(tmp_path / 'missing.xlsx'), '--output-dir', str(tmp_path)]) == 1

    def test_main_invalid_threshold(self, admissions_xlsx, tmp_path):
        assert main([str(admissions_xlsx), '--threshold', '2', '--output-dir', str(tmp_path)]) == 1

    def test_main_non_numeric_threshold_in_file(self, admissions_xlsx, tmp_path):
        config_path = tmp_path / 'cfg.yaml'
        config_path.write_text("analysis:\n  correlation-threshold: high\n")
        assert main([str(admissions_xlsx), '--config', str(config_path), '--output-dir', str(tmp_path)]) == 1

    def test_main_duplicate_headers(self, tmp_path):
        path = tmp_path / 'dup.csv'
        path.write_text("GRE,GRE ,CGPA\n300,310,9.1\n320,318,8.7\n")
        assert main([str(path), '--output-dir', str(tmp_path / 'out'), '--no-plots']) == 1
