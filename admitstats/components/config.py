"""
Configuration management for admitstats.

This module provides functionality for managing configuration,
including loading from environment variables, files and default values.
"""

import os
import json
import logging
import threading
from typing import Dict, List, Optional, Any
from copy import deepcopy
import yaml

from admitstats.math.pruning import PruningPolicy

# Set up logging
logger = logging.getLogger(__name__)


def to_int(value: Any) -> Optional[int]:
    """
    Convert a value to an integer.

    Args:
        value: Value to convert

    Returns:
        Integer value, or None if conversion failed
    """
    if value is None:
        return None

    try:
        return int(value)
    except (ValueError, TypeError):
        return None


def to_float(value: Any) -> Optional[float]:
    """
    Convert a value to a float.

    Args:
        value: Value to convert

    Returns:
        Float value, or None if conversion failed
    """
    if value is None:
        return None

    try:
        return float(value)
    except (ValueError, TypeError):
        return None


def to_bool(value: Any) -> Optional[bool]:
    """
    Convert a value to a boolean.

    Args:
        value: Value to convert

    Returns:
        Boolean value, or None if conversion failed
    """
    if value is None:
        return None

    if isinstance(value, bool):
        return value

    if isinstance(value, (int, float)):
        return bool(value)

    if isinstance(value, str):
        value = value.lower().strip()
        if value in ('true', 'yes', 'y', '1', 't'):
            return True
        if value in ('false', 'no', 'n', '0', 'f'):
            return False

    return None


def to_list(value: Any, separator: str = ',') -> Optional[List[str]]:
    """
    Convert a value to a list.

    Args:
        value: Value to convert
        separator: Separator for string values

    Returns:
        List value, or None if conversion failed
    """
    if value is None:
        return None

    if isinstance(value, (list, tuple)):
        return list(value)

    if isinstance(value, str):
        return [item.strip() for item in value.split(separator) if item.strip()]

    return None


def to_sheet(value: Any) -> Any:
    """Sheet references are positions when they look like integers, names otherwise."""
    as_int = to_int(value)
    return as_int if as_int is not None else value


def load_file(filepath: str) -> Dict[str, Any]:
    """
    Read a JSON or YAML configuration file.

    Args:
        filepath: Path to the configuration file

    Returns:
        Configuration dictionary
    """
    if filepath.endswith('.json'):
        with open(filepath, 'r') as f:
            return json.load(f) or {}
    elif filepath.endswith('.yaml') or filepath.endswith('.yml'):
        with open(filepath, 'r') as f:
            return yaml.safe_load(f) or {}
    else:
        raise ValueError(f"Unsupported configuration file format: {filepath}")


class Config:
    """
    Configuration for an admitstats analysis run.
    """

    def __init__(self, overrides: Optional[Dict[str, Any]] = None):
        """
        Initialize configuration.

        Args:
            overrides: Optional configuration overrides
        """
        self._lock = threading.RLock()
        self._config = {}
        self._initialized = False

        self.load_config(overrides)

    def load_config(self, overrides: Optional[Dict[str, Any]] = None) -> None:
        """
        Load configuration from all sources.

        Precedence, lowest first: defaults, environment, overrides.

        Args:
            overrides: Optional configuration overrides
        """
        with self._lock:
            config = self._get_defaults()
            config = self._apply_env_vars(config)

            if overrides:
                config = self._apply_overrides(config, overrides)

            self._validate(config)

            self._config = config
            self._initialized = True

            logger.debug("Configuration loaded")

    def _get_defaults(self) -> Dict[str, Any]:
        """
        Get default configuration values.

        Returns:
            Default configuration
        """
        return {
            # Input
            'input': {
                'sheet': 0,
                'drop-columns': []        # identifier columns, e.g. a serial number
            },

            # Analysis
            'analysis': {
                'correlation-method': 'pearson',
                'correlation-threshold': 0.7,
                'contribution-components': 3,
                'top-loadings': 5,
                'variance-target': 0.8,
                'min-contribution': None,
                'protected-columns': []   # never pruned
            },

            # Report
            'report': {
                'output-dir': 'report',
                'dpi': 150,
                'plots': True,
                'cluster-heatmap': False
            },

            # Logging
            'logging': {
                'level': 'info'
            }
        }

    def _apply_env_vars(self, config: Dict[str, Any]) -> Dict[str, Any]:
        """
        Apply environment variables to configuration.

        Args:
            config: Current configuration

        Returns:
            Updated configuration
        """
        config = deepcopy(config)
        env = os.environ

        # Input
        if 'INPUT_SHEET' in env:
            config['input']['sheet'] = to_sheet(env['INPUT_SHEET'])
        if 'INPUT_DROP_COLUMNS' in env:
            config['input']['drop-columns'] = to_list(env['INPUT_DROP_COLUMNS'])

        # Analysis
        analysis = config['analysis']
        analysis['correlation-method'] = env.get('CORRELATION_METHOD', analysis['correlation-method']).lower()
        analysis['correlation-threshold'] = to_float(env.get('CORRELATION_THRESHOLD', analysis['correlation-threshold']))
        analysis['contribution-components'] = to_int(env.get('CONTRIBUTION_COMPONENTS', analysis['contribution-components']))
        analysis['top-loadings'] = to_int(env.get('TOP_LOADINGS', analysis['top-loadings']))
        analysis['variance-target'] = to_float(env.get('VARIANCE_TARGET', analysis['variance-target']))
        if 'MIN_CONTRIBUTION' in env:
            analysis['min-contribution'] = to_float(env['MIN_CONTRIBUTION'])
        if 'PROTECTED_COLUMNS' in env:
            analysis['protected-columns'] = to_list(env['PROTECTED_COLUMNS'])

        # Report
        report = config['report']
        report['output-dir'] = env.get('REPORT_OUTPUT_DIR', report['output-dir'])
        report['dpi'] = to_int(env.get('REPORT_DPI', report['dpi']))
        if 'REPORT_PLOTS' in env:
            report['plots'] = to_bool(env['REPORT_PLOTS'])
        if 'REPORT_CLUSTER_HEATMAP' in env:
            report['cluster-heatmap'] = to_bool(env['REPORT_CLUSTER_HEATMAP'])

        # Logging
        config['logging']['level'] = env.get('LOG_LEVEL', config['logging']['level']).lower()

        return config

    def _apply_overrides(self, config: Dict[str, Any], overrides: Dict[str, Any]) -> Dict[str, Any]:
        """
        Apply configuration overrides.

        Args:
            config: Current configuration
            overrides: Configuration overrides

        Returns:
            Updated configuration
        """
        config = deepcopy(config)

        def deep_update(d, u):
            for k, v in u.items():
                if isinstance(v, dict) and k in d and isinstance(d[k], dict):
                    d[k] = deep_update(d[k], v)
                else:
                    d[k] = v
            return d

        return deep_update(config, deepcopy(overrides))

    def _validate(self, config: Dict[str, Any]) -> None:
        """
        Coerce numeric values from files and reject those the analysis stages cannot use.

        Args:
            config: Configuration to check
        """
        analysis = config['analysis']
        report = config['report']

        for section, key, convert in [(analysis, 'correlation-threshold', to_float),
                                      (analysis, 'contribution-components', to_int),
                                      (analysis, 'top-loadings', to_int),
                                      (analysis, 'variance-target', to_float),
                                      (analysis, 'min-contribution', to_float),
                                      (report, 'dpi', to_int)]:
            value = section.get(key)
            converted = convert(value)
            if value is not None and converted is None:
                raise ValueError(f"{key} must be numeric, got {value!r}")
            section[key] = converted

        threshold = analysis['correlation-threshold']
        if threshold is None or not 0.0 < threshold < 1.0:
            raise ValueError(f"analysis.correlation-threshold must be in (0, 1), got {threshold!r}")

        n_comps = analysis['contribution-components']
        if n_comps is None or n_comps < 1:
            raise ValueError(f"analysis.contribution-components must be >= 1, got {n_comps!r}")

        if analysis['correlation-method'] not in ('pearson', 'spearman', 'kendall'):
            raise ValueError(f"Unknown correlation method: {analysis['correlation-method']}")

    def get(self, path: str, default: Any = None) -> Any:
        """
        Get a configuration value.

        Args:
            path: Configuration path (dot-separated)
            default: Default value if not found

        Returns:
            Configuration value, or default if not found
        """
        if not self._initialized:
            self.load_config()

        value = self._config

        for component in path.split('.'):
            if isinstance(value, dict) and component in value:
                value = value[component]
            else:
                return default

        return value

    def set(self, path: str, value: Any) -> None:
        """
        Set a configuration value.

        Args:
            path: Configuration path (dot-separated)
            value: Configuration value
        """
        with self._lock:
            if not self._initialized:
                self.load_config()

            components = path.split('.')
            config = self._config

            for component in components[:-1]:
                if component not in config:
                    config[component] = {}

                config = config[component]

            config[components[-1]] = value

    def pruning_policy(self) -> PruningPolicy:
        """
        Build the feature pruning policy described by the analysis keys.

        Returns:
            PruningPolicy
        """
        return PruningPolicy(
            correlation_threshold=self.get('analysis.correlation-threshold'),
            contribution_components=self.get('analysis.contribution-components'),
            min_total_contribution=self.get('analysis.min-contribution'),
            protected=tuple(self.get('analysis.protected-columns') or ())
        )

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert configuration to a dictionary.

        Returns:
            Configuration dictionary
        """
        if not self._initialized:
            self.load_config()

        return deepcopy(self._config)

    def save_to_file(self, filepath: str) -> None:
        """
        Save configuration to a file.

        Args:
            filepath: Path to save configuration
        """
        if not self._initialized:
            self.load_config()

        if filepath.endswith('.json'):
            with open(filepath, 'w') as f:
                json.dump(self._config, f, indent=2)
        elif filepath.endswith('.yaml') or filepath.endswith('.yml'):
            with open(filepath, 'w') as f:
                yaml.dump(self._config, f, default_flow_style=False)
        else:
            raise ValueError(f"Unsupported file format: {filepath}")


class ConfigManager:
    """
    Singleton manager for configuration.
    """

    _instance = None
    _lock = threading.RLock()

    @classmethod
    def get_config(cls, overrides: Optional[Dict[str, Any]] = None) -> Config:
        """
        Get the configuration instance.

        Args:
            overrides: Optional configuration overrides

        Returns:
            Config instance
        """
        with cls._lock:
            if cls._instance is None:
                cls._instance = Config(overrides)
            elif overrides:
                cls._instance.load_config(overrides)

            return cls._instance

    @classmethod
    def reset(cls) -> None:
        """Drop the shared instance so the next call reloads from scratch."""
        with cls._lock:
            cls._instance = None
