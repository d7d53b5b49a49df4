"""
ChromWeaver v0.1.0

Configuration schema for ChromWeaver.

Defines all available configuration parameters with defaults and validation.

Author: ChromWeaver Development Team
License: BSD-3-Clause - See LICENSE
"""

import copy
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from ..utils.motif import MotifError, Motif


class ConfigValidationError(Exception):
    """Raised when configuration validation fails."""
    pass


# Default configuration values
DEFAULT_CONFIG = {
    # ========================================================================
    # Model Training
    # ========================================================================
    'training': {
        'n_samples': 50000,  # Max observations drawn per kmer
        'single': False,  # One mixture component instead of two
        'dbscan': False,  # Drop outliers before fitting
        'dbscan_eps': 0.001,
        'dbscan_min_samples': 3,
        'n_init': 10,  # EM restarts
        'tol': 0.0001,
        'seed': None,
        'motifs': [],  # Empty: every kmer
        'db_path': None,  # Default: temporary file per run
        'use_raw_samples': False,
    },

    # ========================================================================
    # Kmer Ranking
    # ========================================================================
    'ranking': {
        'seed': 2456,
        'n_samples': 10000,
    },

    # ========================================================================
    # Scoring
    # ========================================================================
    'scoring': {
        'cutoff': 10.0,  # Withhold signal score if both log densities < -cutoff
        'motifs': [],
        'fusion': 'max',  # 'max' or 'signal_first'
        'select_components': False,
    },

    # ========================================================================
    # Calibration (score KDE)
    # ========================================================================
    'calibration': {
        'bins': 1000,
        'max_scores': 1000000,
        'seed': 2456,
    },

    # ========================================================================
    # Single-molecule calling
    # ========================================================================
    'sma': {
        'threshold': 0.5,
        'track_name': 'chromweaver.sma',
    },

    # ========================================================================
    # Input/Output
    # ========================================================================
    'io': {
        'batch_size': 2048,
        'in_memory_genome': False,  # Parse whole FASTA instead of faidx access
    },
}


def default_config() -> Dict[str, Any]:
    """Fresh copy of the default configuration."""
    return copy.deepcopy(DEFAULT_CONFIG)


def load_config(config_path: Optional[Path] = None) -> Dict[str, Any]:
    """
    Load configuration from YAML file, merging with defaults.

    Args:
        config_path: Path to user configuration file (optional)

    Returns:
        Complete configuration dictionary

    Raises:
        ConfigValidationError: If the file is not valid YAML mapping
    """
    config = default_config()

    if config_path is not None:
        config_path = Path(config_path)
        if not config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")
        try:
            with open(config_path, 'r') as f:
                user_config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigValidationError(f"Invalid YAML in config file {config_path}: {e}")

        if user_config:
            if not isinstance(user_config, dict):
                raise ConfigValidationError(f"Config file {config_path} must contain a mapping")
            config = _deep_merge(config, user_config)

    return config


def _deep_merge(base: Dict, override: Dict) -> Dict:
    """
    Deep merge two dictionaries.

    Args:
        base: Base dictionary
        override: Override dictionary

    Returns:
        Merged dictionary
    """
    result = base.copy()

    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value

    return result


def apply_overrides(config: Dict[str, Any], overrides: Dict[str, Any]) -> Dict[str, Any]:
    """
    Apply CLI overrides in dotted notation (e.g. 'scoring.cutoff').

    None values are ignored so unset CLI options keep config values.
    """
    config = copy.deepcopy(config)
    for key, value in overrides.items():
        if value is None:
            continue
        keys = key.split('.')
        target = config
        for k in keys[:-1]:
            target = target.setdefault(k, {})
        target[keys[-1]] = value
    return config


def save_config_template(output_path: Path, template: str = 'default'):
    """
    Save a configuration template to file.

    Args:
        output_path: Output file path
        template: Template type ('default', 'gpc', 'cpg')
    """
    config = default_config()

    # Customize for common footprinting chemistries
    if template == 'gpc':
        config['training']['motifs'] = ['2:GC']
        config['scoring']['motifs'] = ['2:GC']
    elif template == 'cpg':
        config['training']['motifs'] = ['1:CG']
        config['scoring']['motifs'] = ['1:CG']

    with open(output_path, 'w') as f:
        yaml.dump(config, f, default_flow_style=False, sort_keys=False)


def _section(config: Dict[str, Any], name: str, errors: List[str]) -> Dict[str, Any]:
    section = config.get(name) or {}
    if not isinstance(section, dict):
        errors.append(f"{name} must be a mapping, got {section!r}")
        return {}
    return section


def _number(section: Dict[str, Any], name: str, key: str, default: Any,
            errors: List[str], integer: bool = False) -> Optional[float]:
    """Fetch a numeric setting, recording an error for any other type."""
    value = section.get(key, default)
    expected = int if integer else (int, float)
    if isinstance(value, bool) or not isinstance(value, expected):
        kind = "an integer" if integer else "a number"
        errors.append(f"{name}.{key} must be {kind}, got {value!r}")
        return None
    return value


def validate_config(config: Dict[str, Any]) -> List[str]:
    """
    Validate configuration dictionary.

    Values of the wrong type are reported as errors rather than raised.

    Args:
        config: Configuration to validate

    Returns:
        List of validation errors (empty if valid)
    """
    errors = []

    training = _section(config, 'training', errors)
    n_samples = _number(training, 'training', 'n_samples', 0, errors, integer=True)
    if n_samples is not None and n_samples < 2:
        errors.append("training.n_samples must be at least 2")
    n_init = _number(training, 'training', 'n_init', 0, errors, integer=True)
    if n_init is not None and n_init < 1:
        errors.append("training.n_init must be at least 1")
    eps = _number(training, 'training', 'dbscan_eps', 0, errors)
    if eps is not None and eps <= 0:
        errors.append("training.dbscan_eps must be positive")

    ranking = _section(config, 'ranking', errors)
    n_samples = _number(ranking, 'ranking', 'n_samples', 0, errors, integer=True)
    if n_samples is not None and n_samples < 1:
        errors.append("ranking.n_samples must be positive")

    scoring = _section(config, 'scoring', errors)
    if scoring.get('fusion') not in ('max', 'signal_first'):
        errors.append(f"Invalid scoring.fusion: {scoring.get('fusion')} (expected max or signal_first)")
    cutoff = _number(scoring, 'scoring', 'cutoff', 0, errors)
    if cutoff is not None and cutoff < 0:
        errors.append("scoring.cutoff must be non-negative")

    # Validate motif strings
    for name, section in (('training', training), ('scoring', scoring)):
        motifs = section.get('motifs') or []
        if not isinstance(motifs, list):
            errors.append(f"{name}.motifs must be a list, got {motifs!r}")
            continue
        for text in motifs:
            try:
                Motif.parse(str(text))
            except MotifError as e:
                errors.append(f"Invalid motif in {name}.motifs: {text} ({e})")

    calibration = _section(config, 'calibration', errors)
    bins = _number(calibration, 'calibration', 'bins', 0, errors, integer=True)
    if bins is not None and bins < 2:
        errors.append("calibration.bins must be at least 2")

    sma = _section(config, 'sma', errors)
    threshold = _number(sma, 'sma', 'threshold', 0.5, errors)
    if threshold is not None and not 0.0 <= threshold <= 1.0:
        errors.append("sma.threshold must be in [0, 1]")

    io = _section(config, 'io', errors)
    batch_size = _number(io, 'io', 'batch_size', 0, errors, integer=True)
    if batch_size is not None and batch_size < 1:
        errors.append("io.batch_size must be positive")

    return errors
