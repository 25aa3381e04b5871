"""
ChainWeaver v0.1.0

Configuration schema for ChainWeaver.

Defines all available configuration parameters with defaults and validation.

Author: ChainWeaver Development Team
License: Dual License (Academic/Commercial) - See LICENSE_ACADEMIC.md and LICENSE_COMMERCIAL.md
"""

import copy
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml


# Default configuration values
DEFAULT_CONFIG = {
    # ========================================================================
    # Sequence Reconstruction
    # ========================================================================
    'reconstruction': {
        'perfect_threshold': 0.8,        # similarity for a perfect splice
        'fuzzy_threshold': 0.5,          # similarity for a lower-confidence splice
        'reorientation_threshold': 0.8,  # similarity needed to override declared orientations
        'placeholder_base': 'N',         # fill for nodes without a sequence
    },

    # ========================================================================
    # Chain Contraction
    # ========================================================================
    'contraction': {
        'id_scheme': 'content',  # 'content' (deterministic) or 'timestamp'
    },

    # ========================================================================
    # Undo History
    # ========================================================================
    'history': {
        'max_size': 20,
    },

    # ========================================================================
    # Output Settings
    # ========================================================================
    'output': {
        'report_format': 'text',  # 'text' or 'json'
        'fasta_line_width': 80,
        'logging': {
            'level': 'INFO',
            'log_file': None,
        },
    },
}

VALID_ID_SCHEMES = ['content', 'timestamp']
VALID_REPORT_FORMATS = ['text', 'json']
VALID_LOG_LEVELS = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']


class ConfigValidationError(Exception):
    """Raised when configuration validation fails."""
    pass


def read_config_file(config_path: Path) -> Dict[str, Any]:
    """
    Read the user's YAML mapping from a configuration file.

    Returns:
        The mapping, or {} for an empty file

    Raises:
        FileNotFoundError: If the file does not exist
        ConfigValidationError: If the YAML is invalid or not a mapping
    """
    config_path = Path(config_path)
    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    try:
        with open(config_path) as f:
            loaded = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigValidationError(f"Invalid YAML in {config_path}: {e}")

    if loaded is None:
        return {}
    if not isinstance(loaded, dict):
        raise ConfigValidationError(
            f"{config_path} must contain a mapping, got {type(loaded).__name__}"
        )
    return loaded


def load_config(config_path: Optional[Path] = None) -> Dict[str, Any]:
    """
    Load configuration from file or return defaults.

    Args:
        config_path: Path to YAML config file (None = use defaults)

    Returns:
        Configuration dictionary
    """
    config = copy.deepcopy(DEFAULT_CONFIG)

    if config_path:
        config = _deep_merge(config, read_config_file(config_path))

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


def save_config_template(output_path: Path, template: str = 'default'):
    """
    Save a configuration template to file.

    Args:
        output_path: Output file path
        template: Template type ('default', 'strict', 'lenient')
    """
    config = copy.deepcopy(DEFAULT_CONFIG)

    # Customize for specific templates
    if template == 'strict':
        config['reconstruction']['perfect_threshold'] = 0.95
        config['reconstruction']['fuzzy_threshold'] = 0.8
        config['reconstruction']['reorientation_threshold'] = 0.95

    elif template == 'lenient':
        config['reconstruction']['perfect_threshold'] = 0.7
        config['reconstruction']['fuzzy_threshold'] = 0.3
        config['reconstruction']['reorientation_threshold'] = 0.6

    elif template != 'default':
        raise ValueError(f"Unknown template: {template}")

    with open(output_path, 'w') as f:
        yaml.dump(config, f, default_flow_style=False, sort_keys=False)


def validate_config(config: Dict[str, Any]) -> List[str]:
    """
    Validate configuration dictionary.

    Args:
        config: Configuration to validate

    Returns:
        List of validation errors (empty if valid)
    """
    errors = []

    # Validate reconstruction thresholds
    recon = config.get('reconstruction', {})
    for key in ['perfect_threshold', 'fuzzy_threshold', 'reorientation_threshold']:
        value = recon.get(key)
        if not isinstance(value, (int, float)) or isinstance(value, bool) or not 0.0 <= value <= 1.0:
            errors.append(f"reconstruction.{key} must be a number in [0, 1], got {value!r}")

    perfect = recon.get('perfect_threshold')
    fuzzy = recon.get('fuzzy_threshold')
    if isinstance(perfect, (int, float)) and isinstance(fuzzy, (int, float)) and fuzzy > perfect:
        errors.append(f"reconstruction.fuzzy_threshold ({fuzzy}) exceeds perfect_threshold ({perfect})")

    placeholder = recon.get('placeholder_base')
    if not isinstance(placeholder, str) or len(placeholder) != 1:
        errors.append(f"reconstruction.placeholder_base must be a single character, got {placeholder!r}")

    # Validate contraction settings
    scheme = config.get('contraction', {}).get('id_scheme')
    if scheme not in VALID_ID_SCHEMES:
        errors.append(f"Invalid contraction.id_scheme: {scheme} (expected one of {', '.join(VALID_ID_SCHEMES)})")

    # Validate history size
    max_size = config.get('history', {}).get('max_size')
    if not isinstance(max_size, int) or isinstance(max_size, bool) or max_size < 1:
        errors.append(f"history.max_size must be a positive integer, got {max_size!r}")

    # Validate output settings
    output = config.get('output', {})
    if output.get('report_format') not in VALID_REPORT_FORMATS:
        errors.append(f"Invalid output.report_format: {output.get('report_format')}")

    line_width = output.get('fasta_line_width')
    if not isinstance(line_width, int) or isinstance(line_width, bool) or line_width < 0:
        errors.append(f"output.fasta_line_width must be a non-negative integer, got {line_width!r}")

    level = str(output.get('logging', {}).get('level', '')).upper()
    if level not in VALID_LOG_LEVELS:
        errors.append(f"Invalid output.logging.level: {output.get('logging', {}).get('level')}")

    return errors
