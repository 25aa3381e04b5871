#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
ChainWeaver v0.1.0

Configuration parser — YAML loading over the defaults, ${VAR} expansion,
dotted overrides from command-line options.

Author: ChainWeaver Development Team
License: Dual License (Academic/Commercial) - See LICENSE_ACADEMIC.md and LICENSE_COMMERCIAL.md
"""

import copy
import os
import re
from pathlib import Path
from typing import Any, Dict, Optional, Union

from .schema import (
    DEFAULT_CONFIG,
    ConfigValidationError,
    _deep_merge,
    read_config_file,
    validate_config,
)

# ${VAR} or ${VAR:-fallback}
_ENV_REFERENCE = re.compile(r'\$\{([^}:]+)(?::-(.*?))?\}')


def _expand_env(value: Any) -> Any:
    """Expand environment references in every string of a nested value."""
    if isinstance(value, dict):
        return {key: _expand_env(item) for key, item in value.items()}
    if isinstance(value, list):
        return [_expand_env(item) for item in value]
    if isinstance(value, str):
        return _ENV_REFERENCE.sub(
            lambda m: os.environ.get(m.group(1), m.group(2) or ''), value
        )
    return value


class ConfigParser:
    """
    Layered ChainWeaver configuration.

    Layers, lowest first: DEFAULT_CONFIG, the user's YAML file (with
    environment references expanded), then dotted overrides from CLI
    options such as ``reconstruction.perfect_threshold``.
    """

    def __init__(self, config_file: Optional[Union[str, Path]] = None):
        self.config_file = Path(config_file) if config_file else None
        self._config: Dict[str, Any] = copy.deepcopy(DEFAULT_CONFIG)

        if self.config_file:
            self._config = _deep_merge(self._config, self._read_user_file())

    def _read_user_file(self) -> Dict[str, Any]:
        return _expand_env(read_config_file(self.config_file))

    def merge_cli_overrides(self, overrides: Dict[str, Any]):
        """
        Apply command-line values on top of the loaded configuration.

        Args:
            overrides: Dotted keys mapped to values; options the user did
                       not pass arrive as None and are skipped
        """
        for dotted, value in overrides.items():
            if value is None:
                continue
            *parents, leaf = dotted.split('.')
            section = self._config
            for name in parents:
                if not isinstance(section.get(name), dict):
                    section[name] = {}
                section = section[name]
            section[leaf] = value

    def get(self, key: str, default: Any = None) -> Any:
        """Look up a dotted key such as 'output.logging.level'."""
        node = self._config
        for name in key.split('.'):
            if not isinstance(node, dict) or name not in node:
                return default
            node = node[name]
        return node

    def to_dict(self) -> Dict[str, Any]:
        """Deep copy of the merged configuration."""
        return copy.deepcopy(self._config)

    def validate(self) -> bool:
        """
        Check the merged configuration.

        Raises:
            ConfigValidationError: listing every invalid setting
        """
        errors = validate_config(self._config)
        if errors:
            raise ConfigValidationError("Invalid configuration:\n  " + "\n  ".join(errors))
        return True

    def __repr__(self) -> str:
        return f"ConfigParser(config_file={self.config_file})"

# ChainWeaver v0.1.0
# Any usage is subject to this software's license.
