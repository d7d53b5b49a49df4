"""
ChromWeaver v0.1.0

Configuration management for ChromWeaver.

Author: ChromWeaver Development Team
License: BSD-3-Clause - See LICENSE
"""

from .schema import (
    DEFAULT_CONFIG,
    ConfigValidationError,
    apply_overrides,
    default_config,
    load_config,
    save_config_template,
    validate_config,
)

__all__ = [
    "DEFAULT_CONFIG",
    "ConfigValidationError",
    "apply_overrides",
    "default_config",
    "load_config",
    "save_config_template",
    "validate_config",
]
