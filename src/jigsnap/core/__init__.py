"""
Core modules for jigsnap.

This package contains the fundamental components:
- Base classes for environments and their observations
- Configuration management
- Registry for component discovery
"""

from jigsnap.core.base import Action, BaseEnvironment, ObjectInfo, Observation, State

from jigsnap.core.config import (
    Config, load_config, create_default_config, validate_config, EnvironmentConfig,
    RunnerConfig, PuzzleConfig, BoardConfig, SnapConfig, ScatterConfig, LAYOUT_PRESETS,
)

from jigsnap.core.registry import (
    register_environment, register_environment_config, create_environment,
    ENVIRONMENT_REGISTRY, ENVIRONMENT_CONFIG_REGISTRY,
)

__all__ = [
    "Action",
    "BaseEnvironment",
    "ObjectInfo",
    "Observation",
    "State",
    "Config",
    "load_config",
    "create_default_config",
    "validate_config",
    "EnvironmentConfig",
    "RunnerConfig",
    "PuzzleConfig",
    "BoardConfig",
    "SnapConfig",
    "ScatterConfig",
    "LAYOUT_PRESETS",
    "register_environment",
    "register_environment_config",
    "create_environment",
    "ENVIRONMENT_REGISTRY",
    "ENVIRONMENT_CONFIG_REGISTRY",
]
