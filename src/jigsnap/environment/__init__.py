"""
Environment implementations for jigsnap.

- JigsawEnvironment: tool-call access to the jigsaw assembly core
"""

# Normal imports to ensure proper environment registration
from jigsnap.environment.jigsaw_env import JigsawEnvironment, JigsawConfig

__all__ = [
    "JigsawEnvironment",
    "JigsawConfig",
]
