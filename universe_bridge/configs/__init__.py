"""Environment registry configuration.

Ships ``environments.yaml`` (schema environments.v1) with the key masks,
pointer geometry and native resolutions of the supported environments.
"""

from universe_bridge.configs.loader import (
    DEFAULT_REGISTRY_PATH,
    ConfigError,
    EnvironmentConfig,
    EnvironmentRegistry,
    UnknownEnvironmentError,
    load_registry,
)

__all__ = [
    "DEFAULT_REGISTRY_PATH",
    "ConfigError",
    "EnvironmentConfig",
    "EnvironmentRegistry",
    "UnknownEnvironmentError",
    "load_registry",
]
