"""Cross-cutting utilities (lowest dependency layer).

This package provides shared primitives for:
    - Config validation (validators)
    - Rounding and finiteness checks (compute)
    - Screen rectangles (geometry)
    - YAML loading (fs)
    - Torch ergonomics (torch_utils)
    - Unified logging (logging_config)

No module in utils/ may import from upper layers (action_space, observation, env, configs).

Convenience imports:
    from universe_bridge.utils import compute, geometry, validators
    from universe_bridge.utils.logging_config import setup_logging, get_logger
"""

from . import compute
from . import fs
from . import geometry
from . import logging_config
from . import torch_utils
from . import validators

from .logging_config import get_logger, push_context, setup_logging

__all__ = [
    # Modules
    'compute',
    'fs',
    'geometry',
    'logging_config',
    'torch_utils',
    'validators',
    # Direct exports
    'setup_logging',
    'get_logger',
    'push_context',
]
