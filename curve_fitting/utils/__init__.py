"""Cross-cutting utilities (lowest dependency layer).

This package provides shared primitives for:
    - Unified logging (logging_config)
    - YAML loading (fs)
    - Input file validation (validators)

No module in utils/ may import from upper layers (fitting, coroutine, configs).

Convenience imports:
    from curve_fitting.utils import fs, validators
    from curve_fitting.utils.logging_config import setup_logging, get_logger
"""

from . import fs
from . import logging_config
from . import validators

from .logging_config import get_logger, pop_context, push_context, setup_logging

__all__ = [
    # Modules
    'fs',
    'logging_config',
    'validators',
    # Direct exports
    'setup_logging',
    'get_logger',
    'push_context',
    'pop_context',
]
