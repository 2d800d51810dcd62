"""Shared helpers below the renderer (lowest dependency layer).

    fs              atomic image/YAML writes, YAML loading
    geometry        points and circles for the analytic mask
    logging_config  root logger setup and context fields
    validators      pydantic schema for outline.v1.yaml

Nothing in here imports from src.outline_renderer or scripts/.
"""

from . import fs, geometry, logging_config, validators
from .logging_config import get_logger, pop_context, push_context, setup_logging

__all__ = [
    'fs',
    'geometry',
    'logging_config',
    'validators',
    'get_logger',
    'pop_context',
    'push_context',
    'setup_logging',
]
