"""Utility modules for mlworkbench."""

from .config import Config, LearnerConfigBuilder
from .seed import set_seed

__all__ = ['Config', 'LearnerConfigBuilder', 'set_seed']
