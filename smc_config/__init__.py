"""
Configuration package for the SMC structure engine
"""

from .models import EngineConfig, LOG_LEVELS
from .loader import ConfigLoader, load_config, save_config
from .settings import DEFAULT_CONFIG, get_config, update_config, reset_config

__all__ = [
    'EngineConfig', 'LOG_LEVELS', 'ConfigLoader', 'load_config', 'save_config',
    'DEFAULT_CONFIG', 'get_config', 'update_config', 'reset_config'
]
