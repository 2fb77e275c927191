"""
Process-wide default engine configuration
"""
import logging
from dataclasses import replace

from .models import EngineConfig

logger = logging.getLogger(__name__)

# Default configuration instance
DEFAULT_CONFIG = EngineConfig()

_current = DEFAULT_CONFIG


def get_config() -> EngineConfig:
    """Get the active default configuration"""
    return _current


def update_config(**kwargs) -> EngineConfig:
    """Return the default configuration with the given fields replaced and make it active"""
    global _current
    known = set(_current.to_dict())
    updates = {}
    for key, value in kwargs.items():
        if key in known:
            updates[key] = value
        else:
            logger.warning(f"Unknown config parameter: {key}")

    config = replace(_current, **updates)
    errors = config.validate()
    if errors:
        raise ValueError(f"Configuration validation failed: {errors}")

    _current = config
    return config


def reset_config() -> EngineConfig:
    """Restore the built-in defaults"""
    global _current
    _current = DEFAULT_CONFIG
    return _current
