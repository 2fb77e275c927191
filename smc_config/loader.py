"""
YAML persistence for EngineConfig

Files hold the settings under an `engine:` section; a flat mapping of
settings at the top level is accepted too.
"""
import logging
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from .models import EngineConfig

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "config/engine.yaml"
SECTION = 'engine'


class ConfigLoader:
    """Reads and writes one engine configuration file"""

    def __init__(self, config_path: str = DEFAULT_CONFIG_PATH):
        self.config_path = Path(config_path)

    def _read(self) -> Optional[Dict[str, Any]]:
        """Raw settings mapping, or None when the file can't be used"""
        if not self.config_path.exists():
            logger.info(f"No engine config at {self.config_path}, using built-in defaults")
            return None

        try:
            document = yaml.safe_load(self.config_path.read_text(encoding='utf-8'))
        except (OSError, yaml.YAMLError) as e:
            logger.error(f"Unreadable engine config {self.config_path}: {e}; using built-in defaults")
            return None

        if document is None:
            logger.warning(f"Engine config {self.config_path} is empty, using built-in defaults")
            return None
        if not isinstance(document, dict):
            logger.error(f"Engine config {self.config_path} is not a mapping, using built-in defaults")
            return None

        settings = document.get(SECTION, document)
        return settings if isinstance(settings, dict) else {}

    def load(self) -> EngineConfig:
        """
        Build the configuration stored in the file

        Missing, empty or unreadable files yield the defaults. Values that
        parse but fail EngineConfig.validate() raise ValueError.
        """
        settings = self._read()
        if settings is None:
            return EngineConfig()

        ignored = sorted(set(settings) - set(EngineConfig().to_dict()))
        if ignored:
            logger.warning(f"Ignoring unknown config keys: {ignored}")

        config = EngineConfig.from_dict(settings)
        problems = config.validate()
        if problems:
            raise ValueError(f"Invalid engine config {self.config_path}: {problems}")

        logger.info(f"Engine config loaded from {self.config_path}")
        return config

    def save(self, config: EngineConfig) -> bool:
        """Write `config` under the engine section; False if invalid or unwritable"""
        problems = config.validate()
        if problems:
            logger.error(f"Refusing to save invalid engine config: {problems}")
            return False

        text = yaml.safe_dump({SECTION: config.to_dict()}, default_flow_style=False, sort_keys=False)
        try:
            self.config_path.parent.mkdir(parents=True, exist_ok=True)
            self.config_path.write_text(text, encoding='utf-8')
        except OSError as e:
            logger.error(f"Could not write engine config {self.config_path}: {e}")
            return False

        logger.info(f"Engine config written to {self.config_path}")
        return True


def load_config(config_path: str = DEFAULT_CONFIG_PATH) -> EngineConfig:
    return ConfigLoader(config_path).load()


def save_config(config: EngineConfig, config_path: str = DEFAULT_CONFIG_PATH) -> bool:
    return ConfigLoader(config_path).save(config)
