import logging
import logging.config
from pathlib import Path
from typing import Optional, Union

import yaml

from ..config.settings import SERVICE_ROOT_DIR

DEFAULT_LOGGING_CONFIG_PATH = SERVICE_ROOT_DIR / "config" / "logging_config.yaml"


def setup_logging(config_path: Optional[Union[str, Path]] = None) -> None:
    """
    Set up logging configuration from a YAML file.

    Should be called once, at the application's entry point.

    Args:
        config_path: Path to the logging configuration YAML file.
    """
    config_path = Path(config_path) if config_path else DEFAULT_LOGGING_CONFIG_PATH
    if config_path.exists():
        try:
            with open(config_path, 'rt') as f:
                log_config = yaml.safe_load(f.read())
            logging.config.dictConfig(log_config)
            logging.info(f"Logging configured successfully from {config_path}")
        except Exception as e:
            logging.basicConfig(level=logging.INFO)  # Basic config as fallback
            logging.error(f"Error loading logging configuration from {config_path}: {e}. Using basicConfig.")
    else:
        logging.basicConfig(level=logging.INFO)  # Basic config if no file found
        logging.warning(f"Logging configuration file not found at {config_path}. Using basicConfig.")
