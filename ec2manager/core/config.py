import copy
import logging
import os
from pathlib import Path
from typing import Any

import yaml
from omegaconf import OmegaConf
from omegaconf.errors import OmegaConfBaseException

from ec2manager.constants import (
    CONFIG_FILE_NAME,
    DEFAULT_CREDIT_SPECIFICATION,
    DEFAULT_INSTANCE_TYPE,
    DEFAULT_REFRESH_INTERVAL_SECONDS,
    VALID_CREDIT_SPECIFICATIONS,
)

logger = logging.getLogger(__name__)


class ConfigLoader:
    """Load, validate and save the dashboard's YAML configuration.

    Parameters
    ----------
    config_path : str | Path | None
        Path to the YAML config file. If None, uses the EC2MANAGER_CONFIG
        environment variable, then ~/.ec2-instance-manager.yaml
    """

    BUILT_IN_DEFAULTS: dict[str, Any] = {
        "filter": None,
        "t_family_credit": DEFAULT_CREDIT_SPECIFICATION,
        "default_instance_type": DEFAULT_INSTANCE_TYPE,
        "refresh_interval_seconds": DEFAULT_REFRESH_INTERVAL_SECONDS,
    }

    def __init__(self, config_path: str | Path | None = None) -> None:
        if config_path is None:
            config_path = os.environ.get(
                "EC2MANAGER_CONFIG", str(Path.home() / CONFIG_FILE_NAME)
            )

        self.config_path = Path(config_path).expanduser()

    def load_config(self) -> dict[str, Any]:
        """Load configuration and fill missing keys with defaults.

        Returns
        -------
        dict[str, Any]
            Configuration with keys filter, t_family_credit,
            default_instance_type and refresh_interval_seconds

        Raises
        ------
        ValueError
            If the file is not valid YAML or fails validation
        RuntimeError
            If the file exists but cannot be read
        """
        merged = copy.deepcopy(self.BUILT_IN_DEFAULTS)

        if not self.config_path.exists():
            logger.debug("No config file at %s, using defaults", self.config_path)
            return merged

        try:
            cfg = OmegaConf.load(self.config_path)
        except yaml.YAMLError as e:
            logger.error("Failed to parse YAML config file %s: %s", self.config_path, e)
            raise ValueError(f"Invalid YAML in {self.config_path}: {e}") from e
        except OSError as e:
            logger.error("Failed to read config file %s: %s", self.config_path, e)
            raise RuntimeError(
                f"Failed to read config file {self.config_path}: {e}"
            ) from e

        if cfg is None:
            return merged

        try:
            loaded = OmegaConf.to_container(cfg, resolve=True)
        except OmegaConfBaseException as e:
            logger.error("Failed to resolve configuration variables: %s", e)
            raise ValueError(f"Configuration variable resolution error: {e}") from e

        if loaded is None:
            return merged

        if not isinstance(loaded, dict):
            raise ValueError(f"Configuration in {self.config_path} must be a mapping")

        for key, value in loaded.items():
            if key not in self.BUILT_IN_DEFAULTS:
                logger.warning("Ignoring unknown config key '%s'", key)
                continue

            if value is not None:
                merged[key] = value

        self.validate_config(merged)
        return merged

    def validate_config(self, config: dict[str, Any]) -> None:
        """Validate configuration value types and choices.

        Parameters
        ----------
        config : dict[str, Any]
            Configuration to validate

        Raises
        ------
        ValueError
            If configuration is invalid
        """
        filter_text = config.get("filter")
        if filter_text is not None and not isinstance(filter_text, str):
            raise ValueError("filter must be a string")

        default_type = config.get("default_instance_type")
        if not isinstance(default_type, str) or not default_type:
            raise ValueError("default_instance_type must be a non-empty string")

        credit = config.get("t_family_credit")
        if credit not in VALID_CREDIT_SPECIFICATIONS:
            raise ValueError(
                f"t_family_credit must be one of: {', '.join(VALID_CREDIT_SPECIFICATIONS)}"
            )

        interval = config.get("refresh_interval_seconds")
        if isinstance(interval, bool) or not isinstance(interval, int) or interval <= 0:
            raise ValueError("refresh_interval_seconds must be a positive integer")

    def save_config(self, config: dict[str, Any]) -> None:
        """Write configuration back to the YAML file.

        Parameters
        ----------
        config : dict[str, Any]
            Configuration to persist; unknown keys are dropped
        """
        data = {key: config.get(key) for key in self.BUILT_IN_DEFAULTS}

        try:
            self.config_path.parent.mkdir(parents=True, exist_ok=True)
            self.config_path.write_text(
                yaml.safe_dump(data, default_flow_style=False, sort_keys=False)
            )
        except OSError as e:
            logger.error("Failed to write config file %s: %s", self.config_path, e)
            raise RuntimeError(
                f"Failed to write config file {self.config_path}: {e}"
            ) from e

        logger.debug("Saved config to %s", self.config_path)
