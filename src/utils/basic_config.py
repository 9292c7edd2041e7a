"""This module is used to set up all the basic configuration for later use."""

from loguru import logger
import yaml
import sys
from utils.manage_argument_parser import ManageArguments
from typing import Any

REQUIRED_SECTIONS = ("settings", "ad")
REPORT_DEFAULTS = {"output_dir": "reports", "file_prefix": "ADGroupHealth"}


class BasicConfig:
    """
    This class is used to set up all the basic configuration for later use.
    """

    def __init__(self, args: ManageArguments) -> None:
        """Initialization of the class."""
        self.args = args

    def _load_yaml_file(self, yaml_file: str) -> Any:
        """Load the requested YAML file.

        Parameters
        ----------
        yaml_file :
            The path of the file to load.

        Returns
        -------
        Dictionary of the loaded YAML file.
        """
        try:
            with open(yaml_file, "r") as stream:
                return yaml.safe_load(stream)
        except Exception as exc:
            logger.error("Unable to open file:")
            logger.error(exc)
            sys.exit(1)

    def _load_config_file(self) -> Any:
        """Load the main configuration YAML file.

        Returns
        -------
        Dictionary of the loaded YAML file.
        """
        config = self._load_yaml_file(self.args.config_file)
        if config:
            return config
        else:
            logger.error("Empty config file!!!")
            sys.exit(1)

    @staticmethod
    def _validate_config(config: dict[str, Any]) -> dict[str, Any]:
        """Check the required sections and fill in the report defaults.

        Returns
        -------
        The configuration with a complete ``report`` section.
        """
        missing = [section for section in REQUIRED_SECTIONS if section not in config]
        if missing:
            logger.error(f"Config file is missing sections: {missing}")
            sys.exit(1)
        config["report"] = {**REPORT_DEFAULTS, **(config.get("report") or {})}
        return config

    def create_basic_config(self) -> dict[str, Any]:
        """Main function of the class."""
        config = self._validate_config(self._load_config_file())
        return {
            "config": config,
            "args": self.args,
        }
