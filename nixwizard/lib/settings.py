"""Wizard settings.

Two layers, both optional:

* ``WizardSettings`` reads ``NIXWIZARD_*`` environment variables (and a
  ``.env`` file) through pydantic-settings.
* ``ProjectSettings`` reads ``.nixwizard.yaml`` from the working
  directory. It selects modules and supplies site-wide field defaults.

Example .nixwizard.yaml:
    wizard:
      modules: [network, ssh, system]
      output_path: ./out/configuration.nix
      env_prefix: NDS_
      header: |
        Generated by nixwizard for the lab cluster
    defaults:
      NETWORK_DNS_PRIMARY: 9.9.9.9
      ADMIN_USER: ops

Command line flags override both layers. Field defaults from the project
file never override values that came from the environment.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from nixwizard.lib.blocks import NIXOS_CONFIG_PATH
from nixwizard.lib.env import DEFAULT_PREFIX
from nixwizard.lib.errors import ConfigurationError

logger = logging.getLogger(__name__)

__all__ = [
    "PROJECT_FILE",
    "WizardSettings",
    "ProjectSettings",
]

PROJECT_FILE = ".nixwizard.yaml"


class WizardSettings(BaseSettings):
    """Environment-based wizard settings using pydantic-settings.

    Example:
        >>> # NIXWIZARD_OUTPUT_PATH=/tmp/configuration.nix
        >>> # NIXWIZARD_INTERACTIVE=false
        >>> settings = WizardSettings()
        >>> settings.interactive
        False
    """

    field_prefix: str = Field(default=DEFAULT_PREFIX, description="Prefix of field variables")
    output_path: str = Field(default=NIXOS_CONFIG_PATH, description="Generated configuration path")
    interactive: bool = Field(default=True, description="Prompt for missing values")
    log_level: str = Field(default="WARNING", description="Logging level")
    log_format: str = Field(default="console", description="Log format: 'json' or 'console'")
    log_file: Optional[str] = Field(default=None, description="Optional log file path")

    model_config = SettingsConfigDict(
        env_prefix="NIXWIZARD_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @field_validator("log_level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        """Validate level is a standard logging level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"log_level must be one of: {valid_levels}")
        return v.upper()

    @field_validator("log_format")
    @classmethod
    def validate_format(cls, v: str) -> str:
        """Validate format is a known value."""
        valid_formats = ["json", "console"]
        if v.lower() not in valid_formats:
            raise ValueError(f"log_format must be one of: {valid_formats}")
        return v.lower()

    @field_validator("field_prefix")
    @classmethod
    def validate_prefix(cls, v: str) -> str:
        if not v.replace("_", "").isalnum():
            raise ValueError("field_prefix may only contain letters, digits and '_'")
        return v


@dataclass
class ProjectSettings:
    """Per-project settings from ``.nixwizard.yaml``."""

    modules: Optional[List[str]] = None
    output_path: Optional[str] = None
    env_prefix: Optional[str] = None
    header: Optional[str] = None
    defaults: Dict[str, str] = field(default_factory=dict)
    source: Optional[Path] = None

    @classmethod
    def load(
        cls,
        project_root: Optional[Path] = None,
        config_path: Optional[Path] = None,
    ) -> "ProjectSettings":
        """Load settings from ``.nixwizard.yaml``.

        Args:
            project_root: Directory holding the project file. Defaults to cwd.
            config_path: Explicit file path; must exist when given.

        Returns:
            ProjectSettings with values from the file, or defaults when the
            file is absent.

        Raises:
            ConfigurationError: If the file is malformed or an explicit
                path does not exist
        """
        if config_path is None:
            path = (project_root or Path.cwd()) / PROJECT_FILE
            if not path.exists():
                return cls()
        else:
            path = Path(config_path)
            if not path.exists():
                raise ConfigurationError(f"Settings file not found: {path}", value=str(path))

        try:
            with open(path, encoding="utf-8") as f:
                config = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(
                f"Malformed settings file {path}: {e}", value=str(path)
            ) from e

        if not isinstance(config, dict):
            raise ConfigurationError(
                f"Settings file {path} must contain a mapping", value=str(path)
            )

        wizard = cls._section(config, "wizard", path)
        defaults = cls._section(config, "defaults", path)

        modules = wizard.get("modules")
        if modules is not None and not (
            isinstance(modules, list) and all(isinstance(m, str) for m in modules)
        ):
            raise ConfigurationError(
                "wizard.modules must be a list of module names", value=modules
            )

        logger.debug("Loaded project settings from %s", path)
        return cls(
            modules=modules,
            output_path=wizard.get("output_path"),
            env_prefix=wizard.get("env_prefix"),
            header=wizard.get("header"),
            defaults={str(k): cls._scalar(v) for k, v in defaults.items()},
            source=path,
        )

    @staticmethod
    def _section(config: Dict[str, Any], key: str, path: Path) -> Dict[str, Any]:
        section = config.get(key) or {}
        if not isinstance(section, dict):
            raise ConfigurationError(
                f"'{key}' in {path} must be a mapping", value=section
            )
        return section

    @staticmethod
    def _scalar(value: Any) -> str:
        # YAML turns true/false into booleans; toggles expect the words
        if isinstance(value, bool):
            return "true" if value else "false"
        if value is None:
            return ""
        return str(value)
