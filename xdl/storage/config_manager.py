"""
Manages loading, validation, and migration of the INI configuration file.
"""

import configparser
import logging
import os
from pathlib import Path
from typing import Any

from pydantic import ValidationError
from rich.markup import escape

from xdl.exceptions import ConfigurationError
from xdl.models.config import XdlConfig

log = logging.getLogger(__name__)

CONFIG_DIR_NAME = "xdl"

LIST_KEYS = {"allowed_hosts", "api_url_patterns"}
INT_KEYS = {"default_tab_id", "max_attempts", "max_stream_bytes"}


def _to_ini_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, list):
        value = ",".join(map(str, value))
    # configparser uses % for interpolation, so we must escape it
    return str(value).replace("%", "%%")


def get_config_dir() -> Path:
    if os.name == "nt":
        base_dir = Path(os.getenv("APPDATA", "~\\AppData\\Roaming"))
    else:
        base_dir = Path(os.getenv("XDG_CONFIG_HOME", "~/.config"))
    return base_dir.expanduser() / CONFIG_DIR_NAME


def default_config_file() -> Path:
    return get_config_dir() / "config.ini"


class ConfigManager:
    """Handles all operations related to the application's INI config file."""

    def __init__(self, config_file_path: Path):
        self.config_file_path = config_file_path
        self._parser = configparser.ConfigParser()

    def load_config(self, cli_options: dict[str, Any] | None = None) -> XdlConfig:
        """
        Loads configuration from the INI file, applies CLI overrides, and validates it.

        A missing file is not an error: every setting has a default.

        Args:
            cli_options: A dictionary of options provided via the command line.

        Returns:
            A validated XdlConfig object.

        Raises:
            ConfigurationError: If the config file is unreadable or validation fails.
        """
        config_data: dict[str, Any] = {}
        if self.config_file_path.is_file():
            try:
                self._parser.read(self.config_file_path, encoding="utf-8")
            except configparser.Error as e:
                raise ConfigurationError(f"Error parsing configuration file: {e}") from e

            if self._migrate_if_needed():
                log.info(
                    "[yellow]Configuration file was updated to the current set of "
                    "options.[/yellow]"
                )
            try:
                config_data = self._get_config_as_dict()
            except configparser.Error as e:
                raise ConfigurationError(f"Error reading configuration file: {e}") from e
        else:
            log.debug(
                f"No config file at '{escape(str(self.config_file_path))}', "
                "using defaults."
            )

        if cli_options:
            config_data.update(cli_options)

        try:
            config_dir = self.config_file_path.parent
            return XdlConfig(**config_data, config_path=str(config_dir))
        except ValidationError as e:
            raise ConfigurationError(f"Configuration validation failed:\n{e}") from e

    def save_new_config(self, settings: dict[str, Any]) -> None:
        """
        Creates and saves a new configuration file.

        Args:
            settings: A dictionary of settings to save; missing keys get defaults.
        """
        try:
            config = XdlConfig(**settings)
        except ValidationError as e:
            raise ConfigurationError(f"Configuration validation failed:\n{e}") from e
        self.save_config(config)

    def save_config(self, config: XdlConfig) -> None:
        """Writes every INI key of `config` to the config file."""
        parser = configparser.ConfigParser()
        parser["DEFAULT"] = {
            key: _to_ini_value(getattr(config, key))
            for key in sorted(XdlConfig.get_ini_keys())
        }
        try:
            self.config_file_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.config_file_path, "w", encoding="utf-8") as configfile:
                parser.write(configfile)
        except OSError as e:
            raise ConfigurationError(f"Failed to save configuration file: {e}") from e

    def update_config(self, **changes: Any) -> XdlConfig:
        """Loads the current config, applies `changes`, validates and saves it."""
        config = self.load_config(changes)
        self.save_config(config)
        return config

    def _get_config_as_dict(self) -> dict[str, Any]:
        """Reads the 'DEFAULT' section of the INI file into a dictionary."""
        section = self._parser["DEFAULT"]
        data: dict[str, Any] = {}
        for key in XdlConfig.get_ini_keys():
            if key not in section:
                continue
            if key in LIST_KEYS:
                data[key] = [
                    item.strip() for item in section.get(key, "").split(",") if item.strip()
                ]
            elif key in INT_KEYS:
                try:
                    data[key] = section.getint(key)
                except ValueError as e:
                    raise ConfigurationError(
                        f"Invalid integer for '{key}' in configuration file: {e}"
                    ) from e
            else:
                data[key] = section.get(key, "")
        return data

    def _migrate_if_needed(self) -> bool:
        """
        Adds missing default values to an existing config file and drops keys
        that are no longer recognized.
        """
        defaults = XdlConfig()
        known_keys = XdlConfig.get_ini_keys()
        config_section = self._parser["DEFAULT"]
        needs_saving = False

        for key in known_keys:
            if key not in config_section:
                config_section[key] = _to_ini_value(getattr(defaults, key))
                needs_saving = True
                log.debug(
                    f"Migrating config: added missing key '{key}' with "
                    f"value '{config_section[key]}'."
                )

        for key in list(config_section.keys()):
            if key not in known_keys:
                del config_section[key]
                needs_saving = True
                log.debug(f"Migrating config: removed unused key '{key}'.")

        if needs_saving:
            try:
                with open(self.config_file_path, "w", encoding="utf-8") as f:
                    self._parser.write(f)
            except OSError as e:
                log.error(
                    f"Could not save migrated configuration file: {escape(str(e))}"
                )
                return False

        return needs_saving
