"""Configuration management for catalog backup."""

import os
import yaml
from dataclasses import dataclass
from typing import Any, Dict, Optional

from .config_validator import ConfigValidator
from ..core.exceptions import ConfigError


@dataclass
class BackupConfig:
    """Typed view of the settings a backup run needs."""
    backup_file_parent_dir: str
    source_dir: str
    destination_dir: str
    backup_log_file: str = ""
    client_name: str = ""
    keep_last_x_copy_of_backup: int = 3
    delete_old_catalogs: bool = True
    send_email_exe_path: str = ""
    mail_from: str = ""
    mail_to: str = ""
    mail_server: str = ""
    low_disk_space_alert_percent: int = 10
    low_disk_space_warning_percent: int = 20
    disk_space_check_dir: str = ""
    log_level: str = "INFO"
    log_to_console: bool = True

    @property
    def mail_configured(self) -> bool:
        return bool(self.mail_from and self.mail_to and self.mail_server)

    @property
    def volume_check_dir(self) -> str:
        return self.disk_space_check_dir or self.source_dir


class ConfigManager:
    """Loads configuration from a YAML file and command line overrides."""

    DEFAULT_CONFIG_LOCATIONS = [
        "catalog_backup.yaml",
        "config.yaml",
        "config.yml",
        os.path.expanduser("~/.catalog-backup/config.yaml"),
        os.path.expanduser("~/.catalog-backup/config.yml"),
        "/etc/catalog-backup/config.yaml",
        "/etc/catalog-backup/config.yml"
    ]

    DEFAULTS = {
        'backupLogFile': '',
        'clientName': '',
        'keepLastXCopyOfBackup': 3,
        'deleteOldCatalogs': True,
        'sendEmailExePath': '',
        'mailFrom': '',
        'mailTo': '',
        'mailServer': '',
        'lowDiskSpaceAlertIfDiskSpaceLessThanThresholdInPercentage': 10,
        'lowDiskSpaceWarningIfDiskSpaceLessThanThresholdInPercentage': 20,
        'diskSpaceCheckDir': '',
        'logLevel': 'INFO',
        'logToConsole': True,
    }

    PATH_FIELDS = ['backupFileParentDir', 'backupLogFile', 'sendEmailExePath',
                   'sourceDir', 'destinationDir', 'diskSpaceCheckDir']

    def __init__(self, config_path: Optional[str] = None, overrides: Optional[Dict[str, Any]] = None):
        """Initialize configuration manager.

        Args:
            config_path: Optional path to config file. If not provided,
                        will search in default locations.
            overrides: Values given on the command line. Entries set to None
                        are ignored.
        """
        self.config_path = config_path
        self.overrides = {k: v for k, v in (overrides or {}).items() if v is not None}
        self.config_data: Dict[str, Any] = {}
        self.loaded_from: Optional[str] = None
        self.validator = ConfigValidator()

    def load_config(self) -> Dict[str, Any]:
        """Load, merge and validate configuration.

        Returns:
            Dictionary containing configuration data.

        Raises:
            ConfigError: If the config file cannot be read or the result is invalid.
        """
        config_file = self._find_config_file()
        file_data: Dict[str, Any] = {}

        if config_file:
            try:
                with open(config_file, 'r', encoding='utf-8') as f:
                    file_data = yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                raise ConfigError(f"Invalid YAML in config file {config_file}: {e}")
            except OSError as e:
                raise ConfigError(f"Error reading config file {config_file}: {e}")

            if not isinstance(file_data, dict):
                raise ConfigError(f"Config file {config_file} must contain a mapping of settings")

            self.loaded_from = config_file

        self.config_data = dict(self.DEFAULTS)
        self.config_data.update({k: v for k, v in file_data.items() if v is not None})
        self.config_data.update(self.overrides)
        self._normalise_paths()

        self.validator.validate(self.config_data)

        return self.config_data

    def get_backup_config(self) -> BackupConfig:
        """Load configuration and return it as a BackupConfig."""
        data = self.config_data or self.load_config()
        return BackupConfig(
            backup_file_parent_dir=data['backupFileParentDir'],
            source_dir=data['sourceDir'],
            destination_dir=data['destinationDir'],
            backup_log_file=data['backupLogFile'] or '',
            client_name=data['clientName'] or '',
            keep_last_x_copy_of_backup=data['keepLastXCopyOfBackup'],
            delete_old_catalogs=data['deleteOldCatalogs'],
            send_email_exe_path=data['sendEmailExePath'] or '',
            mail_from=data['mailFrom'] or '',
            mail_to=data['mailTo'] or '',
            mail_server=data['mailServer'] or '',
            low_disk_space_alert_percent=data['lowDiskSpaceAlertIfDiskSpaceLessThanThresholdInPercentage'],
            low_disk_space_warning_percent=data['lowDiskSpaceWarningIfDiskSpaceLessThanThresholdInPercentage'],
            disk_space_check_dir=data['diskSpaceCheckDir'] or '',
            log_level=str(data['logLevel']).upper(),
            log_to_console=data['logToConsole']
        )

    def _find_config_file(self) -> Optional[str]:
        """Find configuration file.

        Returns:
            Path to configuration file, or None if no default location has one.

        Raises:
            ConfigError: If an explicitly given config file does not exist.
        """
        if self.config_path:
            if os.path.exists(self.config_path):
                return self.config_path
            else:
                raise ConfigError(f"Config file not found: {self.config_path}")

        for location in self.DEFAULT_CONFIG_LOCATIONS:
            if os.path.exists(location):
                return location

        return None

    def _normalise_paths(self):
        """Accept Windows style separators in configured paths."""
        for field in self.PATH_FIELDS:
            value = self.config_data.get(field)
            if isinstance(value, str) and '\\' in value:
                self.config_data[field] = value.replace('\\', '/')
