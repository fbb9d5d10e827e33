"""Configuration validation for catalog backup."""

from typing import Any, Dict, List

from ..core.exceptions import ConfigError


class ConfigValidator:
    """Validates and normalises catalog backup configuration."""

    REQUIRED_FIELDS = ['backupFileParentDir', 'sourceDir', 'destinationDir']
    MAIL_FIELDS = ['mailFrom', 'mailTo', 'mailServer']
    INT_FIELDS = [
        'keepLastXCopyOfBackup',
        'lowDiskSpaceAlertIfDiskSpaceLessThanThresholdInPercentage',
        'lowDiskSpaceWarningIfDiskSpaceLessThanThresholdInPercentage',
    ]
    PERCENT_FIELDS = INT_FIELDS[1:]
    BOOL_FIELDS = ['deleteOldCatalogs', 'logToConsole']
    LOG_LEVELS = ['DEBUG', 'INFO', 'WARNING', 'ERROR']

    TRUE_VALUES = ('true', 'yes', '1', 'on')
    FALSE_VALUES = ('false', 'no', '0', 'off')

    def validate(self, config: Dict[str, Any]) -> None:
        """Validate configuration data, converting values to their types in place.

        Args:
            config: Configuration dictionary to validate.

        Raises:
            ConfigError: If configuration is invalid.
        """
        self._validate_required(config)
        self._coerce_types(config)
        self._validate_ranges(config)
        self._validate_mail_config(config)

    def _validate_required(self, config: Dict[str, Any]) -> None:
        missing_fields = [field for field in self.REQUIRED_FIELDS if not config.get(field)]
        if missing_fields:
            raise ConfigError(f"Missing required configuration values: {missing_fields}")

    def _coerce_types(self, config: Dict[str, Any]) -> None:
        for field in self.INT_FIELDS:
            if field in config and config[field] is not None:
                value = config[field]
                if isinstance(value, float) and not value.is_integer():
                    raise ConfigError(f"Configuration value {field} must be a whole number: {value!r}")
                try:
                    config[field] = int(value)
                except (ValueError, TypeError):
                    raise ConfigError(f"Configuration value {field} must be an integer: {value!r}")

        for field in self.BOOL_FIELDS:
            if field in config and config[field] is not None:
                config[field] = self._to_bool(field, config[field])

    def _to_bool(self, field: str, value: Any) -> bool:
        if isinstance(value, bool):
            return value
        text = str(value).strip().lower()
        if text in self.TRUE_VALUES:
            return True
        if text in self.FALSE_VALUES:
            return False
        raise ConfigError(f"Configuration value {field} must be true or false: {value!r}")

    def _validate_ranges(self, config: Dict[str, Any]) -> None:
        keep = config.get('keepLastXCopyOfBackup')
        if keep is not None and keep < 1:
            raise ConfigError(f"keepLastXCopyOfBackup must be at least 1, got {keep}")

        for field in self.PERCENT_FIELDS:
            value = config.get(field)
            if value is not None and not (0 <= value <= 100):
                raise ConfigError(f"{field} must be between 0 and 100, got {value}")

        level = config.get('logLevel')
        if level is not None and str(level).upper() not in self.LOG_LEVELS:
            raise ConfigError(f"Invalid log level: {level}")

    def _validate_mail_config(self, config: Dict[str, Any]) -> None:
        """Mail settings are optional, but all-or-nothing."""
        present = [field for field in self.MAIL_FIELDS + ['sendEmailExePath'] if config.get(field)]
        if not present:
            return

        missing_fields: List[str] = [field for field in self.MAIL_FIELDS if not config.get(field)]
        if missing_fields:
            raise ConfigError(f"Mail configuration missing required values: {missing_fields}")
