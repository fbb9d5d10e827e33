"""Configuration management for catalog backup."""

from .config_manager import BackupConfig, ConfigManager
from .config_validator import ConfigValidator

__all__ = ["BackupConfig", "ConfigManager", "ConfigValidator"]
