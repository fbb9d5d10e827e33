"""Utility modules for catalog backup."""

from .formatters import format_file_size, format_date, generation_dir_name, log_file_path

__all__ = ["format_file_size", "format_date", "generation_dir_name", "log_file_path"]
