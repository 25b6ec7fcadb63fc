"""
Configuration module - Base settings class and logging setup.
"""

from do_common.config.base_settings import BaseAppSettings
from do_common.config.logging import setup_logging

__all__ = ["BaseAppSettings", "setup_logging"]
