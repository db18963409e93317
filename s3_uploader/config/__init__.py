"""
Config Module — Environment loading and validation.
"""

from .loader import UploaderConfig, load_config
from .validator import ConfigStatus, ConfigValidator

__all__ = ["UploaderConfig", "load_config", "ConfigStatus", "ConfigValidator"]
