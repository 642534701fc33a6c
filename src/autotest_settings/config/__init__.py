from .manager import ConfigManager, default_config_path, env_to_property_key
from .defaults import DefaultSettings
from .properties_loader import PropertiesLoader

__all__ = [
    "ConfigManager",
    "DefaultSettings",
    "PropertiesLoader",
    "default_config_path",
    "env_to_property_key",
]
