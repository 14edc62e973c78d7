"""Config – 12-factor settings and loaders."""

from mp_eventsource.config.settings import DotenvSettingsLoader, EnvSettingsLoader, Settings, SettingsLoader
from mp_eventsource.config.validation import ConfigError, InvalidSettingValueError, MissingRequiredSettingError

__all__ = [
    "ConfigError",
    "DotenvSettingsLoader",
    "EnvSettingsLoader",
    "InvalidSettingValueError",
    "MissingRequiredSettingError",
    "Settings",
    "SettingsLoader",
]
