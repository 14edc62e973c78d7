"""Config settings – env-based configuration."""
from mp_eventsource.config.settings.base import Settings
from mp_eventsource.config.settings.loaders import DotenvSettingsLoader, EnvSettingsLoader, SettingsLoader

__all__ = ["DotenvSettingsLoader", "EnvSettingsLoader", "Settings", "SettingsLoader"]
