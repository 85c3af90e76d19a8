"""Configuration for vision-relay."""

from .loader import SettingsLoader, load_settings
from .schema import ImageRelaySettings

__all__ = ["ImageRelaySettings", "SettingsLoader", "load_settings"]
