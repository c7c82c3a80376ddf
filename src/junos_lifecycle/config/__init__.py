"""Provider configuration."""
from .settings import ProviderSettings, load_settings, default_settings_path

__all__ = ["ProviderSettings", "load_settings", "default_settings_path"]
