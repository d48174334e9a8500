"""Config – environment-driven settings and validation."""

from mp_instrumentation.config.settings import (
    EnvSettingsLoader,
    InstrumentationSettings,
    Settings,
    SettingsLoader,
    load_instrumentation_settings,
)
from mp_instrumentation.config.validation import (
    ConfigError,
    InvalidSettingValueError,
    MissingRequiredSettingError,
)

__all__ = [
    "ConfigError",
    "EnvSettingsLoader",
    "InstrumentationSettings",
    "InvalidSettingValueError",
    "MissingRequiredSettingError",
    "Settings",
    "SettingsLoader",
    "load_instrumentation_settings",
]
