"""Config settings – environment-based configuration."""
from mp_instrumentation.config.settings.base import Settings
from mp_instrumentation.config.settings.instrumentation import (
    DEFAULT_HTTP_KNOWN_METHODS,
    SPAN_SUPPRESSION_STRATEGIES,
    InstrumentationSettings,
)
from mp_instrumentation.config.settings.loaders import EnvSettingsLoader, SettingsLoader


def load_instrumentation_settings(loader: SettingsLoader | None = None) -> InstrumentationSettings:
    """Load :class:`InstrumentationSettings` (from the environment by default)."""
    return (loader or EnvSettingsLoader()).load(InstrumentationSettings)


__all__ = [
    "DEFAULT_HTTP_KNOWN_METHODS",
    "SPAN_SUPPRESSION_STRATEGIES",
    "EnvSettingsLoader",
    "InstrumentationSettings",
    "Settings",
    "SettingsLoader",
    "load_instrumentation_settings",
]
