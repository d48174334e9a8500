"""Kernel error hierarchy — public re-export surface.

Hierarchy::

    BaseError
    └── InstrumentationError            (instrumentation.py)
        ├── InstrumenterConfigurationError
        ├── RegistryClosedError
        └── ConfigError                 (mp_instrumentation.config.validation)
            ├── MissingRequiredSettingError
            └── InvalidSettingValueError
"""

from mp_instrumentation.kernel.errors.base import BaseError
from mp_instrumentation.kernel.errors.instrumentation import (
    InstrumentationError,
    InstrumenterConfigurationError,
    RegistryClosedError,
)

__all__ = [
    "BaseError",
    "InstrumentationError",
    "InstrumenterConfigurationError",
    "RegistryClosedError",
]
