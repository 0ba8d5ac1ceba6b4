"""
Domain models — pydantic types for terrable.

    from terrable.core.models import Settings, Target, ActiveRecord
"""

from terrable.core.models.active import ActiveRecord
from terrable.core.models.settings import Settings
from terrable.core.models.target import (
    SUPPORTED_ARCHES,
    SUPPORTED_PLATFORMS,
    Arch,
    Platform,
    Target,
)

__all__ = [
    "SUPPORTED_ARCHES",
    "SUPPORTED_PLATFORMS",
    "ActiveRecord",
    "Arch",
    "Platform",
    "Settings",
    "Target",
]
