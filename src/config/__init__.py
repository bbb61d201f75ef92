"""
Pipeline configuration loading.
"""

from .settings import (
    CutoverSettings,
    DatabaseSettings,
    KafkaSettings,
    LocationSettings,
    PipelineSettings,
    ValidationSettings,
    load_settings,
)

__all__ = [
    "PipelineSettings",
    "LocationSettings",
    "ValidationSettings",
    "CutoverSettings",
    "KafkaSettings",
    "DatabaseSettings",
    "load_settings",
]
