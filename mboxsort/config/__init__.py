"""Configuration management"""

from .app_config import AppConfig, ClassificationConfig, DecoderConfig, PipelineConfig, ReportConfig
from .config_loader import ConfigLoader

__all__ = [
    "AppConfig",
    "ClassificationConfig",
    "DecoderConfig",
    "PipelineConfig",
    "ReportConfig",
    "ConfigLoader",
]
