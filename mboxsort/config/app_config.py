"""Configuration models for archive decoding, classification and reporting."""

from typing import Any, List

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from mboxsort.errors import ConfigurationError
from mboxsort.models.criteria import Criterion, DateGranularity
from mboxsort.utils.unicode_utils import is_text_charset


class ClassificationConfig(BaseModel):
    """Active classification rule set."""

    model_config = ConfigDict(extra="forbid")

    sort_by: Criterion = Criterion.DATE
    group_by: List[Criterion] = Field(default_factory=lambda: [Criterion.SENDER])
    date_bucket_granularity: DateGranularity = DateGranularity.MONTH
    subject_keywords: List[str] = Field(default_factory=list)

    @field_validator("group_by", mode="before")
    def coerce_group_by(cls, v: Any) -> Any:
        if isinstance(v, (str, Criterion)):
            return [v]
        return v

    @field_validator("group_by")
    def validate_group_by(cls, v: List[Criterion]) -> List[Criterion]:
        if not v:
            raise ValueError("group_by must name at least one criterion")
        return list(dict.fromkeys(v))

    @field_validator("subject_keywords")
    def validate_subject_keywords(cls, v: List[str]) -> List[str]:
        keywords = [keyword.strip() for keyword in v]
        if any(not keyword for keyword in keywords):
            raise ValueError("subject keywords must not be empty")
        return keywords


class DecoderConfig(BaseModel):
    """Message decoding settings."""

    model_config = ConfigDict(extra="forbid")

    fallback_charset: str = "latin-1"
    unescape_from: bool = True
    max_depth: int = 32
    strict_format: bool = False

    @field_validator("fallback_charset")
    def validate_fallback_charset(cls, v: str) -> str:
        if not is_text_charset(v):
            raise ValueError(f"Unknown or non-text charset: {v!r}")
        return v

    @field_validator("max_depth")
    def validate_max_depth(cls, v: int) -> int:
        if v < 1:
            raise ValueError("max_depth must be positive")
        return v


class PipelineConfig(BaseModel):
    """Pipeline execution settings."""

    model_config = ConfigDict(extra="forbid")

    max_workers: int = 1
    progress_interval: int = 1000

    @field_validator("max_workers", "progress_interval")
    def validate_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("Value must be positive")
        return v


class ReportConfig(BaseModel):
    """Display templates and limits for reports."""

    model_config = ConfigDict(extra="forbid")

    message_line: str = "{date} | {sender} | {subject}"
    date_format: str = "%Y-%m-%d %H:%M"
    undated_label: str = "(undated)"
    subject_max_length: int = 50
    top_senders: int = 10

    @field_validator("subject_max_length", "top_senders")
    def validate_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("Value must be positive")
        return v


class AppConfig(BaseModel):
    """Main application configuration."""

    model_config = ConfigDict(extra="forbid")

    schema_version: str = "1.0"
    classification: ClassificationConfig = Field(default_factory=ClassificationConfig)
    decoder: DecoderConfig = Field(default_factory=DecoderConfig)
    pipeline: PipelineConfig = Field(default_factory=PipelineConfig)
    report: ReportConfig = Field(default_factory=ReportConfig)

    @field_validator("schema_version")
    def validate_schema_version(cls, v: str) -> str:
        if not v:
            raise ValueError("schema_version is required")
        return v

    @classmethod
    def from_dict(cls, data: dict) -> "AppConfig":
        """
        Validate a configuration mapping.

        Raises:
            ConfigurationError: If keys are unknown or values are invalid
        """
        try:
            return cls(**data)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid configuration: {e}") from e

    def with_overrides(self, section: str, **overrides: Any) -> "AppConfig":
        """
        Return a copy with values of one section replaced.

        ``None`` overrides are ignored so unset command-line flags keep the
        loaded values.

        Raises:
            ConfigurationError: If the section is unknown or a value is invalid
        """
        data = self.model_dump(mode="json")
        if section not in data or not isinstance(data[section], dict):
            raise ConfigurationError(f"Unknown configuration section: {section}")
        data[section].update({key: value for key, value in overrides.items() if value is not None})
        return AppConfig.from_dict(data)
