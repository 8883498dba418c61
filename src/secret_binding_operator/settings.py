"""Centralized operator settings using pydantic-settings.

This module provides a single source of truth for all operator configuration
loaded from environment variables. Uses pydantic for automatic validation,
type coercion, and documentation.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from secret_binding_operator.constants import (
    DEFAULT_FIELD_MANAGER,
    DEFAULT_MARKER_PREFIX,
    LINKED_BY_ANNOTATION_SUFFIX,
    LINKED_LABEL_SUFFIX,
    MANAGING_OWNER_ANNOTATION_SUFFIX,
)


class Settings(BaseSettings):
    """Operator configuration loaded from environment variables.

    All settings have sensible defaults for production use. Override via
    environment variables as documented per field.
    """

    model_config = SettingsConfigDict(
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Logging configuration
    log_level: str = Field(
        default="INFO",
        validation_alias="LOG_LEVEL",
        description="Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )
    json_logs: bool = Field(
        default=True,
        validation_alias="JSON_LOGS",
        description="Enable JSON formatted logging for structured log aggregation",
    )
    correlation_ids: bool = Field(
        default=True,
        validation_alias="CORRELATION_IDS",
        description="Enable correlation IDs in logs for request tracing",
    )

    # Kubernetes writes
    field_manager: str = Field(
        default=DEFAULT_FIELD_MANAGER,
        validation_alias="FIELD_MANAGER",
        description="Field manager name recorded on service account writes",
    )

    # Ownership markers
    marker_prefix: str = Field(
        default=DEFAULT_MARKER_PREFIX,
        validation_alias="MARKER_LABEL_PREFIX",
        description="Prefix of the labels and annotations that record ownership",
    )

    @property
    def linked_label(self) -> str:
        """Label present on every service account with at least one relation."""
        return f"{self.marker_prefix}/{LINKED_LABEL_SUFFIX}"

    @property
    def managing_owner_annotation(self) -> str:
        """Annotation holding the key of the exclusive owner."""
        return f"{self.marker_prefix}/{MANAGING_OWNER_ANNOTATION_SUFFIX}"

    @property
    def linked_by_annotation(self) -> str:
        """Annotation holding the comma-separated reference claims."""
        return f"{self.marker_prefix}/{LINKED_BY_ANNOTATION_SUFFIX}"


# Global settings instance - initialized once at module import
settings = Settings()
