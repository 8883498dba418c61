"""
Structured logging utilities for the secret binding operator.

This module provides correlation ID tracking, structured log formatting,
and audit logging of ownership decisions for production troubleshooting.
"""

import json
import logging
import uuid
from contextvars import ContextVar
from datetime import UTC, datetime

from ..settings import Settings, settings

# Context variable for tracking correlation IDs across async operations
correlation_id: ContextVar[str] = ContextVar("correlation_id", default="")

# Extra record attributes copied into the JSON payload
STRUCTURED_FIELDS = (
    "resource_type",
    "resource_name",
    "namespace",
    "operation",
    "duration",
    "error_type",
    "audit",
    "service_account",
    "secret_name",
    "link_type",
    "claim",
)


class CorrelationIDFilter(logging.Filter):
    """Logging filter that adds correlation ID to log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        """
        Add correlation ID to the log record.

        Args:
            record: The log record to process

        Returns:
            True to allow the record to be processed
        """
        current_correlation_id = correlation_id.get()
        if not current_correlation_id:
            current_correlation_id = generate_correlation_id()
            correlation_id.set(current_correlation_id)

        record.correlation_id = current_correlation_id
        return True


class StructuredFormatter(logging.Formatter):
    """
    Structured JSON formatter for logs with correlation ID support.

    Formats log records as structured JSON for better parsing and analysis
    in production monitoring systems.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.now(UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "correlation_id": getattr(record, "correlation_id", ""),
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        for field in STRUCTURED_FIELDS:
            if hasattr(record, field):
                log_data[field] = getattr(record, field)

        return json.dumps(log_data, default=str)


def generate_correlation_id() -> str:
    """
    Generate a new correlation ID.

    Returns:
        Unique correlation ID string
    """
    return str(uuid.uuid4())[:8]  # Short 8-character ID for readability


def set_correlation_id(corr_id: str) -> str:
    """Set the correlation ID for the current context."""
    correlation_id.set(corr_id)
    return corr_id


def get_correlation_id() -> str:
    """Get the current correlation ID, or empty string if none set."""
    return correlation_id.get("")


def setup_structured_logging(
    log_level: str = "INFO",
    enable_json_formatting: bool = True,
    correlation_id_enabled: bool = True,
) -> None:
    """
    Set up structured logging for the operator.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        enable_json_formatting: Whether to use JSON formatting
        correlation_id_enabled: Whether to enable correlation ID tracking
    """
    root_logger = logging.getLogger()

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler()

    if enable_json_formatting:
        formatter: logging.Formatter = StructuredFormatter()
    elif correlation_id_enabled:
        formatter = logging.Formatter(
            "%(asctime)s - %(correlation_id)s - %(name)s - %(levelname)s - %(message)s"
        )
    else:
        formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        )

    handler.setFormatter(formatter)

    if correlation_id_enabled:
        handler.addFilter(CorrelationIDFilter())

    root_logger.addHandler(handler)
    root_logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))

    # Set specific logger levels for third-party libraries
    logging.getLogger("kopf").setLevel(logging.WARNING)
    logging.getLogger("kubernetes").setLevel(logging.WARNING)
    logging.getLogger("urllib3").setLevel(logging.WARNING)


def configure_logging(operator_settings: Settings = settings) -> None:
    """Configure structured logging from the operator settings."""
    setup_structured_logging(
        log_level=operator_settings.log_level.upper(),
        enable_json_formatting=operator_settings.json_logs,
        correlation_id_enabled=operator_settings.correlation_ids,
    )


class OperatorLogger:
    """
    Enhanced logger for operator operations with structured logging support.

    Provides convenient methods for logging sync events and ownership
    decisions with proper correlation ID tracking and structured data.
    """

    def __init__(self, name: str):
        self.logger = logging.getLogger(name)

    def log_sync_start(
        self,
        resource_name: str,
        namespace: str,
        link_count: int,
        correlation_id: str | None = None,
    ) -> str:
        """
        Log the start of a service account sync.

        Args:
            resource_name: Claim identifier of the caller being synced
            namespace: Target namespace of the service accounts
            link_count: Number of declared links
            correlation_id: Optional correlation ID (will generate if not provided)

        Returns:
            The correlation ID used for this operation
        """
        if correlation_id is None:
            correlation_id = generate_correlation_id()

        set_correlation_id(correlation_id)

        self.logger.info(
            f"Starting service account sync for {resource_name} ({link_count} links)",
            extra={
                "resource_type": "serviceaccount",
                "resource_name": resource_name,
                "namespace": namespace,
                "operation": "sync_start",
            },
        )

        return correlation_id

    def log_sync_success(
        self, resource_name: str, namespace: str, synced: int, duration: float
    ) -> None:
        self.logger.info(
            f"Service account sync completed for {resource_name}: {synced} synced",
            extra={
                "resource_type": "serviceaccount",
                "resource_name": resource_name,
                "namespace": namespace,
                "operation": "sync_success",
                "duration": duration,
            },
        )

    def log_sync_error(
        self,
        resource_name: str,
        namespace: str,
        error: BaseException,
        duration: float,
    ) -> None:
        self.logger.error(
            f"Service account sync failed for {resource_name}: {error}",
            extra={
                "resource_type": "serviceaccount",
                "resource_name": resource_name,
                "namespace": namespace,
                "operation": "sync_error",
                "error_type": type(error).__name__,
                "duration": duration,
            },
        )

    def log_ownership_audit(
        self,
        operation: str,
        claim: str,
        service_account: str,
        success: bool,
    ) -> None:
        """
        Log an ownership decision on a service account.

        Args:
            operation: Marker operation (mark_managed, mark_referenced, ...)
            claim: Claim identifier the decision was made for
            service_account: Namespaced name of the service account
            success: Whether the operation was allowed
        """
        level = logging.INFO if success else logging.WARNING
        message = (
            f"Ownership {operation} {'applied' if success else 'rejected'}: "
            f"{claim} -> {service_account}"
        )

        audit_data = {
            "audit_event": "ownership",
            "operation": operation,
            "claim": claim,
            "service_account": service_account,
            "success": success,
            "timestamp": datetime.now(UTC).isoformat(),
        }

        self.logger.log(level, message, extra={"audit": audit_data})

    def debug(self, message: str, **kwargs) -> None:
        """Log debug message with extra data."""
        self.logger.debug(message, extra=kwargs)

    def info(self, message: str, **kwargs) -> None:
        """Log info message with extra data."""
        self.logger.info(message, extra=kwargs)

    def warning(self, message: str, **kwargs) -> None:
        """Log warning message with extra data."""
        self.logger.warning(message, extra=kwargs)

    def error(self, message: str, exc_info: bool = False, **kwargs) -> None:
        """Log error message with extra data."""
        self.logger.error(message, exc_info=exc_info, extra=kwargs)
