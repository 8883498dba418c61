"""
Observability utilities for the secret binding operator.

This module provides structured logging with correlation IDs and
ownership audit records for production troubleshooting.
"""

from .logging import OperatorLogger, configure_logging, setup_structured_logging

__all__ = [
    "OperatorLogger",
    "configure_logging",
    "setup_structured_logging",
]
