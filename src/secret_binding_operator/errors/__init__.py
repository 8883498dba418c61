"""
Error handling module for the secret binding operator.

This module provides an error hierarchy that integrates with kopf
and provides clear categorization for different types of failures.
"""

from .operator_errors import (
    KubernetesAPIError,
    OperatorError,
    OwnershipConflictError,
    ReconciliationError,
)

__all__ = [
    "OperatorError",
    "KubernetesAPIError",
    "ReconciliationError",
    "OwnershipConflictError",
]
