"""
Kubernetes utilities for the secret binding operator.

This module provides helper functions for interacting with the Kubernetes API:
- Kubernetes client management and configuration
- Classification of API errors and their mapping onto operator errors
- Object identity helpers
"""

import logging
from typing import Any

from kubernetes import client, config
from kubernetes.client.rest import ApiException

from secret_binding_operator.constants import HTTP_CONFLICT, HTTP_NOT_FOUND
from secret_binding_operator.errors import (
    KubernetesAPIError,
    OperatorError,
    ReconciliationError,
)
from secret_binding_operator.models.binding import ObjectKey

logger = logging.getLogger(__name__)

# Kubernetes status reasons for the HTTP codes a service account write can hit
_STATUS_REASONS = {
    401: "Unauthorized",
    403: "Forbidden",
    HTTP_NOT_FOUND: "NotFound",
    HTTP_CONFLICT: "Conflict",
    422: "Invalid",
}


def get_kubernetes_client() -> client.ApiClient:
    """
    Get configured Kubernetes API client.

    This function handles both in-cluster and local development configurations.

    Returns:
        Configured Kubernetes API client
    """
    try:
        # Try in-cluster config first (when running in a pod)
        config.load_incluster_config()
        logger.debug("Loaded in-cluster Kubernetes configuration")
    except config.ConfigException:
        try:
            # Fall back to local kubeconfig (for development)
            config.load_kube_config()
            logger.debug("Loaded kubeconfig from local environment")
        except config.ConfigException as e:
            logger.error(f"Failed to load Kubernetes configuration: {e}")
            raise

    return client.ApiClient()


def is_not_found(error: BaseException) -> bool:
    """Return True if the error is a Kubernetes 404."""
    return isinstance(error, ApiException) and error.status == HTTP_NOT_FOUND


def is_conflict(error: BaseException) -> bool:
    """Return True if the error is a Kubernetes 409 (conflict or already exists)."""
    return isinstance(error, ApiException) and error.status == HTTP_CONFLICT


def object_key_of(obj: Any) -> ObjectKey:
    """
    Build the namespaced identity of a Kubernetes object.

    Args:
        obj: Any kubernetes client model with a ``metadata`` attribute

    Returns:
        ObjectKey of the object (empty fields when metadata is missing)
    """
    metadata = getattr(obj, "metadata", None)
    if metadata is None:
        return ObjectKey(namespace="", name="")
    return ObjectKey(namespace=metadata.namespace or "", name=metadata.name or "")


def api_error(error: Exception) -> OperatorError:
    """
    Classify an error recorded during a sync.

    Operator errors are returned as they are. ``ApiException`` becomes a
    ``KubernetesAPIError`` whose retry behaviour follows the HTTP status;
    anything else becomes a retryable ``ReconciliationError``.

    Args:
        error: Exception raised by a store or marker call

    Returns:
        Operator error ready for ``as_kopf_error()``
    """
    if isinstance(error, OperatorError):
        return error
    if isinstance(error, ApiException):
        reason = _STATUS_REASONS.get(error.status, error.reason)
        return KubernetesAPIError(
            f"request failed with status {error.status}",
            reason=reason,
            status=error.status,
            cause=error,
        )
    return ReconciliationError(f"{type(error).__name__}: {error}", cause=error)
