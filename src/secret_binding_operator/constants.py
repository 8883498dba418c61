"""
Constants used throughout the secret binding operator.

This module defines all constant values used by the operator including:
- Ownership marker labels and annotations
- Secret data keys populated by the control plane
- Error message templates
"""

# Ownership marker keys stored on service accounts
LINKED_LABEL_SUFFIX = "linked"
LINKED_LABEL_VALUE = "true"
MANAGING_OWNER_ANNOTATION_SUFFIX = "managing-owner"
LINKED_BY_ANNOTATION_SUFFIX = "linked-by"
DEFAULT_MARKER_PREFIX = "secret-binding.io"

# Field manager recorded on writes to the Kubernetes API
DEFAULT_FIELD_MANAGER = "secret-binding-operator"

# Data entries the control plane injects into service account token secrets
SERVICE_ACCOUNT_TOKEN_CA_KEY = "ca.crt"
SERVICE_ACCOUNT_TOKEN_NAMESPACE_KEY = "namespace"
SERVICE_ACCOUNT_TOKEN_KEY = "token"
AUTOGENERATED_SECRET_DATA_KEYS = frozenset(
    {
        SERVICE_ACCOUNT_TOKEN_CA_KEY,
        SERVICE_ACCOUNT_TOKEN_NAMESPACE_KEY,
        SERVICE_ACCOUNT_TOKEN_KEY,
    }
)

# Length of the random suffix appended to generated names
GENERATED_NAME_SUFFIX_LENGTH = 5

# HTTP status codes returned by the Kubernetes API
HTTP_NOT_FOUND = 404
HTTP_CONFLICT = 409

# Error message templates
ERROR_OWNERSHIP_CONFLICT = (
    "Service account '{}' is managed by another owner and cannot be managed by '{}'"
)
ERROR_INVALID_LINK = (
    "Service account link must set exactly one of 'reference' or 'managed'"
)
