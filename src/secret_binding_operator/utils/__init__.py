"""
Utils package - Utility modules for secret binding functionality.

Contains helper modules for:
- Kubernetes client bootstrap and API error classification
- Comma-separated ordered sets used by ownership markers
"""

from secret_binding_operator.utils.commaseparated import CommaSeparated
from secret_binding_operator.utils.kubernetes import (
    api_error,
    is_conflict,
    is_not_found,
    object_key_of,
)

__all__ = [
    "CommaSeparated",
    "api_error",
    "is_conflict",
    "is_not_found",
    "object_key_of",
]
