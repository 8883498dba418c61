"""
Bindings between secrets and service accounts.

This package provides the service account sync engine, the secret linker,
ownership markers, service account stores and the secret comparator.
"""

from .comparator import make_secret_comparator, service_account_secret_equal
from .marker import AnnotationObjectMarker
from .service_accounts import ServiceAccountHandler, SyncResult
from .store import InMemoryServiceAccountStore, KubernetesServiceAccountStore

__all__ = [
    "AnnotationObjectMarker",
    "InMemoryServiceAccountStore",
    "KubernetesServiceAccountStore",
    "ServiceAccountHandler",
    "SyncResult",
    "make_secret_comparator",
    "service_account_secret_equal",
]
