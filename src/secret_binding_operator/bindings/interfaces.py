"""
Collaborator interfaces consumed by the service account sync engine.

The engine never talks to the cluster or encodes ownership itself; it goes
through these protocols so production and in-memory implementations can be
swapped freely.
"""

from typing import Any, Protocol

from kubernetes import client

from ..models.binding import LinkableSecretSpec, ObjectKey


class ServiceAccountStore(Protocol):
    """
    Persistence of service accounts.

    All methods raise ``kubernetes.client.rest.ApiException`` on failure:
    404 when the object is missing, 409 when it already exists or its
    resource version is stale.
    """

    async def get(self, key: ObjectKey) -> client.V1ServiceAccount: ...

    async def create(
        self, service_account: client.V1ServiceAccount
    ) -> client.V1ServiceAccount: ...

    async def update(
        self, service_account: client.V1ServiceAccount
    ) -> client.V1ServiceAccount: ...


class DeploymentTarget(Protocol):
    """Where and how a secret is deployed."""

    def get_client(self) -> ServiceAccountStore: ...

    def get_target_namespace(self) -> str: ...

    def get_spec(self) -> LinkableSecretSpec: ...

    def get_target_object_key(self) -> ObjectKey:
        """Claim identifier recorded on the service accounts."""
        ...

    def get_actual_managed_service_account_names(self) -> list[str]:
        """Names of managed service accounts created by earlier syncs."""
        ...


class ObjectMarker(Protocol):
    """
    Records and answers ownership relations on objects.

    The mutating methods may change labels and annotations of the object they
    are given and return whether they did.
    """

    async def mark_managed(self, key: ObjectKey, obj: Any) -> bool: ...

    async def unmark_managed(self, key: ObjectKey, obj: Any) -> bool: ...

    async def mark_referenced(self, key: ObjectKey, obj: Any) -> bool: ...

    async def unmark_referenced(self, key: ObjectKey, obj: Any) -> bool: ...

    async def is_managed_by_other(self, obj: Any) -> bool: ...

    async def is_referenced_by(self, key: ObjectKey, obj: Any) -> bool: ...
