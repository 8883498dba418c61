"""
Service account stores.

``KubernetesServiceAccountStore`` talks to the API server through
``CoreV1Api``; ``InMemoryServiceAccountStore`` keeps objects in a dict and
mimics the API server's create/update semantics (generated names, resource
version checks), which makes it suitable for tests and dry runs.
"""

import asyncio
import copy
import logging
import random
import uuid

from kubernetes import client
from kubernetes.client.rest import ApiException

from ..constants import GENERATED_NAME_SUFFIX_LENGTH, HTTP_CONFLICT, HTTP_NOT_FOUND
from ..models.binding import ObjectKey
from ..settings import settings
from ..utils.kubernetes import get_kubernetes_client, object_key_of

logger = logging.getLogger(__name__)

# Alphabet the API server uses for generated name suffixes
_NAME_SUFFIX_ALPHABET = "bcdfghjklmnpqrstvwxz2456789"


class KubernetesServiceAccountStore:
    """Service account store backed by the Kubernetes API."""

    def __init__(
        self,
        k8s_client: client.ApiClient | None = None,
        field_manager: str | None = None,
    ):
        """
        Initialize the store.

        Args:
            k8s_client: Kubernetes API client, loaded from the environment
                on first use when omitted
            field_manager: Field manager recorded on writes
        """
        self.k8s_client = k8s_client
        self.field_manager = field_manager or settings.field_manager
        self._v1: client.CoreV1Api | None = None

    @property
    def v1(self) -> client.CoreV1Api:
        """Get CoreV1Api client."""
        if self._v1 is None:
            if self.k8s_client is None:
                self.k8s_client = get_kubernetes_client()
            self._v1 = client.CoreV1Api(self.k8s_client)
        return self._v1

    async def get(self, key: ObjectKey) -> client.V1ServiceAccount:
        return await asyncio.to_thread(
            self.v1.read_namespaced_service_account,
            name=key.name,
            namespace=key.namespace,
        )

    async def create(
        self, service_account: client.V1ServiceAccount
    ) -> client.V1ServiceAccount:
        created = await asyncio.to_thread(
            self.v1.create_namespaced_service_account,
            namespace=service_account.metadata.namespace,
            body=service_account,
            field_manager=self.field_manager,
        )
        logger.info(f"Created service account {object_key_of(created)}")
        return created

    async def update(
        self, service_account: client.V1ServiceAccount
    ) -> client.V1ServiceAccount:
        # replace honours metadata.resourceVersion, stale copies get a 409
        updated = await asyncio.to_thread(
            self.v1.replace_namespaced_service_account,
            name=service_account.metadata.name,
            namespace=service_account.metadata.namespace,
            body=service_account,
            field_manager=self.field_manager,
        )
        logger.debug(f"Updated service account {object_key_of(updated)}")
        return updated


class InMemoryServiceAccountStore:
    """Service account store keeping deep copies of objects in memory."""

    def __init__(self, *service_accounts: client.V1ServiceAccount):
        self._objects: dict[ObjectKey, client.V1ServiceAccount] = {}
        self._resource_version = 0
        for service_account in service_accounts:
            stored = copy.deepcopy(service_account)
            stored.metadata.uid = stored.metadata.uid or str(uuid.uuid4())
            stored.metadata.resource_version = self._next_resource_version()
            self._objects[object_key_of(stored)] = stored

    def __len__(self) -> int:
        return len(self._objects)

    def __contains__(self, key: object) -> bool:
        return key in self._objects

    async def get(self, key: ObjectKey) -> client.V1ServiceAccount:
        stored = self._objects.get(key)
        if stored is None:
            raise ApiException(status=HTTP_NOT_FOUND, reason="Not Found")
        return copy.deepcopy(stored)

    async def create(
        self, service_account: client.V1ServiceAccount
    ) -> client.V1ServiceAccount:
        stored = copy.deepcopy(service_account)
        metadata = stored.metadata
        if not metadata.name:
            if not metadata.generate_name:
                raise ApiException(status=422, reason="Invalid")
            metadata.name = self._generate_name(
                metadata.namespace or "", metadata.generate_name
            )

        key = object_key_of(stored)
        if key in self._objects:
            raise ApiException(status=HTTP_CONFLICT, reason="AlreadyExists")

        metadata.uid = str(uuid.uuid4())
        metadata.resource_version = self._next_resource_version()
        self._objects[key] = stored
        return copy.deepcopy(stored)

    async def update(
        self, service_account: client.V1ServiceAccount
    ) -> client.V1ServiceAccount:
        key = object_key_of(service_account)
        current = self._objects.get(key)
        if current is None:
            raise ApiException(status=HTTP_NOT_FOUND, reason="Not Found")

        requested_version = service_account.metadata.resource_version
        if requested_version and requested_version != current.metadata.resource_version:
            raise ApiException(status=HTTP_CONFLICT, reason="Conflict")

        stored = copy.deepcopy(service_account)
        stored.metadata.uid = current.metadata.uid
        stored.metadata.resource_version = self._next_resource_version()
        self._objects[key] = stored
        return copy.deepcopy(stored)

    def _next_resource_version(self) -> str:
        self._resource_version += 1
        return str(self._resource_version)

    def _generate_name(self, namespace: str, prefix: str) -> str:
        while True:
            suffix = "".join(
                random.choices(_NAME_SUFFIX_ALPHABET, k=GENERATED_NAME_SUFFIX_LENGTH)
            )
            name = f"{prefix}{suffix}"
            if ObjectKey(namespace=namespace, name=name) not in self._objects:
                return name
