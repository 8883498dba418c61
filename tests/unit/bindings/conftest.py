"""Shared pytest fixtures for service account binding tests."""

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, TypeAlias

import pytest
from kubernetes import client

from secret_binding_operator.bindings.service_accounts import ServiceAccountHandler
from secret_binding_operator.bindings.store import InMemoryServiceAccountStore
from secret_binding_operator.models.binding import (
    LinkableSecretSpec,
    LocalObjectReference,
    ManagedServiceAccountSpec,
    ObjectKey,
    SecretLink,
    ServiceAccountLink,
)

MarkImpl: TypeAlias = Callable[[ObjectKey, Any], bool]


@dataclass
class FakeDeploymentTarget:
    """Deployment target whose answers are plain attributes."""

    store: Any
    namespace: str = "default"
    spec: LinkableSecretSpec = field(default_factory=LinkableSecretSpec)
    key: ObjectKey = ObjectKey(namespace="default", name="remote-secret")
    managed_names: list[str] = field(default_factory=list)

    def get_client(self):
        return self.store

    def get_target_namespace(self) -> str:
        return self.namespace

    def get_spec(self) -> LinkableSecretSpec:
        return self.spec

    def get_target_object_key(self) -> ObjectKey:
        return self.key

    def get_actual_managed_service_account_names(self) -> list[str]:
        return self.managed_names


@dataclass
class FakeObjectMarker:
    """Object marker delegating to swappable callables.

    Any operation without an implementation reports "no change" / False.
    """

    mark_managed_impl: MarkImpl | None = None
    unmark_managed_impl: MarkImpl | None = None
    mark_referenced_impl: MarkImpl | None = None
    unmark_referenced_impl: MarkImpl | None = None
    is_managed_by_other_impl: Callable[[Any], bool] | None = None
    is_referenced_by_impl: MarkImpl | None = None

    async def mark_managed(self, key, obj) -> bool:
        return self.mark_managed_impl(key, obj) if self.mark_managed_impl else False

    async def unmark_managed(self, key, obj) -> bool:
        return self.unmark_managed_impl(key, obj) if self.unmark_managed_impl else False

    async def mark_referenced(self, key, obj) -> bool:
        return (
            self.mark_referenced_impl(key, obj) if self.mark_referenced_impl else False
        )

    async def unmark_referenced(self, key, obj) -> bool:
        return (
            self.unmark_referenced_impl(key, obj)
            if self.unmark_referenced_impl
            else False
        )

    async def is_managed_by_other(self, obj) -> bool:
        return (
            self.is_managed_by_other_impl(obj) if self.is_managed_by_other_impl else False
        )

    async def is_referenced_by(self, key, obj) -> bool:
        return (
            self.is_referenced_by_impl(key, obj) if self.is_referenced_by_impl else False
        )


def make_service_account(
    name: str = "sa",
    namespace: str = "default",
    labels: dict[str, str] | None = None,
    annotations: dict[str, str] | None = None,
) -> client.V1ServiceAccount:
    """Create a service account object for seeding stores."""
    return client.V1ServiceAccount(
        metadata=client.V1ObjectMeta(
            name=name, namespace=namespace, labels=labels, annotations=annotations
        )
    )


def reference_spec(name: str = "sa", as_=None) -> LinkableSecretSpec:
    """Spec with a single reference link."""
    return LinkableSecretSpec(
        linked_to=[
            SecretLink(
                service_account=ServiceAccountLink(
                    reference=LocalObjectReference(name=name), as_=as_
                )
            )
        ]
    )


def managed_spec(**managed) -> LinkableSecretSpec:
    """Spec with a single managed link."""
    return LinkableSecretSpec(
        linked_to=[
            SecretLink(
                service_account=ServiceAccountLink(
                    managed=ManagedServiceAccountSpec(**managed)
                )
            )
        ]
    )


def set_label(name: str, value: str = "yay") -> MarkImpl:
    """Marker implementation that sets a label and reports a change."""

    def impl(_key, obj) -> bool:
        if obj.metadata.labels is None:
            obj.metadata.labels = {}
        obj.metadata.labels[name] = value
        return True

    return impl


@pytest.fixture
def store():
    """Empty in-memory service account store."""
    return InMemoryServiceAccountStore()


@pytest.fixture
def target(store):
    """Deployment target for the default namespace backed by the store."""
    return FakeDeploymentTarget(store=store)


@pytest.fixture
def marker():
    """Object marker that does nothing until configured."""
    return FakeObjectMarker()


@pytest.fixture
def handler(target, marker):
    """Service account handler wired to the fake target and marker."""
    return ServiceAccountHandler(target=target, object_marker=marker)
