"""Unit tests for linking secrets to service accounts and unlinking them."""

import pytest
from kubernetes import client

from secret_binding_operator.bindings.service_accounts import ServiceAccountHandler
from secret_binding_operator.bindings.store import InMemoryServiceAccountStore
from secret_binding_operator.models.binding import (
    ObjectKey,
    ServiceAccountLinkType,
)
from tests.unit.bindings.conftest import (
    FakeDeploymentTarget,
    FakeObjectMarker,
    make_service_account,
    managed_spec,
    reference_spec,
)


@pytest.fixture
def secret():
    return client.V1Secret(
        metadata=client.V1ObjectMeta(name="secret", namespace="default")
    )


def _names(refs):
    return [ref.name for ref in refs or []]


class TestLinkToSecret:
    """Adding a secret to a service account's credential lists."""

    @pytest.mark.asyncio
    async def test_link_as_secret_then_image_pull_secret(self, secret):
        """Should fill the list selected by the link and persist it."""
        sa = make_service_account()
        store = InMemoryServiceAccountStore(sa)
        spec = reference_spec("sa")
        handler = ServiceAccountHandler(
            FakeDeploymentTarget(store=store, spec=spec), FakeObjectMarker()
        )

        await handler.link_to_secret([sa], secret)

        assert _names(sa.secrets) == ["secret"]
        assert _names(sa.image_pull_secrets) == []
        loaded = await store.get(ObjectKey("default", "sa"))
        assert _names(loaded.secrets) == ["secret"]

        spec.linked_to[0].service_account.as_ = ServiceAccountLinkType.IMAGE_PULL_SECRET
        await handler.link_to_secret([sa], secret)

        assert _names(sa.image_pull_secrets) == ["secret"]
        assert _names(sa.secrets) == ["secret"]
        loaded = await store.get(ObjectKey("default", "sa"))
        assert _names(loaded.image_pull_secrets) == ["secret"]
        assert _names(loaded.secrets) == ["secret"]

    @pytest.mark.asyncio
    async def test_link_is_idempotent(self, secret):
        """Should not add a second entry when linking twice."""
        sa = make_service_account()
        store = InMemoryServiceAccountStore(sa)
        handler = ServiceAccountHandler(
            FakeDeploymentTarget(store=store, spec=reference_spec("sa")),
            FakeObjectMarker(),
        )

        await handler.link_to_secret([sa], secret)
        version = sa.metadata.resource_version
        await handler.link_to_secret([sa], secret)

        loaded = await store.get(ObjectKey("default", "sa"))
        assert _names(loaded.secrets) == ["secret"]
        assert _names(loaded.image_pull_secrets) == []
        assert loaded.metadata.resource_version == version

    @pytest.mark.asyncio
    async def test_link_keeps_foreign_entries(self, secret):
        """Should append after entries written by others."""
        sa = make_service_account()
        sa.secrets = [client.V1ObjectReference(name="another")]
        store = InMemoryServiceAccountStore(sa)
        handler = ServiceAccountHandler(
            FakeDeploymentTarget(store=store, spec=reference_spec("sa")),
            FakeObjectMarker(),
        )

        await handler.link_to_secret([sa], secret)

        loaded = await store.get(ObjectKey("default", "sa"))
        assert _names(loaded.secrets) == ["another", "secret"]

    @pytest.mark.asyncio
    async def test_link_uses_generate_name_of_managed_link(self, secret):
        """Should resolve the link type of generated service accounts."""
        store = InMemoryServiceAccountStore()
        spec = managed_spec(generate_name="sa-")
        spec.linked_to[0].service_account.as_ = ServiceAccountLinkType.IMAGE_PULL_SECRET
        handler = ServiceAccountHandler(
            FakeDeploymentTarget(store=store, spec=spec), FakeObjectMarker()
        )

        result = await handler.sync()
        sa = result.service_accounts[0]
        await handler.link_to_secret([sa], secret)

        assert _names(sa.image_pull_secrets) == ["secret"]
        assert _names(sa.secrets) == []


class TestUnlink:
    """Removing a secret from a service account."""

    @pytest.fixture
    def handler(self):
        return ServiceAccountHandler(
            FakeDeploymentTarget(store=InMemoryServiceAccountStore()),
            FakeObjectMarker(),
        )

    def test_removes_only_referenced_secrets(self, handler, secret):
        sa = client.V1ServiceAccount(
            secrets=[
                client.V1ObjectReference(name="another"),
                client.V1ObjectReference(name="secret"),
            ],
            image_pull_secrets=[
                client.V1LocalObjectReference(name="another"),
                client.V1LocalObjectReference(name="secret"),
            ],
        )

        assert handler.unlink(secret, sa)
        assert _names(sa.secrets) == ["another"]
        assert _names(sa.image_pull_secrets) == ["another"]

    def test_does_not_fail_if_not_referenced(self, handler, secret):
        sa = client.V1ServiceAccount(
            secrets=[client.V1ObjectReference(name="another")],
            image_pull_secrets=[client.V1LocalObjectReference(name="another")],
        )

        assert not handler.unlink(secret, sa)
        assert _names(sa.secrets) == ["another"]
        assert _names(sa.image_pull_secrets) == ["another"]

    def test_does_not_fail_on_empty(self, handler, secret):
        sa = client.V1ServiceAccount()

        assert not handler.unlink(secret, sa)
        assert not sa.secrets
        assert not sa.image_pull_secrets

    def test_preserves_order_of_remaining_entries(self, handler, secret):
        sa = client.V1ServiceAccount(
            secrets=[
                client.V1ObjectReference(name="a"),
                client.V1ObjectReference(name="secret"),
                client.V1ObjectReference(name="b"),
                client.V1ObjectReference(name="secret"),
            ]
        )

        assert handler.unlink(secret, sa)
        assert _names(sa.secrets) == ["a", "b"]

    @pytest.mark.asyncio
    async def test_unlink_from_all_writes_changed_accounts(self, secret):
        """Should persist only accounts that held the secret."""
        linked = make_service_account(name="linked")
        linked.secrets = [client.V1ObjectReference(name="secret")]
        untouched = make_service_account(name="untouched")
        store = InMemoryServiceAccountStore(linked, untouched)
        handler = ServiceAccountHandler(
            FakeDeploymentTarget(store=store), FakeObjectMarker()
        )

        updated = await handler.unlink_from_all(
            secret, [linked, untouched, make_service_account(name="gone")]
        )

        assert [sa.metadata.name for sa in updated] == ["linked"]
        loaded = await store.get(ObjectKey("default", "linked"))
        assert _names(loaded.secrets) == []
        other = await store.get(ObjectKey("default", "untouched"))
        assert other.metadata.resource_version == "2"
