"""
Service account synchronization and secret linking.

``ServiceAccountHandler`` makes the service accounts in the target namespace
match the declared ``LinkableSecretSpec`` of a deployment target:

- referenced service accounts are fetched and marked as referenced by the
  target; missing ones are reported as warnings and never created
- managed service accounts are found or created, get the declared labels and
  annotations merged in, and are marked as managed by the target; one that is
  already managed by somebody else is never taken over

Labels, annotations, reference claims and credential lists are always merged,
so concurrent callers sharing a service account keep each other's state.
Every write is based on a freshly fetched copy; a stale copy surfaces as a
409 from the store and the whole sync is expected to be retried.
"""

import time
from dataclasses import dataclass, field

import kopf
from kubernetes import client
from kubernetes.client.rest import ApiException

from ..errors import OwnershipConflictError
from ..models.binding import (
    LinkableSecretSpec,
    ManagedServiceAccountSpec,
    ObjectKey,
    ServiceAccountLink,
    ServiceAccountLinkType,
)
from ..observability.logging import OperatorLogger
from ..utils.kubernetes import api_error, is_not_found, object_key_of
from .interfaces import DeploymentTarget, ObjectMarker


@dataclass
class SyncResult:
    """Outcome of a service account sync."""

    service_accounts: list[client.V1ServiceAccount] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    errors: list[Exception] = field(default_factory=list)

    def raise_for_errors(self) -> None:
        """Re-raise the first recorded error unchanged."""
        if self.errors:
            raise self.errors[0]

    def as_kopf_error(self) -> kopf.TemporaryError | kopf.PermanentError | None:
        """
        Map the first recorded error onto the kopf retry decision.

        A 409 from a stale copy yields a ``kopf.TemporaryError`` so the whole
        sync is retried; permission and validation failures are permanent.
        """
        if not self.errors:
            return None
        return api_error(self.errors[0]).as_kopf_error()


def merge_metadata(
    service_account: client.V1ServiceAccount,
    labels: dict[str, str],
    annotations: dict[str, str],
) -> bool:
    """
    Merge labels and annotations into a service account.

    Keys already on the object survive unless the same key is given, in which
    case the given value wins.

    Returns:
        True if the object changed
    """
    metadata = service_account.metadata
    changed = False

    if labels:
        if metadata.labels is None:
            metadata.labels = {}
        for key, value in labels.items():
            if metadata.labels.get(key) != value:
                metadata.labels[key] = value
                changed = True

    if annotations:
        if metadata.annotations is None:
            metadata.annotations = {}
        for key, value in annotations.items():
            if metadata.annotations.get(key) != value:
                metadata.annotations[key] = value
                changed = True

    return changed


class ServiceAccountHandler:
    """Syncs service accounts of a deployment target and links secrets to them."""

    def __init__(self, target: DeploymentTarget, object_marker: ObjectMarker):
        """
        Initialize the handler.

        Args:
            target: Supplies the store, namespace, spec and claim identifier
            object_marker: Records ownership relations on service accounts
        """
        self.target = target
        self.object_marker = object_marker
        self.logger = OperatorLogger(self.__class__.__name__)

    async def sync(self) -> SyncResult:
        """
        Make the service accounts match the declared links.

        Links are processed in declaration order. A failed store or marker
        call is recorded in ``SyncResult.errors`` and the next link is
        processed.

        Returns:
            The synchronized service accounts with warnings and errors

        Raises:
            OwnershipConflictError: A managed link targets a service account
                owned by another actor. Links synced before the conflict stay
                persisted and are available on the error.
        """
        spec = self.target.get_spec()
        namespace = self.target.get_target_namespace()
        claim = self.target.get_target_object_key()
        start_time = time.time()

        self.logger.log_sync_start(str(claim), namespace, len(spec.linked_to))

        result = SyncResult()
        for link in spec.linked_to:
            sa_link = link.service_account
            try:
                service_account = await self._ensure_service_account(sa_link)
            except OwnershipConflictError as e:
                e.service_accounts = list(result.service_accounts)
                self.logger.log_sync_error(
                    str(claim), namespace, e, time.time() - start_time
                )
                raise
            except Exception as e:
                result.errors.append(e)
                result.warnings.append(
                    f"failed to sync service account {self._describe(sa_link)}: {e}"
                )
                self.logger.warning(
                    f"Failed to sync service account {self._describe(sa_link)}: {e}",
                    namespace=namespace,
                    error_type=type(e).__name__,
                )
                continue

            if service_account is None:
                result.warnings.append(
                    f"referenced service account {sa_link.reference.name} "
                    f"does not exist in namespace {namespace}"
                )
                continue

            result.service_accounts.append(service_account)

        self.logger.log_sync_success(
            str(claim), namespace, len(result.service_accounts), time.time() - start_time
        )
        return result

    async def link_to_secret(
        self, service_accounts: list[client.V1ServiceAccount], secret: client.V1Secret
    ) -> None:
        """
        Add the secret to the credential list selected by each account's link.

        The latest copy of every service account is fetched and written back
        only if the secret was missing. The given objects are refreshed with
        the stored credential lists.
        """
        spec = self.target.get_spec()
        store = self.target.get_client()
        secret_name = secret.metadata.name

        for service_account in service_accounts:
            link_type = self._link_type_for(spec, service_account)
            latest = await store.get(object_key_of(service_account))

            if link_type == ServiceAccountLinkType.IMAGE_PULL_SECRET:
                changed = self._ensure_image_pull_secret(latest, secret_name)
            else:
                changed = self._ensure_secret(latest, secret_name)

            if changed:
                latest = await store.update(latest)
                self.logger.info(
                    f"Linked secret {secret_name} to service account "
                    f"{object_key_of(latest)}",
                    secret_name=secret_name,
                    service_account=str(object_key_of(latest)),
                    link_type=link_type.value,
                )

            service_account.secrets = latest.secrets
            service_account.image_pull_secrets = latest.image_pull_secrets
            service_account.metadata.resource_version = latest.metadata.resource_version

    def unlink(
        self, secret: client.V1Secret, service_account: client.V1ServiceAccount
    ) -> bool:
        """
        Remove the secret from both credential lists of the service account.

        Nothing is persisted; write the object back if this returns True.

        Returns:
            True if any entry was removed
        """
        secret_name = secret.metadata.name
        changed = False

        if service_account.secrets:
            kept = [ref for ref in service_account.secrets if ref.name != secret_name]
            if len(kept) != len(service_account.secrets):
                service_account.secrets = kept
                changed = True

        if service_account.image_pull_secrets:
            kept_pull = [
                ref
                for ref in service_account.image_pull_secrets
                if ref.name != secret_name
            ]
            if len(kept_pull) != len(service_account.image_pull_secrets):
                service_account.image_pull_secrets = kept_pull
                changed = True

        return changed

    async def unlink_from_all(
        self, secret: client.V1Secret, service_accounts: list[client.V1ServiceAccount]
    ) -> list[client.V1ServiceAccount]:
        """
        Unlink the secret from the latest copy of each service account.

        Service accounts that no longer exist are skipped.

        Returns:
            The service accounts that were changed and written back
        """
        store = self.target.get_client()
        updated = []

        for service_account in service_accounts:
            try:
                latest = await store.get(object_key_of(service_account))
            except ApiException as e:
                if is_not_found(e):
                    continue
                raise

            if self.unlink(secret, latest):
                updated.append(await store.update(latest))

        return updated

    async def _ensure_service_account(
        self, link: ServiceAccountLink
    ) -> client.V1ServiceAccount | None:
        if link.is_reference:
            return await self._ensure_referenced_service_account(link.reference.name)
        return await self._ensure_managed_service_account(link.managed)

    async def _ensure_referenced_service_account(
        self, name: str
    ) -> client.V1ServiceAccount | None:
        store = self.target.get_client()
        claim = self.target.get_target_object_key()
        key = ObjectKey(namespace=self.target.get_target_namespace(), name=name)

        try:
            service_account = await store.get(key)
        except ApiException as e:
            if is_not_found(e):
                self.logger.debug(f"Referenced service account {key} does not exist")
                return None
            raise

        # A link that used to be managed must not keep the managed mark
        changed = await self.object_marker.unmark_managed(claim, service_account)
        changed = (
            await self.object_marker.mark_referenced(claim, service_account) or changed
        )

        if changed:
            service_account = await store.update(service_account)
            self.logger.log_ownership_audit("mark_referenced", str(claim), str(key), True)
        return service_account

    async def _ensure_managed_service_account(
        self, managed: ManagedServiceAccountSpec
    ) -> client.V1ServiceAccount:
        store = self.target.get_client()
        claim = self.target.get_target_object_key()

        service_account, exists = await self._resolve_managed_service_account(managed)
        key = object_key_of(service_account)

        if exists and await self.object_marker.is_managed_by_other(service_account):
            self.logger.log_ownership_audit("mark_managed", str(claim), str(key), False)
            raise OwnershipConflictError(service_account=str(key), owner=str(claim))

        changed = merge_metadata(service_account, managed.labels, managed.annotations)

        # A link that used to be a reference must not keep the reference claim
        if await self.object_marker.is_referenced_by(claim, service_account):
            changed = (
                await self.object_marker.unmark_referenced(claim, service_account)
                or changed
            )
        changed = await self.object_marker.mark_managed(claim, service_account) or changed

        if not exists:
            service_account = await store.create(service_account)
        elif changed:
            service_account = await store.update(service_account)
        else:
            return service_account

        self.logger.log_ownership_audit(
            "mark_managed", str(claim), str(object_key_of(service_account)), True
        )
        return service_account

    async def _resolve_managed_service_account(
        self, managed: ManagedServiceAccountSpec
    ) -> tuple[client.V1ServiceAccount, bool]:
        """Find the service account of a managed link or build a new one."""
        store = self.target.get_client()
        namespace = self.target.get_target_namespace()

        if managed.name:
            try:
                return await store.get(ObjectKey(namespace, managed.name)), True
            except ApiException as e:
                if not is_not_found(e):
                    raise
            return self._new_service_account(namespace, name=managed.name), False

        for name in self.target.get_actual_managed_service_account_names():
            try:
                candidate = await store.get(ObjectKey(namespace, name))
            except ApiException as e:
                if is_not_found(e):
                    continue
                raise
            if candidate.metadata.generate_name == managed.generate_name:
                return candidate, True

        return (
            self._new_service_account(namespace, generate_name=managed.generate_name),
            False,
        )

    @staticmethod
    def _new_service_account(
        namespace: str, name: str | None = None, generate_name: str | None = None
    ) -> client.V1ServiceAccount:
        return client.V1ServiceAccount(
            api_version="v1",
            kind="ServiceAccount",
            metadata=client.V1ObjectMeta(
                name=name, generate_name=generate_name, namespace=namespace
            ),
        )

    @staticmethod
    def _link_type_for(
        spec: LinkableSecretSpec, service_account: client.V1ServiceAccount
    ) -> ServiceAccountLinkType:
        metadata = service_account.metadata
        for link in spec.linked_to:
            sa_link = link.service_account
            if sa_link.is_reference and sa_link.reference.name == metadata.name:
                return sa_link.link_type
            if sa_link.managed.name and sa_link.managed.name == metadata.name:
                return sa_link.link_type
            if (
                sa_link.managed.generate_name
                and sa_link.managed.generate_name == metadata.generate_name
            ):
                return sa_link.link_type
        return ServiceAccountLinkType.SECRET

    @staticmethod
    def _ensure_secret(service_account: client.V1ServiceAccount, name: str) -> bool:
        refs = service_account.secrets or []
        if any(ref.name == name for ref in refs):
            return False
        service_account.secrets = [*refs, client.V1ObjectReference(name=name)]
        return True

    @staticmethod
    def _ensure_image_pull_secret(
        service_account: client.V1ServiceAccount, name: str
    ) -> bool:
        refs = service_account.image_pull_secrets or []
        if any(ref.name == name for ref in refs):
            return False
        service_account.image_pull_secrets = [
            *refs,
            client.V1LocalObjectReference(name=name),
        ]
        return True

    @staticmethod
    def _describe(link: ServiceAccountLink) -> str:
        if link.is_reference:
            return link.reference.name
        return link.managed.name or f"{link.managed.generate_name}*"
