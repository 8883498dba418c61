"""
Declarative models describing how a secret is linked to service accounts.

A ``LinkableSecretSpec`` is the input of the service account sync engine:
an ordered list of ``SecretLink`` entries, each naming either a referenced
(pre-existing) service account or a managed one that the operator creates and
owns, together with the credential list the secret is attached to.
"""

from enum import Enum
from typing import NamedTuple

from pydantic import BaseModel, Field, field_validator, model_validator

from ..constants import ERROR_INVALID_LINK


class ObjectKey(NamedTuple):
    """Namespaced identity of a Kubernetes object."""

    namespace: str
    name: str

    def __str__(self) -> str:
        if not self.namespace:
            return self.name
        return f"{self.namespace}/{self.name}"


class ServiceAccountLinkType(str, Enum):
    """Credential list of the service account that receives the secret."""

    SECRET = "secret"
    IMAGE_PULL_SECRET = "imagePullSecret"


class LocalObjectReference(BaseModel):
    """Reference to an object in the target namespace by name."""

    model_config = {"populate_by_name": True}

    name: str = Field("", description="Name of the referenced object")


class ManagedServiceAccountSpec(BaseModel):
    """Service account created and exclusively owned by the operator."""

    model_config = {"populate_by_name": True}

    name: str = Field("", description="Explicit name of the service account")
    generate_name: str = Field(
        "",
        alias="generateName",
        description="Prefix used to generate a unique name when name is empty",
    )
    labels: dict[str, str] = Field(
        default_factory=dict, description="Labels merged onto the service account"
    )
    annotations: dict[str, str] = Field(
        default_factory=dict,
        description="Annotations merged onto the service account",
    )

    @property
    def is_set(self) -> bool:
        return bool(self.name or self.generate_name)


class ServiceAccountLink(BaseModel):
    """
    Link to a single service account.

    Exactly one of ``reference`` or ``managed`` is set. ``as_`` selects the
    credential list the secret is added to; unset means plain secret.
    """

    model_config = {"populate_by_name": True}

    reference: LocalObjectReference = Field(
        default_factory=LocalObjectReference,
        description="Pre-existing service account the secret is attached to",
    )
    managed: ManagedServiceAccountSpec = Field(
        default_factory=ManagedServiceAccountSpec,
        description="Service account created and owned by the operator",
    )
    as_: ServiceAccountLinkType | None = Field(
        None, alias="as", description="How the secret is attached"
    )

    @field_validator("as_", mode="before")
    @classmethod
    def empty_as_means_secret(cls, v):
        """Treat an empty ``as`` like an unset one."""
        return v or None

    @model_validator(mode="after")
    def validate_exactly_one_target(self) -> "ServiceAccountLink":
        """Ensure the link names exactly one kind of service account."""
        if bool(self.reference.name) == self.managed.is_set:
            raise ValueError(ERROR_INVALID_LINK)
        return self

    @property
    def is_reference(self) -> bool:
        return bool(self.reference.name)

    @property
    def is_managed(self) -> bool:
        return self.managed.is_set

    @property
    def link_type(self) -> ServiceAccountLinkType:
        return self.as_ or ServiceAccountLinkType.SECRET


class SecretLink(BaseModel):
    """One entry of the linked-to list."""

    model_config = {"populate_by_name": True}

    service_account: ServiceAccountLink = Field(
        ..., alias="serviceAccount", description="Service account to link to"
    )


class LinkableSecretSpec(BaseModel):
    """
    Declared set of service accounts a secret must be linked to.

    Links are processed in declaration order.
    """

    model_config = {"populate_by_name": True}

    linked_to: list[SecretLink] = Field(
        default_factory=list,
        alias="linkedTo",
        description="Service accounts the secret is linked to",
    )
