"""
Operator error hierarchy with categorization and retry logic.

This module defines the error types used throughout the secret binding
operator, providing clear categorization and integration with kopf's retry
mechanisms.
"""

from typing import Any

import kopf

from ..constants import ERROR_OWNERSHIP_CONFLICT


class OperatorError(Exception):
    """
    Base error class for all operator-related exceptions.

    Provides categorization, retry behavior, and user guidance for resolution.
    """

    def __init__(
        self,
        message: str,
        category: str,
        retryable: bool = True,
        delay: int = 30,
        user_action: str | None = None,
        cause: Exception | None = None,
    ):
        """
        Initialize operator error.

        Args:
            message: Human-readable error description
            category: Error category (validation, api, configuration, ownership)
            retryable: Whether kopf should retry this operation
            delay: Suggested retry delay in seconds
            user_action: What user should do to resolve the issue
            cause: Underlying exception that caused this error
        """
        super().__init__(message)
        self.category = category
        self.retryable = retryable
        self.delay = delay
        self.user_action = user_action
        self.cause = cause

    def as_kopf_error(self):
        """Convert to appropriate kopf exception type."""
        if self.retryable:
            return kopf.TemporaryError(str(self), delay=self.delay)
        else:
            return kopf.PermanentError(str(self))

    def __str__(self) -> str:
        """Enhanced string representation with user guidance."""
        base_msg = super().__str__()
        if self.user_action:
            return f"{base_msg}\nAction required: {self.user_action}"
        return base_msg


class KubernetesAPIError(OperatorError):
    """
    A Kubernetes API call failed during a sync.

    Conflicts and other transient failures are retried; failures caused by
    permissions or an invalid object are not.
    """

    NON_RETRYABLE_REASONS = frozenset({"Forbidden", "Unauthorized", "Invalid"})

    def __init__(
        self,
        message: str,
        reason: str | None = None,
        status: int | None = None,
        cause: Exception | None = None,
    ):
        if reason:
            message = f"{message} (reason: {reason})"
        retryable = reason not in self.NON_RETRYABLE_REASONS
        super().__init__(
            message=f"Kubernetes API error: {message}",
            category="api",
            retryable=retryable,
            delay=5 if reason == "Conflict" else 30,
            user_action=None
            if retryable
            else "Check RBAC permissions and the service account spec",
            cause=cause,
        )
        self.reason = reason
        self.status = status


class ReconciliationError(OperatorError):
    """Error raised when reconciliation cannot be completed."""

    def __init__(
        self,
        message: str,
        retryable: bool = True,
        delay: int = 60,
        cause: Exception | None = None,
    ):
        super().__init__(
            message=message,
            category="reconciliation",
            retryable=retryable,
            delay=delay,
            user_action="Inspect operator logs and resource specification for issues",
            cause=cause,
        )


class OwnershipConflictError(OperatorError):
    """
    A managed link targets a service account owned by a different actor.

    Carries the service accounts synchronized before the conflict so callers
    can still report partial progress.
    """

    def __init__(
        self,
        service_account: str,
        owner: str,
        service_accounts: list[Any] | None = None,
        user_action: str | None = None,
    ):
        super().__init__(
            message=ERROR_OWNERSHIP_CONFLICT.format(service_account, owner),
            category="ownership",
            retryable=False,
            user_action=user_action
            or "Use a reference link or choose a different service account name",
        )
        self.service_account = service_account
        self.owner = owner
        self.service_accounts = service_accounts or []
