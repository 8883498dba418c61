"""
Secret Binding Operator - links secrets to Kubernetes service accounts.

This package provides the synchronization engine used by the operator to:
- Create and own ("managed") service accounts
- Attach to pre-existing ("referenced") service accounts shared by many callers
- Reject takeovers of service accounts owned by another actor
- Link and unlink secrets on a service account's credential lists
"""

__version__ = "0.1.0"
