"""
Equality of secrets that ignores data the control plane fills in.

The control plane injects ``ca.crt``, ``namespace`` and ``token`` into
service account token secrets. A stored secret compared to a freshly observed
one must not look different only because of those entries; every other field,
including ``immutable`` and any other data key, stays significant.
"""

from collections.abc import Callable, Iterable
from functools import lru_cache
from typing import Any, TypeAlias

from kubernetes import client

from ..constants import AUTOGENERATED_SECRET_DATA_KEYS

SecretComparator: TypeAlias = Callable[[client.V1Secret, client.V1Secret], bool]


@lru_cache(maxsize=1)
def _serializer() -> client.ApiClient:
    return client.ApiClient()


def _normalize(secret: client.V1Secret, ignored_data_keys: frozenset[str]) -> dict[str, Any]:
    serialized = _serializer().sanitize_for_serialization(secret) or {}

    data = {
        key: value
        for key, value in (serialized.get("data") or {}).items()
        if key not in ignored_data_keys
    }
    # An emptied data map is the same as no data at all
    if data:
        serialized["data"] = data
    else:
        serialized.pop("data", None)
    return serialized


def make_secret_comparator(
    ignored_data_keys: Iterable[str] = AUTOGENERATED_SECRET_DATA_KEYS,
) -> SecretComparator:
    """
    Build an equality predicate over two secrets.

    Args:
        ignored_data_keys: Data keys left out of the comparison

    Returns:
        Function returning True when the secrets are equal apart from the
        ignored data keys
    """
    ignored = frozenset(ignored_data_keys)

    def equal(a: client.V1Secret, b: client.V1Secret) -> bool:
        return _normalize(a, ignored) == _normalize(b, ignored)

    return equal


def secret_differences(
    a: client.V1Secret,
    b: client.V1Secret,
    ignored_data_keys: Iterable[str] = AUTOGENERATED_SECRET_DATA_KEYS,
) -> list[str]:
    """
    List the fields in which two secrets differ, for logging.

    Data entries are reported as ``data.<key>``; other fields by their
    top-level serialized name.
    """
    ignored = frozenset(ignored_data_keys)
    left = _normalize(a, ignored)
    right = _normalize(b, ignored)

    differences = []
    for field in sorted(set(left) | set(right)):
        if field == "data":
            left_data = left.get("data", {})
            right_data = right.get("data", {})
            differences.extend(
                f"data.{key}"
                for key in sorted(set(left_data) | set(right_data))
                if left_data.get(key) != right_data.get(key)
            )
        elif left.get(field) != right.get(field):
            differences.append(field)
    return differences


service_account_secret_equal = make_secret_comparator()
