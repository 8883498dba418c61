"""
Ownership marker that records relations in labels and annotations.

Layout on the marked object:

- ``<prefix>/linked: "true"`` label while any relation exists, so marked
  objects can be found with a label selector
- ``<prefix>/managing-owner`` annotation holding the key of the single owner
- ``<prefix>/linked-by`` annotation holding the comma-separated reference
  claims in the order they were added

The marker only touches these keys; all other labels and annotations are left
as they are.
"""

import logging
from typing import Any

from ..constants import LINKED_LABEL_VALUE
from ..errors import OwnershipConflictError
from ..models.binding import ObjectKey
from ..settings import settings
from ..utils.commaseparated import CommaSeparated
from ..utils.kubernetes import object_key_of

logger = logging.getLogger(__name__)


def _labels(obj: Any) -> dict[str, str]:
    if obj.metadata.labels is None:
        obj.metadata.labels = {}
    return obj.metadata.labels


def _annotations(obj: Any) -> dict[str, str]:
    if obj.metadata.annotations is None:
        obj.metadata.annotations = {}
    return obj.metadata.annotations


class AnnotationObjectMarker:
    """Object marker acting on behalf of a single owner."""

    def __init__(
        self,
        owner: ObjectKey,
        linked_label: str | None = None,
        managing_owner_annotation: str | None = None,
        linked_by_annotation: str | None = None,
    ):
        """
        Initialize the marker.

        Args:
            owner: Key of the object this marker acts for; a managed mark held
                by any other key is considered foreign
            linked_label: Override of the linked label key
            managing_owner_annotation: Override of the owner annotation key
            linked_by_annotation: Override of the reference set annotation key
        """
        self.owner = owner
        self.linked_label = linked_label or settings.linked_label
        self.managing_owner_annotation = (
            managing_owner_annotation or settings.managing_owner_annotation
        )
        self.linked_by_annotation = linked_by_annotation or settings.linked_by_annotation

    async def mark_managed(self, key: ObjectKey, obj: Any) -> bool:
        annotations = _annotations(obj)
        current = annotations.get(self.managing_owner_annotation)
        if current and current != str(key):
            raise OwnershipConflictError(
                service_account=str(object_key_of(obj)), owner=str(key)
            )

        changed = current != str(key)
        annotations[self.managing_owner_annotation] = str(key)
        changed = self._sync_linked_label(obj) or changed
        if changed:
            logger.debug(f"Marked {object_key_of(obj)} as managed by {key}")
        return changed

    async def unmark_managed(self, key: ObjectKey, obj: Any) -> bool:
        annotations = obj.metadata.annotations or {}
        if annotations.get(self.managing_owner_annotation) != str(key):
            return False

        del annotations[self.managing_owner_annotation]
        self._sync_linked_label(obj)
        logger.debug(f"Removed managed mark of {key} from {object_key_of(obj)}")
        return True

    async def mark_referenced(self, key: ObjectKey, obj: Any) -> bool:
        annotations = _annotations(obj)
        claims = CommaSeparated(annotations.get(self.linked_by_annotation))

        changed = not claims.contains(str(key))
        if changed:
            annotations[self.linked_by_annotation] = str(claims.add(str(key)))
            logger.debug(f"Marked {object_key_of(obj)} as referenced by {key}")
        return self._sync_linked_label(obj) or changed

    async def unmark_referenced(self, key: ObjectKey, obj: Any) -> bool:
        annotations = obj.metadata.annotations or {}
        claims = CommaSeparated(annotations.get(self.linked_by_annotation))
        if not claims.contains(str(key)):
            return False

        claims.remove(str(key))
        if len(claims):
            annotations[self.linked_by_annotation] = str(claims)
        else:
            del annotations[self.linked_by_annotation]
        self._sync_linked_label(obj)
        logger.debug(f"Removed reference of {key} from {object_key_of(obj)}")
        return True

    async def is_managed_by_other(self, obj: Any) -> bool:
        annotations = obj.metadata.annotations or {}
        current = annotations.get(self.managing_owner_annotation)
        return bool(current) and current != str(self.owner)

    async def is_referenced_by(self, key: ObjectKey, obj: Any) -> bool:
        annotations = obj.metadata.annotations or {}
        return CommaSeparated(annotations.get(self.linked_by_annotation)).contains(
            str(key)
        )

    def _sync_linked_label(self, obj: Any) -> bool:
        """Keep the linked label in line with the relations present."""
        annotations = obj.metadata.annotations or {}
        linked = bool(annotations.get(self.managing_owner_annotation)) or bool(
            annotations.get(self.linked_by_annotation)
        )

        if linked:
            labels = _labels(obj)
            if labels.get(self.linked_label) == LINKED_LABEL_VALUE:
                return False
            labels[self.linked_label] = LINKED_LABEL_VALUE
            return True

        if obj.metadata.labels and self.linked_label in obj.metadata.labels:
            del obj.metadata.labels[self.linked_label]
            return True
        return False
