"""
Ordered set of values encoded as a single comma-separated string.

Used to store the reference claims of a service account in one annotation,
e.g. ``"o1,o2,o3"``. Adding keeps the existing order and skips duplicates,
removing drops exactly the given value.
"""

SEPARATOR = ","


class CommaSeparated:
    """A comma-separated list of unique values."""

    def __init__(self, value: str | None = None):
        self._values: list[str] = []
        for item in (value or "").split(SEPARATOR):
            item = item.strip()
            if item and item not in self._values:
                self._values.append(item)

    def add(self, value: str) -> "CommaSeparated":
        """Append value unless it is already present."""
        if value and value not in self._values:
            self._values.append(value)
        return self

    def remove(self, value: str) -> "CommaSeparated":
        """Remove value, leaving the others in order."""
        if value in self._values:
            self._values.remove(value)
        return self

    def contains(self, value: str) -> bool:
        return value in self._values

    def values(self) -> list[str]:
        return list(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __contains__(self, value: object) -> bool:
        return value in self._values

    def __eq__(self, other: object) -> bool:
        if isinstance(other, CommaSeparated):
            return self._values == other._values
        return NotImplemented

    def __str__(self) -> str:
        return SEPARATOR.join(self._values)

    def __repr__(self) -> str:
        return f"CommaSeparated({str(self)!r})"
