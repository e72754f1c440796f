"""State container threaded through agent hops."""

import copy
from typing import Any, Iterator


class State:
    """Mutable accumulator of data fields and routing metadata.

    Fields hold arbitrary values, metadata holds strings. Merging is
    last-write-wins on key collision for both.
    """

    def __init__(
        self,
        fields: dict[str, Any] | None = None,
        metadata: dict[str, str] | None = None,
    ):
        self._fields: dict[str, Any] = dict(fields or {})
        self._metadata: dict[str, str] = dict(metadata or {})

    # Fields
    def get(self, key: str, default: Any = None) -> Any:
        return self._fields.get(key, default)

    def set(self, key: str, value: Any) -> None:
        self._fields[key] = value

    def delete(self, key: str) -> None:
        self._fields.pop(key, None)

    def keys(self) -> list[str]:
        return list(self._fields)

    def __contains__(self, key: object) -> bool:
        return key in self._fields

    def __iter__(self) -> Iterator[str]:
        return iter(self._fields)

    # Metadata
    def get_meta(self, key: str, default: str | None = None) -> str | None:
        return self._metadata.get(key, default)

    def set_meta(self, key: str, value: str) -> None:
        self._metadata[key] = str(value)

    def delete_meta(self, key: str) -> None:
        self._metadata.pop(key, None)

    def meta_keys(self) -> list[str]:
        return list(self._metadata)

    @property
    def fields(self) -> dict[str, Any]:
        """Copy of the data fields."""
        return dict(self._fields)

    @property
    def metadata(self) -> dict[str, str]:
        """Copy of the metadata."""
        return dict(self._metadata)

    def merge(self, other: "State", exclude_meta: tuple[str, ...] = ()) -> None:
        """Merge another state into this one (last write wins)."""
        self._fields.update(other._fields)
        for key, value in other._metadata.items():
            if key not in exclude_meta:
                self._metadata[key] = value

    def clone(self) -> "State":
        """Deep copy, so agents can read prior outputs without sharing them."""
        return State(copy.deepcopy(self._fields), dict(self._metadata))

    def to_dict(self) -> dict[str, Any]:
        return {"fields": dict(self._fields), "metadata": dict(self._metadata)}

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, State):
            return NotImplemented
        return self._fields == other._fields and self._metadata == other._metadata

    def __repr__(self) -> str:
        return f"State(fields={self._fields!r}, metadata={self._metadata!r})"
