"""
Data types for the item collection.

Items are schema-free: a name, an optional upstream id, and a bag of
named scalar properties. Property names compare case-insensitively;
the first spelling seen is kept for display.
"""

import json
import uuid
from dataclasses import dataclass, field
from typing import Any, Iterator, Optional, Union


# Tagged scalar value. None is the absence marker and is skipped by
# indexing and value search.
PropertyValue = Union[str, int, float, bool, None]

_SCALAR_TYPES = (str, int, float, bool)

LOCAL_ID_PREFIX = "local-"


def new_local_id() -> str:
    """Id for an item created here and not yet stored upstream."""
    return f"{LOCAL_ID_PREFIX}{uuid.uuid4().hex[:8]}"


def coerce_value(value: Any) -> PropertyValue:
    """Coerce an upstream JSON value to a PropertyValue.

    Scalars pass through. Lists and nested objects become their compact
    JSON text so that comparisons stay on plain strings.
    """
    if value is None or isinstance(value, _SCALAR_TYPES):
        return value
    return json.dumps(value, ensure_ascii=False, separators=(",", ":"))


def value_text(value: PropertyValue) -> Optional[str]:
    """Text form used for display and value matching.

    Booleans use their JSON spelling so ``true`` matches what the
    upstream payload said.
    """
    if value is None:
        return None
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def name_contains(name: str, fragment: str) -> bool:
    """Case-insensitive substring test for property names."""
    return fragment.casefold() in name.casefold()


def text_equals(value: PropertyValue, target: str) -> bool:
    """Case-insensitive exact comparison of a value's text with target."""
    text = value_text(value)
    if text is None:
        return False
    return text.casefold() == target.casefold()


@dataclass
class Item:
    """
    A named record with a dynamic property bag.

    Attributes:
        name: Display name, not required to be unique
        id: Upstream identifier; None for items created locally and
            not yet assigned one
        properties: Property name -> value. Use set_property() to keep
            names unique under case-insensitive comparison.
        pending: True for locally created items not yet seen upstream
    """
    name: str
    id: Optional[str] = None
    properties: dict[str, PropertyValue] = field(default_factory=dict)
    pending: bool = False

    def __post_init__(self) -> None:
        # Collapse names that differ only by case; first spelling wins
        raw = self.properties
        self.properties = {}
        for key, value in raw.items():
            self.set_property(key, value)

    def _existing_key(self, name: str) -> Optional[str]:
        folded = name.casefold()
        for key in self.properties:
            if key.casefold() == folded:
                return key
        return None

    def set_property(self, name: str, value: Any) -> None:
        """Set a property, replacing any value stored under a case variant of name."""
        key = self._existing_key(name) or name
        self.properties[key] = coerce_value(value)

    def get_property(self, name: str) -> PropertyValue:
        """Case-insensitive property lookup. Returns None if absent."""
        key = self._existing_key(name)
        return self.properties.get(key) if key is not None else None

    def non_null_properties(self) -> Iterator[tuple[str, PropertyValue]]:
        """Iterate (name, value) pairs, skipping absent values."""
        for key, value in self.properties.items():
            if value is not None:
                yield key, value

    def to_dict(self) -> dict:
        """Serialize to the upstream wire shape."""
        return {
            "id": self.id,
            "name": self.name,
            "data": dict(self.properties) if self.properties else None,
        }

    @classmethod
    def from_dict(cls, d: dict, *, pending: bool = False) -> "Item":
        """Deserialize from the upstream wire shape.

        Raises:
            ValueError: If the payload is not an object or lacks a name
        """
        if not isinstance(d, dict):
            raise ValueError(f"Item payload must be an object, got {type(d).__name__}")
        name = d.get("name")
        if not isinstance(name, str):
            raise ValueError(f"Item payload has no name: {d!r}")
        data = d.get("data")
        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ValueError(f"Item data must be an object: {data!r}")
        raw_id = d.get("id")
        return cls(
            name=name,
            id=str(raw_id) if raw_id is not None else None,
            properties=dict(data),
            pending=pending,
        )

    def __str__(self) -> str:
        id_str = self.id if self.id is not None else "(unsynced)"
        return f"{id_str}: {self.name}"


@dataclass(frozen=True)
class PropertyMatch:
    """A search hit: the item and the property that matched."""
    item: Item
    name: str
    value: PropertyValue

    @property
    def text(self) -> Optional[str]:
        return value_text(self.value)


@dataclass(frozen=True)
class RefreshResult:
    """Outcome of one completed refresh cycle."""
    remote_count: int
    pending_count: int
    property_count: int
    elapsed: float

    @property
    def total(self) -> int:
        return self.remote_count + self.pending_count
