"""Domain models for users, items, and the preferences linking them."""

import math
from dataclasses import dataclass, field


def _normalize_id(value: object, name: str) -> str:
    """Return a stripped string id, rejecting None and blanks."""
    if value is None:
        raise ValueError(f"{name} cannot be None")
    normalized = str(value).strip()
    if not normalized:
        raise ValueError(f"{name} cannot be empty")
    return normalized


@dataclass(frozen=True)
class Item:
    """Something a user can express a preference for."""

    id: str

    def __post_init__(self) -> None:
        object.__setattr__(self, "id", _normalize_id(self.id, "item id"))


@dataclass
class Preference:
    """A user's strength of preference for one item."""

    item: Item
    value: float
    user_id: str | None = None

    def __post_init__(self) -> None:
        """Validate the item and value; normalize the optional user id."""
        if not isinstance(self.item, Item):
            raise ValueError("item must be an Item")
        try:
            self.value = float(self.value)
        except (TypeError, ValueError) as exc:
            raise ValueError(f"value must be a number: {exc}") from exc
        if math.isnan(self.value):
            raise ValueError("value cannot be NaN")
        if self.user_id is not None:
            self.user_id = _normalize_id(self.user_id, "user_id")

    @property
    def item_id(self) -> str:
        return self.item.id


@dataclass
class User:
    """A user together with all of their preferences, in storage order."""

    id: str
    preferences: list[Preference] = field(default_factory=list)

    def __post_init__(self) -> None:
        """Normalize the id and validate preference entries."""
        self.id = _normalize_id(self.id, "user id")
        self.preferences = list(self.preferences)
        for pref in self.preferences:
            if not isinstance(pref, Preference):
                raise ValueError("preferences must contain Preference instances")

    @property
    def item_ids(self) -> list[str]:
        return [pref.item_id for pref in self.preferences]

    def get_preference_for(self, item_id: str) -> Preference | None:
        """Return this user's preference for item_id, or None."""
        for pref in self.preferences:
            if pref.item_id == item_id:
                return pref
        return None
