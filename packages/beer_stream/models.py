"""Typed records decoded from the upstream catalogue."""

from dataclasses import dataclass
from typing import Any, Dict


@dataclass(frozen=True, slots=True)
class Beer:
    """Immutable beer record; equality is structural."""

    name: str
    tagline: str
    abv: float

    @classmethod
    def from_payload(cls, item: Any) -> "Beer":
        """
        Decode one element of a page response.

        Extra keys are ignored. Raises ValueError when the element is not an
        object or a required field is missing or mistyped.
        """
        if not isinstance(item, dict):
            raise ValueError(f"expected an object, got {type(item).__name__}")

        name = item.get("name")
        tagline = item.get("tagline")
        abv = item.get("abv")

        if not isinstance(name, str):
            raise ValueError("field 'name' must be a string")
        if not isinstance(tagline, str):
            raise ValueError("field 'tagline' must be a string")
        # bool is an int subclass; reject it explicitly
        if isinstance(abv, bool) or not isinstance(abv, (int, float)):
            raise ValueError("field 'abv' must be a number")

        return cls(name=name, tagline=tagline, abv=float(abv))

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "tagline": self.tagline, "abv": self.abv}
