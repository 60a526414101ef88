"""PartType class describing what kind of thing a part is and where it fits."""

from typing import Dict, List, Optional


class PartType:
    """
    A kind of part.

    Main types (gear such as a bike) have no hooks. Spares list the types
    they can be attached to in hooks, and main names the gear type they
    ultimately belong to.
    """

    def __init__(
        self,
        id: int,
        name: str,
        main: int,
        hooks: Optional[List[int]] = None,
        order: int = 0,
        group: Optional[str] = None,
    ):
        self.id = id
        self.name = name
        self.main = main
        self.hooks = hooks or []
        self.order = order
        self.group = group

    @property
    def is_main(self) -> bool:
        return not self.hooks

    def subtypes(self, types: Dict[int, "PartType"]) -> List["PartType"]:
        """All types attachable to this one, directly or indirectly, self included."""
        remaining = sorted(types.values(), key=lambda t: (t.order, t.id))
        return _collect(self.id, remaining)


def _collect(type_id: int, remaining: List[PartType]) -> List[PartType]:
    found = [t for t in remaining if type_id in t.hooks or t.id == type_id]
    for t in found:
        remaining.remove(t)
    for t in list(found):
        found.extend(_collect(t.id, remaining))
    return found
