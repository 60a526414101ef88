"""Part class for individually tracked equipment."""

from datetime import datetime
from typing import Dict, Optional

from .part_type import PartType


class Part:
    """A physical component or a whole gear, with its cumulative usage ledger id."""

    def __init__(
        self,
        id: int,
        what: int,
        purchase: datetime,
        usage: str,
        owner: Optional[int] = None,
        name: str = "",
        vendor: str = "",
        model: str = "",
        last_used: Optional[datetime] = None,
        disposed_at: Optional[datetime] = None,
    ):
        self.id = id
        self.what = what
        self.purchase = purchase
        self.usage = usage
        self.owner = owner
        self.name = name or ""
        self.vendor = vendor or ""
        self.model = model or ""
        self.last_used = last_used or purchase
        self.disposed_at = disposed_at

    @property
    def display_name(self) -> str:
        """Name, falling back to vendor/model, then the id."""
        if self.name:
            return self.name
        base = f"{self.vendor} {self.model}".strip()
        return base or f"#{self.id}"

    @property
    def is_disposed(self) -> bool:
        return self.disposed_at is not None

    def is_gear(self, types: Dict[int, PartType]) -> bool:
        """True when the part is itself a main gear (e.g. a bike)."""
        part_type = types.get(self.what)
        return part_type is not None and part_type.main == self.what
