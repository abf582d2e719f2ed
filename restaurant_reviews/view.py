"""Named view slots that rendered fragments are inserted into."""
from __future__ import annotations

from typing import Dict, List, Optional

NEIGHBORHOODS_SELECT = "neighborhoods-select"
CUISINES_SELECT = "cuisines-select"
RESTAURANTS_LIST = "restaurants-list"
MAP = "map"

SLOT_NAMES = (NEIGHBORHOODS_SELECT, CUISINES_SELECT, RESTAURANTS_LIST, MAP)

# Markup a slot returns to when cleared, as shipped by the page shell.
_SHELL_DEFAULTS: Dict[str, List[str]] = {
    NEIGHBORHOODS_SELECT: ['<option value="all" selected>All Neighborhoods</option>'],
    CUISINES_SELECT: ['<option value="all" selected>All Cuisines</option>'],
}


class ViewSlots:
    def __init__(self) -> None:
        self._slots: Dict[str, List[str]] = {}
        for name in SLOT_NAMES:
            self.clear(name)

    def _check(self, slot: str) -> None:
        if slot not in SLOT_NAMES:
            raise KeyError(f"Unknown view slot {slot!r}")

    def append(self, slot: str, markup: str) -> None:
        self._check(slot)
        self._slots[slot].append(markup)

    def replace(self, slot: str, markup: str) -> None:
        self._check(slot)
        self._slots[slot] = [markup]

    def clear(self, slot: str) -> None:
        self._check(slot)
        self._slots[slot] = list(_SHELL_DEFAULTS.get(slot, []))

    def fragments(self, slot: str) -> List[str]:
        self._check(slot)
        return list(self._slots[slot])

    def html(self, slot: str, separator: Optional[str] = "\n") -> str:
        return (separator or "").join(self.fragments(slot))

    def snapshot(self) -> Dict[str, str]:
        return {name: self.html(name) for name in SLOT_NAMES}
