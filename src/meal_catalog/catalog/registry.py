# src/meal_catalog/catalog/registry.py
from __future__ import annotations

"""
registry.py

Purpose:
    Identifier Registry: guarantees that every canonical record of one run
    gets an id no other record of that run has.

    - Source ids are kept whenever they are still free.
    - Collisions (and missing ids) get a generated integer id from a counter
      seeded well above typical hand-numbered source ids.
    - Every reassignment of an existing source id is recorded on the report.

    Ids are compared by their string form, so 5 and "5" collide. The output
    JSON cannot tell them apart reliably once keyed in maps.
"""

from typing import TYPE_CHECKING, Any, List, Optional, Set

from meal_catalog.catalog.schema import IdReassignment
from meal_catalog.logging_utils import get_logger

if TYPE_CHECKING:
    from meal_catalog.catalog.report import ChangeReport

MODULE_PURPOSE = "Allocate run-unique meal identifiers and track reassignments"

logger = get_logger("registry")

DEFAULT_ID_SEED = 100000


def has_source_id(original_id: Any) -> bool:
    """True for a usable source id: non-blank string or a non-bool number."""
    if isinstance(original_id, bool):
        return False
    if isinstance(original_id, str):
        return bool(original_id.strip())
    return isinstance(original_id, (int, float))


class IdentifierRegistry:
    def __init__(self, seed: int = DEFAULT_ID_SEED, report: Optional["ChangeReport"] = None) -> None:
        self.next_id = seed
        self.report = report
        self._used: Set[str] = set()
        self._reassignments: List[IdReassignment] = []

    def is_used(self, value: Any) -> bool:
        return str(value) in self._used

    @property
    def reassignments(self) -> List[IdReassignment]:
        return list(self._reassignments)

    def __len__(self) -> int:
        return len(self._used)

    def allocate(self, original_id: Any = None) -> Any:
        """Return original_id if free, else a fresh generated id."""
        if has_source_id(original_id) and not self.is_used(original_id):
            self._used.add(str(original_id))
            return original_id

        while str(self.next_id) in self._used:
            self.next_id += 1
        new_id = self.next_id
        self._used.add(str(new_id))
        self.next_id += 1

        if has_source_id(original_id):
            event = IdReassignment(original=original_id, new=new_id)
            self._reassignments.append(event)
            if self.report is not None:
                self.report.record_reassignment(event)
            logger.debug(
                "Reassigned duplicate id %r -> %r",
                original_id,
                new_id,
                extra={
                    "invoking_func": "IdentifierRegistry.allocate",
                    "invoking_purpose": MODULE_PURPOSE,
                    "next_step": "Continue normalizing record with new id",
                    "resolution": "id_reassigned",
                },
            )
        return new_id
