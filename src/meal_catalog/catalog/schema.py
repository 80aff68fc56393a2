# src/meal_catalog/catalog/schema.py
from __future__ import annotations

"""
schema.py

Purpose:
    Shared dataclasses for the catalog reconciliation engine.

    These are the "internal contracts" between:
      - the reconciler walk (diet buckets of unknown shape),
      - the record normalizer (one raw record -> one canonical record),
      - the change report (audit events).

    Nothing in this module does I/O.

Objects:
      - FlatList / BucketedByMealType (tagged variant over a diet bucket)
      - IdReassignment, UnparseableEvent, TitleSynthesis, DietDemotion,
        RecordSample (change report events)
      - ReconcileResult (output of one reconcile run)

Records themselves stay plain dicts: they come from JSON and go back to JSON,
and the canonical key names (mealType, serving_size) are part of the contract.
"""

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Tuple, Union

if TYPE_CHECKING:
    from meal_catalog.catalog.report import ChangeReport

RawRecord = Dict[str, Any]
CanonicalRecord = Dict[str, Any]
# region -> diet -> mealType -> [records]  (or region -> diet -> [records] when flat)
Catalog = Dict[str, Dict[str, Any]]


# ---------------------------------------------------------------------
# Diet bucket variants
# ---------------------------------------------------------------------
@dataclass
class FlatList:
    """Diet bucket given as a plain list of records."""

    records: List[Any]


@dataclass
class BucketedByMealType:
    """Diet bucket keyed by meal type. Values are nested buckets."""

    buckets: List[Tuple[str, "DietBucket"]]


DietBucket = Union[FlatList, BucketedByMealType]


# ---------------------------------------------------------------------
# Change report events
# ---------------------------------------------------------------------
@dataclass(frozen=True)
class IdReassignment:
    original: Any
    new: Any


@dataclass(frozen=True)
class UnparseableEvent:
    id: Any
    field: str
    value: Any


@dataclass(frozen=True)
class TitleSynthesis:
    id: Any
    rule: str       # generated_from_foods | generated_from_ingredients | fallback_generated
    title: str


@dataclass(frozen=True)
class DietDemotion:
    id: Any
    title: str
    region: str
    source_diet: str
    target_diet: str
    offending: Tuple[str, ...]


@dataclass(frozen=True)
class RecordSample:
    before: RawRecord
    after: CanonicalRecord


@dataclass
class ReconcileResult:
    """Output of CatalogReconciler.reconcile()."""

    catalog: Catalog
    report: "ChangeReport"
    layout: str

    # Filled by the pipeline when writing, so reconcile() itself stays deterministic
    extra: Dict[str, Any] = field(default_factory=dict)
    source_path: Optional[str] = None
