# src/meal_catalog/catalog/report.py
from __future__ import annotations

"""
report.py

Purpose:
    ChangeReport accumulates everything one reconcile run changed, so the
    output catalog can be audited against its input:

      - id reassignments (original -> new)
      - region / diet key remaps, dropped regions
      - diet demotions with their offending terms
      - unparseable nutrient values (coerced to 0)
      - synthesized titles and the rule that produced them
      - a bounded sample of before/after record pairs
      - counters + the summary block written by finalize()

    After finalize() the report is frozen; record_* calls raise RuntimeError.

Rendering:
    to_meta()          -> the "__meta__" block of the output catalog
    to_audit_report()  -> the separate, more detailed audit document

Catalog helpers:
    iter_catalog_records(), summarize_catalog() (pandas), validate_catalog()
"""

import copy
from collections import Counter, OrderedDict
from typing import Any, Dict, Iterator, List, Optional, Tuple

import pandas as pd

from meal_catalog.catalog.schema import (
    Catalog,
    CanonicalRecord,
    DietDemotion,
    IdReassignment,
    RecordSample,
    TitleSynthesis,
    UnparseableEvent,
)
from meal_catalog.taxonomy.canonical import (
    CANONICAL_DIETS,
    CANONICAL_MEAL_TYPES,
    CANONICAL_REGIONS,
    META_KEY,
)

TOOL_VERSION = "1.0.0"


class ChangeReport:
    def __init__(self) -> None:
        self.id_reassignments: List[IdReassignment] = []
        self.region_mapping: Dict[str, str] = {}
        self.diet_mapping: Dict[str, str] = {}
        self.dropped_regions: Dict[str, int] = {}
        self.demotions: List[DietDemotion] = []
        self.unparseable: List[UnparseableEvent] = []
        self.title_events: List[TitleSynthesis] = []
        self.samples: List[RecordSample] = []
        self.counters: Counter = Counter()
        self.summary: Dict[str, Any] = {}
        self._frozen = False

    # -----------------------------------------------------
    # Recording (used during the run)
    # -----------------------------------------------------
    @property
    def frozen(self) -> bool:
        return self._frozen

    def _check_open(self) -> None:
        if self._frozen:
            raise RuntimeError("ChangeReport is finalized and can no longer be modified")

    def record_reassignment(self, event: IdReassignment) -> None:
        self._check_open()
        self.id_reassignments.append(event)

    def record_region_mapping(self, original: str, mapped: str) -> None:
        self._check_open()
        self.region_mapping[original] = mapped

    def record_diet_mapping(self, original: str, mapped: str) -> None:
        self._check_open()
        self.diet_mapping[original] = mapped

    def record_dropped_region(self, original: str, raw_count: int) -> None:
        self._check_open()
        self.dropped_regions[original] = self.dropped_regions.get(original, 0) + raw_count

    def record_demotion(self, event: DietDemotion) -> None:
        self._check_open()
        self.demotions.append(event)

    def record_unparseable(self, record_id: Any, field: str, value: Any) -> None:
        self._check_open()
        self.unparseable.append(UnparseableEvent(id=record_id, field=field, value=value))

    def record_title(self, record_id: Any, rule: str, title: str) -> None:
        self._check_open()
        self.title_events.append(TitleSynthesis(id=record_id, rule=rule, title=title))

    def record_sample(self, before: Any, after: CanonicalRecord, *, limit: int) -> None:
        self._check_open()
        if len(self.samples) < limit:
            self.samples.append(RecordSample(before=copy.deepcopy(before), after=copy.deepcopy(after)))

    def record_rejected(self, raw: Any) -> None:
        self._check_open()
        self.counters["records_rejected"] += 1

    def record_extra_fields_dropped(self, count: int) -> None:
        self._check_open()
        self.counters["preparation_fields_removed"] += count

    def record_options_flattened(self) -> None:
        self._check_open()
        self.counters["options_flattened"] += 1

    def record_normalized(self) -> None:
        self._check_open()
        self.counters["records_normalized"] += 1

    # -----------------------------------------------------
    # Completion
    # -----------------------------------------------------
    def demotions_from(self, diet: str) -> List[DietDemotion]:
        return [d for d in self.demotions if d.source_diet == diet]

    def finalize(self, catalog: Catalog, *, records_before: int, regions_before: int) -> Dict[str, Any]:
        """Write the summary block and freeze the report."""
        self._check_open()
        counts = summarize_catalog(catalog)
        records_after = sum(
            n for diets in counts["by_region_diet"].values() for n in diets.values()
        )
        self.summary = {
            "totalBefore": records_before,
            "totalNormalized": self.counters["records_normalized"],
            "totalAfter": records_after,
            "totalRegionsBefore": regions_before,
            "totalRegionsAfter": len([k for k in catalog if k != META_KEY]),
            "recordsRejected": self.counters["records_rejected"],
            "recordsDroppedUnknownRegion": sum(self.dropped_regions.values()),
            "droppedRegions": dict(self.dropped_regions),
            "duplicateIdsFixed": len(self.id_reassignments),
            "titlesGenerated": len(self.title_events),
            "optionsFlattened": self.counters["options_flattened"],
            "preparationFieldsRemoved": self.counters["preparation_fields_removed"],
            "unparseableNutrients": len(self.unparseable),
            "veganDemotions": len(self.demotions_from("Vegan")),
            "vegetarianDemotions": len(self.demotions_from("Vegetarian")),
            "recordsByRegionDiet": counts["by_region_diet"],
            "recordsByMealType": counts["by_meal_type"],
        }
        self._frozen = True
        return self.summary

    # -----------------------------------------------------
    # Rendering
    # -----------------------------------------------------
    def changes(self) -> List[str]:
        """Human-readable change log; zero-count lines are left out."""
        lines = [
            (self.counters["records_normalized"], "Processed {n} meals"),
            (len(self.id_reassignments), "Reassigned {n} duplicate IDs"),
            (len(self.title_events), "Generated {n} missing titles"),
            (len(self.region_mapping), "Mapped {n} regions"),
            (len(self.diet_mapping), "Mapped {n} diets"),
            (len(self.dropped_regions), "Dropped {n} unknown regions"),
            (self.counters["preparation_fields_removed"], "Removed {n} preparation fields"),
            (self.counters["options_flattened"], "Flattened {n} options arrays"),
            (len(self.unparseable), "Coerced {n} unparseable nutrient values to 0"),
            (len(self.demotions_from("Vegan")), "Moved {n} meals from Vegan"),
            (len(self.demotions_from("Vegetarian")), "Moved {n} meals from Vegetarian"),
            (self.counters["records_rejected"], "Rejected {n} non-object records"),
        ]
        return [template.format(n=n) for n, template in lines if n]

    def reassignment_map(self) -> Dict[str, List[Any]]:
        """original id -> new ids in allocation order (one source id can collide repeatedly)."""
        mapping: "OrderedDict[str, List[Any]]" = OrderedDict()
        for event in self.id_reassignments:
            mapping.setdefault(str(event.original), []).append(event.new)
        return dict(mapping)

    @staticmethod
    def _demotion_rows(events: List[DietDemotion], limit: int) -> List[Dict[str, Any]]:
        return [
            {
                "id": d.id,
                "title": d.title,
                "region": d.region,
                "offending": list(d.offending),
                "movedTo": d.target_diet,
            }
            for d in events[:limit]
        ]

    def to_meta(self, violation_limit: int = 20) -> Dict[str, Any]:
        return {
            "changes": self.changes(),
            "id_reassignments": self.reassignment_map(),
            "region_mapping": dict(self.region_mapping),
            "diet_mapping": dict(self.diet_mapping),
            "vegan_violations": self._demotion_rows(self.demotions_from("Vegan"), violation_limit),
            "vegetarian_violations": self._demotion_rows(self.demotions_from("Vegetarian"), violation_limit),
            "summary": copy.deepcopy(self.summary),
        }

    def to_audit_report(
        self,
        unparseable_limit: int = 50,
        validation: Optional[Dict[str, bool]] = None,
    ) -> Dict[str, Any]:
        report = {
            "summary": copy.deepcopy(self.summary),
            "changes_applied": self.changes(),
            "id_reassignments_count": len(self.id_reassignments),
            "id_reassignments": self.reassignment_map(),
            "region_mappings": dict(self.region_mapping),
            "diet_mappings": dict(self.diet_mapping),
            "dropped_regions": dict(self.dropped_regions),
            "vegan_violations_moved": len(self.demotions_from("Vegan")),
            "vegetarian_violations_moved": len(self.demotions_from("Vegetarian")),
            "unparseable_nutrients": [
                {"id": e.id, "field": e.field, "value": e.value}
                for e in self.unparseable[:unparseable_limit]
            ],
            "title_generation_rules": [
                {"id": e.id, "rule": e.rule, "title": e.title} for e in self.title_events
            ],
            "before_after_samples": [
                {"before": s.before, "after": s.after} for s in self.samples
            ],
        }
        if validation is not None:
            report["validation"] = dict(validation)
            report["validation_passed"] = all(validation.values())
        return report


# ---------------------------------------------------------------------
# Catalog helpers
# ---------------------------------------------------------------------
def iter_catalog_records(catalog: Catalog) -> Iterator[Tuple[str, str, Optional[str], CanonicalRecord]]:
    """Yield (region, diet, mealType bucket or None, record) for both layouts."""
    for region, diets in catalog.items():
        if region == META_KEY or not isinstance(diets, dict):
            continue
        for diet, bucket in diets.items():
            if isinstance(bucket, list):
                for record in bucket:
                    yield region, diet, None, record
            elif isinstance(bucket, dict):
                for meal_type, records in bucket.items():
                    for record in records or []:
                        yield region, diet, meal_type, record


def summarize_catalog(catalog: Catalog) -> Dict[str, Dict[str, Any]]:
    """Record counts per region/diet and per meal type, as plain ints."""
    rows = [
        (region, diet, meal_type or (record.get("mealType") if isinstance(record, dict) else None))
        for region, diet, meal_type, record in iter_catalog_records(catalog)
    ]
    df = pd.DataFrame(rows, columns=["region", "diet", "meal_type"])

    by_region_diet: Dict[str, Dict[str, int]] = {}
    by_meal_type: Dict[str, int] = {}
    if not df.empty:
        for (region, diet), n in df.groupby(["region", "diet"], sort=False).size().items():
            by_region_diet.setdefault(region, {})[diet] = int(n)
        for meal_type, n in df.groupby("meal_type", sort=False).size().items():
            by_meal_type[str(meal_type)] = int(n)

    return {"by_region_diet": by_region_diet, "by_meal_type": by_meal_type}


def validate_catalog(catalog: Catalog) -> Dict[str, bool]:
    """Post-run sanity checks over an output catalog."""
    regions = [k for k in catalog if k != META_KEY]
    checks = {
        "all_regions_canonical": all(r in CANONICAL_REGIONS for r in regions),
        "all_diets_canonical": all(
            d in CANONICAL_DIETS for r in regions for d in (catalog[r] or {})
        ),
        "all_meal_types_canonical": True,
        "no_preparation_fields": True,
        "no_options_fields": True,
        "ids_unique": True,
        "diet_invariant_holds": True,
    }

    seen = set()
    for region, diet, bucket_meal_type, record in iter_catalog_records(catalog):
        meal_type = record.get("mealType")
        if meal_type not in CANONICAL_MEAL_TYPES or (bucket_meal_type and bucket_meal_type != meal_type):
            checks["all_meal_types_canonical"] = False
        if any("preparation" in str(k).lower() for k in record):
            checks["no_preparation_fields"] = False
        if "options" in record:
            checks["no_options_fields"] = False
        key = str(record.get("id"))
        if key in seen:
            checks["ids_unique"] = False
        seen.add(key)
        if diet not in (record.get("diets") or []):
            checks["diet_invariant_holds"] = False
    return checks
