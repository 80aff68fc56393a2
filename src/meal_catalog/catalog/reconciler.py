from __future__ import annotations
"""
Catalog reconciler: main function called to turn a raw catalog into a
canonical one is CatalogReconciler.reconcile. Per raw region/diet bucket:

1. Map region key -> canonical region (unknown regions are dropped + counted)
2. Map diet key -> canonical diet (unknown diets collapse to Regular)
3. Classify the diet bucket once: FlatList | BucketedByMealType
4. Walk the bucket into (record, mealTypeHint) pairs, in input order
5. Per record: Option Flattener -> Record Normalizer -> diet violation check
6. Place the record under its (possibly demoted) diet and its meal type

Record states:
    Raw -> Flattened -> Normalized -> Accepted | Reclassified
There is no retry path; non-object records are dropped and counted.

Logging in loops:
a. Region/diet level lines are INFO, demotions and dropped regions WARNING.
b. Per-record lines are DEBUG so large catalogs do not flood the log.
"""

from typing import Any, Dict, Iterator, Optional, Tuple

from meal_catalog.catalog.flattener import flatten_options, has_options
from meal_catalog.catalog.normalizer import RecordNormalizer
from meal_catalog.catalog.registry import IdentifierRegistry
from meal_catalog.catalog.report import ChangeReport
from meal_catalog.catalog.schema import (
    BucketedByMealType,
    Catalog,
    CanonicalRecord,
    DietBucket,
    DietDemotion,
    FlatList,
    ReconcileResult,
)
from meal_catalog.catalog.violations import demote, judge
from meal_catalog.config import LAYOUT_BUCKETED, LAYOUT_FLAT, ReconcileConfig
from meal_catalog.logging_utils import get_logger
from meal_catalog.taxonomy.canonical import (
    CANONICAL_DIETS,
    CANONICAL_MEAL_TYPES,
    CANONICAL_REGIONS,
    DEFAULT_DIET,
    DEFAULT_MEAL_TYPE,
    META_KEY,
    map_diet_key,
    map_meal_type_key,
    map_region_key,
)

MODULE_PURPOSE = (
    "Catalog reconciliation that maps regions/diets, normalizes every meal "
    "record and demotes diet violations into the canonical catalog."
)

logger = get_logger("reconciler")


# ---------------------------------------------------------
# Diet bucket shape
# ---------------------------------------------------------
def classify_bucket(value: Any) -> DietBucket:
    """Decide once what shape a diet bucket (or nested meal-type bucket) has."""
    if isinstance(value, list):
        return FlatList(records=value)
    if isinstance(value, dict):
        return BucketedByMealType(
            buckets=[(key, classify_bucket(inner)) for key, inner in value.items()]
        )
    if value is not None:
        logger.warning(
            "Ignoring diet bucket of type %s (expected list or object)",
            type(value).__name__,
            extra={
                "invoking_func": "classify_bucket",
                "invoking_purpose": MODULE_PURPOSE,
                "next_step": "Treat bucket as empty",
                "resolution": "Fix the bucket in the source catalog",
            },
        )
    return FlatList(records=[])


def walk_bucket(bucket: DietBucket, hint: Optional[str] = None) -> Iterator[Tuple[Any, Optional[str]]]:
    """Yield (raw record, meal type hint) pairs in input order."""
    if isinstance(bucket, FlatList):
        for record in bucket.records:
            yield record, hint
    else:
        for key, inner in bucket.buckets:
            # Non-meal-type keys ("Options", "mains") keep the outer hint
            yield from walk_bucket(inner, map_meal_type_key(key) or hint)


def count_raw_records(value: Any) -> int:
    """Raw records in a diet bucket of any shape (before flattening)."""
    if isinstance(value, list):
        return len(value)
    if isinstance(value, dict):
        return sum(count_raw_records(v) for v in value.values())
    return 0


def empty_catalog(layout: str = LAYOUT_BUCKETED) -> Catalog:
    catalog: Catalog = {}
    for region in CANONICAL_REGIONS:
        catalog[region] = {}
        for diet in CANONICAL_DIETS:
            if layout == LAYOUT_FLAT:
                catalog[region][diet] = []
            else:
                catalog[region][diet] = {mt: [] for mt in CANONICAL_MEAL_TYPES}
    return catalog


# Class CatalogReconciler Started --->
class CatalogReconciler:
    def __init__(self, config: Optional[ReconcileConfig] = None) -> None:
        self.config = config or ReconcileConfig()

    # -----------------------------------------------------
    # Main entry
    # -----------------------------------------------------
    def reconcile(self, raw_catalog: Dict[str, Any]) -> ReconcileResult:
        """Raw catalog -> canonical catalog + finalized ChangeReport."""
        if not isinstance(raw_catalog, dict):
            raise TypeError(f"raw catalog must be a mapping, got {type(raw_catalog).__name__}")

        # Fresh state per run: repeated runs never share ids or events
        report = ChangeReport()
        registry = IdentifierRegistry(seed=self.config.id_seed, report=report)
        normalizer = RecordNormalizer(registry, report, sample_limit=self.config.sample_limit)
        catalog = empty_catalog(self.config.layout)

        region_keys = [k for k in raw_catalog if k != META_KEY]
        records_before = 0

        logger.info(
            "Starting reconciliation of %d raw regions (layout=%s)",
            len(region_keys),
            self.config.layout,
            extra={
                "invoking_func": "CatalogReconciler.reconcile",
                "invoking_purpose": MODULE_PURPOSE,
                "next_step": "Map region keys and walk diet buckets",
                "resolution": "",
            },
        )

        for original_region in region_keys:
            region_data = raw_catalog[original_region]
            raw_count = (
                sum(count_raw_records(v) for v in region_data.values())
                if isinstance(region_data, dict)
                else 0
            )
            records_before += raw_count

            region_key = map_region_key(original_region)
            if region_key is None:
                report.record_dropped_region(original_region, raw_count)
                logger.warning(
                    "Unknown region %r, skipping %d records",
                    original_region,
                    raw_count,
                    extra={
                        "invoking_func": "CatalogReconciler.reconcile",
                        "invoking_purpose": MODULE_PURPOSE,
                        "next_step": "Continue with next region",
                        "resolution": "Add the region to REGION_SYNONYMS if it should be kept",
                    },
                )
                continue
            if not isinstance(region_data, dict):
                logger.warning(
                    "Region %r is not an object of diets, skipping",
                    original_region,
                    extra={
                        "invoking_func": "CatalogReconciler.reconcile",
                        "invoking_purpose": MODULE_PURPOSE,
                        "next_step": "Continue with next region",
                        "resolution": "Fix the region value in the source catalog",
                    },
                )
                continue
            if original_region != region_key:
                report.record_region_mapping(original_region, region_key)

            for original_diet, diet_data in region_data.items():
                diet_key = self._map_diet(original_diet, report)
                self._reconcile_bucket(
                    classify_bucket(diet_data), catalog, region_key, diet_key, normalizer, report
                )

        report.finalize(catalog, records_before=records_before, regions_before=len(region_keys))

        logger.info(
            "Reconciliation finished: %d records before, %d after, %d ids reassigned, %d demotions",
            report.summary["totalBefore"],
            report.summary["totalAfter"],
            report.summary["duplicateIdsFixed"],
            len(report.demotions),
            extra={
                "invoking_func": "CatalogReconciler.reconcile",
                "invoking_purpose": MODULE_PURPOSE,
                "next_step": "Return catalog + report to caller",
                "resolution": "",
            },
        )
        return ReconcileResult(catalog=catalog, report=report, layout=self.config.layout)

    # -----------------------------------------------------
    # Helpers
    # -----------------------------------------------------
    def _map_diet(self, original_diet: str, report: ChangeReport) -> str:
        diet_key = map_diet_key(original_diet)
        if diet_key is None:
            diet_key = DEFAULT_DIET
            logger.info(
                "Moving unknown diet %r to %s",
                original_diet,
                DEFAULT_DIET,
                extra={
                    "invoking_func": "CatalogReconciler._map_diet",
                    "invoking_purpose": MODULE_PURPOSE,
                    "next_step": "Normalize bucket records under the default diet",
                    "resolution": "Add the diet to DIET_SYNONYMS if it should map elsewhere",
                },
            )
        if original_diet != diet_key:
            report.record_diet_mapping(original_diet, diet_key)
        return diet_key

    def _reconcile_bucket(
        self,
        bucket: DietBucket,
        catalog: Catalog,
        region_key: str,
        diet_key: str,
        normalizer: RecordNormalizer,
        report: ChangeReport,
    ) -> None:
        for raw, hint in walk_bucket(bucket):
            if not isinstance(raw, dict):
                report.record_rejected(raw)
                continue
            if has_options(raw):
                report.record_options_flattened()

            for candidate in flatten_options(raw):
                record = normalizer.normalize(candidate, region_key, diet_key, hint)
                if record is None:
                    continue
                report.record_normalized()
                record, target_diet = self._apply_diet_policy(record, region_key, diet_key, report)
                self._place(catalog, region_key, target_diet, record)

    def _apply_diet_policy(
        self,
        record: CanonicalRecord,
        region_key: str,
        diet_key: str,
        report: ChangeReport,
    ) -> Tuple[CanonicalRecord, str]:
        verdict = judge(record, diet_key)
        if not verdict.reclassified:
            return record, diet_key

        target = verdict.target_diet
        record = demote(record, target)
        report.record_demotion(
            DietDemotion(
                id=record["id"],
                title=record["title"],
                region=region_key,
                source_diet=diet_key,
                target_diet=target,
                offending=verdict.offending,
            )
        )
        logger.warning(
            "%s violation: id=%r title=%r region=%s contains [%s] -> moved to %s",
            diet_key,
            record["id"],
            record["title"],
            region_key,
            ", ".join(verdict.offending),
            target,
            extra={
                "invoking_func": "CatalogReconciler._apply_diet_policy",
                "invoking_purpose": MODULE_PURPOSE,
                "next_step": f"Place record under {region_key}/{target}",
                "resolution": "reclassified",
            },
        )
        return record, target

    def _place(self, catalog: Catalog, region_key: str, diet_key: str, record: CanonicalRecord) -> None:
        bucket = catalog[region_key][diet_key]
        if self.config.layout == LAYOUT_FLAT:
            bucket.append(record)
        else:
            bucket[record.get("mealType") or DEFAULT_MEAL_TYPE].append(record)

# Class CatalogReconciler Ends --->


def reconcile_catalog(raw_catalog: Dict[str, Any], config: Optional[ReconcileConfig] = None) -> ReconcileResult:
    """Convenience wrapper: one-shot reconcile with a fresh reconciler."""
    return CatalogReconciler(config).reconcile(raw_catalog)
