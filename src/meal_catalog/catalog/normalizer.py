# src/meal_catalog/catalog/normalizer.py
from __future__ import annotations

"""
normalizer.py

Purpose:
    Record Normalizer: compose the field coercers and the Identifier Registry
    to turn one raw record into one canonical record.

Canonical record keys (in output order):
    id, title, mealType, serving_size?, calories, protein, carbs, fat, fiber,
    foods?, ingredients?, diets, tags?, region

Anything else on the raw record (preparation notes, options, typos) is dropped.
"""

import copy
from typing import TYPE_CHECKING, Any, Dict, Optional

from meal_catalog.catalog.registry import IdentifierRegistry, has_source_id
from meal_catalog.catalog.schema import CanonicalRecord
from meal_catalog.cleaning.coercers import (
    NUTRIENT_FIELDS,
    as_tag_list,
    coerce_number,
    generate_title,
    infer_meal_type,
    pick_nutrient,
)
from meal_catalog.logging_utils import get_logger

if TYPE_CHECKING:
    from meal_catalog.catalog.report import ChangeReport

MODULE_PURPOSE = "Turn one raw meal record into one canonical record"

logger = get_logger("normalizer")


def _is_present(value: Any) -> bool:
    """Optional fields are copied when given; empty lists count, null and "" do not."""
    return value is not None and not (isinstance(value, str) and value == "")


def merge_diets(diets: Any, diet_key: str) -> list:
    """Input diets with diet_key appended if missing; [diet_key] if not a list."""
    if not isinstance(diets, list):
        return [diet_key]
    merged = list(diets)
    if diet_key not in merged:
        merged.append(diet_key)
    return merged


class RecordNormalizer:
    def __init__(
        self,
        registry: IdentifierRegistry,
        report: "ChangeReport",
        sample_limit: int = 10,
    ) -> None:
        self.registry = registry
        self.report = report
        self.sample_limit = sample_limit

    def normalize(
        self,
        raw: Any,
        region_key: str,
        diet_key: str,
        meal_type_hint: Optional[str] = None,
    ) -> Optional[CanonicalRecord]:
        """Return the canonical record for `raw`, or None when it is not a mapping."""
        if not isinstance(raw, dict):
            self.report.record_rejected(raw)
            return None

        dropped = [k for k in raw if "preparation" in str(k).lower()]
        if dropped:
            self.report.record_extra_fields_dropped(len(dropped))

        original_id = raw.get("id")
        record_id = self.registry.allocate(original_id)
        fallback_id = original_id if has_source_id(original_id) else record_id

        normalized: Dict[str, Any] = {
            "id": record_id,
            "title": generate_title(raw, region_key, diet_key, fallback_id, report=self.report),
            "mealType": infer_meal_type(
                raw.get("mealType") or meal_type_hint,
                raw.get("title") or "",
                raw.get("tags"),
            ),
        }

        if _is_present(raw.get("serving_size")):
            normalized["serving_size"] = str(raw["serving_size"])

        # Each nutrient on its own: one bad field never blocks the others
        for field in NUTRIENT_FIELDS:
            normalized[field] = coerce_number(
                pick_nutrient(raw, field),
                field=field,
                record_id=record_id,
                report=self.report,
            )

        if _is_present(raw.get("foods")):
            normalized["foods"] = copy.deepcopy(raw["foods"])
        if _is_present(raw.get("ingredients")):
            normalized["ingredients"] = str(raw["ingredients"])

        normalized["diets"] = merge_diets(raw.get("diets"), diet_key)

        if _is_present(raw.get("tags")):
            normalized["tags"] = as_tag_list(raw["tags"])

        normalized["region"] = region_key

        self.report.record_sample(raw, normalized, limit=self.sample_limit)

        logger.debug(
            "Normalized record id=%r title=%r mealType=%s (%s/%s)",
            record_id,
            normalized["title"],
            normalized["mealType"],
            region_key,
            diet_key,
            extra={
                "invoking_func": "RecordNormalizer.normalize",
                "invoking_purpose": MODULE_PURPOSE,
                "next_step": "Diet violation check + placement",
                "resolution": "",
            },
        )
        return normalized
