# src/meal_catalog/catalog/violations.py
from __future__ import annotations

"""
violations.py

Purpose:
    Diet-violation check for normalized records.

    1. Build the searchable text of a record (title, ingredients, food names, tags).
    2. Find the keywords of the record's assigned diet that occur in it
       (case-insensitive substring match, so "eggplant" does hit "egg").
    3. Look the worst violation category up in RECLASSIFICATION_POLICY to get
       the demotion target:

           Vegan      + dairy/egg only            -> Vegetarian
           Vegan      + gelatin, honey or flesh   -> Regular
           Vegetarian + any flesh term            -> Regular

    Diets without a keyword set (Keto, Regular, ...) are never checked.
"""

from dataclasses import dataclass
from typing import List, Optional, Tuple

from meal_catalog.catalog.schema import CanonicalRecord
from meal_catalog.cleaning.coercers import food_names
from meal_catalog.taxonomy.canonical import (
    CATEGORY_SEVERITY,
    RECLASSIFICATION_POLICY,
    TERM_CATEGORY,
    VIOLATION_KEYWORDS,
)


@dataclass(frozen=True)
class Verdict:
    offending: Tuple[str, ...]
    category: Optional[str]
    target_diet: Optional[str]      # None: stays where it is

    @property
    def reclassified(self) -> bool:
        return self.target_diet is not None


def searchable_text(record: CanonicalRecord) -> str:
    parts: List[str] = [str(record.get("title") or ""), str(record.get("ingredients") or "")]
    parts.extend(food_names(record.get("foods")))
    tags = record.get("tags")
    if isinstance(tags, list):
        parts.extend(str(t) for t in tags if t is not None)
    elif tags:
        parts.append(str(tags))
    return " ".join(parts).lower()


def find_violations(record: CanonicalRecord, diet: str) -> List[str]:
    """Keywords of `diet` found in the record, in keyword-table order."""
    keywords = VIOLATION_KEYWORDS.get(diet)
    if not keywords:
        return []
    text = searchable_text(record)
    return [k for k in keywords if k in text]


def worst_category(terms: List[str]) -> Optional[str]:
    present = {TERM_CATEGORY[t] for t in terms if t in TERM_CATEGORY}
    for category in CATEGORY_SEVERITY:
        if category in present:
            return category
    return None


def judge(record: CanonicalRecord, diet: str) -> Verdict:
    offending = find_violations(record, diet)
    if not offending:
        return Verdict(offending=(), category=None, target_diet=None)
    category = worst_category(offending)
    target = RECLASSIFICATION_POLICY.get((diet, category)) if category else None
    return Verdict(offending=tuple(offending), category=category, target_diet=target)


def demote(record: CanonicalRecord, target_diet: str) -> CanonicalRecord:
    """Same record with target_diet moved to the front of `diets`."""
    others = [d for d in record.get("diets") or [] if d != target_diet]
    demoted = dict(record)
    demoted["diets"] = [target_diet] + others
    return demoted
