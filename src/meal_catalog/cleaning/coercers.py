# src/meal_catalog/cleaning/coercers.py
from __future__ import annotations

"""
coercers.py

Purpose:
    Deterministic field coercers for raw meal records.

    Turns arbitrary scalar/array input into canonical primitives:
      - nutrient values -> numbers
      - explicit or missing meal types -> one of the canonical meal types
      - missing / placeholder titles -> a generated title

    No shared state. Functions that can fail softly (numbers, titles) take an
    optional `report` and record what happened there for auditability.
"""

import math
import re
from typing import TYPE_CHECKING, Any, List, Optional, Sequence, Union

from meal_catalog.taxonomy.canonical import (
    CANONICAL_MEAL_TYPES,
    DEFAULT_MEAL_TYPE,
    MEAL_TYPE_KEYWORDS,
    MEAL_TYPE_SYNONYMS,
)

if TYPE_CHECKING:
    from meal_catalog.catalog.report import ChangeReport

Number = Union[int, float]

NUTRIENT_FIELDS = ("calories", "protein", "carbs", "fat", "fiber")

# Used only when the canonical key is absent; first alias present wins.
NUTRIENT_ALIASES = {
    "calories": ("kcal", "calories_kcal"),
    "protein": ("prot",),
    "carbs": ("carbohydrates", "carb"),
    "fat": ("fats",),
    "fiber": ("fib",),
}

_NUMERIC_PREFIX = re.compile(r"^-?(?:\d+(?:\.\d*)?|\.\d+)")
_NOT_NUMERIC = re.compile(r"[^\d.]")
_PLACEHOLDER_TITLE = re.compile(r"^option\s*\d+", re.IGNORECASE)

RULE_FOODS = "generated_from_foods"
RULE_INGREDIENTS = "generated_from_ingredients"
RULE_FALLBACK = "fallback_generated"


# ---------------------------------------------------------------------
# Numbers
# ---------------------------------------------------------------------
def coerce_number(
    value: Any,
    *,
    field: Optional[str] = None,
    record_id: Any = None,
    report: Optional["ChangeReport"] = None,
) -> Number:
    """
    Coerce a raw nutrient value to a number. Never raises, never returns NaN.

    "1,234 kcal" -> 1234, "12.5g" -> 12.5, "" / None -> 0, "n/a" -> 0 (recorded).
    """
    if value is None:
        return 0
    if isinstance(value, bool):
        return 0
    if isinstance(value, (int, float)):
        if isinstance(value, float) and not math.isfinite(value):
            return 0
        return value

    if isinstance(value, str):
        s = value.strip()
        if not s:
            return 0
        negative = s.startswith("-")
        cleaned = ("-" if negative else "") + _NOT_NUMERIC.sub("", s)
        match = _NUMERIC_PREFIX.match(cleaned)
        if match:
            token = match.group(0)
            if "." in token:
                number = float(token)
                if math.isfinite(number):
                    return number
            else:
                try:
                    return int(token)
                except ValueError:
                    # int() refuses digit strings past sys.get_int_max_str_digits()
                    pass

    # Unparseable string, or a list/dict where a number belongs
    if report is not None:
        report.record_unparseable(record_id, field or "", value)
    return 0


def pick_nutrient(record: dict, field: str) -> Any:
    """Raw nutrient value for `field`, honouring the legacy alias keys."""
    if record.get(field) is not None:
        return record.get(field)
    for alias in NUTRIENT_ALIASES.get(field, ()):
        if record.get(alias) is not None:
            return record[alias]
    return None


# ---------------------------------------------------------------------
# Meal type
# ---------------------------------------------------------------------
def _tags_text(tags: Any) -> str:
    if isinstance(tags, (list, tuple)):
        return " ".join(str(t) for t in tags if t is not None)
    if isinstance(tags, str):
        return tags
    return ""


def infer_meal_type(explicit_type: Any, title: Any = "", tags: Any = None) -> str:
    """
    Map an explicit meal type onto the canonical set, or infer one from the
    title and tags. Unknown or uninferable types default to lunch.
    """
    normalized = "" if explicit_type is None else str(explicit_type).strip().lower()
    if normalized:
        if normalized in CANONICAL_MEAL_TYPES:
            return normalized
        return MEAL_TYPE_SYNONYMS.get(normalized, DEFAULT_MEAL_TYPE)

    text = f"{title or ''} {_tags_text(tags)}".lower()
    for meal_type, keywords in MEAL_TYPE_KEYWORDS:
        if any(k in text for k in keywords):
            return meal_type
    return DEFAULT_MEAL_TYPE


# ---------------------------------------------------------------------
# Titles
# ---------------------------------------------------------------------
def food_names(foods: Any) -> List[str]:
    """Names from a foods list of strings or {name}/{title} objects, blanks removed."""
    if not isinstance(foods, (list, tuple)):
        return []
    names = []
    for food in foods:
        if isinstance(food, str):
            name = food
        elif isinstance(food, dict):
            name = food.get("name") or food.get("title") or ""
        else:
            name = ""
        name = str(name).strip()
        if name:
            names.append(name)
    return names


def join_names(names: Sequence[str]) -> str:
    """'A' / 'A & B' / 'A, B & C' (at most the first three)."""
    names = list(names[:3])
    if len(names) == 1:
        return names[0]
    if len(names) == 2:
        return f"{names[0]} & {names[1]}"
    return f"{names[0]}, {names[1]} & {names[2]}"


def is_placeholder_title(title: str) -> bool:
    return bool(_PLACEHOLDER_TITLE.match(title))


def generate_title(
    record: dict,
    region: str,
    diet: str,
    fallback_id: Any,
    *,
    report: Optional["ChangeReport"] = None,
) -> str:
    """
    Priority chain:
        1. existing title (or name) unless it is a placeholder like "Option 2"
        2. first three food names
        3. first six words of the ingredients text
        4. "Meal {region}-{diet}-{fallback_id}"
    Paths 2-4 are recorded on the report with their rule name.
    """
    given = record.get("title") or record.get("name") or ""
    given = str(given).strip()
    if given and not is_placeholder_title(given):
        return given

    names = food_names(record.get("foods"))
    if names:
        return _synthesized(report, fallback_id, RULE_FOODS, join_names(names))

    ingredients = record.get("ingredients")
    if isinstance(ingredients, str) and ingredients.strip():
        words = ingredients.split()[:6]
        return _synthesized(report, fallback_id, RULE_INGREDIENTS, " ".join(words))

    return _synthesized(report, fallback_id, RULE_FALLBACK, f"Meal {region}-{diet}-{fallback_id}")


def _synthesized(report: Optional["ChangeReport"], record_id: Any, rule: str, title: str) -> str:
    if report is not None:
        report.record_title(record_id, rule, title)
    return title


# ---------------------------------------------------------------------
# Tags
# ---------------------------------------------------------------------
def as_tag_list(tags: Any) -> list:
    """Tags as a list; a scalar becomes a one-element list of its string form."""
    if isinstance(tags, list):
        return list(tags)
    if isinstance(tags, tuple):
        return list(tags)
    return [str(tags)]
