from __future__ import annotations
"""
canonical.py

Purpose:
    The fixed taxonomy of the canonical catalog:
      - regions, diets, meal types (the enumerations every output key must use)
      - synonym tables mapping hand-curated input keys onto them
      - meal-type keyword families used when a record has no explicit type
      - diet-violation keyword sets and the demotion policy table

Usage:
    from meal_catalog.taxonomy.canonical import CANONICAL_REGIONS, map_region_key

NOTE:
    These names MUST stay in sync with the planner which reads
    catalog[region][diet][mealType]. Renaming a canonical value is a breaking
    change for every consumer of the catalog.
"""

import re
from typing import Dict, List, Optional, Tuple

# -----------------------------------------------------------------------------
# Enumerations
# -----------------------------------------------------------------------------
CANONICAL_REGIONS: Tuple[str, ...] = (
    "India",
    "USA",
    "Europe",
    "Middle_Eastern",
    "Latin_American",
    "Nordic",
    "East_Asian",
    "African",
    "Australian",
)

CANONICAL_DIETS: Tuple[str, ...] = (
    "Regular",
    "Keto",
    "Low_Carb",
    "Vegetarian",
    "Vegan",
    "Mediterranean",
    "High_Protein",
)

CANONICAL_MEAL_TYPES: Tuple[str, ...] = ("breakfast", "lunch", "dinner", "snacks")

DEFAULT_DIET = "Regular"
DEFAULT_MEAL_TYPE = "lunch"
META_KEY = "__meta__"

# -----------------------------------------------------------------------------
# Synonym tables (input key -> canonical key)
# -----------------------------------------------------------------------------
# Exact-match first; anything not listed falls back to a loose match against
# the canonical names (case, spaces, hyphens and underscores ignored).
REGION_SYNONYMS: Dict[str, str] = {
    "Australia": "Australian",
    "Oceania": "Australian",
    "Oceana": "Australian",
    "Asian": "East_Asian",
    "East Asia": "East_Asian",
    "Latin America": "Latin_American",
    "Middle East": "Middle_Eastern",
    "United States": "USA",
}

DIET_SYNONYMS: Dict[str, str] = {
    "Low Carb": "Low_Carb",
    "High Protein": "High_Protein",
    "Ketogenic": "Keto",
    "Paleo": "Regular",
    "Diabetic_Friendly": "Regular",
    "PCOS_Friendly": "Regular",
    "Senior_Friendly": "Regular",
}

MEAL_TYPE_SYNONYMS: Dict[str, str] = {
    "snack": "snacks",
    "supper": "dinner",
}

# -----------------------------------------------------------------------------
# Meal-type inference (no explicit type given)
# -----------------------------------------------------------------------------
# Checked in this order; first family with a substring hit wins.
MEAL_TYPE_KEYWORDS: List[Tuple[str, List[str]]] = [
    ("breakfast", ["breakfast", "pancake", "oats", "cereal", "toast", "porridge"]),
    ("dinner", ["dinner", "curry", "roast", "stew", "soup", "supper"]),
    ("snacks", ["snack", "bar", "chips", "nuts", "fruit", "cookie"]),
]

# -----------------------------------------------------------------------------
# Diet violations
# -----------------------------------------------------------------------------
# Categories ordered from most to least severe.
CATEGORY_FLESH = "flesh"
CATEGORY_ANIMAL_DERIVED = "animal_derived"
CATEGORY_DAIRY_EGG = "dairy_egg"
CATEGORY_SEVERITY: Tuple[str, ...] = (CATEGORY_FLESH, CATEGORY_ANIMAL_DERIVED, CATEGORY_DAIRY_EGG)

FLESH_TERMS: Tuple[str, ...] = (
    "meat", "chicken", "fish", "beef", "pork", "lamb", "seafood", "shrimp",
    "crab", "salmon", "tuna", "turkey", "bacon", "ham", "sausage",
)
ANIMAL_DERIVED_TERMS: Tuple[str, ...] = ("gelatin", "honey")
# dairy and eggs: fine for vegetarians, not for vegans
DAIRY_EGG_TERMS: Tuple[str, ...] = (
    "egg", "eggs", "milk", "cheese", "yogurt", "butter", "ghee", "cream",
    "dairy", "whey", "casein", "paneer",
)

TERM_CATEGORY: Dict[str, str] = {
    **{t: CATEGORY_FLESH for t in FLESH_TERMS},
    **{t: CATEGORY_ANIMAL_DERIVED for t in ANIMAL_DERIVED_TERMS},
    **{t: CATEGORY_DAIRY_EGG for t in DAIRY_EGG_TERMS},
}

# Vegan keywords are a superset of the vegetarian ones.
VIOLATION_KEYWORDS: Dict[str, Tuple[str, ...]] = {
    "Vegetarian": FLESH_TERMS,
    "Vegan": FLESH_TERMS + ANIMAL_DERIVED_TERMS + DAIRY_EGG_TERMS,
}

# (source diet, worst violation category) -> target diet
RECLASSIFICATION_POLICY: Dict[Tuple[str, str], str] = {
    ("Vegan", CATEGORY_DAIRY_EGG): "Vegetarian",
    ("Vegan", CATEGORY_ANIMAL_DERIVED): "Regular",
    ("Vegan", CATEGORY_FLESH): "Regular",
    ("Vegetarian", CATEGORY_FLESH): "Regular",
}


# -----------------------------------------------------------------------------
# Key mapping helpers
# -----------------------------------------------------------------------------
def _loose_key(key: str) -> str:
    """'Middle Eastern' / 'middle-eastern' / 'MIDDLE_EASTERN' -> 'middleeastern'."""
    return re.sub(r"[\s_\-]+", "", key).lower()


_LOOSE_REGIONS: Dict[str, str] = {_loose_key(r): r for r in CANONICAL_REGIONS}
_LOOSE_REGIONS.update({_loose_key(k): v for k, v in REGION_SYNONYMS.items()})
_LOOSE_DIETS: Dict[str, str] = {_loose_key(d): d for d in CANONICAL_DIETS}
_LOOSE_DIETS.update({_loose_key(k): v for k, v in DIET_SYNONYMS.items()})


def map_region_key(key: str) -> Optional[str]:
    """Return the canonical region for an input key, or None if unknown."""
    if key in CANONICAL_REGIONS:
        return key
    if key in REGION_SYNONYMS:
        return REGION_SYNONYMS[key]
    return _LOOSE_REGIONS.get(_loose_key(str(key)))


def map_diet_key(key: str) -> Optional[str]:
    """Return the canonical diet for an input key, or None if unknown."""
    if key in CANONICAL_DIETS:
        return key
    if key in DIET_SYNONYMS:
        return DIET_SYNONYMS[key]
    return _LOOSE_DIETS.get(_loose_key(str(key)))


def map_meal_type_key(key: object) -> Optional[str]:
    """Canonical meal type for a bucket key like 'Breakfast' or 'snack', else None."""
    if not isinstance(key, str):
        return None
    k = key.strip().lower()
    if k in CANONICAL_MEAL_TYPES:
        return k
    return MEAL_TYPE_SYNONYMS.get(k)
