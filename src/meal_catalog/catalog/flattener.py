# src/meal_catalog/catalog/flattener.py
from __future__ import annotations

"""
flattener.py

Purpose:
    Option Flattener: a record like

        {"id": 7, "title": "Lunch bowl", "calories": 450,
         "options": ["Rice bowl", {"title": "Quinoa bowl", "calories": 430}]}

    becomes two independent records, each inheriting the parent's fields:

        {"id": "7_0", "title": "Rice bowl", "calories": 450}
        {"id": "7_1", "title": "Quinoa bowl", "calories": 430}

    The id suffix keeps derived ids distinct before they reach the
    Identifier Registry. The input record is never mutated.
"""

from typing import Any, Dict, List

from meal_catalog.catalog.registry import has_source_id


def has_options(record: Any) -> bool:
    if not isinstance(record, dict) or "options" not in record:
        return False
    options = record["options"]
    return not (options is None or (isinstance(options, list) and not options))


def flatten_options(record: Any) -> List[Dict[str, Any]]:
    """One record per option; a single copy (without `options`) when there are none."""
    if not isinstance(record, dict):
        return []

    base = {k: v for k, v in record.items() if k != "options"}
    if not has_options(record):
        return [base]

    options = record["options"]
    if not isinstance(options, list):
        options = [options]

    flattened = []
    for i, option in enumerate(options):
        derived = dict(base)
        if isinstance(option, str):
            derived["title"] = option
        elif isinstance(option, dict):
            derived.update(option)
            derived.pop("options", None)

        if has_source_id(derived.get("id")):
            derived["id"] = f"{derived['id']}_{i}"
        flattened.append(derived)
    return flattened
