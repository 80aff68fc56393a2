"""
Pytest fixtures for catalog reconciliation tests.
"""
import copy
import json

import pytest

from meal_catalog.catalog.registry import IdentifierRegistry
from meal_catalog.catalog.report import ChangeReport
from meal_catalog.catalog.normalizer import RecordNormalizer
from meal_catalog.config import ReconcileConfig


# Mixed shapes: meal-type buckets, flat lists, options, unknown region,
# synonym region/diet keys, duplicate ids, dirty numbers.
_RAW_CATALOG = {
    "__meta__": {"fixed_on": "2020-01-01T00:00:00Z", "changes": ["old run"]},
    "India": {
        "Vegan": {
            "breakfast": [
                {"id": 1, "title": "Poha", "calories": "300", "protein": 8, "carbs": 50, "fat": 6, "fiber": 4},
                {"id": 2, "title": "Masala Chai with milk", "calories": 120},
            ],
            "lunch": [
                {"id": 3, "title": "Chana Masala", "ingredients": "chickpeas tomato onion", "calories": "1,250 kcal"},
            ],
        },
        "Vegetarian": [
            {"id": 3, "title": "Fish Curry", "calories": 410},
            {"id": 4, "title": "Paneer Tikka", "mealType": "Snack", "calories": "abc"},
        ],
    },
    "Australia": {
        "Ketogenic": [
            {
                "id": 10,
                "title": "Option 1",
                "foods": ["Eggs", "Bacon", "Avocado", "Spinach"],
                "preparation_notes": "fry in butter",
            },
        ],
        "Paleo": [
            {
                "id": 11,
                "mealType": "lunch",
                "calories": 480,
                "options": ["Steak salad", {"title": "Lamb wrap", "calories": 520}],
            },
        ],
    },
    "Atlantis": {"Regular": [{"id": 99, "title": "Mystery"}]},
}


@pytest.fixture
def raw_catalog():
    """Fresh deep copy of the mixed-shape sample catalog."""
    return copy.deepcopy(_RAW_CATALOG)


@pytest.fixture
def raw_catalog_file(tmp_path, raw_catalog):
    path = tmp_path / "meals.json"
    path.write_text(json.dumps(raw_catalog), encoding="utf-8")
    return path


@pytest.fixture
def config():
    return ReconcileConfig()


@pytest.fixture
def report():
    return ChangeReport()


@pytest.fixture
def registry(report):
    return IdentifierRegistry(seed=100000, report=report)


@pytest.fixture
def normalizer(registry, report):
    return RecordNormalizer(registry, report, sample_limit=10)


def all_records(catalog):
    """Every record of a bucketed catalog with its (region, diet, mealType) position."""
    out = []
    for region, diets in catalog.items():
        if region == "__meta__":
            continue
        for diet, bucket in diets.items():
            if isinstance(bucket, list):
                out.extend((region, diet, None, r) for r in bucket)
            else:
                for meal_type, records in bucket.items():
                    out.extend((region, diet, meal_type, r) for r in records)
    return out


def find_by_title(catalog, title):
    return [(region, diet, mt, r) for region, diet, mt, r in all_records(catalog) if r["title"] == title]
