"""Tests for `meal_catalog.catalog.report`."""
import pytest

from meal_catalog.catalog.report import (
    ChangeReport,
    iter_catalog_records,
    summarize_catalog,
    validate_catalog,
)
from meal_catalog.catalog.schema import DietDemotion, IdReassignment


def _demotion(i, source="Vegan", target="Vegetarian"):
    return DietDemotion(id=i, title=f"Meal {i}", region="India", source_diet=source, target_diet=target, offending=("milk",))


def _catalog():
    return {
        "India": {
            "Vegan": {"breakfast": [{"id": 1, "mealType": "breakfast", "diets": ["Vegan"]}], "lunch": []},
            "Regular": {"dinner": [{"id": 2, "mealType": "dinner", "diets": ["Regular"]}]},
        },
        "USA": {"Keto": {"lunch": [{"id": 3, "mealType": "lunch", "diets": ["Keto"]}]}},
        "__meta__": {"changes": []},
    }


def test_changes_omits_zero_counts(report):
    assert report.changes() == []
    report.record_normalized()
    report.record_normalized()
    report.record_region_mapping("Australia", "Australian")
    report.record_demotion(_demotion(1))
    assert report.changes() == [
        "Processed 2 meals",
        "Mapped 1 regions",
        "Moved 1 meals from Vegan",
    ]


def test_reassignment_map_groups_by_original_string(report):
    report.record_reassignment(IdReassignment(original=3, new=100000))
    report.record_reassignment(IdReassignment(original="a", new=100001))
    report.record_reassignment(IdReassignment(original=3, new=100002))
    assert report.reassignment_map() == {"3": [100000, 100002], "a": [100001]}


def test_dropped_regions_accumulate(report):
    report.record_dropped_region("Atlantis", 2)
    report.record_dropped_region("Atlantis", 3)
    assert report.dropped_regions == {"Atlantis": 5}


def test_to_meta_caps_violation_rows(report):
    for i in range(5):
        report.record_demotion(_demotion(i))
    report.record_demotion(_demotion(9, source="Vegetarian", target="Regular"))
    meta = report.to_meta(violation_limit=3)
    assert [row["id"] for row in meta["vegan_violations"]] == [0, 1, 2]
    assert meta["vegetarian_violations"] == [
        {"id": 9, "title": "Meal 9", "region": "India", "offending": ["milk"], "movedTo": "Regular"}
    ]
    assert set(meta) == {
        "changes", "id_reassignments", "region_mapping", "diet_mapping",
        "vegan_violations", "vegetarian_violations", "summary",
    }


def test_finalize_freezes_and_fills_summary(report):
    report.record_normalized()
    summary = report.finalize(_catalog(), records_before=4, regions_before=3)
    assert summary["totalBefore"] == 4
    assert summary["totalAfter"] == 3
    assert summary["totalRegionsAfter"] == 2
    assert summary["recordsByRegionDiet"] == {"India": {"Vegan": 1, "Regular": 1}, "USA": {"Keto": 1}}
    assert summary["recordsByMealType"] == {"breakfast": 1, "dinner": 1, "lunch": 1}
    assert report.frozen
    with pytest.raises(RuntimeError):
        report.record_unparseable(1, "fat", "x")
    with pytest.raises(RuntimeError):
        report.finalize(_catalog(), records_before=4, regions_before=3)


def test_audit_report_contents(report):
    report.record_unparseable(1, "fat", "lots")
    report.record_unparseable(2, "fiber", "some")
    report.record_title(5, "generated_from_foods", "Rice & Beans")
    report.record_sample({"id": 5}, {"id": 5, "title": "Rice & Beans"}, limit=10)
    report.finalize({}, records_before=0, regions_before=0)

    audit = report.to_audit_report(unparseable_limit=1, validation={"ids_unique": True, "diet_invariant_holds": False})
    assert audit["unparseable_nutrients"] == [{"id": 1, "field": "fat", "value": "lots"}]
    assert audit["title_generation_rules"] == [{"id": 5, "rule": "generated_from_foods", "title": "Rice & Beans"}]
    assert audit["before_after_samples"] == [{"before": {"id": 5}, "after": {"id": 5, "title": "Rice & Beans"}}]
    assert audit["validation_passed"] is False
    assert "validation" not in report.to_audit_report()


def test_samples_are_snapshots(report):
    before = {"id": 1, "tags": ["a"]}
    report.record_sample(before, {"id": 1}, limit=5)
    before["tags"].append("b")
    assert report.samples[0].before == {"id": 1, "tags": ["a"]}


def test_iter_catalog_records_handles_both_layouts():
    flat = {"USA": {"Keto": [{"id": 1}]}, "__meta__": {}}
    assert list(iter_catalog_records(flat)) == [("USA", "Keto", None, {"id": 1})]
    assert [r[2] for r in iter_catalog_records(_catalog())] == ["breakfast", "dinner", "lunch"]


def test_summarize_empty_catalog():
    assert summarize_catalog({}) == {"by_region_diet": {}, "by_meal_type": {}}


def test_validate_catalog_flags_violations():
    catalog = {
        "Atlantis": {
            "Paleo": {
                "brunch": [
                    {"id": 1, "mealType": "brunch", "diets": ["Vegan"], "options": [], "preparation": "x"},
                    {"id": "1", "mealType": "brunch", "diets": ["Paleo"]},
                ]
            }
        }
    }
    assert validate_catalog(catalog) == {
        "all_regions_canonical": False,
        "all_diets_canonical": False,
        "all_meal_types_canonical": False,
        "no_preparation_fields": False,
        "no_options_fields": False,
        "ids_unique": False,
        "diet_invariant_holds": False,
    }
