"""Tests for the field coercers in `meal_catalog.cleaning.coercers`."""
import math

import pytest

from meal_catalog.cleaning.coercers import (
    as_tag_list,
    coerce_number,
    food_names,
    generate_title,
    infer_meal_type,
    is_placeholder_title,
    pick_nutrient,
)


# ---------------------------------------------------------------------
# coerce_number
# ---------------------------------------------------------------------
@pytest.mark.parametrize(
    "value, expected",
    [
        (None, 0),
        ("", 0),
        ("   ", 0),
        (42, 42),
        (3.5, 3.5),
        (0, 0),
        ("300", 300),
        ("1,234", 1234),
        ("1,250 kcal", 1250),
        ("12.5g", 12.5),
        ("$1,299.99", 1299.99),
        ("-5", -5),
        (" 7 ", 7),
        ("1.2.3", 1.2),
    ],
)
def test_coerce_number_parses_well_formed_values(value, expected):
    result = coerce_number(value)
    assert result == expected
    assert type(result) is type(expected)


@pytest.mark.parametrize("value", [float("nan"), float("inf"), float("-inf"), True, False])
def test_coerce_number_non_finite_and_bools_become_zero(value):
    assert coerce_number(value) == 0


def test_coerce_number_records_unparseable_string(report):
    assert coerce_number("about a cup", field="fiber", record_id=17, report=report) == 0
    assert len(report.unparseable) == 1
    event = report.unparseable[0]
    assert (event.id, event.field, event.value) == (17, "fiber", "about a cup")


def test_coerce_number_records_non_scalar(report):
    assert coerce_number([1, 2], field="fat", record_id="x", report=report) == 0
    assert report.unparseable[0].field == "fat"


def test_coerce_number_empty_is_not_an_event(report):
    coerce_number("", field="fat", record_id=1, report=report)
    coerce_number(None, field="fat", record_id=1, report=report)
    assert report.unparseable == []


@pytest.mark.parametrize(
    "value",
    ["nan", "NaN", "-", ".", "--", "-.", "n/a", "½", "1e400", {"a": 1}, object(), b"12", "١٢"],
)
def test_coerce_number_never_raises_or_returns_nan(value):
    result = coerce_number(value)
    assert isinstance(result, (int, float))
    assert not math.isnan(result)


@pytest.mark.parametrize(
    "value",
    ["9" * 5000, "1" * 400 + ".5", "-" + "1" * 400 + ".0"],
)
def test_coerce_number_out_of_range_strings_become_zero(value, report):
    assert coerce_number(value, field="calories", record_id=1, report=report) == 0
    assert [(e.id, e.field) for e in report.unparseable] == [(1, "calories")]


def test_coerce_number_keeps_large_finite_values():
    assert coerce_number("9" * 400) == int("9" * 400)
    assert coerce_number("1e300 kcal") == 1300


def test_pick_nutrient_uses_aliases_only_when_canonical_missing():
    assert pick_nutrient({"kcal": "250"}, "calories") == "250"
    assert pick_nutrient({"calories": 300, "kcal": 250}, "calories") == 300
    assert pick_nutrient({"carbohydrates": 40}, "carbs") == 40
    assert pick_nutrient({}, "fiber") is None


# ---------------------------------------------------------------------
# infer_meal_type
# ---------------------------------------------------------------------
@pytest.mark.parametrize(
    "explicit, expected",
    [
        ("breakfast", "breakfast"),
        ("  Dinner ", "dinner"),
        ("snacks", "snacks"),
        ("snack", "snacks"),
        ("Supper", "dinner"),
        ("brunch", "lunch"),
        ("elevenses", "lunch"),
    ],
)
def test_infer_meal_type_explicit(explicit, expected):
    # explicit types win over anything in the title
    assert infer_meal_type(explicit, "Beef Stew", ["pancake"]) == expected


@pytest.mark.parametrize(
    "title, tags, expected",
    [
        ("Blueberry Pancakes", None, "breakfast"),
        ("Overnight Oats", [], "breakfast"),
        ("Beef Stew", None, "dinner"),
        ("Lentil Soup", None, "dinner"),
        ("Trail Mix", ["nuts"], "snacks"),
        ("Granola", "protein bar", "snacks"),
        ("Quinoa Salad", ["light"], "lunch"),
        ("", None, "lunch"),
    ],
)
def test_infer_meal_type_from_title_and_tags(title, tags, expected):
    assert infer_meal_type(None, title, tags) == expected


def test_infer_meal_type_breakfast_family_checked_first():
    assert infer_meal_type("", "French toast with soup") == "breakfast"


@pytest.mark.parametrize("blank", ["", "   ", "\t"])
def test_infer_meal_type_blank_explicit_type_falls_back_to_keywords(blank):
    assert infer_meal_type(blank, "Blueberry Pancakes") == "breakfast"
    assert infer_meal_type(blank, "Quinoa Salad") == "lunch"


# ---------------------------------------------------------------------
# generate_title
# ---------------------------------------------------------------------
def test_generate_title_keeps_real_title(report):
    assert generate_title({"title": "  Poha  "}, "India", "Vegan", 1, report=report) == "Poha"
    assert report.title_events == []


def test_generate_title_uses_name_alias():
    assert generate_title({"name": "Idli Sambar"}, "India", "Vegan", 1) == "Idli Sambar"


def test_generate_title_replaces_placeholder_with_foods(report):
    title = generate_title({"title": "Option 1", "foods": ["Rice", "Beans"]}, "USA", "Vegan", 5, report=report)
    assert title == "Rice & Beans"
    assert report.title_events[0].rule == "generated_from_foods"
    assert report.title_events[0].id == 5


def test_generate_title_joins_at_most_three_foods():
    record = {"foods": ["Eggs", {"name": "Bacon"}, {"title": "Avocado"}, "Spinach"]}
    assert generate_title(record, "USA", "Keto", 1) == "Eggs, Bacon & Avocado"
    assert generate_title({"foods": ["Apple"]}, "USA", "Keto", 1) == "Apple"


def test_generate_title_from_ingredients(report):
    record = {"title": "option 2", "ingredients": "rolled oats almond milk chia seeds maple syrup"}
    assert generate_title(record, "USA", "Vegan", 9, report=report) == "rolled oats almond milk chia seeds"
    assert report.title_events[0].rule == "generated_from_ingredients"


def test_generate_title_fallback(report):
    assert generate_title({"foods": [], "ingredients": "   "}, "India", "Keto", 42, report=report) == "Meal India-Keto-42"
    assert report.title_events[0].rule == "fallback_generated"


def test_placeholder_pattern():
    assert is_placeholder_title("Option 1")
    assert is_placeholder_title("OPTION12")
    assert not is_placeholder_title("Optional toppings bowl")
    assert not is_placeholder_title("Rice option 1")


# ---------------------------------------------------------------------
# helpers
# ---------------------------------------------------------------------
def test_food_names_skips_blanks_and_unknown_types():
    assert food_names(["  Rice ", "", {"name": ""}, None, 3, {"name": "Dal"}]) == ["Rice", "Dal"]
    assert food_names("Rice") == []


def test_as_tag_list():
    assert as_tag_list("spicy") == ["spicy"]
    assert as_tag_list(5) == ["5"]
    tags = ["a", "b"]
    copied = as_tag_list(tags)
    assert copied == tags and copied is not tags
