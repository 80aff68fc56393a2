"""Tests for `meal_catalog.catalog.flattener`."""
import copy

from meal_catalog.catalog.flattener import flatten_options, has_options


def test_record_without_options_is_a_single_copy():
    record = {"id": 1, "title": "Poha"}
    flattened = flatten_options(record)
    assert flattened == [record]
    assert flattened[0] is not record


def test_string_options_set_title_and_suffix_id():
    record = {"id": "7", "calories": 300, "options": ["A", "B"]}
    flattened = flatten_options(record)
    assert flattened == [
        {"id": "7_0", "calories": 300, "title": "A"},
        {"id": "7_1", "calories": 300, "title": "B"},
    ]


def test_object_options_are_shallow_merged_over_parent():
    record = {
        "id": 11,
        "mealType": "lunch",
        "calories": 480,
        "foods": ["Greens"],
        "options": ["Steak salad", {"title": "Lamb wrap", "calories": 520}],
    }
    first, second = flatten_options(record)
    assert first == {"id": "11_0", "mealType": "lunch", "calories": 480, "foods": ["Greens"], "title": "Steak salad"}
    assert second == {"id": "11_1", "mealType": "lunch", "calories": 520, "foods": ["Greens"], "title": "Lamb wrap"}


def test_options_without_parent_id_keep_no_id():
    flattened = flatten_options({"options": ["A", "B"]})
    assert all("id" not in r for r in flattened)
    assert [r["title"] for r in flattened] == ["A", "B"]


def test_option_supplied_id_is_suffixed_too():
    flattened = flatten_options({"options": [{"id": "x", "title": "A"}]})
    assert flattened[0]["id"] == "x_0"


def test_scalar_options_value_is_one_option():
    assert flatten_options({"id": 2, "options": "Only one"}) == [{"id": "2_0", "title": "Only one"}]


def test_empty_options_keeps_the_parent():
    assert flatten_options({"id": 3, "title": "Dal", "options": []}) == [{"id": 3, "title": "Dal"}]
    assert not has_options({"options": []})
    assert not has_options({"options": None})
    assert has_options({"options": ["a"]})


def test_unknown_option_types_keep_parent_fields():
    flattened = flatten_options({"id": 4, "title": "Bowl", "options": [None, 5]})
    assert flattened == [{"id": "4_0", "title": "Bowl"}, {"id": "4_1", "title": "Bowl"}]


def test_input_is_never_mutated():
    record = {"id": 1, "options": ["A", {"title": "B", "tags": ["x"]}]}
    snapshot = copy.deepcopy(record)
    flatten_options(record)
    assert record == snapshot


def test_non_mapping_input_yields_nothing():
    assert flatten_options("Poha") == []
    assert flatten_options(None) == []
