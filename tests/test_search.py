from types import SimpleNamespace

from housecheck.portal.search import HOUSE_SEARCH_FIELDS, INSPECTION_SEARCH_FIELDS, filter_items


def house(name, address=None):
    return SimpleNamespace(name=name, address=address)


HOUSES = [
    house("Maple Cottage", "12 Main St"),
    house("Lake House", None),
    house("Downtown Loft", "99 MAIN street"),
]


def test_empty_query_returns_everything_in_order():
    assert filter_items(HOUSES, "", HOUSE_SEARCH_FIELDS) == HOUSES


def test_match_is_case_insensitive_across_fields():
    result = filter_items(HOUSES, "main", HOUSE_SEARCH_FIELDS)
    assert [h.name for h in result] == ["Maple Cottage", "Downtown Loft"]


def test_missing_optional_field_never_matches():
    assert filter_items(HOUSES, "lake", HOUSE_SEARCH_FIELDS) == [HOUSES[1]]
    assert filter_items([house("X", None)], "none", HOUSE_SEARCH_FIELDS) == []


def test_result_is_subsequence_and_input_untouched():
    original = list(HOUSES)
    result = filter_items(HOUSES, "o", HOUSE_SEARCH_FIELDS)
    assert HOUSES == original
    positions = [HOUSES.index(h) for h in result]
    assert positions == sorted(positions)


def test_inspections_search_title_and_notes():
    items = [
        SimpleNamespace(title="Roof check", notes=None),
        SimpleNamespace(title="Annual", notes="Found a ROOF leak"),
        SimpleNamespace(title="Plumbing", notes="ok"),
    ]
    result = filter_items(items, "roof", INSPECTION_SEARCH_FIELDS)
    assert result == items[:2]


def test_row_matching_both_fields_is_returned_once():
    items = [
        SimpleNamespace(title="Roof", notes="roof leak"),
        SimpleNamespace(title="Plumbing", notes=None),
    ]
    assert filter_items(items, "ROOF", INSPECTION_SEARCH_FIELDS) == [items[0]]
