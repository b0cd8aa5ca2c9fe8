"""Tests for asset id resolution."""

import pytest

from core.asset_resolver import (
    build_asset_table,
    normalize_asset_ids,
    resolve,
    resolve_tolerant,
    split_ids,
)


def test_resolve_passes_unknown_ids_through() -> None:
    assert resolve("A1,A2", {"A1": "Customer DB"}) == "Customer DB, A2"


def test_resolve_keeps_list_shape(asset_table: dict) -> None:
    assert resolve(["1", "9", "3"], asset_table) == [
        "Source Code Repository",
        "9",
        "Billing Platform",
    ]


@pytest.mark.parametrize(("raw", "expected"), [("", ""), (None, ""), ("  ", ""), ([], [])])
def test_resolve_empty_input(raw, expected, asset_table: dict) -> None:
    assert resolve(raw, asset_table) == expected


def test_resolve_with_missing_table() -> None:
    assert resolve("1;2", None) == "1, 2"


def test_resolve_uses_cia_delimiter_policy(asset_table: dict) -> None:
    assert resolve("1; 2 | 3", asset_table) == (
        "Source Code Repository, Customer PII Database, Billing Platform"
    )


def test_resolve_keeps_duplicates_and_order(asset_table: dict) -> None:
    assert resolve(["2", "1", "2"], asset_table) == [
        "Customer PII Database",
        "Source Code Repository",
        "Customer PII Database",
    ]


def test_resolve_tolerant_lists_unresolved(asset_table: dict) -> None:
    result = resolve_tolerant("1, A-404, 3, X", asset_table)

    assert result.names == ["Source Code Repository", "A-404", "Billing Platform", "X"]
    assert result.unresolved == ["A-404", "X"]


def test_split_ids_trims_and_drops_empties() -> None:
    assert split_ids(" a ,, b;|c ") == ["a", "b", "c"]


def test_build_asset_table_from_inventory_documents() -> None:
    table = build_asset_table([
        {"id": "1", "informationAsset": "HRIS"},
        {"id": 2, "name": "Finance GL"},
        {"id": "3"},
        {"informationAsset": "no id"},
    ])

    assert table == {"1": "HRIS", "2": "Finance GL", "3": "3"}


def test_build_asset_table_handles_none() -> None:
    assert build_asset_table(None) == {}


class TestNormalizeAssetIds:
    def test_comma_string(self) -> None:
        assert normalize_asset_ids("1, 2, 1") == (["1", "2"], [])

    def test_list_of_objects_and_strings(self) -> None:
        ids, invalid = normalize_asset_ids([{"id": 3}, {"name": "x"}, " 4 ", ""])

        assert ids == ["3", "4"]
        assert invalid == [{"name": "x"}]

    def test_none_and_unexpected_types(self) -> None:
        assert normalize_asset_ids(None) == ([], [])
        assert normalize_asset_ids(42) == ([], [42])

    def test_delimited_list_entries_split_like_resolve(self, asset_table: dict) -> None:
        ids, invalid = normalize_asset_ids(["1, 2", "3|1"])

        assert ids == ["1", "2", "3"]
        assert invalid == []
        assert resolve(["1, 2"], asset_table) == [asset_table["1"], asset_table["2"]]
