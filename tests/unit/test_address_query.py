"""
Tests for candidate query building
"""
import pytest

from crm_geo.services.address_query import build_address_queries, normalize_for_geocoding


@pytest.mark.unit
class TestBuildAddressQueries:
    def test_plain_address_gets_country_variants(self):
        assert build_address_queries("הרצל 10, אשדוד") == [
            "הרצל 10, אשדוד",
            "הרצל 10, אשדוד, ישראל",
            "הרצל 10, אשדוד, Israel",
        ]

    def test_separator_runs_collapse(self):
        assert normalize_for_geocoding("הרצל 10;;  אשדוד ,") == "הרצל 10, אשדוד"
        assert build_address_queries("הרצל 10 ;, אשדוד")[0] == "הרצל 10, אשדוד"

    def test_sub_unit_suffix_is_stripped(self):
        assert build_address_queries("הרצל 10, אשדוד, דירה 5")[0] == "הרצל 10, אשדוד"
        assert build_address_queries("Herzl 10; Ashdod apt 3B")[0] == "Herzl 10, Ashdod"

    def test_suffix_only_keeps_original(self):
        assert build_address_queries("דירה 5")[0] == "דירה 5"

    def test_empty_input(self):
        assert build_address_queries("") == []
        assert build_address_queries(None) == []
        assert build_address_queries(" ; , ") == []

    def test_queries_are_unique_and_ordered(self):
        queries = build_address_queries("  רוטשילד   1,   תל אביב  ")
        assert len(queries) == len(set(queries))
        assert queries[0] == "רוטשילד 1, תל אביב"
        assert queries[1].endswith(", ישראל")
