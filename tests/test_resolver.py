"""
Tests for the generic resolver: queries, descriptors, validation before
network access, year selection, and selector helpers.
"""

import pandas as pd
import pytest


def _failing_catalog(cache):
    raise AssertionError("catalog must not be consulted")


class TestDatasetQuery:

    def test_unknown_family(self):
        from geoartifacts.errors import InvalidArgument
        from geoartifacts.resolver import DatasetQuery

        with pytest.raises(InvalidArgument):
            DatasetQuery.of("weather-radar", kind="x")

    def test_selectors_are_sorted_and_hashable(self):
        from geoartifacts.resolver import DatasetQuery

        a = DatasetQuery.of("map-layer", scale="1:10", entity="Lakes")
        b = DatasetQuery.of("map-layer", entity="Lakes", scale="1:10")
        assert a == b
        assert hash(a) == hash(b)
        assert a.get("scale") == "1:10"
        assert a.get("variant", "default") == "default"
        assert a.as_dict() == {"entity": "Lakes", "scale": "1:10"}


class TestFamilyDescriptor:

    def test_needs_exactly_one_source(self):
        from geoartifacts.resolver import FamilyDescriptor

        with pytest.raises(ValueError):
            FamilyDescriptor(family="map-layer", provider="X")
        with pytest.raises(ValueError):
            FamilyDescriptor(family="map-layer", provider="X",
                             catalog=lambda c: None, url_template=lambda q: "")


class TestResolve:

    def test_validation_precedes_catalog(self, session):
        from geoartifacts.errors import InvalidArgument
        from geoartifacts.resolver import (
            DatasetQuery, FamilyDescriptor, Resolver, check_choice,
        )

        resolver = Resolver(FamilyDescriptor(
            family="map-layer", provider="X", catalog=_failing_catalog,
            validators=(check_choice("scale", ("1:10",)),),
        ))
        with pytest.raises(InvalidArgument, match="1:10"):
            resolver.resolve(DatasetQuery.of("map-layer", scale="1:25"))
        assert session.calls == []

    def test_wrong_family(self):
        from geoartifacts.errors import InvalidArgument
        from geoartifacts.resolver import DatasetQuery, FamilyDescriptor, Resolver

        resolver = Resolver(FamilyDescriptor(
            family="map-layer", provider="X", url_template=lambda q: "https://x.org/a"))
        with pytest.raises(InvalidArgument):
            resolver.resolve(DatasetQuery.of("training-image", name="a"))

    def test_gadm_url_and_identifier(self):
        from geoartifacts.datasets import gadm
        from geoartifacts.resolver import DatasetQuery

        res = gadm.resolver.resolve(DatasetQuery.of(gadm.FAMILY, country="IND", version="4.1"))
        assert res.url == "https://geodata.ucdavis.edu/gadm/gadm4.1/gpkg/gadm41_IND.gpkg"
        assert res.identifier == "GADM_4.1_gadm41_IND"
        assert res.unpack is False

    def test_gadm_legacy_versions_are_zipped(self):
        from geoartifacts.datasets import gadm
        from geoartifacts.resolver import DatasetQuery

        res = gadm.resolver.resolve(DatasetQuery.of(gadm.FAMILY, country="IND", version="2.8"))
        assert res.url == "https://biogeo.ucdavis.edu/data/gadm2.8/gpkg/IND_adm_gpkg.zip"
        assert res.identifier == "GADM_2.8_IND_adm_gpkg"
        assert res.unpack is True

    def test_inmet_url(self):
        from geoartifacts.datasets import inmet
        from geoartifacts.resolver import DatasetQuery

        res = inmet.resolver.resolve(DatasetQuery.of(inmet.FAMILY, kind="manual"))
        assert res.url.endswith("/estacoes/M")
        assert res.identifier == "INMET_M"

    def test_year_omitted_selects_latest(self):
        from geoartifacts.catalog import Catalog
        from geoartifacts.resolver import DatasetQuery, FamilyDescriptor, Resolver

        frame = pd.DataFrame({
            "geo": ["state", "state", "state"],
            "year": [2010, 2020, 2000],
            "download_path": ["https://x.org/s2010.gpkg", "https://x.org/s2020.gpkg",
                              "https://x.org/s2000.gpkg"],
        })
        cat = Catalog("statistical-area", frame, url_column="download_path")
        resolver = Resolver(FamilyDescriptor(
            family="statistical-area", provider="T", catalog=lambda c: cat,
            exact_keys=(("geo", "geo"),), year_key="year",
        ))

        latest = resolver.resolve(DatasetQuery.of("statistical-area", geo="state", year=None))
        pinned = resolver.resolve(DatasetQuery.of("statistical-area", geo="state", year=2000))
        assert latest.url == "https://x.org/s2020.gpkg"
        assert pinned.url == "https://x.org/s2000.gpkg"
        assert latest.row["year"] == 2020


class TestValidators:

    def test_check_pattern(self):
        from geoartifacts.errors import InvalidArgument
        from geoartifacts.resolver import DatasetQuery, check_pattern

        check = check_pattern("country", r"^[A-Z]{3}$", "bad code")
        check(DatasetQuery.of("admin-boundaries", country="BRA"))
        for bad in ("bra", "BR", "BRAZ", None, 76):
            with pytest.raises(InvalidArgument):
                check(DatasetQuery.of("admin-boundaries", country=bad))

    def test_check_year(self):
        from geoartifacts.errors import InvalidArgument
        from geoartifacts.resolver import DatasetQuery, check_year

        check = check_year()
        check(DatasetQuery.of("statistical-area", year=None))
        check(DatasetQuery.of("statistical-area", year=2010))
        for bad in ("2010", 2010.0, True):
            with pytest.raises(InvalidArgument):
                check(DatasetQuery.of("statistical-area", year=bad))


class TestSelectorHelpers:

    @pytest.mark.parametrize("value,expected", [
        (33, (33, None)),
        (3304557, (3304557, None)),
        (33.0, (33, None)),
        ("RJ", (None, "RJ")),
        (None, (None, None)),
    ])
    def test_split_code(self, value, expected):
        from geoartifacts.resolver import split_code

        assert split_code(value) == expected

    @pytest.mark.parametrize("value", [33.5, True, ["RJ"], b"RJ"])
    def test_split_code_rejects(self, value):
        from geoartifacts.errors import InvalidArgument
        from geoartifacts.resolver import split_code

        with pytest.raises(InvalidArgument):
            split_code(value)

    def test_admin_level(self):
        from geoartifacts.resolver import admin_level

        assert admin_level((), 0) == 0
        assert admin_level(("Maharashtra",), 1) == 2
        assert admin_level(("A", "B"), 0) == 2

    @pytest.mark.parametrize("depth", [-1, 1.5, "1", True])
    def test_admin_level_rejects_bad_depth(self, depth):
        from geoartifacts.errors import InvalidArgument
        from geoartifacts.resolver import admin_level

        with pytest.raises(InvalidArgument):
            admin_level((), depth)

    def test_subregion_filters_are_positional(self):
        from geoartifacts.resolver import subregion_filters

        assert subregion_filters(("Maharashtra", "Pune")) == [
            ("NAME_1", "Maharashtra"), ("NAME_2", "Pune"),
        ]
        assert subregion_filters(()) == []
