"""
geobr: official spatial data sets of Brazil, published by IPEA.

IPEA maintains a CSV index (``metadata_<version>_gpkg.csv``) listing every
GeoPackage by ``geo`` (data set), ``year``, ``code`` and ``code_abbrev``
(state code and abbreviation for files split by state). The index itself is
downloaded through the cache, then each data set is one or more rows of it.

Code selectors are disambiguated by type: a number is a numeric code, a
string is an abbreviation. Two-digit codes and two-letter abbreviations
select a state; longer numeric codes select the state file by their first
two digits and are then filtered on the detail column.

When a state-specific file is missing from the index the whole-country
data set is loaded once and filtered instead. That fallback only follows a
NotFoundError; download failures propagate unchanged.
"""

from functools import lru_cache

import geopandas as gpd
import pandas as pd

from geoartifacts import config
from geoartifacts.cache_manager import get_default_cache, make_identifier
from geoartifacts.catalog import Catalog
from geoartifacts.datasets._base import DatasetMeta
from geoartifacts.errors import InvalidArgument, NotFoundError, SchemaMismatch
from geoartifacts.loaders import load
from geoartifacts.logging_config import get_logger
from geoartifacts.resolver import (
    DatasetQuery,
    FamilyDescriptor,
    Resolver,
    check_year,
    split_code,
)
from geoartifacts.schemas import GeoBRMetadataSchema
from geoartifacts.tables import filter_rows

log = get_logger(__name__)

FAMILY = "statistical-area"
PROVIDER = "GeoBR"

ALL = "all"


def get_meta() -> DatasetMeta:
    return DatasetMeta(
        name="geobr",
        family=FAMILY,
        provider=PROVIDER,
        description="Official spatial data sets of Brazil (IBGE and others via IPEA)",
        formats=("gpkg",),
        source_url="https://ipeagit.github.io/geobr/",
        citation="Pereira, R.H.M.; Goncalves, C.N. et al. geobr. IPEA.",
    )


def metadata_url(version=config.GEOBR_VERSION):
    return config.GEOBR_METADATA_URL.format(version=version)


def metadata_path(cache=None, version=config.GEOBR_VERSION):
    """Download (once) the geobr metadata index and return its file path."""
    cache = cache or get_default_cache()
    url = metadata_url(version)
    return cache.path_for(make_identifier(PROVIDER, version, "metadata"), url)


@lru_cache(maxsize=8)
def _catalog_from(path):
    return Catalog.from_csv(FAMILY, path, schema=GeoBRMetadataSchema,
                            url_column="download_path")


def catalog(cache=None) -> Catalog:
    """The geobr metadata index as a Catalog."""
    return _catalog_from(metadata_path(cache))


DESCRIPTOR = FamilyDescriptor(
    family=FAMILY,
    provider=PROVIDER,
    version=config.GEOBR_VERSION,
    catalog=catalog,
    exact_keys=(("geo", "geo"), ("code", "code"), ("abbrev", "code_abbrev")),
    year_key="year",
    validators=(check_year(),),
)

resolver = Resolver(DESCRIPTOR)


def _load_url(url, cache, **kwargs):
    identifier = make_identifier(PROVIDER, config.GEOBR_VERSION, url)
    return load(cache.path_for(identifier, url), **kwargs)


def get(geo, year=None, code=None, abbrev=None, cache=None, **kwargs):
    """Load the first index row matching *geo*, *year*, *code*, *abbrev*.

    ``year=None`` picks the most recent year available for the query.
    """
    cache = cache or get_default_cache()
    query = DatasetQuery.of(FAMILY, geo=geo, year=year, code=code, abbrev=abbrev)
    resolution = resolver.resolve(query, cache)
    return _load_url(resolution.url, cache, **kwargs)


def _concat(tables):
    if len(tables) == 1:
        return tables[0]
    frame = pd.concat(tables, ignore_index=True)
    return gpd.GeoDataFrame(frame, geometry=tables[0].geometry.name,
                            crs=tables[0].crs)


def get_all(geo, year=None, cache=None, **kwargs):
    """Whole-country data set for *geo*.

    Uses the index row coded ``all`` when there is one, otherwise loads
    every row of that year (one per state) and concatenates them.
    """
    cache = cache or get_default_cache()
    check_year()(DatasetQuery.of(FAMILY, year=year))
    cat = catalog(cache)
    if year is None:
        year = int(cat.latest("year", {"geo": geo})["year"])
    rows = list(cat.lookup({"geo": geo, "year": year}))
    whole = [r for r in rows if str(r.get("code")).lower() == ALL]
    targets = whole[:1] or rows
    log.debug("Loading %d file(s) for %s %s", len(targets), geo, year)
    return _concat([_load_url(r.url, cache, **kwargs) for r in targets])


def restrict(table, column, value):
    """Rows whose *column* equals *value*; numeric codes compare as numbers."""
    if column not in table.columns:
        raise SchemaMismatch(f"column {column!r} not found in table", missing=[column])
    if isinstance(value, int):
        return table.loc[pd.to_numeric(table[column], errors="coerce") == value]
    return filter_rows(table, [(column, value)])


def _state_file(geo, year, code, abbrev, cache, **kwargs):
    """One state's file, falling back to the filtered whole-country set."""
    try:
        return get(geo, year, code, abbrev, cache=cache, **kwargs)
    except NotFoundError:
        log.info("No %s file for state %s; filtering the full data set",
                 geo, code if code is not None else abbrev)
        table = get_all(geo, year, cache=cache, **kwargs)
        if code is not None:
            return restrict(table, "code_state", code)
        return restrict(table, "abbrev_state", abbrev)


def get_coded(geo, value, year=None, detail_columns=None, cache=None, **kwargs):
    """Load *geo* scoped by a state or a finer code.

    Parameters
    ----------
    value : int, str or None
        ``None`` or ``"all"`` for the whole country; a two-digit state code
        or two-letter abbreviation for one state; a longer numeric code
        whose digit count is a key of *detail_columns*.
    detail_columns : dict, optional
        Maps code length to the column filtered for that code, e.g.
        ``{7: "code_muni"}``.
    """
    if value is None or value == ALL:
        return get_all(geo, year, cache=cache, **kwargs)
    code, abbrev = split_code(value)
    if abbrev is not None:
        if len(abbrev) != 2:
            raise InvalidArgument(
                f"{geo}: expected a two-letter state abbreviation or 'all', got {abbrev!r}"
            )
        return _state_file(geo, year, None, abbrev, cache, **kwargs)

    digits = len(str(abs(code)))
    if digits <= 2:
        return _state_file(geo, year, code, None, cache, **kwargs)
    column = (detail_columns or {}).get(digits)
    if column is None:
        raise InvalidArgument(
            f"{geo}: code {code} has {digits} digits; expected 2"
            + "".join(f" or {d}" for d in sorted(detail_columns or {}))
        )
    state = int(str(abs(code))[:2])
    table = _state_file(geo, year, state, None, cache, **kwargs)
    return restrict(table, column, code)


def _filter_regions(table, value, detail_column):
    if value == ALL:
        return table
    code, abbrev = split_code(value)
    if abbrev is not None:
        if len(abbrev) != 2:
            raise InvalidArgument(f"expected a two-letter state abbreviation, got {abbrev!r}")
        return restrict(table, "abbrev_state", abbrev)
    if len(str(abs(code))) == 2:
        return restrict(table, "code_state", code)
    return restrict(table, detail_column, code)


# -----------
# PUBLIC API
# -----------


def state(code=ALL, *, year=None, cache=None, **kwargs):
    """States: two-digit code, two-letter abbreviation, or ``"all"``."""
    return get_coded("state", code, year, cache=cache, **kwargs)


def municipality(code=ALL, *, year=None, cache=None, **kwargs):
    """Municipalities of one state, one municipality (7-digit code) or all."""
    return get_coded("municipality", code, year, {7: "code_muni"},
                     cache=cache, **kwargs)


def region(*, year=None, cache=None, **kwargs):
    return get_all("regions", year, cache=cache, **kwargs)


def country(*, year=None, cache=None, **kwargs):
    return get_all("country", year, cache=cache, **kwargs)


def amazon(*, year=None, cache=None, **kwargs):
    """Legal Amazon."""
    return get_all("amazonia_legal", year, cache=cache, **kwargs)


def biomes(*, year=None, cache=None, **kwargs):
    return get_all("biomes", year, cache=cache, **kwargs)


def disaster_risk_area(*, year=None, cache=None, **kwargs):
    return get_all("disaster_risk_area", year, cache=cache, **kwargs)


def health_facilities(*, year=None, cache=None, **kwargs):
    return get_all("health_facilities", year, cache=cache, **kwargs)


def indigenous_land(*, date=None, cache=None, **kwargs):
    """Indigenous lands; *date* is a ``YYYYMM`` integer such as 201907."""
    return get_all("indigenous_land", date, cache=cache, **kwargs)


def metro_area(*, year=None, cache=None, **kwargs):
    return get_all("metropolitan_area", year, cache=cache, **kwargs)


def neighborhood(*, year=None, cache=None, **kwargs):
    return get_all("neighborhood", year, cache=cache, **kwargs)


def urban_area(*, year=None, cache=None, **kwargs):
    return get_all("urban_area", year, cache=cache, **kwargs)


def weighting_area(code=ALL, *, year=None, cache=None, **kwargs):
    """Census weighting areas by state, municipality (7 digits) or area (13)."""
    return get_coded("weighting_area", code, year,
                     {7: "code_muni", 13: "code_weighting"}, cache=cache, **kwargs)


def mesoregion(code=ALL, *, year=None, cache=None, **kwargs):
    """Meso regions by state or 4-digit meso region code."""
    return get_coded("meso_region", code, year, {4: "code_meso"},
                     cache=cache, **kwargs)


def microregion(code=ALL, *, year=None, cache=None, **kwargs):
    """Micro regions by state or 5-digit micro region code."""
    return get_coded("micro_region", code, year, {5: "code_micro"},
                     cache=cache, **kwargs)


def intermediate_region(code=ALL, *, year=None, cache=None, **kwargs):
    """Intermediate regions: all, one state (2 digits or letters), or one region."""
    table = get_all("intermediate_regions", year, cache=cache, **kwargs)
    return _filter_regions(table, code, "code_intermediate")


def immediate_region(code=ALL, *, year=None, cache=None, **kwargs):
    """Immediate regions: all, one state (2 digits or letters), or one region."""
    table = get_all("immediate_regions", year, cache=cache, **kwargs)
    return _filter_regions(table, code, "code_immediate")


def municipal_seat(*, year=None, cache=None, **kwargs):
    return get_all("municipal_seat", year, cache=cache, **kwargs)


def census_tract(code=ALL, *, year=None, cache=None, **kwargs):
    """Census tracts by state or by 7-digit municipality code."""
    return get_coded("census_tract", code, year, {7: "code_muni"},
                     cache=cache, **kwargs)


def statistical_grid(code=ALL, *, year=None, cache=None, **kwargs):
    """IBGE statistical grid: ``"all"`` or one numeric grid quadrant code."""
    if code is None or code == ALL:
        return get_all("statistical_grid", year, cache=cache, **kwargs)
    quadrant, abbrev = split_code(code)
    if abbrev is not None:
        raise InvalidArgument(f"statistical grid code must be a number or 'all', got {code!r}")
    return get("statistical_grid", year, code=quadrant, cache=cache, **kwargs)


def conservation_units(*, date=None, cache=None, **kwargs):
    """Conservation units; *date* is a ``YYYYMM`` integer such as 201909."""
    return get_all("conservation_units", date, cache=cache, **kwargs)


def semiarid(*, year=None, cache=None, **kwargs):
    return get_all("semiarid", year, cache=cache, **kwargs)


def schools(*, year=None, cache=None, **kwargs):
    return get_all("schools", year, cache=cache, **kwargs)


def comparable_areas(*, start_year=1970, end_year=2010, cache=None, **kwargs):
    """Minimum comparable areas of municipalities between two census years."""
    years = config.GEOBR_AMC_YEARS
    if start_year not in years or end_year not in years:
        raise InvalidArgument(
            "Invalid `start_year` or `end_year`. It must be one of the following: "
            + ", ".join(str(y) for y in years)
        )
    if start_year >= end_year:
        raise InvalidArgument(f"start_year ({start_year}) must precede end_year ({end_year})")

    cache = cache or get_default_cache()
    row = catalog(cache).first(
        {"geo": "amc", "year": start_year},
        {"download_path": f"{start_year}_{end_year}"},
    )
    return _load_url(row.url, cache, **kwargs)


def urban_concentrations(*, year=None, cache=None, **kwargs):
    return get_all("urban_concentrations", year, cache=cache, **kwargs)


def pop_arrangements(*, year=None, cache=None, **kwargs):
    # The index spells this data set "pop_arrengements".
    return get_all("pop_arrengements", year, cache=cache, **kwargs)


def health_region(*, year=None, cache=None, **kwargs):
    return get_all("health_region", year, cache=cache, **kwargs)
