"""
GADM administrative boundaries.

Country files are named by convention, so no catalog is needed: the URL
is built from the API version and the ISO 3166 alpha-3 code. Each
GeoPackage holds one layer per administrative level; subregion names
filter the ``NAME_<level>`` columns.

Example::

    from geoartifacts import gadm
    india = gadm("IND")                           # one row, the country
    states = gadm("IND", depth=1)                 # states and territories
    up = gadm("IND", "Uttar Pradesh", depth=1)    # districts of one state
"""

import re

from geoartifacts import config
from geoartifacts.datasets._base import DatasetMeta
from geoartifacts.errors import NotFoundError
from geoartifacts.loaders import load
from geoartifacts.logging_config import get_logger
from geoartifacts.resolver import (
    DatasetQuery,
    FamilyDescriptor,
    Resolver,
    admin_level,
    check_choice,
    check_pattern,
    subregion_filters,
)
from geoartifacts.tables import decimate, filter_rows, fix_geometries

log = get_logger(__name__)

FAMILY = "admin-boundaries"


def get_meta() -> DatasetMeta:
    return DatasetMeta(
        name="gadm",
        family=FAMILY,
        provider="GADM",
        description="Database of Global Administrative Areas",
        formats=("gpkg",),
        source_url="https://gadm.org",
        citation="GADM, the Database of Global Administrative Areas.",
        license="Free for academic and other non-commercial use",
    )


def is_valid_code(code) -> bool:
    """Whether *code* looks like an ISO 3166 alpha-3 code ("IND", "USA")."""
    return isinstance(code, str) and re.match(config.ISO3_PATTERN, code) is not None


def gadm_url(query: DatasetQuery) -> str:
    version = query.get("version")
    country = query.get("country")
    if version == "2.8":
        route = config.GADM_LEGACY_URL
    else:
        route = config.GADM_URL.format(version=version)
    filename = config.GADM_FILENAMES[version].format(country=country)
    return f"{route}/{filename}"


DESCRIPTOR = FamilyDescriptor(
    family=FAMILY,
    provider="GADM",
    version=config.GADM_DEFAULT_VERSION,
    url_template=gadm_url,
    unpack=lambda q: q.get("version") in config.GADM_ZIPPED_VERSIONS,
    validators=(
        check_choice("version", config.GADM_VERSIONS, "API version"),
        check_pattern("country", config.ISO3_PATTERN,
                      "please provide standard ISO 3 country codes"),
    ),
)

resolver = Resolver(DESCRIPTOR)


def download(country, version=config.GADM_DEFAULT_VERSION, cache=None):
    """Download the GeoPackage for *country* and return its cache entry path."""
    query = DatasetQuery.of(FAMILY, country=country, version=version)
    try:
        path, _ = resolver.fetch(query, cache)
    except NotFoundError as exc:
        raise NotFoundError(
            f'country code "{country}" not found, '
            "please provide a standard ISO 3 country code"
        ) from exc
    return path


def dataset(country, layer=0, version=config.GADM_DEFAULT_VERSION,
            cache=None, **kwargs):
    """Load administrative *layer* (level) of *country* as a GeoDataFrame."""
    return load(download(country, version=version, cache=cache),
                layer=layer, **kwargs)


def get(country, *subregions, depth=0, version=config.GADM_DEFAULT_VERSION,
        cache=None, **kwargs):
    """Load a GADM table, optionally restricted to nested subregions.

    Parameters
    ----------
    country : str
        ISO 3166 alpha-3 country code.
    *subregions : str
        Official names in hierarchical order (province, district, ...).
    depth : int
        Levels below the last named subregion to return. 0 returns the
        named region itself.
    version : str
        GADM release: 4.1 (default), 4.0, 3.6 or 2.8.
    """
    level = admin_level(subregions, depth)
    table = dataset(country, layer=level, version=version, cache=cache, **kwargs)
    return filter_rows(table, subregion_filters(subregions))


def gadm(country, *subregions, depth=0, epsilon=None,
         min_vertices=config.DECIMATE_MIN_VERTICES, max_vertices=None,
         maxiter=config.DECIMATE_MAXITER, fix=True,
         version=config.GADM_DEFAULT_VERSION, cache=None, **kwargs):
    """(Down)load GADM boundaries with optional geometry clean-up.

    ``fix`` repairs invalid polygons and normalises ring orientation.
    ``epsilon``, ``min_vertices``, ``max_vertices`` and ``maxiter`` control
    vertex decimation (see geoartifacts.tables.decimate); decimation is off
    unless ``epsilon`` is given.
    """
    table = get(country, *subregions, depth=depth, version=version,
                cache=cache, **kwargs)
    log.debug("GADM %s level %d: %d features", country,
              len(subregions) + depth, len(table))
    if fix:
        table = fix_geometries(table)
    return decimate(table, epsilon, min_vertices=min_vertices,
                    max_vertices=max_vertices, maxiter=maxiter)
